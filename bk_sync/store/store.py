"""Store module for the chain of build records of a job."""

from abc import ABC, abstractmethod

from bk_sync.records import BuildSyncRecord


class RecordStore(ABC):
    """Abstract lookup of the records attached to the builds of a job.

    Records are immutable once added. A build may have no record at all, for
    example when its checkout failed.
    """

    @abstractmethod
    def add_record(self, record: BuildSyncRecord) -> None:
        """Attach a record to its build.

        Raises InputException if the build already has a different record.
        """

    @abstractmethod
    def get_record(self, build_id: int) -> BuildSyncRecord | None:
        """Retrieve the record attached to a build."""

    @abstractmethod
    def register_build(self, build_id: int) -> None:
        """Note that a build started, whether or not it will produce a record."""

    @property
    @abstractmethod
    def last_build_id(self) -> int | None:
        """Number of the most recent build that was started or recorded."""

    @abstractmethod
    def list_records(self) -> list[BuildSyncRecord]:
        """List all records ordered by build."""

    def previous_record(self, build_id: int) -> BuildSyncRecord | None:
        """Retrieve the record of the build immediately before the given build."""
        return self.get_record(build_id - 1)

    def last_record(self) -> BuildSyncRecord | None:
        """Retrieve the record of the most recent build.

        This is None when that build has no record, even if an earlier build
        does.
        """
        if (build_id := self.last_build_id) is None:
            return None
        return self.get_record(build_id)
