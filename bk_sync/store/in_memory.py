"""Module for in memory record store."""

import logging

from bk_sync.exceptions import InputException
from bk_sync.records import BuildSyncRecord

from .store import RecordStore


_LOGGER = logging.getLogger(__name__)


class InMemoryStore(RecordStore):
    """In-memory implementation of the RecordStore interface.

    Records are keyed by build id.
    """

    def __init__(
        self,
        records: list[BuildSyncRecord] | None = None,
        last_build_id: int | None = None,
    ) -> None:
        """Initialize the InMemoryStore."""
        self._records: dict[int, BuildSyncRecord] = {}
        self._last_build_id = last_build_id
        for record in records or []:
            self.add_record(record)

    def add_record(self, record: BuildSyncRecord) -> None:
        """Attach a record to its build."""
        if (existing := self._records.get(record.build_id)) is not None:
            if existing == record:
                _LOGGER.debug("Record %s already exists in store, skipping", record)
                return
            raise InputException(
                f"Build #{record.build_id} already has revision {existing.revision}"
                f" (was given {record.revision})"
            )
        _LOGGER.debug("Adding record %s to store", record)
        self._records[record.build_id] = record
        self.register_build(record.build_id)

    def register_build(self, build_id: int) -> None:
        """Note that a build started."""
        if self._last_build_id is None or build_id > self._last_build_id:
            self._last_build_id = build_id

    @property
    def last_build_id(self) -> int | None:
        """Number of the most recent build that was started or recorded."""
        return self._last_build_id

    def get_record(self, build_id: int) -> BuildSyncRecord | None:
        """Retrieve the record attached to a build."""
        return self._records.get(build_id)

    def list_records(self) -> list[BuildSyncRecord]:
        """List all records ordered by build."""
        return sorted(self._records.values())
