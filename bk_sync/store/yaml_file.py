"""Record store persisted as a YAML file between builds."""

import logging
from pathlib import Path

import aiofiles
from aiofiles.ospath import exists

from bk_sync.records import BuildHistory

from .in_memory import InMemoryStore


_LOGGER = logging.getLogger(__name__)


class YamlFileStore(InMemoryStore):
    """InMemoryStore that is loaded from and saved to a history file.

    Example:
    ```python
    store = await YamlFileStore.load(Path("history.yaml"))
    store.add_record(BuildSyncRecord(build_id=3, revision="cset"))
    await store.save()
    ```
    """

    def __init__(self, path: Path, history: BuildHistory | None = None) -> None:
        """Initialize the YamlFileStore."""
        if history is None:
            history = BuildHistory()
        super().__init__(history.records, history.last_build_id)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    async def load(cls, path: Path) -> "YamlFileStore":
        """Read the history file, starting empty when it does not exist yet."""
        if not await exists(path):
            _LOGGER.debug("No history at %s, starting empty", path)
            return cls(path)
        async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
            content = await f.read()
        return cls(path, BuildHistory.parse_yaml(content))

    async def save(self) -> None:
        """Write all records to the history file."""
        content = BuildHistory(
            records=self.list_records(), last_build_id=self.last_build_id
        ).yaml()
        async with aiofiles.open(self._path, mode="w", encoding="utf-8") as f:
            await f.write(content)
        _LOGGER.debug("Saved %d records to %s", len(self.list_records()), self._path)
