"""Storage of the changeset recorded for each build of a job."""

from .store import RecordStore
from .in_memory import InMemoryStore
from .yaml_file import YamlFileStore

__all__ = [
    "RecordStore",
    "InMemoryStore",
    "YamlFileStore",
]
