"""Representation of job configuration and per-build synchronization state.

A `RepositoryConfig` is written once when the job is configured and describes
where the upstream repository lives and how the local mirror is maintained.
Every successful checkout produces a `BuildSyncRecord` holding the latest
changeset of the mirror after that checkout, which is the baseline for the
changelog of the next build and for polling.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path, PurePath
from typing import Any, TypeAlias

from mashumaro import DataClassDictMixin
from mashumaro.codecs.yaml import yaml_decode, yaml_encode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField
import yaml

from .exceptions import InputException

__all__ = [
    "ChangesetRevision",
    "RepositoryConfig",
    "BuildSyncRecord",
    "BuildHistory",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
]

_LOGGER = logging.getLogger(__name__)


ChangesetRevision: TypeAlias = str
"""Opaque changeset key reported by the backend, compared by string equality."""

DEFAULT_MAX_ATTEMPTS = 9
"""Number of clone attempts, also passed to `bk pull -c`."""

DEFAULT_RETRY_DELAY = 30.0
"""Seconds to wait between clone attempts."""

_BOOL_FIELDS = ("use_pull", "quiet")


def _decode(content: str, cls: type[Any]) -> Any:
    try:
        return yaml_decode(content, cls)
    except (
        MissingField,
        InvalidFieldValue,
        AttributeError,
        TypeError,
        ValueError,
        yaml.YAMLError,
    ) as err:
        raise InputException(f"Unable to parse {cls.__name__}: {err}") from err


@dataclass(frozen=True)
class RepositoryConfig(DataClassDictMixin):
    """Configuration of the upstream repository and its local mirror."""

    source: str
    """URL or local path of the upstream repository."""

    local_path: str
    """Path of the mirror, relative to the workspace."""

    use_pull: bool = False
    """Update an existing mirror with `bk pull` instead of a fresh clone."""

    quiet: bool = False
    """Run pull and clone in quiet mode instead of listing every file."""

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    """Clone attempts before giving up, and the retry count given to pull."""

    retry_delay: float = DEFAULT_RETRY_DELAY
    """Fixed delay in seconds between clone attempts."""

    timeout: float | None = None
    """Optional limit in seconds for a single backend command."""

    def __post_init__(self) -> None:
        if not self.source:
            raise InputException("Repository source must not be empty")
        if not self.local_path:
            raise InputException("Repository local_path must not be empty")
        local_path = PurePath(self.local_path)
        if local_path.is_absolute() or ".." in local_path.parts:
            raise InputException(
                "local_path must be relative to the workspace "
                f"(was {self.local_path})"
            )
        if local_path == PurePath("."):
            raise InputException("local_path must not be the workspace itself")
        for name in _BOOL_FIELDS:
            if not isinstance(value := getattr(self, name), bool):
                raise InputException(f"{name} must be true or false (was {value!r})")
        if self.max_attempts < 1:
            raise InputException(
                f"max_attempts must be at least 1 (was {self.max_attempts})"
            )
        if self.retry_delay < 0:
            raise InputException(
                f"retry_delay must not be negative (was {self.retry_delay})"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise InputException(f"timeout must be positive (was {self.timeout})")

    def module_root(self, workspace: Path) -> Path:
        """Return the location of the local mirror inside the workspace."""
        path = workspace / self.local_path
        if not path.resolve().is_relative_to(workspace.resolve()):
            raise InputException(
                f"local_path {self.local_path} is outside {workspace}"
            )
        return path

    @classmethod
    def parse_yaml(cls, content: str) -> "RepositoryConfig":
        """Parse a serialized job configuration."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise InputException(f"Unable to parse {cls.__name__}: {err}") from err
        if isinstance(doc, dict):
            for name in _BOOL_FIELDS:
                if name in doc and not isinstance(doc[name], bool):
                    raise InputException(
                        f"{name} must be true or false (was {doc[name]!r})"
                    )
        return _decode(content, cls)  # type: ignore[no-any-return]

    def yaml(self) -> str:
        """Return a YAML string representation of the configuration."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]

    class Config(BaseConfig):
        omit_none = True


@dataclass(frozen=True, order=True)
class BuildSyncRecord(DataClassDictMixin):
    """The latest changeset of the local mirror at the end of a build."""

    build_id: int
    """Number of the build that produced this record."""

    revision: ChangesetRevision
    """Latest changeset key after the checkout of the build completed."""

    def __str__(self) -> str:
        return f"#{self.build_id} @ {self.revision}"


@dataclass
class BuildHistory(DataClassDictMixin):
    """Serialized chain of records across the builds of a job."""

    records: list[BuildSyncRecord] = field(default_factory=list)

    last_build_id: int | None = None
    """Most recent build that was started, including builds without a record."""

    class Config(BaseConfig):
        omit_none = True

    @classmethod
    def parse_yaml(cls, content: str) -> "BuildHistory":
        """Parse a serialized build history."""
        if not content.strip():
            return cls()
        return _decode(content, cls)  # type: ignore[no-any-return]

    def yaml(self) -> str:
        """Return a YAML string representation of the history."""
        return yaml_encode(self, self.__class__)  # type: ignore[return-value]
