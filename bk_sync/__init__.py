"""
bk-sync keeps a local mirror of a BitKeeper repository in sync for a build.

Each build of a job runs a `checkout`, which clones or pulls the mirror,
saves the changes since the previous build and records the latest changeset.
Between builds, `poll.compare_remote_revision` asks the upstream repository
whether it moved past that recorded changeset.
"""

__all__ = [
    "bk",
    "changelog",
    "checkout",
    "command",
    "exceptions",
    "poll",
    "records",
    "revision",
    "store",
    "sync",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
