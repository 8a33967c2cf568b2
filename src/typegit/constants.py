"""Shared constants for typegit.

Wire-format separators live here because the log format string and its parser
must change together.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_GIT_BINARY",
    "SPAWN_FAILED_EXIT_CODE",
    "TERMINATION_GRACE_PERIOD",
    "PROGRESS_POLL_INTERVAL",
    "FIELD_SEPARATOR",
    "RECORD_SEPARATOR",
    "DETACHED_HEAD",
    "GIT_TRACE_ENV",
    "GIT_LFS_FORCE_PROGRESS_ENV",
    "GIT_LFS_PROGRESS_ENV",
]

DEFAULT_GIT_BINARY = "git"

#: Exit code reported when the process could not be started at all.
SPAWN_FAILED_EXIT_CODE = -1

#: Seconds between SIGTERM and SIGKILL when cancelling a child process.
TERMINATION_GRACE_PERIOD: float = 2.0

#: Seconds between reads of the LFS progress file.
PROGRESS_POLL_INTERVAL: float = 0.1

#: Separates fields of one commit in ``GIT_LOG_FORMAT`` output (``%x00``).
FIELD_SEPARATOR = "\x00"

#: Terminates each commit record in ``GIT_LOG_FORMAT`` output (``%x01``).
RECORD_SEPARATOR = "\x01"

#: Value of ``# branch.head`` when HEAD is detached.
DETACHED_HEAD = "(detached)"

GIT_TRACE_ENV = "GIT_TRACE"
GIT_LFS_FORCE_PROGRESS_ENV = "GIT_LFS_FORCE_PROGRESS"
GIT_LFS_PROGRESS_ENV = "GIT_LFS_PROGRESS"
