"""Data models for running git processes.

This module defines immutable, frozen dataclasses for representing:
- Execution contexts (GlobalContext, WorktreeContext, BareContext)
- Process specifications and raw results (ProcessSpec, RawResult)
- Streaming events (GitProgress, LfsProgress, TraceEvent)
- Audit events (AuditStartEvent, AuditEndEvent)
- Runner options (CredentialHelper, AuditConfig)

All models use frozen dataclasses with slots for memory efficiency and immutability.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from typing import Literal, TypeAlias

from typegit.constants import SPAWN_FAILED_EXIT_CODE

__all__ = [
    "GlobalContext",
    "WorktreeContext",
    "BareContext",
    "ExecutionContext",
    "CredentialHelper",
    "ProcessSpec",
    "RawResult",
    "GitProgress",
    "LfsProgress",
    "LfsDirection",
    "ProgressEvent",
    "TraceEvent",
    "AuditStartEvent",
    "AuditEndEvent",
    "AuditEvent",
    "AuditConfig",
    "ProgressCallback",
    "LfsProgressCallback",
    "TraceCallback",
    "AuditCallback",
]


# =============================================================================
# Execution context
# =============================================================================


@dataclass(frozen=True, slots=True)
class GlobalContext:
    """Run git without a location flag (``git clone``, ``git version``)."""

    def to_dict(self) -> dict[str, object]:
        return {"type": "global"}


@dataclass(frozen=True, slots=True)
class WorktreeContext:
    """Run git against a working tree with ``-C <workdir>``.

    Attributes:
        workdir: Path of the working tree.
    """

    workdir: str

    def to_dict(self) -> dict[str, object]:
        return {"type": "worktree", "workdir": self.workdir}


@dataclass(frozen=True, slots=True)
class BareContext:
    """Run git against a repository directory with ``--git-dir <git_dir>``.

    Attributes:
        git_dir: Path of the repository metadata directory.
    """

    git_dir: str

    def to_dict(self) -> dict[str, object]:
        return {"type": "bare", "git_dir": self.git_dir}


ExecutionContext: TypeAlias = GlobalContext | WorktreeContext | BareContext


# =============================================================================
# Process specification and result
# =============================================================================


@dataclass(frozen=True, slots=True)
class CredentialHelper:
    """Credential helper passed to git via ``-c credential.helper=...``.

    Attributes:
        helper: Helper name (``store``, ``cache``, ``manager`` or a custom name).
        helper_path: Path of a custom helper binary. Its directory is
            prepended to PATH so git can find ``git-credential-<name>``.
    """

    helper: str | None = None
    helper_path: str | None = None


@dataclass(frozen=True, slots=True)
class ProcessSpec:
    """Everything needed to start one git process.

    Attributes:
        argv: Binary followed by its arguments.
        env: Environment overrides, applied on top of the parent environment.
        cwd: Working directory, or None to inherit.
        cancel: Event that aborts the process when set.
    """

    argv: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)
    cwd: str | None = None
    cancel: asyncio.Event | None = None


@dataclass(frozen=True, slots=True)
class RawResult:
    """Captured outcome of one git process.

    Attributes:
        stdout: Full standard output.
        stderr: Full standard error.
        exit_code: Process exit code. ``SPAWN_FAILED_EXIT_CODE`` (-1) means
            the process could not be started.
        aborted: True if the run was cancelled.
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    aborted: bool = False

    @property
    def success(self) -> bool:
        """True if the process exited 0 and was not aborted."""
        return self.exit_code == 0 and not self.aborted

    @property
    def spawn_failed(self) -> bool:
        """True if the process never started."""
        return self.exit_code == SPAWN_FAILED_EXIT_CODE

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Streaming events
# =============================================================================


@dataclass(frozen=True, slots=True)
class GitProgress:
    """Progress line emitted by git itself on stderr.

    Parsed from lines such as ``Receiving objects:  45% (450/1000)``.

    Attributes:
        phase: Phase name (``Counting objects``, ``Receiving objects``).
        current: Items processed so far.
        total: Total items, or None if unknown.
        percent: Completion percentage, or None if unknown.
        message: The trimmed stderr line the event was parsed from.
        done: True if git marked the phase as finished.
    """

    phase: str
    current: int
    total: int | None = None
    percent: int | None = None
    message: str = ""
    done: bool = False

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


LfsDirection: TypeAlias = Literal["download", "upload", "checkout"]


@dataclass(frozen=True, slots=True)
class LfsProgress:
    """Git LFS transfer progress.

    Produced from either git-lfs's stderr progress meter or the
    ``GIT_LFS_PROGRESS`` sidecar file, whichever the runner is set up for.

    Attributes:
        direction: Transfer direction.
        bytes_so_far: Bytes transferred so far.
        bytes_total: Total bytes, 0 when the source line does not report it.
        bitrate: Transfer rate as printed by git-lfs (``"500 KB/s"``).
        files_completed: Files finished so far.
        files_total: Files in the transfer.
        percent: Completion percentage.
        name: File name or object id the line refers to (sidecar form).
    """

    direction: LfsDirection
    bytes_so_far: int
    bytes_total: int = 0
    bitrate: str | None = None
    files_completed: int | None = None
    files_total: int | None = None
    percent: int | None = None
    name: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


ProgressEvent: TypeAlias = GitProgress | LfsProgress


@dataclass(frozen=True, slots=True)
class TraceEvent:
    """A ``GIT_TRACE`` line seen on stderr.

    Attributes:
        timestamp: Wall-clock time the line was seen, in epoch milliseconds.
        line: The trimmed trace line.
    """

    timestamp: int
    line: str


# =============================================================================
# Audit events
# =============================================================================


@dataclass(frozen=True, slots=True)
class AuditStartEvent:
    """Emitted right before a git process is spawned."""

    timestamp: int
    argv: tuple[str, ...]
    context: ExecutionContext
    type: Literal["start"] = "start"


@dataclass(frozen=True, slots=True)
class AuditEndEvent:
    """Emitted after a git process resolved or the adapter raised.

    Attributes:
        timestamp: Epoch milliseconds at resolution.
        argv: Argument vector that was executed.
        context: Execution context of the run.
        stdout: Captured stdout (empty if the adapter raised).
        stderr: Captured stderr, or the adapter exception text.
        exit_code: Exit code, -1 if the adapter raised.
        aborted: True if the run was cancelled.
        duration_ms: Milliseconds between the start and end events.
    """

    timestamp: int
    argv: tuple[str, ...]
    context: ExecutionContext
    stdout: str
    stderr: str
    exit_code: int
    aborted: bool
    duration_ms: int
    type: Literal["end"] = "end"


AuditEvent: TypeAlias = AuditStartEvent | AuditEndEvent

ProgressCallback: TypeAlias = Callable[[GitProgress], None]
LfsProgressCallback: TypeAlias = Callable[[LfsProgress], None]
TraceCallback: TypeAlias = Callable[[TraceEvent], None]
AuditCallback: TypeAlias = Callable[[AuditEvent], None]


@dataclass(frozen=True, slots=True)
class AuditConfig:
    """Audit sinks for command tracking.

    Attributes:
        on_audit: Receives one start and one end event per invocation.
        on_trace: Receives ``GIT_TRACE`` lines. Setting it enables GIT_TRACE.
    """

    on_audit: AuditCallback | None = None
    on_trace: TraceCallback | None = None
