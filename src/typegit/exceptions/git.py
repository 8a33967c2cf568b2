from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum

from typegit.exceptions.base import TypeGitError


class GitErrorKind(str, Enum):
    """What went wrong with a git invocation.

    ``ABORTED`` always wins: a cancelled run is never reported as an ordinary
    failure, whatever its exit code or stderr say.
    """

    ABORTED = "aborted"
    SPAWN_FAILED = "spawn_failed"
    NON_ZERO_EXIT = "non_zero_exit"


class ErrorCategory(str, Enum):
    """Best-effort hint about the cause of a failure, derived from stderr."""

    AUTH = "auth"
    NETWORK = "network"
    CONFLICT = "conflict"
    PERMISSION = "permission"
    LFS = "lfs"
    CORRUPTION = "corruption"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class GitErrorContext:
    """Everything captured about the failed invocation.

    Attributes:
        argv: Full argument vector that was executed.
        exit_code: Exit code reported by the spawn adapter.
        stdout: Captured standard output.
        stderr: Captured standard error.
        workdir: Working directory for worktree contexts.
        git_dir: Repository directory for bare contexts.
    """

    argv: tuple[str, ...] = ()
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    workdir: str | None = None
    git_dir: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class GitError(TypeGitError):
    """Exception for failed git invocations.

    Raised (or returned by ``GitRunner.map_error``) when a git process was
    cancelled, could not be started, or exited with a non-zero code.

    Attributes:
        message: Human-readable error message, usually the ``fatal:`` line.
        kind: Failure kind (aborted, spawn failure, non-zero exit).
        context: Captured argv, exit code, output and location.
        category: Advisory cause derived from stderr, or None for aborts.
    """

    def __init__(
        self,
        kind: GitErrorKind,
        message: str,
        context: GitErrorContext | None = None,
        category: ErrorCategory | None = None,
    ) -> None:
        """Initialize the GitError.

        Args:
            kind: Failure kind.
            message: Human-readable error message.
            context: Captured invocation details.
            category: Advisory failure category.
        """
        self.kind = kind
        self.context = context or GitErrorContext()
        self.category = category
        super().__init__(message)

    @property
    def exit_code(self) -> int | None:
        """Exit code of the failed process."""
        return self.context.exit_code

    @property
    def stderr(self) -> str:
        """Raw stderr of the failed process."""
        return self.context.stderr

    def __repr__(self) -> str:
        return (
            f"GitError(kind={self.kind.value!r}, message={self.message!r}, "
            f"exit_code={self.context.exit_code!r})"
        )


__all__ = [
    "ErrorCategory",
    "GitError",
    "GitErrorContext",
    "GitErrorKind",
]
