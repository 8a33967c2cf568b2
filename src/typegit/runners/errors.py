"""Classification of finished git invocations into ``GitError``.

Decision order, first match wins:

1. ``aborted`` -> ``ABORTED`` (regardless of exit code or stderr)
2. exit code 0 -> success, no error
3. exit code -1 or "command not found" in stderr -> ``SPAWN_FAILED``
4. anything else -> ``NON_ZERO_EXIT``

Categories are a keyword scan of stderr and purely advisory.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from typegit.constants import SPAWN_FAILED_EXIT_CODE
from typegit.exceptions import ErrorCategory, GitError, GitErrorContext, GitErrorKind
from typegit.runners.models import (
    BareContext,
    ExecutionContext,
    RawResult,
    WorktreeContext,
)

__all__ = [
    "ABORTED_MESSAGE",
    "classify_error_kind",
    "detect_error_category",
    "extract_error_message",
    "map_error",
]

ABORTED_MESSAGE = "Command was aborted"

_FATAL_RE = re.compile(r"fatal:\s*(.+)", re.IGNORECASE)
_ERROR_RE = re.compile(r"error:\s*(.+)", re.IGNORECASE)

_CATEGORY_PATTERNS: tuple[tuple[ErrorCategory, re.Pattern[str]], ...] = (
    (
        ErrorCategory.AUTH,
        re.compile(
            r"\bauthentication\b|permission denied \(publickey|"
            r"could not read username|invalid username or password|"
            r"(?:HTTP|error:?)\s*40[13]\b|(?<![\w/])401(?![\w/])|"
            r"terminal prompts disabled",
            re.IGNORECASE,
        ),
    ),
    (
        ErrorCategory.NETWORK,
        re.compile(
            r"could not resolve host|connection timed out|connection refused|"
            r"could not read from remote repository|network is unreachable|"
            r"unable to access|early eof|the remote end hung up|"
            r"operation timed out|ssl certificate|gnutls|ENOTFOUND|\bnetwork\b",
            re.IGNORECASE,
        ),
    ),
    (
        ErrorCategory.CONFLICT,
        re.compile(
            r"\bCONFLICT\b|fix conflicts|merge conflict|unmerged files|"
            r"would be overwritten|non-fast-forward|\[rejected\]",
            re.IGNORECASE,
        ),
    ),
    (
        ErrorCategory.LFS,
        re.compile(r"\bLFS\b|smudge filter lfs|git-lfs", re.IGNORECASE),
    ),
    (
        ErrorCategory.PERMISSION,
        re.compile(
            r"cannot lock ref|\.lock\b.*(?:permission denied|file exists)|"
            r"permission denied|EACCES|read-only file system|unable to create",
            re.IGNORECASE,
        ),
    ),
    (
        ErrorCategory.CORRUPTION,
        re.compile(
            r"bad object|is corrupt|corrupt(?:ed)? (?:object|pack|loose)|"
            r"invalid sha1 pointer|broken link|missing blob|fsck",
            re.IGNORECASE,
        ),
    ),
)


def detect_error_category(stderr: str) -> ErrorCategory:
    """Guess the cause of a failure from its stderr.

    Categories are checked in a fixed order (auth, network, conflict, LFS,
    permission, corruption), so ``Permission denied (publickey)`` is an auth
    problem rather than a filesystem one.

    Example:
        >>> detect_error_category("fatal: Authentication failed for 'https://x'")
        <ErrorCategory.AUTH: 'auth'>
    """
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(stderr):
            return category
    return ErrorCategory.UNKNOWN


def classify_error_kind(result: RawResult) -> GitErrorKind | None:
    """Return the failure kind of *result*, or None if it succeeded."""
    if result.aborted:
        return GitErrorKind.ABORTED
    if result.exit_code == 0:
        return None
    if (
        result.exit_code == SPAWN_FAILED_EXIT_CODE
        or "command not found" in result.stderr.lower()
    ):
        return GitErrorKind.SPAWN_FAILED
    return GitErrorKind.NON_ZERO_EXIT


def extract_error_message(stderr: str, exit_code: int, tool: str = "Git") -> str:
    """Pick the most useful line of *stderr* as the error message.

    Prefers the text after ``fatal:``, then after ``error:``, then the first
    non-empty line.

    Args:
        stderr: Captured standard error.
        exit_code: Exit code, used when stderr is empty.
        tool: Tool name for the fallback message.

    Returns:
        The message, never empty.
    """
    text = stderr.strip()

    match = _FATAL_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    match = _ERROR_RE.search(text)
    if match and match.group(1).strip():
        return match.group(1).strip()

    for line in text.splitlines():
        if line.strip():
            return line.strip()

    return f"{tool} exited with code {exit_code}"


def map_error(
    result: RawResult,
    context: ExecutionContext,
    argv: Sequence[str],
) -> GitError | None:
    """Convert a raw result into a ``GitError``, or None on success.

    Args:
        result: Outcome of the invocation.
        context: Where the command ran; its location lands in the error context.
        argv: Argument vector that was executed.

    Returns:
        GitError describing the failure, or None if the run succeeded.
    """
    kind = classify_error_kind(result)
    if kind is None:
        return None

    error_context = GitErrorContext(
        argv=tuple(argv),
        exit_code=result.exit_code,
        stdout=result.stdout,
        stderr=result.stderr,
        workdir=context.workdir if isinstance(context, WorktreeContext) else None,
        git_dir=context.git_dir if isinstance(context, BareContext) else None,
    )

    if kind is GitErrorKind.ABORTED:
        return GitError(kind, ABORTED_MESSAGE, error_context)

    return GitError(
        kind,
        extract_error_message(result.stderr, result.exit_code),
        error_context,
        category=detect_error_category(result.stderr),
    )
