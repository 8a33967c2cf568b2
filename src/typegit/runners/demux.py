"""Stderr demultiplexing into trace and progress events.

git and git-lfs redraw progress meters with a bare carriage return, and the
OS hands stderr over in arbitrary chunks. ``LineBuffer`` turns those chunks
into complete lines; ``StderrDemultiplexer`` routes each line to at most one
sink. Create both per invocation: a buffer shared between concurrent runs
would splice their output together.
"""

from __future__ import annotations

import re
import time

from typegit.runners.models import (
    LfsProgressCallback,
    ProgressCallback,
    TraceCallback,
    TraceEvent,
)
from typegit.runners.progress import parse_git_progress, parse_lfs_stderr_progress

__all__ = ["LineBuffer", "StderrDemultiplexer", "GIT_TRACE_PATTERN", "is_trace_line"]

_LINE_SEPARATOR_RE = re.compile(r"\r|\n")

#: ``GIT_TRACE`` lines: "HH:MM:SS.micros trace: ..." or "HH:MM:SS.micros git.c:123 ..."
GIT_TRACE_PATTERN = re.compile(r"^\d{2}:\d{2}:\d{2}\.\d+\s+(?:trace:|[A-Za-z0-9_.-]+\.c:)")


def is_trace_line(line: str) -> bool:
    """True if *line* is ``GIT_TRACE`` output."""
    return GIT_TRACE_PATTERN.match(line) is not None


class LineBuffer:
    """Accumulate text chunks and hand back complete lines.

    Example:
        >>> buffer = LineBuffer()
        >>> buffer.feed("50%\\n75")
        ['50%']
        >>> buffer.feed("% done\\n")
        ['75% done']
        >>> buffer.flush() is None
        True
    """

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        """Text received after the last line separator."""
        return self._pending

    def feed(self, chunk: str) -> list[str]:
        """Add *chunk* and return the lines it completed.

        Lines are split on ``\\r`` or ``\\n``; a ``\\r\\n`` pair yields an
        extra empty line, which callers skip like any blank line.
        """
        if not chunk:
            return []
        parts = _LINE_SEPARATOR_RE.split(self._pending + chunk)
        self._pending = parts.pop()
        return parts

    def flush(self) -> str | None:
        """Return the trailing partial line, if it has any content, and reset."""
        remainder = self._pending
        self._pending = ""
        if remainder.strip():
            return remainder
        return None


class StderrDemultiplexer:
    """Route stderr lines of one invocation to trace and progress sinks.

    Per line: trace lines go to *on_trace* only; otherwise the LFS grammar is
    tried before the git grammar (LFS meter lines also look like git
    progress). Lines matching nothing are dropped.

    Args:
        on_progress: Receives git progress events.
        on_lfs_progress: Receives LFS progress events.
        on_trace: Receives ``GIT_TRACE`` lines.
    """

    def __init__(
        self,
        *,
        on_progress: ProgressCallback | None = None,
        on_lfs_progress: LfsProgressCallback | None = None,
        on_trace: TraceCallback | None = None,
    ) -> None:
        self._on_progress = on_progress
        self._on_lfs_progress = on_lfs_progress
        self._on_trace = on_trace
        self._buffer = LineBuffer()

    @property
    def active(self) -> bool:
        """True if any sink is configured, i.e. stderr needs streaming."""
        return (
            self._on_progress is not None
            or self._on_lfs_progress is not None
            or self._on_trace is not None
        )

    def feed(self, chunk: str) -> None:
        """Process one stderr chunk."""
        for line in self._buffer.feed(chunk):
            self.handle_line(line)

    def flush(self) -> None:
        """Process the trailing partial line once the stream has ended."""
        remainder = self._buffer.flush()
        if remainder is not None:
            self.handle_line(remainder)

    def handle_line(self, line: str) -> None:
        """Dispatch one complete line to at most one sink."""
        trimmed = line.strip()
        if not trimmed:
            return

        if self._on_trace is not None and is_trace_line(trimmed):
            self._on_trace(TraceEvent(timestamp=int(time.time() * 1000), line=trimmed))
            return

        if self._on_lfs_progress is not None:
            lfs_progress = parse_lfs_stderr_progress(trimmed)
            if lfs_progress is not None:
                self._on_lfs_progress(lfs_progress)
                return

        if self._on_progress is not None:
            progress = parse_git_progress(trimmed)
            if progress is not None:
                self._on_progress(progress)
