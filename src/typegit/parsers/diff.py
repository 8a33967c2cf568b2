"""Parsers for diff summary output (``--name-status``, ``--name-only``, ``--numstat``)."""

from __future__ import annotations

import re

from typegit.parsers.base import unquote_path
from typegit.parsers.models import (
    DiffEntry,
    DiffOutputMode,
    DiffResult,
    DiffStats,
    DiffStatus,
)

__all__ = [
    "parse_diff",
    "parse_diff_stats",
    "parse_name_only",
    "parse_name_status",
    "parse_numstat",
]

# "M\tpath", "R100\told\tnew", "C75\tsrc\tdst"
_NAME_STATUS_RE = re.compile(r"^([A-Z])(\d*)\t([^\t]+)(?:\t([^\t]+))?$")

# "12\t3\tpath", "-\t-\tbinary.png"
_NUMSTAT_RE = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")

# "src/{old => new}/file.py", "{ => sub}/file.py"
_BRACE_RENAME_RE = re.compile(r"^(.*)\{(.*) => (.*)\}(.*)$")

_DIFF_STAT_SUMMARY_RE = re.compile(
    r"(\d+)\s+files?\s+changed"
    r"(?:,\s+(\d+)\s+insertions?\(\+\))?"
    r"(?:,\s+(\d+)\s+deletions?\(-\))?",
)


def _iter_lines(stdout: str) -> list[str]:
    return [line.rstrip("\r") for line in stdout.split("\n") if line.strip()]


def parse_name_status(stdout: str) -> list[DiffEntry]:
    """Parse ``git diff --name-status`` output.

    Renames and copies carry a similarity score after the status letter and
    two paths; the first is the old path.

    Example:
        >>> parse_name_status("R100\\told.txt\\tnew.txt\\n")[0].old_path
        'old.txt'
    """
    entries: list[DiffEntry] = []
    for line in _iter_lines(stdout):
        match = _NAME_STATUS_RE.match(line)
        if not match:
            continue

        code, score, first, second = match.groups()
        similarity = int(score) if score else None
        if second is not None:
            entries.append(
                DiffEntry(
                    path=unquote_path(second),
                    status=DiffStatus.from_code(code),
                    old_path=unquote_path(first),
                    similarity=similarity,
                )
            )
        else:
            entries.append(
                DiffEntry(
                    path=unquote_path(first),
                    status=DiffStatus.from_code(code),
                    similarity=similarity,
                )
            )
    return entries


def parse_name_only(stdout: str) -> list[DiffEntry]:
    """Parse ``git diff --name-only`` output; every entry is ``MODIFIED``."""
    return [
        DiffEntry(path=unquote_path(line), status=DiffStatus.MODIFIED)
        for line in _iter_lines(stdout)
    ]


def _join_brace(prefix: str, middle: str, suffix: str) -> str:
    # "{ => sub}/f" and "a/{b => }/f" leave a dangling separator on one side
    if not middle and suffix.startswith("/") and (not prefix or prefix.endswith("/")):
        suffix = suffix[1:]
    return f"{prefix}{middle}{suffix}"


def _split_rename(path: str) -> tuple[str, str] | None:
    """Expand numstat rename notation into ``(old_path, new_path)``."""
    match = _BRACE_RENAME_RE.match(path)
    if match:
        prefix, old, new, suffix = match.groups()
        return _join_brace(prefix, old, suffix), _join_brace(prefix, new, suffix)
    if " => " in path:
        old_path, new_path = path.split(" => ", 1)
        return old_path, new_path
    return None


def parse_numstat(stdout: str) -> list[DiffEntry]:
    """Parse ``git diff --numstat`` output.

    ``-`` counts (binary files) become None. Renamed paths written as
    ``old => new`` or ``dir/{old => new}`` are split into old and new path.
    """
    entries: list[DiffEntry] = []
    for line in _iter_lines(stdout):
        match = _NUMSTAT_RE.match(line)
        if not match:
            continue

        added, deleted, path = match.groups()
        additions = None if added == "-" else int(added)
        deletions = None if deleted == "-" else int(deleted)

        renamed = _split_rename(path)
        if renamed is not None:
            old_path, new_path = renamed
            entries.append(
                DiffEntry(
                    path=new_path,
                    status=DiffStatus.RENAMED,
                    old_path=old_path,
                    additions=additions,
                    deletions=deletions,
                )
            )
        else:
            entries.append(
                DiffEntry(
                    path=unquote_path(path),
                    status=DiffStatus.MODIFIED,
                    additions=additions,
                    deletions=deletions,
                )
            )
    return entries


def parse_diff(stdout: str, mode: DiffOutputMode | str) -> DiffResult:
    """Parse diff output according to the mode it was produced with.

    Modes without a structured parser return the text untouched in ``raw``.

    Args:
        stdout: Raw diff output.
        mode: Output mode, as a ``DiffOutputMode`` or its string value.

    Returns:
        DiffResult with entries, or with ``raw`` set for other modes.
    """
    if mode == DiffOutputMode.NAME_STATUS:
        return DiffResult(entries=tuple(parse_name_status(stdout)))
    if mode == DiffOutputMode.NAME_ONLY:
        return DiffResult(entries=tuple(parse_name_only(stdout)))
    if mode == DiffOutputMode.NUMSTAT:
        return DiffResult(entries=tuple(parse_numstat(stdout)))
    return DiffResult(entries=(), raw=stdout)


def parse_diff_stats(stdout: str) -> DiffStats:
    """Parse the summary line of ``--stat`` or ``--shortstat`` output.

    Returns:
        DiffStats; all zeros if no summary line is present.
    """
    match = _DIFF_STAT_SUMMARY_RE.search(stdout)
    if not match:
        return DiffStats()
    return DiffStats(
        files_changed=int(match.group(1)),
        insertions=int(match.group(2)) if match.group(2) else 0,
        deletions=int(match.group(3)) if match.group(3) else 0,
    )
