"""Parsers for progress lines written by git and git-lfs.

Every function takes one trimmed line and returns an event or None. None means
"not a progress line", never an error: git and git-lfs add new output over
time and unrecognised lines must simply be skipped.
"""

from __future__ import annotations

import math
import re

from typegit.runners.models import GitProgress, LfsDirection, LfsProgress

__all__ = [
    "parse_byte_size",
    "parse_git_progress",
    "parse_lfs_progress",
    "parse_lfs_stderr_progress",
]

# "Receiving objects:  45% (450/1000), 1.20 MiB | 2.00 MiB/s" / ", done."
_GIT_PERCENT_RE = re.compile(r"^(.+?):\s*(\d+)%\s*\((\d+)/(\d+)\)(?:,\s*(done))?")
# "Receiving objects: 5/10"
_GIT_FRACTION_RE = re.compile(r"^(.+?):\s*(\d+)/(\d+)")

_SIZE = r"\d+(?:\.\d+)?\s*[KMGTP]?i?B"

# git-lfs >= 2.5: "Downloading LFS objects:  50% (1/2), 1.5 MB | 500 KB/s"
_LFS_METER_RE = re.compile(
    r"^(?P<verb>Downloading|Uploading|Filtering content|Checking out)"
    r"(?: LFS objects)?:\s*(?P<percent>\d+)%\s*"
    r"\((?P<completed>\d+)/(?P<total>\d+)\)"
    rf"(?:,\s*(?P<size>{_SIZE}))?"
    rf"(?:\s*\|\s*(?P<rate>{_SIZE}/s))?"
)

# Older git-lfs: "Git LFS: (1 of 2 files) 1.50 MB / 3.00 MB"
_LFS_LEGACY_RE = re.compile(
    r"^Git LFS:\s*\((?P<completed>\d+) of (?P<total>\d+) files?"
    r"(?:,\s*\d+ skipped)?\)\s*"
    rf"(?P<so_far>{_SIZE})\s*/\s*(?P<bytes_total>{_SIZE})"
    rf"(?:,\s*(?P<rate>{_SIZE}/s))?"
)

_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([KMGTP]?)(i?)B$")
_FRACTION_RE = re.compile(r"^(\d+)/(\d+)$")

_UNIT_EXPONENTS = {"": 0, "K": 1, "M": 2, "G": 3, "T": 4, "P": 5}

_VERB_DIRECTIONS: dict[str, LfsDirection] = {
    "Downloading": "download",
    "Filtering content": "download",
    "Uploading": "upload",
    "Checking out": "checkout",
}

_FILE_DIRECTIONS: dict[str, LfsDirection] = {
    "download": "download",
    "upload": "upload",
    "checkout": "checkout",
}


def _round_percent(current: int, total: int) -> int | None:
    if total <= 0:
        return None
    return math.floor(current * 100 / total + 0.5)


def parse_byte_size(text: str) -> int | None:
    """Convert a human-readable size such as ``1.5 MB`` or ``2 MiB`` to bytes.

    SI units (KB, MB, ...) are powers of 1000, IEC units (KiB, MiB, ...) are
    powers of 1024.
    """
    match = _SIZE_RE.match(text.strip())
    if not match:
        return None
    value = float(match.group(1))
    base = 1024 if match.group(3) else 1000
    return int(value * base ** _UNIT_EXPONENTS[match.group(2)])


def parse_git_progress(line: str) -> GitProgress | None:
    """Parse a git progress line.

    Handles ``"<phase>: NN% (current/total)"`` with an optional ``, done``
    suffix, and the percent-less ``"<phase>: current/total"`` form.

    Args:
        line: A single trimmed stderr line.

    Returns:
        GitProgress, or None if the line is not a progress line.
    """
    match = _GIT_PERCENT_RE.match(line)
    if match:
        return GitProgress(
            phase=match.group(1).strip(),
            percent=int(match.group(2)),
            current=int(match.group(3)),
            total=int(match.group(4)),
            message=line,
            done=match.group(5) == "done",
        )

    match = _GIT_FRACTION_RE.match(line)
    if match:
        current = int(match.group(2))
        total = int(match.group(3))
        return GitProgress(
            phase=match.group(1).strip(),
            current=current,
            total=total,
            percent=_round_percent(current, total),
            message=line,
        )

    return None


def parse_lfs_stderr_progress(line: str) -> LfsProgress | None:
    """Parse the progress meter git-lfs writes to stderr.

    Requires ``GIT_LFS_FORCE_PROGRESS=1`` when stderr is not a terminal.
    The modern meter reports file counters and bytes transferred so far but
    no byte total, so ``bytes_total`` is 0 for it.

    Args:
        line: A single trimmed stderr line.

    Returns:
        LfsProgress, or None if the line is not an LFS progress line.
    """
    match = _LFS_METER_RE.match(line)
    if match:
        size = match.group("size")
        return LfsProgress(
            direction=_VERB_DIRECTIONS[match.group("verb")],
            bytes_so_far=(parse_byte_size(size) or 0) if size else 0,
            bitrate=match.group("rate"),
            files_completed=int(match.group("completed")),
            files_total=int(match.group("total")),
            percent=int(match.group("percent")),
        )

    match = _LFS_LEGACY_RE.match(line)
    if match:
        so_far = parse_byte_size(match.group("so_far")) or 0
        bytes_total = parse_byte_size(match.group("bytes_total")) or 0
        completed = int(match.group("completed"))
        total = int(match.group("total"))
        percent = _round_percent(so_far, bytes_total)
        if percent is None:
            percent = _round_percent(completed, total)
        return LfsProgress(
            direction="download",
            bytes_so_far=so_far,
            bytes_total=bytes_total,
            bitrate=match.group("rate"),
            files_completed=completed,
            files_total=total,
            percent=percent,
        )

    return None


def parse_lfs_progress(line: str) -> LfsProgress | None:
    """Parse one line of the ``GIT_LFS_PROGRESS`` sidecar file.

    Format: ``<direction> <current>/<total files> <bytes so far>/<bytes total> <name>``.
    An object id in place of the file counters is tolerated.

    Args:
        line: A single line from the progress file.

    Returns:
        LfsProgress, or None if the line is malformed.
    """
    parts = line.strip().split(maxsplit=3)
    if len(parts) < 3:
        return None

    direction = parts[0]
    if direction not in _FILE_DIRECTIONS:
        return None

    bytes_match = _FRACTION_RE.match(parts[2])
    if not bytes_match:
        return None
    bytes_so_far = int(bytes_match.group(1))
    bytes_total = int(bytes_match.group(2))

    files_completed: int | None = None
    files_total: int | None = None
    files_match = _FRACTION_RE.match(parts[1])
    if files_match:
        files_completed = int(files_match.group(1))
        files_total = int(files_match.group(2))
        name = parts[3] if len(parts) > 3 else None
    else:
        name = parts[1]

    return LfsProgress(
        direction=_FILE_DIRECTIONS[direction],
        bytes_so_far=bytes_so_far,
        bytes_total=bytes_total,
        files_completed=files_completed,
        files_total=files_total,
        percent=_round_percent(bytes_so_far, bytes_total),
        name=name,
    )
