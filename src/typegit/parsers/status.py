"""Parser for ``git status --porcelain=v2 --branch``.

Record layouts (fields separated by single spaces, path last):

    # branch.oid <commit> | (initial)
    # branch.head <branch> | (detached)
    # branch.upstream <upstream>
    # branch.ab +<ahead> -<behind>
    1 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <path>
    2 <XY> <sub> <mH> <mI> <mW> <hH> <hI> <X><score> <path><TAB><origPath>
    u <XY> <sub> <m1> <m2> <m3> <mW> <h1> <h2> <h3> <path>
    ? <path>
    ! <path>

Anything else is ignored.
"""

from __future__ import annotations

import re

from typegit.parsers.base import unquote_path
from typegit.parsers.models import PorcelainEntry, StatusEntry, StatusPorcelain

__all__ = ["STATUS_ARGS", "parse_porcelain_v2", "parse_status"]

#: Arguments producing the output ``parse_status`` expects.
STATUS_ARGS: tuple[str, ...] = ("status", "--porcelain=v2", "--branch")

_BRANCH_AB_RE = re.compile(r"^# branch\.ab \+(\d+) -(\d+)")

_BRANCH_OID = "# branch.oid "
_BRANCH_HEAD = "# branch.head "
_BRANCH_UPSTREAM = "# branch.upstream "


def _parse_record(line: str) -> PorcelainEntry | None:
    """Parse one non-header record line, or return None if it is not one."""
    if line.startswith("1 "):
        parts = line.split(" ", 8)
        if len(parts) < 9 or len(parts[1]) != 2:
            return None
        return PorcelainEntry(
            kind="changed",
            xy=parts[1],
            submodule=parts[2],
            modes=tuple(parts[3:6]),
            object_names=tuple(parts[6:8]),
            path=unquote_path(parts[8]),
        )

    if line.startswith("2 "):
        parts = line.split(" ", 9)
        if len(parts) < 10 or len(parts[1]) != 2:
            return None
        path, _, original_path = parts[9].partition("\t")
        return PorcelainEntry(
            kind="renamed",
            xy=parts[1],
            submodule=parts[2],
            modes=tuple(parts[3:6]),
            object_names=tuple(parts[6:8]),
            score=parts[8],
            path=unquote_path(path),
            original_path=unquote_path(original_path) if original_path else None,
        )

    if line.startswith("u "):
        parts = line.split(" ", 10)
        if len(parts) < 11 or len(parts[1]) != 2:
            return None
        return PorcelainEntry(
            kind="unmerged",
            xy=parts[1],
            submodule=parts[2],
            modes=tuple(parts[3:7]),
            object_names=tuple(parts[7:10]),
            path=unquote_path(parts[10]),
        )

    if line.startswith("? "):
        return PorcelainEntry(kind="untracked", path=unquote_path(line[2:]))

    if line.startswith("! "):
        return PorcelainEntry(kind="ignored", path=unquote_path(line[2:]))

    return None


def _to_status_entry(record: PorcelainEntry) -> StatusEntry:
    if record.kind == "untracked":
        return StatusEntry(path=record.path, index="?", workdir="?")
    if record.kind == "ignored":
        return StatusEntry(path=record.path, index="!", workdir="!")
    xy = record.xy or ".."
    return StatusEntry(
        path=record.path,
        index=xy[0],
        workdir=xy[1],
        original_path=record.original_path,
    )


def _iter_lines(stdout: str) -> list[str]:
    # Paths may end in spaces, so only line terminators are stripped
    return [line.rstrip("\r") for line in stdout.split("\n") if line.strip()]


def parse_porcelain_v2(stdout: str) -> list[PorcelainEntry]:
    """Parse every field of each porcelain v2 record, skipping headers.

    Args:
        stdout: Output of ``git status --porcelain=v2``.

    Returns:
        Records in input order.
    """
    records: list[PorcelainEntry] = []
    for line in _iter_lines(stdout):
        record = _parse_record(line)
        if record is not None:
            records.append(record)
    return records


def parse_status(stdout: str) -> StatusPorcelain:
    """Parse ``git status --porcelain=v2 --branch`` output.

    Args:
        stdout: Output of a command run with ``STATUS_ARGS``.

    Returns:
        StatusPorcelain with entries in input order. Branch fields stay None
        when the corresponding header is missing or malformed.

    Example:
        >>> status = parse_status("# branch.head main\\n? new.txt\\n")
        >>> status.branch, status.entries[0].index
        ('main', '?')
    """
    entries: list[StatusEntry] = []
    branch: str | None = None
    upstream: str | None = None
    oid: str | None = None
    ahead: int | None = None
    behind: int | None = None

    for line in _iter_lines(stdout):
        if line.startswith("#"):
            if line.startswith(_BRANCH_HEAD):
                branch = line[len(_BRANCH_HEAD) :].strip()
            elif line.startswith(_BRANCH_UPSTREAM):
                upstream = line[len(_BRANCH_UPSTREAM) :].strip()
            elif line.startswith(_BRANCH_OID):
                oid = line[len(_BRANCH_OID) :].strip()
            else:
                match = _BRANCH_AB_RE.match(line)
                if match:
                    ahead = int(match.group(1))
                    behind = int(match.group(2))
            continue

        record = _parse_record(line)
        if record is not None:
            entries.append(_to_status_entry(record))

    return StatusPorcelain(
        entries=tuple(entries),
        branch=branch,
        upstream=upstream,
        ahead=ahead,
        behind=behind,
        oid=oid,
    )
