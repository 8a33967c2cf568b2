"""Parsers for ref listings: ``ls-remote``, ``worktree list``, ``for-each-ref``."""

from __future__ import annotations

import re

from typegit.constants import FIELD_SEPARATOR
from typegit.parsers.base import parse_lines
from typegit.parsers.models import BranchInfo, RemoteRef, WorktreeInfo

__all__ = [
    "BRANCH_FORMAT",
    "BRANCH_LIST_ARGS",
    "parse_branch_list",
    "parse_ls_remote",
    "parse_worktree_list",
]

#: ``for-each-ref`` format read by ``parse_branch_list``.
BRANCH_FORMAT = (
    "%(refname:short)%00%(objectname)%00%(upstream:short)%00%(upstream:track)%00%(HEAD)"
)

BRANCH_LIST_ARGS: tuple[str, ...] = (
    "for-each-ref",
    f"--format={BRANCH_FORMAT}",
    "refs/heads",
)

_AHEAD_RE = re.compile(r"ahead (\d+)")
_BEHIND_RE = re.compile(r"behind (\d+)")


def parse_ls_remote(stdout: str) -> list[RemoteRef]:
    """Parse ``git ls-remote`` output (``<hash>\\t<ref>`` per line)."""
    refs: list[RemoteRef] = []
    for line in parse_lines(stdout):
        commit_hash, sep, name = line.partition("\t")
        if sep and commit_hash and name:
            refs.append(RemoteRef(hash=commit_hash, name=name))
    return refs


def parse_worktree_list(stdout: str) -> list[WorktreeInfo]:
    """Parse ``git worktree list --porcelain`` output.

    Each worktree is a block of attribute lines starting with
    ``worktree <path>``; blocks are separated by blank lines.

    Returns:
        Worktrees in output order, the main worktree first.
    """
    worktrees: list[WorktreeInfo] = []
    current: dict[str, object] | None = None

    for line in parse_lines(stdout, keep_empty=True):
        if not line:
            if current is not None:
                worktrees.append(WorktreeInfo(**current))  # type: ignore[arg-type]
                current = None
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            if current is not None:
                worktrees.append(WorktreeInfo(**current))  # type: ignore[arg-type]
            current = {"path": value}
        elif current is None:
            continue
        elif key == "HEAD":
            current["head"] = value
        elif key == "branch":
            current["branch"] = value
        elif key in ("bare", "detached", "locked", "prunable"):
            current[key] = True

    if current is not None:
        worktrees.append(WorktreeInfo(**current))  # type: ignore[arg-type]

    return worktrees


def parse_branch_list(stdout: str) -> list[BranchInfo]:
    """Parse ``git for-each-ref --format=<BRANCH_FORMAT>`` output."""
    branches: list[BranchInfo] = []
    for line in parse_lines(stdout):
        fields = line.split(FIELD_SEPARATOR)
        if len(fields) < 5 or not fields[0]:
            continue

        name, commit, upstream, track, head = fields[:5]
        ahead = _AHEAD_RE.search(track)
        behind = _BEHIND_RE.search(track)
        branches.append(
            BranchInfo(
                name=name,
                commit=commit,
                upstream=upstream or None,
                current=head.strip() == "*",
                ahead=int(ahead.group(1)) if ahead else 0,
                behind=int(behind.group(1)) if behind else 0,
                gone="gone" in track,
            )
        )
    return branches
