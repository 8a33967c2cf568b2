"""Data models for parsed git output.

This module defines immutable, frozen dataclasses for representing:
- Working tree status (StatusEntry, StatusPorcelain, PorcelainEntry)
- Commit history (Signature, Commit)
- Diff summaries (DiffEntry, DiffResult, DiffStats)
- Refs and worktrees (RemoteRef, WorktreeInfo, BranchInfo)

All models use frozen dataclasses with slots for memory efficiency and immutability.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Literal, TypeAlias

from typegit.constants import DETACHED_HEAD

__all__ = [
    "StatusEntry",
    "StatusPorcelain",
    "PorcelainEntry",
    "PorcelainEntryKind",
    "Signature",
    "Commit",
    "DiffStatus",
    "DiffEntry",
    "DiffResult",
    "DiffStats",
    "DiffOutputMode",
    "RemoteRef",
    "WorktreeInfo",
    "BranchInfo",
]


# =============================================================================
# Status
# =============================================================================


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """One path reported by ``git status``.

    Attributes:
        path: Path relative to the repository root.
        index: Staged state character (``M``, ``A``, ``D``, ``R``, ``C``,
            ``U``, ``.``), or ``?``/``!`` for untracked/ignored paths.
        workdir: Unstaged state character, same alphabet.
        original_path: Source path of a rename or copy.
    """

    path: str
    index: str
    workdir: str
    original_path: str | None = None

    @property
    def is_untracked(self) -> bool:
        return self.index == "?"

    @property
    def is_ignored(self) -> bool:
        return self.index == "!"

    @property
    def is_staged(self) -> bool:
        """True if the entry has changes in the index."""
        return self.index not in (".", "?", "!")

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class StatusPorcelain:
    """Parsed ``git status --porcelain=v2 --branch`` output.

    Attributes:
        entries: Entries in the order git printed them.
        branch: Current branch, or ``"(detached)"`` on a detached HEAD.
        upstream: Upstream ref, if one is configured.
        ahead: Commits ahead of upstream.
        behind: Commits behind upstream.
        oid: Commit HEAD points at, or ``"(initial)"`` in a new repository.
    """

    entries: tuple[StatusEntry, ...] = ()
    branch: str | None = None
    upstream: str | None = None
    ahead: int | None = None
    behind: int | None = None
    oid: str | None = None

    @property
    def is_clean(self) -> bool:
        """True if no tracked or untracked paths changed (ignored ones don't count)."""
        return all(entry.is_ignored for entry in self.entries)

    @property
    def detached(self) -> bool:
        return self.branch == DETACHED_HEAD

    def to_dict(self) -> dict[str, object]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "branch": self.branch,
            "upstream": self.upstream,
            "ahead": self.ahead,
            "behind": self.behind,
            "oid": self.oid,
        }


PorcelainEntryKind: TypeAlias = Literal[
    "changed", "renamed", "unmerged", "untracked", "ignored"
]


@dataclass(frozen=True, slots=True)
class PorcelainEntry:
    """Every field of one porcelain v2 status record.

    Fields that a record kind does not carry are None. For unmerged entries
    ``modes`` and ``object_names`` hold the three stages (plus the worktree
    mode), for changed/renamed entries HEAD, index and worktree.

    Attributes:
        kind: Record kind.
        path: Path relative to the repository root.
        xy: Two-character staged/unstaged state.
        submodule: Submodule state field (``N...`` for non-submodules).
        modes: Octal file modes as printed.
        object_names: Object names as printed.
        original_path: Rename/copy source path.
        score: Rename/copy score such as ``R100``.
    """

    kind: PorcelainEntryKind
    path: str
    xy: str | None = None
    submodule: str | None = None
    modes: tuple[str, ...] = ()
    object_names: tuple[str, ...] = ()
    original_path: str | None = None
    score: str | None = None

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Log
# =============================================================================


@dataclass(frozen=True, slots=True)
class Signature:
    """Author or committer identity with a Unix timestamp."""

    name: str
    email: str
    timestamp: int

    @property
    def date(self) -> datetime:
        """The timestamp as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Commit:
    """A commit parsed from ``git log`` output.

    Attributes:
        hash: Full commit hash.
        abbrev_hash: Abbreviated hash.
        parents: Parent hashes; empty for a root commit.
        author: Author identity.
        committer: Committer identity.
        subject: First line of the message.
        body: Rest of the message, trimmed.
    """

    hash: str
    abbrev_hash: str
    parents: tuple[str, ...]
    author: Signature
    committer: Signature
    subject: str
    body: str = ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def message(self) -> str:
        """Subject and body joined the way git shows them."""
        if self.body:
            return f"{self.subject}\n\n{self.body}"
        return self.subject

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Diff
# =============================================================================


class DiffStatus(str, Enum):
    """Change kind of a diff entry."""

    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"
    COPIED = "copied"
    TYPE_CHANGED = "type_changed"
    UNMERGED = "unmerged"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: str) -> DiffStatus:
        """Map a name-status letter (``A``, ``R100``, ...) to a status."""
        return _STATUS_CODES.get(code[:1].upper(), cls.UNKNOWN)


_STATUS_CODES: dict[str, DiffStatus] = {
    "A": DiffStatus.ADDED,
    "D": DiffStatus.DELETED,
    "M": DiffStatus.MODIFIED,
    "R": DiffStatus.RENAMED,
    "C": DiffStatus.COPIED,
    "T": DiffStatus.TYPE_CHANGED,
    "U": DiffStatus.UNMERGED,
    "X": DiffStatus.UNKNOWN,
}


class DiffOutputMode(str, Enum):
    """Output format a diff was produced with."""

    NAME_STATUS = "name-status"
    NAME_ONLY = "name-only"
    NUMSTAT = "numstat"
    STAT = "stat"
    SHORTSTAT = "shortstat"
    PATCH = "patch"


@dataclass(frozen=True, slots=True)
class DiffEntry:
    """One file in a diff summary.

    Attributes:
        path: Path after the change.
        status: Change kind.
        old_path: Path before a rename or copy.
        additions: Added lines, or None if unknown (binary or not reported).
        deletions: Deleted lines, or None if unknown.
        similarity: Rename/copy similarity percentage.
    """

    path: str
    status: DiffStatus = DiffStatus.MODIFIED
    old_path: str | None = None
    additions: int | None = None
    deletions: int | None = None
    similarity: int | None = None

    @property
    def is_binary(self) -> bool:
        """True for numstat entries git reported as binary (``-``)."""
        return self.additions is None and self.deletions is None

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.path,
            "status": self.status.value,
            "old_path": self.old_path,
            "additions": self.additions,
            "deletions": self.deletions,
            "similarity": self.similarity,
        }


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Parsed diff output.

    Attributes:
        entries: Structured entries; empty for unstructured modes.
        raw: Original text for modes without a structured parser.
    """

    entries: tuple[DiffEntry, ...] = ()
    raw: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"entries": [entry.to_dict() for entry in self.entries], "raw": self.raw}


@dataclass(frozen=True, slots=True)
class DiffStats:
    """Totals from the ``--stat``/``--shortstat`` summary line."""

    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0

    @property
    def total_changes(self) -> int:
        return self.insertions + self.deletions

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


# =============================================================================
# Refs and worktrees
# =============================================================================


@dataclass(frozen=True, slots=True)
class RemoteRef:
    """A ref advertised by ``git ls-remote``."""

    hash: str
    name: str

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class WorktreeInfo:
    """A worktree from ``git worktree list --porcelain``.

    Attributes:
        path: Worktree directory.
        head: Checked-out commit.
        branch: Full ref name of the checked-out branch; None when detached.
        bare: True for the bare repository entry.
        detached: True if HEAD is detached.
        locked: True if the worktree is locked.
        prunable: True if git considers the worktree stale.
    """

    path: str
    head: str | None = None
    branch: str | None = None
    bare: bool = False
    detached: bool = False
    locked: bool = False
    prunable: bool = False

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class BranchInfo:
    """A local branch from ``git for-each-ref``.

    Attributes:
        name: Short branch name.
        commit: Commit the branch points at.
        upstream: Short upstream name, if configured.
        current: True for the checked-out branch.
        ahead: Commits ahead of upstream.
        behind: Commits behind upstream.
        gone: True if the upstream branch no longer exists.
    """

    name: str
    commit: str
    upstream: str | None = None
    current: bool = False
    ahead: int = 0
    behind: int = 0
    gone: bool = False

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
