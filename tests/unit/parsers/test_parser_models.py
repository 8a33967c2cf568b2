"""Tests for parser result models."""

from __future__ import annotations

import pytest

from typegit.parsers.models import (
    BranchInfo,
    DiffEntry,
    DiffResult,
    DiffStatus,
    RemoteRef,
    StatusEntry,
    StatusPorcelain,
    WorktreeInfo,
)


class TestStatusEntry:
    @pytest.mark.parametrize(
        ("index", "staged", "untracked", "ignored"),
        [
            (".", False, False, False),
            ("M", True, False, False),
            ("R", True, False, False),
            ("?", False, True, False),
            ("!", False, False, True),
        ],
    )
    def test_flags(self, index, staged, untracked, ignored):
        """Verify the helper flags follow the index state character."""
        entry = StatusEntry(path="f", index=index, workdir=".")
        assert entry.is_staged is staged
        assert entry.is_untracked is untracked
        assert entry.is_ignored is ignored


class TestStatusPorcelain:
    def test_dirty(self):
        """Verify any non-ignored entry makes the status dirty."""
        status = StatusPorcelain(entries=(StatusEntry(path="f", index=".", workdir="M"),))
        assert status.is_clean is False

    def test_defaults(self):
        """Verify every branch field defaults to None."""
        status = StatusPorcelain()
        assert status.branch is None
        assert status.detached is False


class TestDiffStatus:
    @pytest.mark.parametrize(
        ("code", "status"),
        [
            ("A", DiffStatus.ADDED),
            ("R100", DiffStatus.RENAMED),
            ("c", DiffStatus.COPIED),
            ("T", DiffStatus.TYPE_CHANGED),
            ("", DiffStatus.UNKNOWN),
            ("Q", DiffStatus.UNKNOWN),
        ],
    )
    def test_from_code(self, code, status):
        """Verify only the first letter of the code matters."""
        assert DiffStatus.from_code(code) is status


class TestDiffModels:
    def test_entry_defaults(self):
        """Verify a bare entry is a modification without counts."""
        entry = DiffEntry(path="a.py")
        assert entry.status is DiffStatus.MODIFIED
        assert entry.old_path is None
        assert entry.similarity is None

    def test_result_to_dict(self):
        """Verify raw results serialize with no entries."""
        assert DiffResult(raw="patch").to_dict() == {"entries": [], "raw": "patch"}


class TestRefModels:
    def test_to_dict(self):
        """Verify ref models serialize their fields."""
        assert RemoteRef(hash="abc", name="HEAD").to_dict() == {"hash": "abc", "name": "HEAD"}
        assert WorktreeInfo(path="/w").to_dict()["bare"] is False
        assert BranchInfo(name="main", commit="abc").to_dict()["upstream"] is None
