"""Parsers that turn git's machine-readable stdout into typed models.

Parsers never raise on unexpected input: unknown lines are skipped so newer
git versions that add output keep working.
"""

from __future__ import annotations

from typegit.parsers.base import (
    parse_json,
    parse_key_value,
    parse_lines,
    parse_records,
    unquote_path,
)
from typegit.parsers.diff import (
    parse_diff,
    parse_diff_stats,
    parse_name_only,
    parse_name_status,
    parse_numstat,
)
from typegit.parsers.log import GIT_LOG_FORMAT, LOG_FORMAT_ARG, parse_git_log
from typegit.parsers.models import (
    BranchInfo,
    Commit,
    DiffEntry,
    DiffOutputMode,
    DiffResult,
    DiffStats,
    DiffStatus,
    PorcelainEntry,
    PorcelainEntryKind,
    RemoteRef,
    Signature,
    StatusEntry,
    StatusPorcelain,
    WorktreeInfo,
)
from typegit.parsers.refs import (
    BRANCH_FORMAT,
    BRANCH_LIST_ARGS,
    parse_branch_list,
    parse_ls_remote,
    parse_worktree_list,
)
from typegit.parsers.status import STATUS_ARGS, parse_porcelain_v2, parse_status

__all__ = [
    # Models
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
    # Generic helpers
    "parse_lines",
    "parse_records",
    "parse_key_value",
    "parse_json",
    "unquote_path",
    # Status
    "STATUS_ARGS",
    "parse_status",
    "parse_porcelain_v2",
    # Log
    "GIT_LOG_FORMAT",
    "LOG_FORMAT_ARG",
    "parse_git_log",
    # Diff
    "parse_diff",
    "parse_diff_stats",
    "parse_name_only",
    "parse_name_status",
    "parse_numstat",
    # Refs
    "BRANCH_FORMAT",
    "BRANCH_LIST_ARGS",
    "parse_branch_list",
    "parse_ls_remote",
    "parse_worktree_list",
]
