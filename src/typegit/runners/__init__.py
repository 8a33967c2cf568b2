"""Git process execution: argv/env building, spawning, stderr streaming.

Output parsing lives in typegit.parsers.
"""

from __future__ import annotations

from typegit.runners.argv import build_argv, build_env, context_cwd, helper_directory
from typegit.runners.demux import LineBuffer, StderrDemultiplexer, is_trace_line
from typegit.runners.errors import (
    classify_error_kind,
    detect_error_category,
    extract_error_message,
    map_error,
)
from typegit.runners.git import GitRunner, LfsProgressMode
from typegit.runners.lfs_file import LfsProgressFileTailer
from typegit.runners.models import (
    AuditCallback,
    AuditConfig,
    AuditEndEvent,
    AuditEvent,
    AuditStartEvent,
    BareContext,
    CredentialHelper,
    ExecutionContext,
    GitProgress,
    GlobalContext,
    LfsDirection,
    LfsProgress,
    LfsProgressCallback,
    ProcessSpec,
    ProgressCallback,
    ProgressEvent,
    RawResult,
    TraceCallback,
    TraceEvent,
    WorktreeContext,
)
from typegit.runners.progress import (
    parse_byte_size,
    parse_git_progress,
    parse_lfs_progress,
    parse_lfs_stderr_progress,
)
from typegit.runners.spawn import AsyncioSpawnAdapter, SpawnAdapter

__all__ = [
    # Contexts
    "GlobalContext",
    "WorktreeContext",
    "BareContext",
    "ExecutionContext",
    # Models
    "CredentialHelper",
    "ProcessSpec",
    "RawResult",
    "GitProgress",
    "LfsProgress",
    "LfsDirection",
    "ProgressEvent",
    "TraceEvent",
    "AuditStartEvent",
    "AuditEndEvent",
    "AuditEvent",
    "AuditConfig",
    "ProgressCallback",
    "LfsProgressCallback",
    "TraceCallback",
    "AuditCallback",
    # Argv / env
    "build_argv",
    "build_env",
    "context_cwd",
    "helper_directory",
    # Streaming
    "LineBuffer",
    "StderrDemultiplexer",
    "is_trace_line",
    "LfsProgressFileTailer",
    "parse_byte_size",
    "parse_git_progress",
    "parse_lfs_progress",
    "parse_lfs_stderr_progress",
    # Errors
    "classify_error_kind",
    "detect_error_category",
    "extract_error_message",
    "map_error",
    # Runners
    "SpawnAdapter",
    "AsyncioSpawnAdapter",
    "GitRunner",
    "LfsProgressMode",
]
