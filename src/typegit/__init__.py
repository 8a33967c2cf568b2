"""typegit: a typed async client around the git command-line tool.

Example:
    ```python
    from typegit import GitRunner, WorktreeContext
    from typegit.parsers import STATUS_ARGS, parse_status

    runner = GitRunner()
    result = await runner.run_or_raise(WorktreeContext("/repo"), STATUS_ARGS)
    status = parse_status(result.stdout)
    ```
"""

from __future__ import annotations

from typegit.config import TypeGitConfig, load_config
from typegit.exceptions import (
    ConfigError,
    ErrorCategory,
    GitError,
    GitErrorContext,
    GitErrorKind,
    TypeGitError,
)
from typegit.runners import (
    AsyncioSpawnAdapter,
    AuditConfig,
    BareContext,
    CredentialHelper,
    ExecutionContext,
    GitProgress,
    GitRunner,
    GlobalContext,
    LfsProgress,
    RawResult,
    SpawnAdapter,
    WorktreeContext,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Runner
    "GitRunner",
    "SpawnAdapter",
    "AsyncioSpawnAdapter",
    "GlobalContext",
    "WorktreeContext",
    "BareContext",
    "ExecutionContext",
    "CredentialHelper",
    "AuditConfig",
    "RawResult",
    "GitProgress",
    "LfsProgress",
    # Config
    "TypeGitConfig",
    "load_config",
    # Errors
    "TypeGitError",
    "GitError",
    "GitErrorKind",
    "GitErrorContext",
    "ErrorCategory",
    "ConfigError",
]
