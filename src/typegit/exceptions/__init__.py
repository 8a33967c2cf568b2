"""typegit exception hierarchy.

All exceptions can be imported from this package:
    from typegit.exceptions import GitError, ConfigError

Output parsers deliberately have no exception type: they drop what they do
not understand. Only execution failures and configuration problems raise.
"""

from __future__ import annotations

# Base exception
from typegit.exceptions.base import TypeGitError

# Configuration exceptions
from typegit.exceptions.config import ConfigError

# Git execution exceptions
from typegit.exceptions.git import (
    ErrorCategory,
    GitError,
    GitErrorContext,
    GitErrorKind,
)

__all__ = [
    # Base
    "TypeGitError",
    # Config
    "ConfigError",
    # Git
    "ErrorCategory",
    "GitError",
    "GitErrorContext",
    "GitErrorKind",
]
