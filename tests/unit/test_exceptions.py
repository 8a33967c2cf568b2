"""Unit tests for exception classes.

Tests the typegit exception hierarchy:
- TypeGitError
- ConfigError
- GitError and GitErrorContext
"""

from __future__ import annotations

from pathlib import Path

import pytest

from typegit.exceptions import (
    ConfigError,
    ErrorCategory,
    GitError,
    GitErrorContext,
    GitErrorKind,
    TypeGitError,
)

# =============================================================================
# TypeGitError Tests
# =============================================================================


class TestTypeGitError:
    """Tests for the base exception."""

    def test_message(self) -> None:
        """Test that the message is stored and used as str()."""
        error = TypeGitError("something broke")

        assert error.message == "something broke"
        assert str(error) == "something broke"

    def test_is_exception(self) -> None:
        """Test that TypeGitError can be caught as Exception."""
        with pytest.raises(Exception):
            raise TypeGitError("boom")


# =============================================================================
# ConfigError Tests
# =============================================================================


class TestConfigError:
    """Tests for ConfigError."""

    def test_message_only(self) -> None:
        """Test creating ConfigError with message only."""
        error = ConfigError("Failed to parse typegit.yaml")

        assert error.message == "Failed to parse typegit.yaml"
        assert error.field is None
        assert error.value is None
        assert error.path is None

    def test_field_and_value(self) -> None:
        """Test creating ConfigError with field and value."""
        error = ConfigError("Invalid value", field="lfs_progress", value="socket")

        assert error.field == "lfs_progress"
        assert error.value == "socket"

    def test_path(self) -> None:
        """Test the offending file is recorded."""
        error = ConfigError("Invalid YAML", path=Path("/etc/typegit.yaml"))

        assert error.path == Path("/etc/typegit.yaml")

    def test_is_typegit_error(self) -> None:
        """Test ConfigError is a TypeGitError."""
        assert isinstance(ConfigError("x"), TypeGitError)


# =============================================================================
# GitError Tests
# =============================================================================


class TestGitErrorContext:
    """Tests for GitErrorContext."""

    def test_defaults(self) -> None:
        """Test that every field has an empty default."""
        context = GitErrorContext()

        assert context.argv == ()
        assert context.exit_code is None
        assert context.stdout == ""
        assert context.stderr == ""
        assert context.workdir is None
        assert context.git_dir is None

    def test_to_dict(self) -> None:
        """Test serialization of the captured invocation."""
        context = GitErrorContext(
            argv=("git", "-C", "/repo", "push"),
            exit_code=1,
            stderr="error: failed to push some refs",
            workdir="/repo",
        )

        assert context.to_dict() == {
            "argv": ("git", "-C", "/repo", "push"),
            "exit_code": 1,
            "stdout": "",
            "stderr": "error: failed to push some refs",
            "workdir": "/repo",
            "git_dir": None,
        }


class TestGitError:
    """Tests for GitError."""

    def test_attributes(self) -> None:
        """Test kind, message, context and category are stored."""
        context = GitErrorContext(argv=("git", "fetch"), exit_code=128, stderr="fatal: x")
        error = GitError(
            GitErrorKind.NON_ZERO_EXIT,
            "x",
            context,
            category=ErrorCategory.NETWORK,
        )

        assert error.kind is GitErrorKind.NON_ZERO_EXIT
        assert error.message == "x"
        assert str(error) == "x"
        assert error.context is context
        assert error.category is ErrorCategory.NETWORK
        assert error.exit_code == 128
        assert error.stderr == "fatal: x"

    def test_defaults(self) -> None:
        """Test that context and category are optional."""
        error = GitError(GitErrorKind.ABORTED, "Command was aborted")

        assert error.context == GitErrorContext()
        assert error.category is None
        assert error.exit_code is None

    def test_repr(self) -> None:
        """Test repr shows kind, message and exit code."""
        error = GitError(
            GitErrorKind.SPAWN_FAILED,
            "Command not found: git",
            GitErrorContext(exit_code=-1),
        )

        assert repr(error) == (
            "GitError(kind='spawn_failed', message='Command not found: git', "
            "exit_code=-1)"
        )

    def test_is_typegit_error(self) -> None:
        """Test GitError is catchable as TypeGitError."""
        with pytest.raises(TypeGitError):
            raise GitError(GitErrorKind.NON_ZERO_EXIT, "failed")

    def test_enum_values(self) -> None:
        """Test enum members compare equal to their string values."""
        assert GitErrorKind.ABORTED == "aborted"
        assert ErrorCategory.PERMISSION.value == "permission"
        assert {c.value for c in ErrorCategory} == {
            "auth",
            "network",
            "conflict",
            "permission",
            "lfs",
            "corruption",
            "unknown",
        }
