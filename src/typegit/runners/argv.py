"""Argument vector and environment construction for git invocations.

Pure functions: no I/O, no errors. The execution context alone decides which
location flag (if any) precedes the command arguments.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence

from typegit.constants import DEFAULT_GIT_BINARY
from typegit.runners.models import (
    BareContext,
    CredentialHelper,
    ExecutionContext,
    WorktreeContext,
)

__all__ = [
    "build_argv",
    "build_env",
    "context_cwd",
    "context_location",
    "helper_directory",
]


def context_location(context: ExecutionContext) -> tuple[str, ...]:
    """Return the location flag pair for *context* (empty for global)."""
    if isinstance(context, WorktreeContext):
        return ("-C", context.workdir)
    if isinstance(context, BareContext):
        return ("--git-dir", context.git_dir)
    return ()


def context_cwd(context: ExecutionContext) -> str | None:
    """Return the process working directory for *context*."""
    if isinstance(context, WorktreeContext):
        return context.workdir
    return None


def build_argv(
    context: ExecutionContext,
    args: Sequence[str],
    *,
    git_binary: str = DEFAULT_GIT_BINARY,
    credential: CredentialHelper | None = None,
) -> tuple[str, ...]:
    """Build the full argument vector for one invocation.

    Order: binary, credential helper config pair, location flag pair, args.

    Args:
        context: Where the command runs.
        args: Command arguments already computed by the caller.
        git_binary: Path or name of the git executable.
        credential: Optional credential helper configuration.

    Returns:
        The argument vector.

    Example:
        >>> build_argv(WorktreeContext("/repo"), ["status"])
        ('git', '-C', '/repo', 'status')
    """
    argv: list[str] = [git_binary]
    if credential is not None and credential.helper:
        argv.extend(["-c", f"credential.helper={credential.helper}"])
    argv.extend(context_location(context))
    argv.extend(args)
    return tuple(argv)


def helper_directory(helper_path: str) -> str | None:
    """Return the directory part of a helper binary path.

    Accepts both POSIX and Windows separators so a configuration written on
    one platform still works when inspected on another.

    Returns:
        The directory, or None when the path has no directory component.
    """
    separator = "/" if "/" in helper_path else "\\"
    index = helper_path.rfind(separator)
    if index > 0:
        return helper_path[:index]
    return None


def build_env(
    base_env: Mapping[str, str] | None = None,
    *,
    home: str | None = None,
    path_prefix: Sequence[str] = (),
    credential: CredentialHelper | None = None,
    current_path: str | None = None,
    path_separator: str = os.pathsep,
) -> dict[str, str]:
    """Build the environment overrides for one invocation.

    Args:
        base_env: Environment overrides configured on the runner.
        home: Replacement for HOME (and USERPROFILE) to isolate git config.
        path_prefix: Directories to put in front of PATH.
        credential: Credential helper; its binary directory goes first on PATH.
        current_path: The PATH to extend. Defaults to the process PATH.
        path_separator: PATH separator. Defaults to the platform's.

    Returns:
        A new dictionary; *base_env* is not modified.
    """
    env: dict[str, str] = dict(base_env or {})

    if home:
        env["HOME"] = home
        env["USERPROFILE"] = home

    prefixes = list(path_prefix)
    if credential is not None and credential.helper_path:
        helper_dir = helper_directory(credential.helper_path)
        if helper_dir:
            prefixes.insert(0, helper_dir)

    if prefixes:
        if current_path is None:
            current_path = os.environ.get("PATH", "")
        env["PATH"] = path_separator.join([*prefixes, current_path])

    return env
