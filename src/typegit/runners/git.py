"""Streaming git runner.

``GitRunner`` ties the pieces of an invocation together: it builds argv and
environment for an execution context, hands the process to a ``SpawnAdapter``,
routes stderr through a per-call ``StderrDemultiplexer``, reports audit
events, and classifies failures.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Literal, TypeAlias

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from typegit.constants import (
    DEFAULT_GIT_BINARY,
    GIT_LFS_FORCE_PROGRESS_ENV,
    GIT_LFS_PROGRESS_ENV,
    GIT_TRACE_ENV,
    PROGRESS_POLL_INTERVAL,
    SPAWN_FAILED_EXIT_CODE,
)
from typegit.exceptions import ErrorCategory, GitError, GitErrorKind
from typegit.logging import get_logger
from typegit.runners.argv import build_argv, build_env, context_cwd
from typegit.runners.demux import StderrDemultiplexer
from typegit.runners.errors import map_error
from typegit.runners.lfs_file import LfsProgressFileTailer
from typegit.runners.models import (
    AuditConfig,
    AuditEndEvent,
    AuditEvent,
    AuditStartEvent,
    CredentialHelper,
    ExecutionContext,
    LfsProgressCallback,
    ProcessSpec,
    ProgressCallback,
    RawResult,
)
from typegit.runners.spawn import AsyncioSpawnAdapter, SpawnAdapter

if TYPE_CHECKING:
    from typegit.config import TypeGitConfig

__all__ = ["GitRunner", "LfsProgressMode"]

logger = get_logger(__name__)

LfsProgressMode: TypeAlias = Literal["stderr", "file"]

#: Upper bound for the backoff between retries, in seconds.
MAX_RETRY_WAIT: float = 10.0


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_retryable(exc: BaseException) -> bool:
    """Only transient network failures are worth another attempt."""
    return (
        isinstance(exc, GitError)
        and exc.kind is GitErrorKind.NON_ZERO_EXIT
        and exc.category is ErrorCategory.NETWORK
    )


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "git_command_retrying",
        attempt=retry_state.attempt_number,
        error=str(exc) if exc else None,
    )


class GitRunner:
    """Run git commands through a spawn adapter.

    A runner holds options only; every invocation gets its own line buffers
    and demultiplexer, so one runner can serve many concurrent commands.

    Attributes:
        adapter: Spawn adapter used for every invocation.
        git_binary: Path or name of the git executable.
        env: Environment overrides applied to every invocation.
        path_prefix: Directories put in front of PATH.
        home: Replacement HOME directory, if any.
        credential: Credential helper configuration, if any.
        audit: Audit and trace sinks, if any.
        lfs_progress: Where LFS progress is read from (stderr meter or
            ``GIT_LFS_PROGRESS`` file).

    Example:
        ```python
        runner = GitRunner()
        result = await runner.run(
            WorktreeContext("/repo"),
            ["fetch", "--progress", "origin"],
            on_progress=lambda p: print(p.phase, p.percent),
        )
        ```
    """

    def __init__(
        self,
        adapter: SpawnAdapter | None = None,
        *,
        git_binary: str = DEFAULT_GIT_BINARY,
        env: Mapping[str, str] | None = None,
        path_prefix: Sequence[str] = (),
        home: str | None = None,
        credential: CredentialHelper | None = None,
        audit: AuditConfig | None = None,
        lfs_progress: LfsProgressMode = "stderr",
        progress_poll_interval: float = PROGRESS_POLL_INTERVAL,
    ) -> None:
        """Initialize the GitRunner.

        Args:
            adapter: Spawn adapter. Defaults to ``AsyncioSpawnAdapter()``.
            git_binary: Path or name of the git executable.
            env: Environment overrides for every invocation.
            path_prefix: Directories to prepend to PATH.
            home: Replacement for HOME/USERPROFILE to isolate user config.
            credential: Credential helper passed via ``-c credential.helper``.
            audit: Audit event and GIT_TRACE sinks.
            lfs_progress: ``"stderr"`` to parse git-lfs's meter from stderr,
                ``"file"`` to tail a ``GIT_LFS_PROGRESS`` file.
            progress_poll_interval: Poll interval for the LFS progress file.
        """
        self._adapter: SpawnAdapter = adapter if adapter is not None else AsyncioSpawnAdapter()
        self._git_binary = git_binary
        self._env: dict[str, str] = dict(env or {})
        self._path_prefix: tuple[str, ...] = tuple(path_prefix)
        self._home = home
        self._credential = credential
        self._audit = audit
        self._lfs_progress: LfsProgressMode = lfs_progress
        self._progress_poll_interval = progress_poll_interval

    @classmethod
    def from_config(
        cls,
        config: TypeGitConfig,
        adapter: SpawnAdapter | None = None,
        *,
        audit: AuditConfig | None = None,
    ) -> GitRunner:
        """Create a runner from loaded configuration.

        Args:
            config: Configuration, usually from ``load_config()``.
            adapter: Spawn adapter. Defaults to an ``AsyncioSpawnAdapter``
                using the configured termination grace period.
            audit: Audit sinks (callbacks cannot come from configuration).

        Returns:
            A configured GitRunner.
        """
        if adapter is None:
            adapter = AsyncioSpawnAdapter(
                termination_grace_period=config.termination_grace_period
            )
        credential: CredentialHelper | None = None
        if config.credential.helper or config.credential.helper_path:
            credential = CredentialHelper(
                helper=config.credential.helper,
                helper_path=config.credential.helper_path,
            )
        return cls(
            adapter,
            git_binary=config.git_binary,
            env=config.env,
            path_prefix=config.path_prefix,
            home=config.home,
            credential=credential,
            audit=audit,
            lfs_progress=config.lfs_progress,
            progress_poll_interval=config.progress_poll_interval,
        )

    @property
    def adapter(self) -> SpawnAdapter:
        """Spawn adapter used for every invocation."""
        return self._adapter

    @property
    def git_binary(self) -> str:
        """Path or name of the git executable."""
        return self._git_binary

    @property
    def env(self) -> dict[str, str]:
        """Copy of the environment overrides."""
        return dict(self._env)

    @property
    def path_prefix(self) -> tuple[str, ...]:
        """Directories put in front of PATH."""
        return self._path_prefix

    @property
    def home(self) -> str | None:
        """Replacement HOME directory."""
        return self._home

    @property
    def credential(self) -> CredentialHelper | None:
        """Credential helper configuration."""
        return self._credential

    @property
    def audit(self) -> AuditConfig | None:
        """Audit and trace sinks."""
        return self._audit

    @property
    def lfs_progress(self) -> LfsProgressMode:
        """Source of LFS progress events."""
        return self._lfs_progress

    def with_options(
        self,
        *,
        git_binary: str | None = None,
        env: Mapping[str, str] | None = None,
        path_prefix: Sequence[str] | None = None,
        home: str | None = None,
        credential: CredentialHelper | None = None,
        audit: AuditConfig | None = None,
        lfs_progress: LfsProgressMode | None = None,
    ) -> GitRunner:
        """Derive a runner with some options changed.

        The adapter is shared. ``env`` is merged over this runner's env (the
        new values win) and ``path_prefix`` entries are appended after this
        runner's prefixes; every other option replaces the current value when
        given.

        Returns:
            A new GitRunner; this one is not modified.
        """
        merged_env = {**self._env, **(env or {})}
        return GitRunner(
            self._adapter,
            git_binary=git_binary if git_binary is not None else self._git_binary,
            env=merged_env,
            path_prefix=(*self._path_prefix, *(path_prefix or ())),
            home=home if home is not None else self._home,
            credential=credential if credential is not None else self._credential,
            audit=audit if audit is not None else self._audit,
            lfs_progress=lfs_progress if lfs_progress is not None else self._lfs_progress,
            progress_poll_interval=self._progress_poll_interval,
        )

    def build_argv(self, context: ExecutionContext, args: Sequence[str]) -> tuple[str, ...]:
        """Build the argument vector for *args* run in *context*."""
        return build_argv(
            context, args, git_binary=self._git_binary, credential=self._credential
        )

    def build_env(self, extra_env: Mapping[str, str] | None = None) -> dict[str, str]:
        """Build the environment overrides for one invocation.

        Adds ``GIT_TRACE=1`` when a trace sink is configured and the runner's
        env does not set GIT_TRACE itself.

        Args:
            extra_env: Per-invocation variables, applied last.
        """
        env = build_env(
            self._env,
            home=self._home,
            path_prefix=self._path_prefix,
            credential=self._credential,
        )

        if self._audit is not None and self._audit.on_trace is not None:
            current = env.get(GIT_TRACE_ENV)
            if current is None:
                env[GIT_TRACE_ENV] = "1"
            elif current in ("0", ""):
                logger.warning(
                    "git_trace_disabled",
                    value=current,
                    hint="on_trace is set but GIT_TRACE disables tracing",
                )

        if extra_env:
            env.update(extra_env)
        return env

    def build_spec(
        self,
        context: ExecutionContext,
        args: Sequence[str],
        *,
        cancel: asyncio.Event | None = None,
        extra_env: Mapping[str, str] | None = None,
    ) -> ProcessSpec:
        """Build the process specification for one invocation.

        Args:
            context: Where the command runs.
            args: Command arguments.
            cancel: Event that aborts the process when set.
            extra_env: Per-invocation environment variables.

        Returns:
            ProcessSpec ready for the spawn adapter.
        """
        return ProcessSpec(
            argv=self.build_argv(context, args),
            env=self.build_env(extra_env),
            cwd=context_cwd(context),
            cancel=cancel,
        )

    async def run(
        self,
        context: ExecutionContext,
        args: Sequence[str],
        *,
        cancel: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
        on_lfs_progress: LfsProgressCallback | None = None,
    ) -> RawResult:
        """Run one git command.

        Progress callbacks fire while the command runs and never after this
        method returns. A non-zero exit is not an error here; use
        ``map_error`` or ``run_or_raise`` for that.

        Args:
            context: Where the command runs.
            args: Command arguments, without the binary or location flags.
            cancel: Event that aborts the command when set.
            on_progress: Receives git progress events.
            on_lfs_progress: Receives LFS transfer progress events.

        Returns:
            RawResult of the invocation.

        Raises:
            Exception: Whatever the spawn adapter raises, after the audit end
                event has been emitted.
        """
        if on_lfs_progress is not None and self._lfs_progress == "file":
            async with LfsProgressFileTailer(
                on_lfs_progress, poll_interval=self._progress_poll_interval
            ) as tailer:
                return await self._run(
                    context,
                    args,
                    cancel=cancel,
                    on_progress=on_progress,
                    on_lfs_progress=None,
                    extra_env={GIT_LFS_PROGRESS_ENV: tailer.path},
                )

        extra_env = {GIT_LFS_FORCE_PROGRESS_ENV: "1"} if on_lfs_progress is not None else None
        return await self._run(
            context,
            args,
            cancel=cancel,
            on_progress=on_progress,
            on_lfs_progress=on_lfs_progress,
            extra_env=extra_env,
        )

    async def _run(
        self,
        context: ExecutionContext,
        args: Sequence[str],
        *,
        cancel: asyncio.Event | None,
        on_progress: ProgressCallback | None,
        on_lfs_progress: LfsProgressCallback | None,
        extra_env: Mapping[str, str] | None,
    ) -> RawResult:
        spec = self.build_spec(context, args, cancel=cancel, extra_env=extra_env)
        demux = StderrDemultiplexer(
            on_progress=on_progress,
            on_lfs_progress=on_lfs_progress,
            on_trace=self._audit.on_trace if self._audit else None,
        )

        self._emit_audit(
            AuditStartEvent(timestamp=_now_ms(), argv=spec.argv, context=context)
        )
        logger.debug("git_command_started", argv=spec.argv, context=context.to_dict())
        start_time = time.monotonic()

        try:
            result = await self._adapter.spawn(
                spec, demux.feed if demux.active else None
            )
        except BaseException as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            self._emit_audit(
                AuditEndEvent(
                    timestamp=_now_ms(),
                    argv=spec.argv,
                    context=context,
                    stdout="",
                    stderr=str(e),
                    exit_code=SPAWN_FAILED_EXIT_CODE,
                    aborted=cancel is not None and cancel.is_set(),
                    duration_ms=duration_ms,
                )
            )
            logger.warning(
                "git_command_error",
                argv=spec.argv,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            raise

        demux.flush()
        duration_ms = int((time.monotonic() - start_time) * 1000)

        self._emit_audit(
            AuditEndEvent(
                timestamp=_now_ms(),
                argv=spec.argv,
                context=context,
                stdout=result.stdout,
                stderr=result.stderr,
                exit_code=result.exit_code,
                aborted=result.aborted,
                duration_ms=duration_ms,
            )
        )
        logger.debug(
            "git_command_finished",
            argv=spec.argv,
            exit_code=result.exit_code,
            aborted=result.aborted,
            duration_ms=duration_ms,
        )
        return result

    def _emit_audit(self, event: AuditEvent) -> None:
        if self._audit is not None and self._audit.on_audit is not None:
            self._audit.on_audit(event)

    def map_error(
        self,
        result: RawResult,
        context: ExecutionContext,
        argv: Sequence[str],
    ) -> GitError | None:
        """Classify *result*; None means success. See ``typegit.runners.errors``."""
        return map_error(result, context, argv)

    async def run_or_raise(
        self,
        context: ExecutionContext,
        args: Sequence[str],
        *,
        cancel: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
        on_lfs_progress: LfsProgressCallback | None = None,
        max_retries: int = 0,
        retry_delay: float = 1.0,
    ) -> RawResult:
        """Run one git command and raise on failure.

        Failures that look like transient network problems are retried with
        exponential backoff when *max_retries* is positive. Cancellation and
        every other failure raise immediately.

        Args:
            context: Where the command runs.
            args: Command arguments.
            cancel: Event that aborts the command when set.
            on_progress: Receives git progress events.
            on_lfs_progress: Receives LFS transfer progress events.
            max_retries: Extra attempts for network failures.
            retry_delay: Initial backoff in seconds.

        Returns:
            RawResult of the successful invocation.

        Raises:
            GitError: If the command was aborted, could not start, or exited
                non-zero (after retries are exhausted).
        """
        argv = self.build_argv(context, args)

        # stop_after_attempt counts the first attempt too
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_retries + 1),
            wait=wait_exponential(multiplier=retry_delay, min=retry_delay, max=MAX_RETRY_WAIT),
            retry=retry_if_exception(_is_retryable),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                result = await self.run(
                    context,
                    args,
                    cancel=cancel,
                    on_progress=on_progress,
                    on_lfs_progress=on_lfs_progress,
                )
                error = self.map_error(result, context, argv)
                if error is None:
                    return result
                raise error

        # Should not reach here, but satisfy type checker
        raise RuntimeError("Retry loop exited without a result")
