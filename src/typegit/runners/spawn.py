"""Process spawning for git invocations.

``SpawnAdapter`` is the one boundary the runner depends on: run an argv with
an environment and working directory, stream stderr chunks to a callback,
honour a cancellation event, and resolve with the captured output.
``AsyncioSpawnAdapter`` is the default implementation on top of
``asyncio.create_subprocess_exec``; hosts can substitute their own (a sandbox
shim, a recorded-fixture adapter in tests, ...).
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import os
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from typegit.constants import SPAWN_FAILED_EXIT_CODE, TERMINATION_GRACE_PERIOD
from typegit.logging import get_logger
from typegit.runners.models import ProcessSpec, RawResult

__all__ = ["AsyncioSpawnAdapter", "SpawnAdapter", "StderrCallback"]

logger = get_logger(__name__)

StderrCallback = Callable[[str], None]

#: Bytes requested per read from the child's pipes.
READ_CHUNK_SIZE = 8192


@runtime_checkable
class SpawnAdapter(Protocol):
    """Capability for running one child process.

    Implementations must:
    - call *on_stderr* with decoded chunks in arrival order, and never after
      ``spawn`` has returned;
    - when ``spec.cancel`` is set, stop the child and report ``aborted=True``
      (a token that is already set prevents the process from starting);
    - be safe to share between concurrent invocations.
    """

    async def spawn(
        self,
        spec: ProcessSpec,
        on_stderr: StderrCallback | None = None,
    ) -> RawResult:
        """Run the process described by *spec* and return its captured result."""
        ...


class AsyncioSpawnAdapter:
    """Spawn git with asyncio subprocesses.

    Cancellation sends SIGTERM, then SIGKILL after a grace period. A binary
    that cannot be found or executed yields a result with exit code -1
    instead of raising; other OS errors propagate.

    Attributes:
        termination_grace_period: Seconds between SIGTERM and SIGKILL.

    Example:
        ```python
        adapter = AsyncioSpawnAdapter()
        result = await adapter.spawn(ProcessSpec(argv=("git", "version")))
        print(result.stdout)
        ```
    """

    def __init__(
        self,
        *,
        termination_grace_period: float = TERMINATION_GRACE_PERIOD,
    ) -> None:
        """Initialize the AsyncioSpawnAdapter.

        Args:
            termination_grace_period: Seconds to wait after SIGTERM before
                sending SIGKILL to a cancelled process.
        """
        self._grace = termination_grace_period

    @property
    def termination_grace_period(self) -> float:
        """Seconds between SIGTERM and SIGKILL."""
        return self._grace

    def _build_env(self, overrides: dict[str, str] | None) -> dict[str, str]:
        """Merge the parent environment with the spec's overrides."""
        env = os.environ.copy()
        if overrides:
            env.update(overrides)
        return env

    async def spawn(
        self,
        spec: ProcessSpec,
        on_stderr: StderrCallback | None = None,
    ) -> RawResult:
        """Run *spec* to completion.

        Args:
            spec: Process description.
            on_stderr: Receives decoded stderr chunks as they arrive.

        Returns:
            RawResult with full stdout/stderr, exit code and aborted flag.

        Raises:
            ValueError: If ``spec.argv`` is empty.
            OSError: If the process fails to start for a reason other than a
                missing or non-executable binary.
        """
        if not spec.argv:
            raise ValueError("argv must not be empty")

        cancel = spec.cancel
        if cancel is not None and cancel.is_set():
            logger.debug("git_spawn_skipped", reason="cancelled", argv=spec.argv)
            return RawResult(exit_code=SPAWN_FAILED_EXIT_CODE, aborted=True)

        try:
            process = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=spec.cwd,
                env=self._build_env(dict(spec.env)),
            )
        except FileNotFoundError as e:
            if spec.cwd is not None and e.filename == spec.cwd:
                message = f"Working directory does not exist: {spec.cwd}"
            else:
                message = f"Command not found: {spec.argv[0]}"
            logger.warning("git_spawn_not_found", argv=spec.argv, reason=message)
            return RawResult(stderr=message, exit_code=SPAWN_FAILED_EXIT_CODE)
        except PermissionError:
            message = f"Permission denied: {spec.argv[0]}"
            logger.warning("git_spawn_failed", argv=spec.argv, reason=message)
            return RawResult(stderr=message, exit_code=SPAWN_FAILED_EXIT_CODE)

        # Output buffers belong to this call only
        stdout_chunks: list[bytes] = []
        stderr_chunks: list[str] = []
        io_task = asyncio.gather(
            self._drain(process.stdout, stdout_chunks.append),
            self._read_stderr(process.stderr, stderr_chunks, on_stderr),
        )

        try:
            aborted = await self._wait_io(io_task, cancel)
            if aborted:
                logger.debug("git_process_cancelled", pid=process.pid)
                await self._terminate(process)
                await self._finish_io(io_task)
            returncode = await process.wait()
        except BaseException:
            io_task.cancel()
            self._kill(process)
            await self._reap(process)
            raise

        if cancel is not None and cancel.is_set():
            aborted = True

        return RawResult(
            stdout=b"".join(stdout_chunks).decode("utf-8", errors="replace"),
            stderr="".join(stderr_chunks),
            exit_code=self._normalize_returncode(returncode),
            aborted=aborted,
        )

    async def _wait_io(
        self,
        io_task: asyncio.Future[list[None]],
        cancel: asyncio.Event | None,
    ) -> bool:
        """Wait until both pipes close or *cancel* fires.

        Returns:
            True if cancellation came first.
        """
        if cancel is None:
            await io_task
            return False

        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {io_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()

        if io_task in done:
            # Re-raise errors from the readers (e.g. a failing stderr callback)
            io_task.result()
            return False
        return True

    async def _finish_io(self, io_task: asyncio.Future[list[None]]) -> None:
        """Let the readers drain after termination, without waiting forever.

        git helpers (ssh, remote helpers) inherit the pipes and may keep them
        open after git itself has exited.
        """
        try:
            await asyncio.wait_for(asyncio.shield(io_task), timeout=self._grace)
        except TimeoutError:
            io_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await io_task

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """SIGTERM, grace period, then SIGKILL."""
        with contextlib.suppress(ProcessLookupError):
            process.terminate()
        try:
            await asyncio.wait_for(process.wait(), timeout=self._grace)
        except TimeoutError:
            self._kill(process)

    def _kill(self, process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        """Collect a killed child's exit status so it does not linger as a zombie."""
        with contextlib.suppress(asyncio.CancelledError, TimeoutError):
            await asyncio.wait_for(asyncio.shield(process.wait()), timeout=self._grace)

    @staticmethod
    def _normalize_returncode(returncode: int) -> int:
        """Map asyncio's ``-signum`` to the shell's ``128 + signum``.

        Keeps -1 reserved for spawn failures.
        """
        if returncode < 0:
            return 128 - returncode
        return returncode

    @staticmethod
    async def _drain(
        stream: asyncio.StreamReader | None,
        sink: Callable[[bytes], None],
    ) -> None:
        if stream is None:
            return
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            if not data:
                break
            sink(data)

    @staticmethod
    async def _read_stderr(
        stream: asyncio.StreamReader | None,
        chunks: list[str],
        on_stderr: StderrCallback | None,
    ) -> None:
        """Decode stderr incrementally so multibyte characters survive chunking."""
        if stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                if on_stderr is not None:
                    on_stderr(text)
            if not data:
                break
