"""Tail the ``GIT_LFS_PROGRESS`` sidecar file while git runs.

When ``GIT_LFS_PROGRESS`` names a file, git-lfs appends one line per progress
update to it instead of drawing a meter on stderr. The tailer creates that
file, polls it for new data, and turns each complete line into an
``LfsProgress`` event.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import os
import tempfile
from types import TracebackType

from typegit.constants import PROGRESS_POLL_INTERVAL
from typegit.logging import get_logger
from typegit.runners.demux import LineBuffer
from typegit.runners.models import LfsProgressCallback
from typegit.runners.progress import parse_lfs_progress

__all__ = ["LfsProgressFileTailer"]

logger = get_logger(__name__)


class LfsProgressFileTailer:
    """Poll an LFS progress file and emit parsed events.

    Use as an async context manager around the git invocation. The file is
    created on enter and removed on exit; everything written to it before
    exit is delivered, including a final line without a trailing newline.

    Args:
        on_progress: Receives one event per parsed line.
        poll_interval: Seconds between reads.
        directory: Where to create the file. Defaults to the system temp dir.

    Example:
        ```python
        async with LfsProgressFileTailer(events.append) as tailer:
            spec = ProcessSpec(argv=argv, env={"GIT_LFS_PROGRESS": tailer.path})
            await adapter.spawn(spec)
        ```
    """

    def __init__(
        self,
        on_progress: LfsProgressCallback,
        *,
        poll_interval: float = PROGRESS_POLL_INTERVAL,
        directory: str | None = None,
    ) -> None:
        self._on_progress = on_progress
        self._poll_interval = poll_interval
        self._directory = directory
        self._path: str | None = None
        self._position = 0
        self._buffer = LineBuffer()
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def path(self) -> str:
        """Path of the progress file.

        Raises:
            RuntimeError: If the tailer has not been started.
        """
        if self._path is None:
            raise RuntimeError("LFS progress tailer has not been started")
        return self._path

    async def __aenter__(self) -> LfsProgressFileTailer:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def start(self) -> None:
        """Create the progress file and start polling it."""
        fd, self._path = tempfile.mkstemp(
            prefix="typegit-lfs-", suffix=".log", dir=self._directory
        )
        os.close(fd)
        self._task = asyncio.create_task(self._poll_loop())
        logger.debug("lfs_progress_tail_started", path=self._path)

    async def stop(self) -> None:
        """Deliver remaining lines, stop polling and remove the file."""
        if self._task is None:
            return
        self._stop.set()
        try:
            await self._task
        finally:
            self._task = None
            if self._path is not None:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(self._path)
                logger.debug("lfs_progress_tail_stopped", path=self._path)

    async def _poll_loop(self) -> None:
        while not self._stop.is_set():
            self._read_new_data()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._poll_interval)

        # Whatever git-lfs wrote between the last poll and exit
        self._read_new_data(final=True)
        remainder = self._buffer.flush()
        if remainder is not None:
            self._emit(remainder)

    def _read_new_data(self, *, final: bool = False) -> None:
        if self._path is None:
            return
        try:
            with open(self._path, "rb") as f:
                f.seek(self._position)
                data = f.read()
        except FileNotFoundError:
            return

        self._position += len(data)
        text = self._decoder.decode(data, final=final)
        for line in self._buffer.feed(text):
            self._emit(line)

    def _emit(self, line: str) -> None:
        if not line.strip():
            return
        progress = parse_lfs_progress(line)
        if progress is not None:
            self._on_progress(progress)
