"""Tests for GitRunner with a scripted spawn adapter."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import patch

import pytest

from tests.fixtures.runners import FakeSpawnAdapter
from typegit.config import TypeGitConfig
from typegit.exceptions import ErrorCategory, GitError, GitErrorKind
from typegit.runners.git import GitRunner
from typegit.runners.models import (
    AuditConfig,
    AuditEndEvent,
    AuditEvent,
    AuditStartEvent,
    CredentialHelper,
    GitProgress,
    GlobalContext,
    LfsProgress,
    ProcessSpec,
    RawResult,
    TraceEvent,
    WorktreeContext,
)
from typegit.runners.spawn import AsyncioSpawnAdapter, StderrCallback

NETWORK_FAILURE = RawResult(
    stderr="fatal: unable to access 'https://x/': Could not resolve host: x\n",
    exit_code=128,
)


class SequenceAdapter(FakeSpawnAdapter):
    """Returns the scripted results one per call, repeating the last."""

    def __init__(self, results: list[RawResult]) -> None:
        super().__init__()
        self.results = results

    async def spawn(
        self, spec: ProcessSpec, on_stderr: StderrCallback | None = None
    ) -> RawResult:
        self.specs.append(spec)
        index = min(len(self.specs), len(self.results)) - 1
        return self.results[index]


class TestGitRunnerInit:
    """Tests for GitRunner construction."""

    def test_defaults(self) -> None:
        runner = GitRunner()
        assert isinstance(runner.adapter, AsyncioSpawnAdapter)
        assert runner.git_binary == "git"
        assert runner.env == {}
        assert runner.path_prefix == ()
        assert runner.lfs_progress == "stderr"

    def test_env_property_is_a_copy(self) -> None:
        runner = GitRunner(env={"A": "1"})
        runner.env["B"] = "2"
        assert runner.env == {"A": "1"}

    def test_from_config(self, sample_config: TypeGitConfig) -> None:
        runner = GitRunner.from_config(sample_config)

        assert runner.git_binary == "/usr/local/bin/git"
        assert runner.env == {"GIT_TERMINAL_PROMPT": "0"}
        assert runner.path_prefix == ("/opt/tools/bin",)
        assert runner.home == "/tmp/isolated-home"
        assert runner.credential == CredentialHelper(
            helper="store", helper_path="/opt/helpers/git-credential-store"
        )
        assert runner.lfs_progress == "file"
        assert isinstance(runner.adapter, AsyncioSpawnAdapter)
        assert runner.adapter.termination_grace_period == 5.0

    def test_from_config_without_credential(self, clean_env: None) -> None:
        runner = GitRunner.from_config(TypeGitConfig(), FakeSpawnAdapter())
        assert runner.credential is None


class TestWithOptions:
    """Tests for GitRunner.with_options()."""

    def test_merges_env_and_concatenates_prefixes(
        self, fake_adapter: FakeSpawnAdapter
    ) -> None:
        base = GitRunner(
            fake_adapter, env={"A": "1", "B": "1"}, path_prefix=["/first"], home="/h"
        )
        derived = base.with_options(env={"B": "2", "C": "3"}, path_prefix=["/second"])

        assert derived.env == {"A": "1", "B": "2", "C": "3"}
        assert derived.path_prefix == ("/first", "/second")
        assert derived.home == "/h"
        assert derived.adapter is fake_adapter
        assert base.env == {"A": "1", "B": "1"}
        assert base.path_prefix == ("/first",)

    def test_overrides_other_options(self, fake_adapter: FakeSpawnAdapter) -> None:
        base = GitRunner(fake_adapter, git_binary="git")
        credential = CredentialHelper(helper="cache")
        derived = base.with_options(
            git_binary="/opt/git", credential=credential, lfs_progress="file"
        )

        assert derived.git_binary == "/opt/git"
        assert derived.credential is credential
        assert derived.lfs_progress == "file"
        assert base.credential is None


class TestBuildSpec:
    """Tests for GitRunner.build_spec()."""

    def test_worktree_spec(self, fake_adapter: FakeSpawnAdapter) -> None:
        runner = GitRunner(fake_adapter, env={"GIT_TERMINAL_PROMPT": "0"})
        cancel = asyncio.Event()

        spec = runner.build_spec(WorktreeContext("/repo"), ["status"], cancel=cancel)

        assert spec.argv == ("git", "-C", "/repo", "status")
        assert spec.cwd == "/repo"
        assert spec.env == {"GIT_TERMINAL_PROMPT": "0"}
        assert spec.cancel is cancel

    def test_isolated_home_and_helper_path(self, fake_adapter: FakeSpawnAdapter) -> None:
        runner = GitRunner(
            fake_adapter,
            home="/tmp/h",
            credential=CredentialHelper(
                helper="custom", helper_path="/opt/h/git-credential-custom"
            ),
        )

        spec = runner.build_spec(GlobalContext(), ["ls-remote", "origin"])

        assert spec.argv[:3] == ("git", "-c", "credential.helper=custom")
        assert spec.env["HOME"] == "/tmp/h"
        assert spec.env["PATH"].startswith("/opt/h")

    def test_trace_enables_git_trace(self, fake_adapter: FakeSpawnAdapter) -> None:
        runner = GitRunner(fake_adapter, audit=AuditConfig(on_trace=lambda e: None))
        spec = runner.build_spec(GlobalContext(), ["version"])
        assert spec.env["GIT_TRACE"] == "1"

    def test_trace_keeps_explicit_value(self, fake_adapter: FakeSpawnAdapter) -> None:
        runner = GitRunner(
            fake_adapter,
            env={"GIT_TRACE": "/tmp/trace.log"},
            audit=AuditConfig(on_trace=lambda e: None),
        )
        spec = runner.build_spec(GlobalContext(), ["version"])
        assert spec.env["GIT_TRACE"] == "/tmp/trace.log"

    def test_trace_disabled_explicitly_warns(self, fake_adapter: FakeSpawnAdapter) -> None:
        runner = GitRunner(
            fake_adapter,
            env={"GIT_TRACE": "0"},
            audit=AuditConfig(on_trace=lambda e: None),
        )
        with patch("typegit.runners.git.logger") as mock_logger:
            spec = runner.build_spec(GlobalContext(), ["version"])

        assert spec.env["GIT_TRACE"] == "0"
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "git_trace_disabled"

    def test_no_git_trace_without_sink(self, fake_adapter: FakeSpawnAdapter) -> None:
        spec = GitRunner(fake_adapter).build_spec(GlobalContext(), ["version"])
        assert "GIT_TRACE" not in spec.env


class TestRun:
    """Tests for GitRunner.run()."""

    @pytest.mark.asyncio
    async def test_returns_adapter_result(self) -> None:
        adapter = FakeSpawnAdapter(RawResult(stdout="git version 2.44.0\n"))
        runner = GitRunner(adapter)

        result = await runner.run(GlobalContext(), ["version"])

        assert result.stdout == "git version 2.44.0\n"
        assert adapter.last_spec.argv == ("git", "version")

    @pytest.mark.asyncio
    async def test_no_stderr_callback_without_sinks(
        self, fake_adapter: FakeSpawnAdapter
    ) -> None:
        await GitRunner(fake_adapter).run(GlobalContext(), ["version"])
        assert fake_adapter.callbacks == [None]

    @pytest.mark.asyncio
    async def test_progress_delivered_before_result(self) -> None:
        adapter = FakeSpawnAdapter(
            stderr_chunks=[
                "Receiving objects:  50% (5/10)\rReceiving objects: 10",
                "0% (10/10), done.\nResolving deltas: 100% (2/2), done.",
            ]
        )
        events: list[GitProgress] = []

        await GitRunner(adapter).run(
            WorktreeContext("/repo"), ["fetch", "--progress"], on_progress=events.append
        )

        assert [(e.phase, e.percent) for e in events] == [
            ("Receiving objects", 50),
            ("Receiving objects", 100),
            ("Resolving deltas", 100),
        ]

    @pytest.mark.asyncio
    async def test_lfs_stderr_mode_forces_progress(self) -> None:
        adapter = FakeSpawnAdapter(
            stderr_chunks=["Downloading LFS objects:  50% (1/2), 1.5 MB | 500 KB/s\r"]
        )
        events: list[LfsProgress] = []

        await GitRunner(adapter).run(
            WorktreeContext("/repo"), ["lfs", "pull"], on_lfs_progress=events.append
        )

        assert adapter.last_spec.env["GIT_LFS_FORCE_PROGRESS"] == "1"
        assert "GIT_LFS_PROGRESS" not in adapter.last_spec.env
        assert len(events) == 1
        assert events[0].direction == "download"
        assert events[0].percent == 50
        assert events[0].files_completed == 1
        assert events[0].files_total == 2

    @pytest.mark.asyncio
    async def test_no_lfs_env_without_callback(self, fake_adapter: FakeSpawnAdapter) -> None:
        await GitRunner(fake_adapter).run(WorktreeContext("/repo"), ["lfs", "pull"])
        assert "GIT_LFS_FORCE_PROGRESS" not in fake_adapter.last_spec.env

    @pytest.mark.asyncio
    async def test_lfs_file_mode_tails_progress_file(self) -> None:
        class WritingAdapter(FakeSpawnAdapter):
            async def spawn(
                self, spec: ProcessSpec, on_stderr: StderrCallback | None = None
            ) -> RawResult:
                self.specs.append(spec)
                path = Path(spec.env["GIT_LFS_PROGRESS"])
                path.write_text(
                    "download 1/2 50/100 a.bin\n"
                    "download 2/2 100/100 b.bin"
                )
                return RawResult()

        adapter = WritingAdapter()
        events: list[LfsProgress] = []
        runner = GitRunner(adapter, lfs_progress="file", progress_poll_interval=0.01)

        await runner.run(WorktreeContext("/repo"), ["lfs", "pull"], on_lfs_progress=events.append)

        assert [e.name for e in events] == ["a.bin", "b.bin"]
        assert "GIT_LFS_FORCE_PROGRESS" not in adapter.last_spec.env
        assert not Path(adapter.last_spec.env["GIT_LFS_PROGRESS"]).exists()

    @pytest.mark.asyncio
    async def test_trace_lines_go_to_trace_sink_only(self) -> None:
        trace_line = "12:00:00.000001 git.c:460 trace: built-in: git fetch"
        adapter = FakeSpawnAdapter(
            stderr_chunks=[f"{trace_line}\nCounting objects: 100% (1/1), done.\n"]
        )
        traces: list[TraceEvent] = []
        progress: list[GitProgress] = []
        runner = GitRunner(adapter, audit=AuditConfig(on_trace=traces.append))

        await runner.run(GlobalContext(), ["fetch"], on_progress=progress.append)

        assert [t.line for t in traces] == [trace_line]
        assert len(progress) == 1

    @pytest.mark.asyncio
    async def test_audit_events(self) -> None:
        adapter = FakeSpawnAdapter(RawResult(stdout="out", stderr="err", exit_code=1))
        events: list[AuditEvent] = []
        runner = GitRunner(adapter, audit=AuditConfig(on_audit=events.append))
        context = WorktreeContext("/repo")

        await runner.run(context, ["status"])

        assert len(events) == 2
        start, end = events
        assert isinstance(start, AuditStartEvent)
        assert start.type == "start"
        assert start.argv == ("git", "-C", "/repo", "status")
        assert start.context == context
        assert isinstance(end, AuditEndEvent)
        assert end.type == "end"
        assert end.stdout == "out"
        assert end.stderr == "err"
        assert end.exit_code == 1
        assert end.aborted is False
        assert end.duration_ms >= 0
        assert end.timestamp >= start.timestamp

    @pytest.mark.asyncio
    async def test_adapter_error_emits_end_event_and_propagates(self) -> None:
        adapter = FakeSpawnAdapter(error=OSError("spawn exploded"))
        events: list[AuditEvent] = []
        runner = GitRunner(adapter, audit=AuditConfig(on_audit=events.append))

        with pytest.raises(OSError, match="spawn exploded"):
            await runner.run(GlobalContext(), ["version"])

        assert [e.type for e in events] == ["start", "end"]
        end = events[1]
        assert isinstance(end, AuditEndEvent)
        assert end.stdout == ""
        assert end.stderr == "spawn exploded"
        assert end.exit_code == -1
        assert end.aborted is False

    @pytest.mark.asyncio
    async def test_adapter_error_reports_cancel_state(self) -> None:
        adapter = FakeSpawnAdapter(error=RuntimeError("gone"))
        events: list[AuditEvent] = []
        runner = GitRunner(adapter, audit=AuditConfig(on_audit=events.append))
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(RuntimeError):
            await runner.run(GlobalContext(), ["version"], cancel=cancel)

        end = events[-1]
        assert isinstance(end, AuditEndEvent)
        assert end.aborted is True

    @pytest.mark.asyncio
    async def test_concurrent_runs_do_not_share_buffers(self) -> None:
        class ChunkedAdapter(FakeSpawnAdapter):
            async def spawn(
                self, spec: ProcessSpec, on_stderr: StderrCallback | None = None
            ) -> RawResult:
                assert on_stderr is not None
                phase = spec.argv[-1]
                on_stderr(f"{phase}:  50% (1/2")
                await asyncio.sleep(0)
                on_stderr(")\n")
                return RawResult()

        runner = GitRunner(ChunkedAdapter())
        first: list[GitProgress] = []
        second: list[GitProgress] = []

        await asyncio.gather(
            runner.run(GlobalContext(), ["alpha"], on_progress=first.append),
            runner.run(GlobalContext(), ["beta"], on_progress=second.append),
        )

        assert [e.phase for e in first] == ["alpha"]
        assert [e.phase for e in second] == ["beta"]


class TestRunOrRaise:
    """Tests for GitRunner.run_or_raise()."""

    @pytest.mark.asyncio
    async def test_success(self) -> None:
        adapter = FakeSpawnAdapter(RawResult(stdout="ok"))
        result = await GitRunner(adapter).run_or_raise(GlobalContext(), ["version"])
        assert result.stdout == "ok"

    @pytest.mark.asyncio
    async def test_raises_git_error(self) -> None:
        adapter = FakeSpawnAdapter(
            RawResult(stderr="fatal: not a git repository\n", exit_code=128)
        )

        with pytest.raises(GitError) as exc_info:
            await GitRunner(adapter).run_or_raise(WorktreeContext("/nope"), ["status"])

        error = exc_info.value
        assert error.kind is GitErrorKind.NON_ZERO_EXIT
        assert error.message == "not a git repository"
        assert error.context.argv == ("git", "-C", "/nope", "status")
        assert error.context.workdir == "/nope"

    @pytest.mark.asyncio
    async def test_aborted_raises_aborted(self) -> None:
        adapter = FakeSpawnAdapter(RawResult(exit_code=-1, aborted=True))

        with pytest.raises(GitError) as exc_info:
            await GitRunner(adapter).run_or_raise(GlobalContext(), ["fetch"], max_retries=3)

        assert exc_info.value.kind is GitErrorKind.ABORTED
        assert len(adapter.specs) == 1

    @pytest.mark.asyncio
    async def test_network_failure_is_retried(self) -> None:
        adapter = SequenceAdapter([NETWORK_FAILURE, RawResult(stdout="fetched")])

        result = await GitRunner(adapter).run_or_raise(
            GlobalContext(), ["fetch"], max_retries=2, retry_delay=0
        )

        assert result.stdout == "fetched"
        assert len(adapter.specs) == 2

    @pytest.mark.asyncio
    async def test_retries_exhausted(self) -> None:
        adapter = SequenceAdapter([NETWORK_FAILURE])

        with pytest.raises(GitError) as exc_info:
            await GitRunner(adapter).run_or_raise(
                GlobalContext(), ["fetch"], max_retries=2, retry_delay=0
            )

        assert exc_info.value.category is ErrorCategory.NETWORK
        assert len(adapter.specs) == 3

    @pytest.mark.asyncio
    async def test_other_failures_are_not_retried(self) -> None:
        adapter = SequenceAdapter(
            [RawResult(stderr="CONFLICT (content): Merge conflict in a\n", exit_code=1)]
        )

        with pytest.raises(GitError) as exc_info:
            await GitRunner(adapter).run_or_raise(
                GlobalContext(), ["merge", "topic"], max_retries=2, retry_delay=0
            )

        assert exc_info.value.category is ErrorCategory.CONFLICT
        assert len(adapter.specs) == 1

    @pytest.mark.asyncio
    async def test_map_error_delegates(self, fake_adapter: FakeSpawnAdapter) -> None:
        runner = GitRunner(fake_adapter)
        assert runner.map_error(RawResult(), GlobalContext(), ["git"]) is None
        error = runner.map_error(RawResult(exit_code=2), GlobalContext(), ["git"])
        assert error is not None
        assert error.message == "Git exited with code 2"
