"""Shared test fixtures for the typegit test suite.

Runner fakes (from tests/fixtures/runners.py)
---------------------------------------------

Classes:
    FakeSpawnAdapter: SpawnAdapter that records every ProcessSpec, replays
        scripted stderr chunks to the runner's callback and returns a fixed
        RawResult (or raises a scripted exception).

Fixtures:
    fake_adapter: A fresh FakeSpawnAdapter with a successful empty result.
    make_result: Factory for RawResult instances.

Configuration (from tests/fixtures/config.py)
---------------------------------------------

Fixtures:
    sample_config_yaml: typegit.yaml content with every field set.
    sample_config: TypeGitConfig loaded from that file in a temp directory.
"""

from __future__ import annotations

from tests.fixtures.config import sample_config, sample_config_yaml
from tests.fixtures.runners import FakeSpawnAdapter, fake_adapter, make_result

__all__ = [
    # Configuration
    "sample_config",
    "sample_config_yaml",
    # Runner fakes
    "FakeSpawnAdapter",
    "fake_adapter",
    "make_result",
]
