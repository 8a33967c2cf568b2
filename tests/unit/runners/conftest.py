from __future__ import annotations

import pytest

from typegit.runners.models import BareContext, GlobalContext, WorktreeContext


@pytest.fixture
def worktree() -> WorktreeContext:
    return WorktreeContext(workdir="/repo")


@pytest.fixture
def bare() -> BareContext:
    return BareContext(git_dir="/srv/repo.git")


@pytest.fixture
def global_context() -> GlobalContext:
    return GlobalContext()
