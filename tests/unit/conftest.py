"""Shared fixtures for unit tests."""

import logging

import pytest

from fakes import FakeInvoker, write_template
from ralph.core.config import RalphSettings
from ralph.core.issue import Issue
from ralph.core.models import Stage, WorkflowContext
from ralph.workflow.stages import StageRuntime


@pytest.fixture(autouse=True)
def reset_ralph_logger():
    """CLI tests configure the ralph logger against CliRunner streams; undo that."""
    yield
    logger = logging.getLogger("ralph")
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def issue():
    return Issue(id="HLN-9793", title="Upgrade to Node v24", description="Bump the runtime.")


@pytest.fixture
def root_dir(tmp_path):
    """A bare worktree root whose main/ holds an override for every agent stage."""
    root = tmp_path / "ralph-git"
    (root / ".bare").mkdir(parents=True)
    (root / ".git").write_text("gitdir: ./.bare\n")
    config_dir = root / "main"
    config_dir.mkdir()
    for stage in Stage:
        if stage is not Stage.SPAWN:
            write_template(config_dir, stage)
    return root


@pytest.fixture
def worktree(root_dir, issue):
    path = root_dir / issue.id.lower()
    path.mkdir()
    return path


@pytest.fixture
def context(issue, worktree):
    return WorkflowContext(issue=issue, worktree_dir=worktree, branch_name=f"ralph-{issue.id}")


@pytest.fixture
def fake_invoker():
    return FakeInvoker()


@pytest.fixture
def runtime(root_dir, fake_invoker):
    return StageRuntime(
        config_dir=root_dir / "main",
        settings=RalphSettings(),
        invoker=fake_invoker,
    )
