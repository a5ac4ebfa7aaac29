from __future__ import annotations

from pathlib import Path

import pytest

from devloop.models import DeliveryPlan
from devloop.repository.vcs import GitRepository
from devloop.utils import log


@pytest.fixture(autouse=True)
def quiet_log(monkeypatch):
    monkeypatch.delenv("ORCH_DEBUG", raising=False)
    log.configure(None, None)
    yield
    log.configure(None, None)


@pytest.fixture
def plan() -> DeliveryPlan:
    return DeliveryPlan.from_dict(
        {
            "title": "Add greeting",
            "shortDescription": "Greet the user",
            "longDescription": "Write a greeting to app.txt",
            "acceptanceCriteria": ["app.txt contains the greeting"],
            "plan": ["Create app.txt", "Run the tests"],
        }
    )


@pytest.fixture
def git_identity(monkeypatch):
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")


@pytest.fixture
def git_repo(tmp_path, git_identity) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    vcs = GitRepository()
    vcs.init(root)
    (root / "tracked.txt").write_text("original\n", encoding="utf-8")
    vcs.add_all(root)
    vcs.commit(root, "initial commit")
    return root
