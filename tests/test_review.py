from __future__ import annotations

import pytest
from git import Repo

from devloop.errors import MissingRepositoryError, VersionControlError
from devloop.models import CommitDecision, ReviewOutcome
from devloop.pipeline_review import apply_commit_decision, ask_commit_decision
from devloop.repository.vcs import DEFAULT_COMMIT_MESSAGE, GitRepository

from fakes import ScriptedPrompt


def modify(root):
    (root / "tracked.txt").write_text("changed\n", encoding="utf-8")
    (root / "new.txt").write_text("new\n", encoding="utf-8")


def test_accepted_changes_are_committed(git_repo):
    modify(git_repo)

    outcome = apply_commit_decision(GitRepository(), git_repo, CommitDecision(accepted=True))

    repo = Repo(str(git_repo))
    assert outcome is ReviewOutcome.COMMITTED
    assert repo.head.commit.message == DEFAULT_COMMIT_MESSAGE
    assert not repo.is_dirty(untracked_files=True)
    assert "new.txt" in repo.head.commit.tree


def test_accept_wins_over_keep_flag(git_repo):
    modify(git_repo)

    outcome = apply_commit_decision(
        GitRepository(), git_repo, CommitDecision(accepted=True, keep_changes=False)
    )

    assert outcome is ReviewOutcome.COMMITTED


def test_kept_changes_stay_uncommitted(git_repo):
    modify(git_repo)

    outcome = apply_commit_decision(
        GitRepository(), git_repo, CommitDecision(accepted=False, keep_changes=True)
    )

    repo = Repo(str(git_repo))
    assert outcome is ReviewOutcome.KEPT
    assert repo.head.commit.message == "initial commit"
    assert (git_repo / "tracked.txt").read_text(encoding="utf-8") == "changed\n"


def test_discarded_changes_reset_tracked_files(git_repo):
    modify(git_repo)

    outcome = apply_commit_decision(GitRepository(), git_repo, CommitDecision(accepted=False))

    assert outcome is ReviewOutcome.DISCARDED
    assert (git_repo / "tracked.txt").read_text(encoding="utf-8") == "original\n"
    # untracked files survive a hard reset
    assert (git_repo / "new.txt").exists()


def test_missing_root_is_fatal():
    with pytest.raises(MissingRepositoryError):
        apply_commit_decision(GitRepository(), None, CommitDecision(accepted=True))


def test_git_failures_surface_as_version_control_errors(tmp_path):
    with pytest.raises(VersionControlError):
        apply_commit_decision(GitRepository(), tmp_path, CommitDecision(accepted=False))


@pytest.mark.parametrize(
    "answers, expected",
    [
        (["n"], None),
        (["y", "yes"], CommitDecision(accepted=True, keep_changes=True)),
        (["Y", "n", "y"], CommitDecision(accepted=False, keep_changes=True)),
        (["yes", "no", "no"], CommitDecision(accepted=False, keep_changes=False)),
    ],
)
def test_commit_decision_prompts(answers, expected):
    user = ScriptedPrompt(answers)

    assert ask_commit_decision(user) == expected
    assert user.answers == []
    assert user.questions[0] == "Review changes? (y/n):"
