from __future__ import annotations

from pathlib import Path
from typing import Optional

from devloop.adapters.user_prompt import UserPrompt, confirm
from devloop.errors import MissingRepositoryError
from devloop.models import CommitDecision, ReviewOutcome
from devloop.repository.vcs import DEFAULT_COMMIT_MESSAGE, GitRepository
from devloop.utils import log


def apply_commit_decision(
    vcs: GitRepository,
    root: Optional[str | Path],
    decision: CommitDecision,
    message: str = DEFAULT_COMMIT_MESSAGE,
) -> ReviewOutcome:
    """Commit, discard or keep the working tree changes.

    | accepted | keep_changes | outcome                      |
    |----------|--------------|------------------------------|
    | True     | any          | stage everything and commit  |
    | False    | True         | leave changes uncommitted    |
    | False    | False        | hard reset to the last commit|
    """
    if not root:
        raise MissingRepositoryError("No repository path set; cannot review changes.")

    if decision.accepted:
        vcs.add_all(root)
        vcs.commit(root, message)
        log.info("review", "changes committed successfully.")
        return ReviewOutcome.COMMITTED
    if decision.keep_changes:
        log.info("review", "changes not committed, but not discarded.")
        return ReviewOutcome.KEPT
    vcs.reset_hard(root)
    log.info("review", "changes discarded.")
    return ReviewOutcome.DISCARDED


def ask_commit_decision(user_prompt: UserPrompt) -> Optional[CommitDecision]:
    """Ask the user how to finish; ``None`` means they declined to review."""
    if not confirm(user_prompt, "Review changes?"):
        return None
    if confirm(user_prompt, "Accept changes and commit?"):
        return CommitDecision(accepted=True, keep_changes=True)
    return CommitDecision(accepted=False, keep_changes=confirm(user_prompt, "Keep changes?"))
