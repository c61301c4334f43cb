"""One-vote-per-user toggle semantics shared by comments and suggestions."""

from enum import Enum


class VoteAction(str, Enum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


def resolve_vote(existing: str | None, requested: str) -> VoteAction:
    """Decide what a vote request does to the caller's current vote.

    Same type again clears the vote, the opposite type replaces it.
    """
    if existing is None:
        return VoteAction.ADDED
    if existing == requested:
        return VoteAction.REMOVED
    return VoteAction.CHANGED


def count_deltas(existing: str | None, requested: str, action: VoteAction) -> dict[str, int]:
    """Per-type counter changes for denormalized vote totals."""
    if action is VoteAction.ADDED:
        return {requested: 1}
    if action is VoteAction.REMOVED:
        return {requested: -1}
    return {existing: -1, requested: 1}
