"""Mappers for comment responses and comment trees."""

from typing import Iterable
from uuid import UUID

from app.modules.comments.models import Comment
from app.modules.comments.schemas import CommentAuthor, CommentResponse


def map_comment(comment: Comment, user_vote: str | None = None) -> CommentResponse:
    """Map one comment without replies. Deleted comments lose content and author."""
    deleted = comment.is_deleted
    return CommentResponse(
        id=comment.id,
        content="" if deleted else comment.content,
        author=None if deleted else CommentAuthor.model_validate(comment.author),
        page_id=comment.page_id,
        paragraph_id=comment.paragraph_id,
        suggestion_id=comment.suggestion_id,
        parent_id=comment.parent_id,
        agree_count=comment.agree_count,
        disagree_count=comment.disagree_count,
        score=comment.score,
        user_vote=user_vote,
        is_deleted=deleted,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


def build_comment_tree(
    comments: Iterable[Comment],
    user_votes: dict[UUID, str] | None = None,
) -> list[CommentResponse]:
    """Group comments under their parents in a single pass.

    ``comments`` must be sorted by ``created_at``; siblings keep that
    order. A comment whose parent is not in the input becomes a root.
    """
    user_votes = user_votes or {}
    nodes: dict[UUID, CommentResponse] = {}
    order: list[CommentResponse] = []

    for comment in comments:
        node = map_comment(comment, user_votes.get(comment.id))
        nodes[comment.id] = node
        order.append(node)

    roots: list[CommentResponse] = []
    for node in order:
        parent = nodes.get(node.parent_id) if node.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent.replies.append(node)
    return roots


def find_in_tree(roots: list[CommentResponse], comment_id: UUID) -> CommentResponse | None:
    stack = list(roots)
    while stack:
        node = stack.pop()
        if node.id == comment_id:
            return node
        stack.extend(node.replies)
    return None
