"""Mappers for suggestion responses with their vote totals."""

from app.modules.suggestions.models import ParagraphSuggestion
from app.modules.suggestions.schemas import AuthorSummary, SuggestionResponse, VoteSummary


def map_suggestion(suggestion: ParagraphSuggestion, votes: VoteSummary | None = None) -> SuggestionResponse:
    votes = votes or VoteSummary()
    return SuggestionResponse(
        id=suggestion.id,
        paragraph_id=suggestion.paragraph_id,
        author=AuthorSummary.model_validate(suggestion.author),
        suggested_content=suggestion.suggested_content,
        comment=suggestion.comment,
        status=suggestion.status,
        base_paragraph_version=suggestion.base_paragraph_version,
        approved_by_user_id=suggestion.approved_by_user_id,
        approved_at=suggestion.approved_at,
        rejected_by_user_id=suggestion.rejected_by_user_id,
        rejected_at=suggestion.rejected_at,
        created_at=suggestion.created_at,
        updated_at=suggestion.updated_at,
        upvotes=votes.upvotes,
        downvotes=votes.downvotes,
        score=votes.score,
        user_vote=votes.user_vote,
    )


def map_suggestions(
    suggestions: list[ParagraphSuggestion],
    votes: dict,
) -> list[SuggestionResponse]:
    return [map_suggestion(s, votes.get(s.id)) for s in suggestions]
