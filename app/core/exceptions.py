"""Error types rendered as RFC 7807 problem details.

Every error the API returns on purpose is an ``AppException``. The body
is a problem document (``type``, ``title``, ``status``, ``detail``,
``instance``) plus error-specific members such as ``retry_after`` or
``remaining_seconds``.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from starlette.responses import JSONResponse

ERROR_TYPE_BASE = "https://api.strategy.local/errors"
PROBLEM_CONTENT_TYPE = "application/problem+json"


def problem_details(
    status_code: int,
    error_code: str,
    message: str,
    instance: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    return {
        "type": f"{ERROR_TYPE_BASE}/{error_code}",
        "title": error_code.replace("_", " ").title(),
        "status": status_code,
        "detail": message,
        "instance": instance,
        **extra,
    }


def problem_response(
    problem: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """JSON response for a problem document with the problem+json media type."""
    response_headers = {"Content-Type": PROBLEM_CONTENT_TYPE}
    if headers:
        response_headers.update(headers)
    return JSONResponse(
        status_code=problem["status"],
        content=problem,
        headers=response_headers,
    )


class AppException(HTTPException):
    """Base class for expected API errors.

    ``detail`` holds the problem document; the exception handler fills
    in ``instance`` with the request path.
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.error_detail = detail or {}

        super().__init__(
            status_code=status_code,
            detail=problem_details(status_code, error_code, message, **self.error_detail),
            headers=headers,
        )


# ============================================================================
# Authentication (401)
# ============================================================================


class AuthenticationError(AppException):
    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="authentication_required",
            message=message,
        )


class InvalidCredentialsError(AppException):
    """Unknown email or wrong password. The two cases are not told apart."""

    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="invalid_credentials",
            message="Invalid email or password",
        )


class TokenExpiredError(AppException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="token_expired",
            message="Token has expired",
        )


class InvalidTokenError(AppException):
    """Malformed, revoked or wrong-type JWT."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="invalid_token",
            message=message,
        )


# ============================================================================
# Authorization and moderation (403)
# ============================================================================


class PermissionDeniedError(AppException):
    """Caller may not act on this particular resource (not its author)."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="permission_denied",
            message=message,
        )


class InsufficientRoleError(AppException):
    """Caller holds none of the roles the route requires."""

    def __init__(self, required_roles: list[str]) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="insufficient_role",
            message=f"Requires one of the roles: {', '.join(required_roles)}",
            detail={"required_roles": required_roles},
        )


class AccountBlockedError(AppException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="account_blocked",
            message="Your account has been blocked",
        )


class AccountFrozenError(AppException):
    """Profile is frozen; the body says until when and how long is left."""

    def __init__(self, frozen_until: datetime, remaining_seconds: int) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="account_frozen",
            message="Your account is temporarily frozen",
            detail={
                "frozen_until": frozen_until.isoformat(),
                "remaining_seconds": remaining_seconds,
            },
        )


class RegistrationClosedError(AppException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="registration_closed",
            message="Registration is currently disabled",
        )


# ============================================================================
# Resources and conflicts (404, 409)
# ============================================================================


class NotFoundError(AppException):
    def __init__(
        self,
        resource: str,
        identifier: str | UUID | None = None,
    ) -> None:
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} with id '{identifier}' not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="not_found",
            message=message,
            detail={"resource": resource},
        )


class AlreadyExistsError(AppException):
    """A unique value (slug, email, username) is taken."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="already_exists",
            message=f"{resource} with {field}='{value}' already exists",
            detail={"resource": resource, "field": field, "value": value},
        )


class ConflictError(AppException):
    """A concurrent write hit a unique constraint first."""

    def __init__(self, constraint: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="conflict",
            message="The resource was changed by a concurrent request. Please retry.",
            detail={"constraint": constraint},
        )


class VersionConflictError(AppException):
    """Client edited a stale copy of a page or paragraph."""

    def __init__(
        self,
        resource: str,
        current_version: int,
        provided_version: int,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="version_conflict",
            message=f"{resource} was modified by another user. Please refresh and try again.",
            detail={
                "resource": resource,
                "current_version": current_version,
                "provided_version": provided_version,
            },
        )


class InvalidStateTransitionError(AppException):
    """Workflow action not allowed from the current status."""

    def __init__(self, resource: str, current_state: str, action: str) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="invalid_state_transition",
            message=f"Cannot {action} {resource.lower()} in status '{current_state}'",
            detail={"resource": resource, "current_state": current_state, "action": action},
        )


class SuggestionOutdatedError(AppException):
    """Paragraph changed after the suggestion was written."""

    def __init__(self, base_version: int, current_version: int) -> None:
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code="suggestion_outdated",
            message="Paragraph was edited after this suggestion was made",
            detail={"base_version": base_version, "current_version": current_version},
        )


# ============================================================================
# Business validation (400)
# ============================================================================


class ValidationError(AppException):
    """Input that passed schema validation but breaks a business rule."""

    def __init__(
        self,
        message: str,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="validation_error",
            message=message,
            detail={"errors": errors or []},
        )


class UnsupportedLanguageError(ValidationError):
    def __init__(self, language: str, supported_languages: list[str]) -> None:
        super().__init__(
            message=f"Language '{language}' is not supported",
            errors=[
                {
                    "field": "language",
                    "value": language,
                    "supported": supported_languages,
                }
            ],
        )


class InvalidReplyTargetError(ValidationError):
    """Parent comment is missing, deleted, or on another target."""

    def __init__(self, parent_id: UUID) -> None:
        super().__init__(
            message="Parent comment must belong to the same target",
            errors=[{"field": "parent_id", "value": str(parent_id)}],
        )


class InvalidVerificationTokenError(ValidationError):
    def __init__(self) -> None:
        super().__init__(message="Invalid or expired verification token")


# ============================================================================
# Throttling (429)
# ============================================================================


class RateLimitExceededError(AppException):
    def __init__(
        self,
        message: str = "Too many requests",
        retry_after: int | None = None,
    ) -> None:
        detail: dict[str, Any] = {}
        headers = None
        if retry_after:
            detail["retry_after"] = retry_after
            headers = {"Retry-After": str(retry_after)}

        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_code="rate_limit_exceeded",
            message=message,
            detail=detail,
            headers=headers,
        )


class CommentCooldownError(AppException):
    """Profile commented too recently."""

    def __init__(self, retry_after: int) -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_code="comment_cooldown",
            message=f"Please wait {retry_after} seconds before commenting again",
            detail={"retry_after": retry_after},
            headers={"Retry-After": str(retry_after)},
        )
