"""reviewgate exception hierarchy.

All exceptions inherit from ReviewGateError and carry a three-part structure:
message (what happened), detail (technical context), suggestion (what to do next).
The message is safe to show to the person submitting the review or comment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from reviewgate.submission.gate import ValidationResult


class ReviewGateError(Exception):
    """Base exception for all reviewgate errors."""

    def __init__(
        self,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        self.message = message
        self.detail = detail
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.detail:
            parts.append(f"Detail: {self.detail}")
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return " | ".join(parts)


class SubmissionValidationError(ReviewGateError):
    """Raised when a draft fails local validation. No backend call was made."""

    def __init__(
        self,
        result: ValidationResult,
        message: str = "Please fix the highlighted fields",
        detail: str | None = None,
        suggestion: str | None = "Correct each field listed in field_errors and submit again",
    ) -> None:
        self.result = result
        if detail is None:
            detail = f"Invalid fields: {', '.join(sorted(result.field_errors))}"
        super().__init__(message, detail, suggestion)


class CaptchaRequiredError(ReviewGateError):
    """Raised when a guest submission arrives without a challenge token."""

    def __init__(
        self,
        message: str = "Please complete the captcha verification",
        detail: str | None = None,
        suggestion: str | None = "Solve the verification challenge, or sign in to skip it",
    ) -> None:
        super().__init__(message, detail, suggestion)


class AuthenticationError(ReviewGateError):
    """Raised when the backend rejects the caller's access token."""

    def __init__(
        self,
        message: str = "Your session has expired",
        detail: str | None = None,
        suggestion: str | None = "Sign in again",
    ) -> None:
        super().__init__(message, detail, suggestion)


class BackendError(ReviewGateError):
    """Raised when the review backend answers with an error."""

    def __init__(
        self,
        message: str = "Something went wrong while saving your submission",
        detail: str | None = None,
        suggestion: str | None = "Please try again in a moment",
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, detail, suggestion)


class DuplicateReviewError(BackendError):
    """Raised when the visitor has already reviewed this merchant."""

    def __init__(
        self,
        message: str = "You have already reviewed this merchant",
        detail: str | None = None,
        suggestion: str | None = "Edit your existing review instead",
        status_code: int | None = 409,
    ) -> None:
        super().__init__(message, detail, suggestion, status_code)


class CaptchaRejectedError(BackendError):
    """Raised when the backend's captcha verification fails."""

    def __init__(
        self,
        message: str = "Captcha verification failed",
        detail: str | None = None,
        suggestion: str | None = "Complete the verification challenge again and resubmit",
        status_code: int | None = 400,
    ) -> None:
        super().__init__(message, detail, suggestion, status_code)


class SpamRejectedError(BackendError):
    """Raised when the backend's own spam filter rejects the content."""

    def __init__(
        self,
        message: str = "Your submission was flagged as spam",
        detail: str | None = None,
        suggestion: str | None = "Write a more detailed, genuine description of your experience",
        status_code: int | None = 422,
    ) -> None:
        super().__init__(message, detail, suggestion, status_code)


class BackendUnavailableError(BackendError):
    """Raised on network or transport failures talking to the backend."""

    def __init__(
        self,
        message: str = "Could not reach the review service",
        detail: str | None = None,
        suggestion: str | None = "Check your connection and submit again",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, detail, suggestion, status_code)


class NotificationLimitError(ReviewGateError):
    """Raised when too many notification streams are already open."""

    def __init__(
        self,
        message: str = "Too many notification streams open",
        detail: str | None = None,
        suggestion: str | None = "Close other tabs of this site and reconnect",
    ) -> None:
        super().__init__(message, detail, suggestion)
