"""Submission gate: local validation and anti-abuse checks for reviews and comments.

Every draft passes through the gate before it is forwarded to the backend:

1. Display name -- guests must name themselves
2. Rating (reviews) / reaction (comments)
3. Content -- minimum length, meaningful-text heuristic, maximum length
4. Title (reviews only) -- required once the title field has been revealed
5. Captcha -- guests must present a challenge token

The gate is pure: no I/O, no mutation of the draft, never raises. Callers
check ``ValidationResult.is_submittable`` before sending anything.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Union

from reviewgate.submission.schemas import CommentDraft, ReviewDraft, SessionState
from reviewgate.submission.text import to_plain_text

logger = logging.getLogger(__name__)


# =============================================================================
# Thresholds
# =============================================================================

MIN_CONTENT_LENGTH = 10
MAX_CONTENT_LENGTH = 1000

# Plain-text length at which the review title field is revealed
TITLE_REVEAL_LENGTH = 10

MIN_REPEAT_RUN = 5
MIN_DISTINCT_CHARS = 3

# Keyboard-mash fragments; only count as spam when they fill most of a short text
KEYBOARD_MASH_PATTERNS = ("asdf", "qwer", "zxcv", "1234", "1111")

_REPEATED_RUN = re.compile(r"(.)\1{%d,}" % (MIN_REPEAT_RUN - 1), re.DOTALL)


# =============================================================================
# Data types
# =============================================================================


Draft = Union[ReviewDraft, CommentDraft]


@dataclass
class ValidationResult:
    field_errors: dict[str, str] = field(default_factory=dict)
    requires_captcha: bool = False
    is_captcha_satisfied: bool = False

    @property
    def is_submittable(self) -> bool:
        if self.field_errors:
            return False
        return not self.requires_captcha or self.is_captcha_satisfied

    def to_dict(self) -> dict:
        """Serialize to a JSON-safe dict for API responses."""
        return {
            "field_errors": dict(self.field_errors),
            "requires_captcha": self.requires_captcha,
            "is_captcha_satisfied": self.is_captcha_satisfied,
            "is_submittable": self.is_submittable,
        }


# Error messages keyed by draft kind
_REVIEW_MESSAGES = {
    "too_short": f"Review must be at least {MIN_CONTENT_LENGTH} characters",
    "not_meaningful": "Please provide meaningful content for your review",
    "too_long": f"Review must be less than {MAX_CONTENT_LENGTH} characters",
}
_COMMENT_MESSAGES = {
    "too_short": f"Comment must be at least {MIN_CONTENT_LENGTH} characters",
    "not_meaningful": "Please write a meaningful comment",
    "too_long": f"Comment must be less than {MAX_CONTENT_LENGTH} characters",
}

DISPLAY_NAME_REQUIRED = "Display name is required"
RATING_REQUIRED = "Please select a rating"
REACTION_REQUIRED = "Please select a reaction"
TITLE_REQUIRED = "Title is required"


# =============================================================================
# Meaningful-text heuristic
# =============================================================================


def is_meaningful_text(text: str) -> bool:
    """Reject the laziest spam inputs.

    A heuristic, not a security control. Returns False for text that is too
    short, a single repeated character, short keyboard mashing, or built from
    fewer than three distinct characters.
    """
    trimmed = text.strip()
    if len(trimmed) < MIN_CONTENT_LENGTH:
        return False

    if _REPEATED_RUN.fullmatch(trimmed):
        return False

    # Only short text is treated as mashing; longer text may contain the
    # substring legitimately ("call 1234 Main St")
    lowered = trimmed.lower()
    for pattern in KEYBOARD_MASH_PATTERNS:
        if pattern in lowered and len(lowered) < len(pattern) * 3:
            return False

    if len(set(trimmed)) < MIN_DISTINCT_CHARS:
        return False

    return True


# =============================================================================
# Field checks
# =============================================================================


def _is_blank(value: str | None) -> bool:
    return not value or not value.strip()


def _check_content(
    plain_text: str, messages: dict[str, str]
) -> str | None:
    """Return the content error message, or None if the content is acceptable."""
    if len(plain_text.strip()) < MIN_CONTENT_LENGTH:
        return messages["too_short"]
    if not is_meaningful_text(plain_text):
        return messages["not_meaningful"]
    if len(plain_text) > MAX_CONTENT_LENGTH:
        return messages["too_long"]
    return None


def title_is_required(draft: ReviewDraft) -> bool:
    """Whether the review title must be filled in.

    The reveal is sticky: ``title_ever_revealed`` keeps the title required
    after the content is shortened again. Content that is currently long
    enough counts as revealed even if no edit handler set the flag.
    """
    if draft.title_ever_revealed:
        return True
    return len(to_plain_text(draft.content)) >= TITLE_REVEAL_LENGTH


def _captcha_flags(
    session: SessionState, captcha_token: str | None
) -> tuple[bool, bool]:
    requires_captcha = not session.is_authenticated
    is_captcha_satisfied = bool(captcha_token)
    return requires_captcha, is_captcha_satisfied


# =============================================================================
# Validators
# =============================================================================


def validate_review(draft: ReviewDraft, session: SessionState) -> ValidationResult:
    errors: dict[str, str] = {}

    if not session.is_authenticated and _is_blank(draft.display_name):
        errors["display_name"] = DISPLAY_NAME_REQUIRED

    if not 1 <= draft.rating <= 5:
        errors["rating"] = RATING_REQUIRED

    content_error = _check_content(to_plain_text(draft.content), _REVIEW_MESSAGES)
    if content_error:
        errors["content"] = content_error

    if title_is_required(draft) and _is_blank(draft.title):
        errors["title"] = TITLE_REQUIRED

    requires_captcha, satisfied = _captcha_flags(session, draft.captcha_token)
    return ValidationResult(
        field_errors=errors,
        requires_captcha=requires_captcha,
        is_captcha_satisfied=satisfied,
    )


def validate_comment(draft: CommentDraft, session: SessionState) -> ValidationResult:
    errors: dict[str, str] = {}

    if not session.is_authenticated and _is_blank(draft.display_name):
        errors["display_name"] = DISPLAY_NAME_REQUIRED

    if draft.reaction_kind is None:
        errors["reaction_kind"] = REACTION_REQUIRED

    # Comment text is optional; only check it when something was written
    plain_text = to_plain_text(draft.content)
    if plain_text.strip():
        content_error = _check_content(plain_text, _COMMENT_MESSAGES)
        if content_error:
            errors["content"] = content_error

    requires_captcha, satisfied = _captcha_flags(session, draft.captcha_token)
    return ValidationResult(
        field_errors=errors,
        requires_captcha=requires_captcha,
        is_captcha_satisfied=satisfied,
    )


def validate(draft: Draft, session: SessionState) -> ValidationResult:
    """Run the gate on a review or comment draft.

    Args:
        draft: The review or comment being submitted.
        session: Authentication state of the submitter.

    Returns:
        ValidationResult with field-keyed errors and captcha flags.
    """
    if isinstance(draft, ReviewDraft):
        result = validate_review(draft, session)
    else:
        result = validate_comment(draft, session)

    if result.field_errors:
        logger.info(
            "%s draft blocked on fields: %s",
            type(draft).__name__,
            ", ".join(sorted(result.field_errors)),
        )
    return result
