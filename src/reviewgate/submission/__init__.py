"""Submission gate: validation and anti-abuse gating for reviews and comments."""

from reviewgate.submission.gate import ValidationResult, is_meaningful_text, validate
from reviewgate.submission.schemas import (
    CommentDraft,
    ReactionKind,
    ReviewDraft,
    SessionState,
)

__all__ = [
    "CommentDraft",
    "ReactionKind",
    "ReviewDraft",
    "SessionState",
    "ValidationResult",
    "is_meaningful_text",
    "validate",
]
