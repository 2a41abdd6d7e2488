"""Pydantic schemas for review and comment submissions.

Drafts are the in-progress form state sent by the front end. Payloads are the
normalized bodies forwarded to the review backend (camelCase on the wire).
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# -- Session -----------------------------------------------------------------


class SessionState(BaseModel):
    """Read-only snapshot of who is submitting."""

    model_config = ConfigDict(frozen=True)

    is_authenticated: bool = False
    display_name: Optional[str] = None
    user_id: Optional[str] = None
    access_token: Optional[str] = Field(default=None, exclude=True, repr=False)
    # Random per-browser key; addresses toasts to guests
    client_key: Optional[str] = None

    @classmethod
    def anonymous(cls, client_key: Optional[str] = None) -> "SessionState":
        return cls(is_authenticated=False, client_key=client_key)

    @property
    def recipient(self) -> Optional[str]:
        """Notification address: the member's user id, else the client key."""
        if self.is_authenticated and self.user_id:
            return f"user:{self.user_id}"
        if self.client_key:
            return f"client:{self.client_key}"
        return None


# -- Drafts ------------------------------------------------------------------


class ReactionKind(str, Enum):
    LOVE = "love"
    SAD = "sad"
    ANGRY = "angry"


# The backend stores reactions as the emoji itself
REACTION_EMOJI: dict[ReactionKind, str] = {
    ReactionKind.LOVE: "\u2764\ufe0f",
    ReactionKind.SAD: "\U0001f622",
    ReactionKind.ANGRY: "\U0001f621",
}


class ReviewDraft(BaseModel):
    """A review being composed for a merchant."""

    model_config = ConfigDict(validate_assignment=True)

    display_name: Optional[str] = None
    rating: int = Field(default=0, ge=0, le=5)  # 0 = not chosen yet
    title: Optional[str] = None
    content: str = ""
    recommend: bool = True
    captcha_token: Optional[str] = None
    # Sticky: once the title field has been shown it stays required
    title_ever_revealed: bool = False


class CommentDraft(BaseModel):
    """A reaction comment being composed on an existing review."""

    model_config = ConfigDict(validate_assignment=True)

    display_name: Optional[str] = None
    reaction_kind: Optional[ReactionKind] = None
    content: str = ""
    captcha_token: Optional[str] = None


# -- Backend payloads --------------------------------------------------------


class _BackendPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """JSON body for the backend: camelCase keys, unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ReviewPayload(_BackendPayload):
    merchant_id: str
    rating: int = Field(..., ge=1, le=5)
    title: str
    content: str
    recommend: bool = True
    display_name: Optional[str] = None
    captcha_token: Optional[str] = None


class CommentPayload(_BackendPayload):
    reaction: str
    content: Optional[str] = None
    display_name: Optional[str] = None
    captcha_token: Optional[str] = None


# -- Responses ---------------------------------------------------------------


class ValidationResultResponse(BaseModel):
    """Gate outcome as returned to the front end."""

    field_errors: dict[str, str] = Field(default_factory=dict)
    requires_captcha: bool
    is_captcha_satisfied: bool
    is_submittable: bool


class SubmissionReceipt(BaseModel):
    """Returned after the backend accepted a review or comment."""

    kind: str  # "review" or "comment"
    target_id: str
    resource_id: Optional[str] = None
    message: str
    resource: Optional[dict[str, Any]] = None
