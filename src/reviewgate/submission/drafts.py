"""Draft lifecycle helpers: create, edit, reset.

These hold the form-side state the gate reads but never writes, most notably
the sticky ``title_ever_revealed`` flag on review drafts.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from reviewgate.submission.gate import TITLE_REVEAL_LENGTH
from reviewgate.submission.schemas import CommentDraft, ReviewDraft, SessionState
from reviewgate.submission.text import first_sentence, to_plain_text

ANONYMOUS_NAME = "Anonymous"


def resolve_display_name(user: Mapping[str, Any]) -> str:
    """Pick the name shown on a signed-in user's submissions.

    Falls back display name -> name -> email -> "Anonymous".
    """
    for key in ("displayName", "display_name", "name", "email"):
        value = user.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ANONYMOUS_NAME


def new_review_draft(session: SessionState) -> ReviewDraft:
    """Empty review draft, pre-filled with the member's display name."""
    display_name: Optional[str] = None
    if session.is_authenticated:
        display_name = session.display_name or ANONYMOUS_NAME
    return ReviewDraft(display_name=display_name)


def new_comment_draft(session: SessionState) -> CommentDraft:
    display_name = session.display_name if session.is_authenticated else None
    return CommentDraft(display_name=display_name)


def apply_review_content(
    draft: ReviewDraft, content: str, autofill_title: bool = True
) -> ReviewDraft:
    """Update review content and reveal the title once content is long enough.

    The reveal flag is only ever set here, never cleared. On first reveal an
    empty title is pre-filled with the first sentence of the content.
    """
    draft.content = content
    plain_text = to_plain_text(content)
    if len(plain_text) >= TITLE_REVEAL_LENGTH:
        draft.title_ever_revealed = True
        if autofill_title and not draft.title:
            suggestion = first_sentence(plain_text)
            if suggestion:
                draft.title = suggestion
    return draft


def reset_review_draft(session: SessionState) -> ReviewDraft:
    """Draft state after a successful submission or an explicit cancel."""
    return new_review_draft(session)


def reset_comment_draft(session: SessionState) -> CommentDraft:
    return new_comment_draft(session)
