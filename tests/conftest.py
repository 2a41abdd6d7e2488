"""Test fixtures for reviewgate tests.

Sessions, drafts, and a notifier backed by a private toast hub so tests never
share inboxes with the module-level singleton.
"""

import pytest

from reviewgate.submission.events import ToastHub
from reviewgate.submission.notifications import SubmissionNotifier
from reviewgate.submission.schemas import (
    CommentDraft,
    ReactionKind,
    ReviewDraft,
    SessionState,
)


GOOD_CONTENT = "Fast shipping and great packaging overall"


@pytest.fixture
def guest_session():
    """Unauthenticated visitor with a browser client key."""
    return SessionState.anonymous(client_key="guest-browser-1")


@pytest.fixture
def member_session():
    """Signed-in member: Linh Tran."""
    return SessionState(
        is_authenticated=True,
        display_name="Linh Tran",
        user_id="u-42",
        access_token="member-token",
    )


@pytest.fixture
def guest_review():
    """Guest review that passes every field check (no captcha token)."""
    return ReviewDraft(
        display_name="Minh",
        rating=5,
        title="Great service",
        content=GOOD_CONTENT,
    )


@pytest.fixture
def member_comment():
    return CommentDraft(reaction_kind=ReactionKind.LOVE, content="")


@pytest.fixture
def hub():
    return ToastHub()


@pytest.fixture
def notifier(hub):
    return SubmissionNotifier(hub=hub)
