"""Tests for the submission service: gate-before-forward, payload
normalization, and success/failure toasts.

The backend client is an AsyncMock; toasts go to a private hub and are also
captured, with their recipient, through a registered observer channel.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from reviewgate.exceptions import (
    AuthenticationError,
    BackendUnavailableError,
    CaptchaRequiredError,
    DuplicateReviewError,
    SubmissionValidationError,
)
from reviewgate.submission.schemas import (
    CommentDraft,
    ReactionKind,
    ReviewDraft,
    SessionState,
)
from reviewgate.submission.service import (
    COMMENT_ACCEPTED_MESSAGE,
    SubmissionService,
    build_comment_payload,
    build_review_payload,
)


# =============================================================================
# Helpers
# =============================================================================


@pytest.fixture
def backend():
    mock = AsyncMock()
    mock.create_review.return_value = {"review": {"id": "r-1"}, "message": "Review created"}
    mock.add_comment.return_value = {"comment": {"id": "c-1"}}
    return mock


@pytest.fixture
def events(notifier):
    captured = []

    async def channel(recipient, toast):
        captured.append((recipient, toast))

    notifier.register_channel(channel)
    return captured


@pytest.fixture
def service(backend, notifier):
    return SubmissionService(backend, notifier=notifier)


# =============================================================================
# Payload builders
# =============================================================================


class TestBuildReviewPayload:
    def test_trims_fields(self, guest_session):
        draft = ReviewDraft(
            display_name="  Minh ",
            rating=4,
            title="  Solid  ",
            content="  Friendly staff and quick service  ",
            captcha_token="tok",
        )
        payload = build_review_payload("m-1", draft, guest_session)
        assert payload.display_name == "Minh"
        assert payload.title == "Solid"
        assert payload.content == "Friendly staff and quick service"
        assert payload.captcha_token == "tok"

    def test_member_name_from_session(self, member_session):
        draft = ReviewDraft(rating=4, title="Solid", content="Friendly staff and quick service")
        payload = build_review_payload("m-1", draft, member_session)
        assert payload.display_name == "Linh Tran"
        assert payload.captcha_token is None


class TestBuildCommentPayload:
    def test_reaction_mapped_to_emoji(self, member_session, member_comment):
        payload = build_comment_payload(member_comment, member_session)
        assert payload.reaction == "❤️"
        assert payload.content is None

    def test_member_name_omitted(self, member_session):
        draft = CommentDraft(reaction_kind=ReactionKind.SAD, display_name="Linh")
        assert build_comment_payload(draft, member_session).display_name is None

    def test_guest_name_kept(self, guest_session):
        draft = CommentDraft(
            reaction_kind=ReactionKind.ANGRY,
            display_name=" Minh ",
            content="Took forever to arrive",
            captcha_token="tok",
        )
        payload = build_comment_payload(draft, guest_session)
        assert payload.display_name == "Minh"
        assert payload.reaction == "\U0001f621"
        assert payload.content == "Took forever to arrive"


# =============================================================================
# Review submission
# =============================================================================


class TestSubmitReview:
    @pytest.mark.asyncio
    async def test_invalid_draft_never_reaches_backend(self, service, backend, guest_session):
        with pytest.raises(SubmissionValidationError) as exc_info:
            await service.submit_review("m-1", ReviewDraft(captcha_token="tok"), guest_session)
        assert "rating" in exc_info.value.result.field_errors
        backend.create_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_captcha_blocks(self, service, backend, guest_session, guest_review):
        with pytest.raises(CaptchaRequiredError):
            await service.submit_review("m-1", guest_review, guest_session)
        backend.create_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_guest_with_token_forwarded(
        self, service, backend, events, guest_session, guest_review
    ):
        guest_review.captcha_token = "tok"
        receipt = await service.submit_review("m-1", guest_review, guest_session)

        payload = backend.create_review.call_args.args[0]
        assert payload.merchant_id == "m-1"
        assert backend.create_review.call_args.kwargs["token"] is None
        assert receipt.kind == "review"
        assert receipt.resource_id == "r-1"
        assert receipt.message == "Review created"
        recipient, toast = events[0]
        assert recipient == "client:guest-browser-1"
        assert toast.event == "submission_accepted"
        assert toast.target_id == "m-1"

    @pytest.mark.asyncio
    async def test_member_token_forwarded(self, service, backend, member_session, guest_review):
        await service.submit_review("m-1", guest_review, member_session)
        assert backend.create_review.call_args.kwargs["token"] == "member-token"

    @pytest.mark.asyncio
    async def test_backend_domain_error_notified_and_reraised(
        self, service, backend, events, member_session, guest_review
    ):
        backend.create_review.side_effect = DuplicateReviewError(detail="already reviewed")
        with pytest.raises(DuplicateReviewError):
            await service.submit_review("m-1", guest_review, member_session)

        recipient, toast = events[0]
        assert recipient == "user:u-42"
        assert toast.event == "submission_failed"
        assert toast.message == "You have already reviewed this merchant"
        assert toast.level == "error"

    @pytest.mark.asyncio
    async def test_transport_error_notified(
        self, service, backend, events, member_session, guest_review
    ):
        backend.create_review.side_effect = BackendUnavailableError(detail="timeout")
        with pytest.raises(BackendUnavailableError):
            await service.submit_review("m-1", guest_review, member_session)
        assert events[0][1].message == "Could not reach the review service"

    @pytest.mark.asyncio
    async def test_expired_session_toasted_and_reraised(
        self, service, backend, events, member_session, guest_review
    ):
        backend.create_review.side_effect = AuthenticationError()
        with pytest.raises(AuthenticationError):
            await service.submit_review("m-1", guest_review, member_session)

        recipient, toast = events[0]
        assert recipient == "user:u-42"
        assert toast.event == "submission_failed"
        assert toast.message == "Your session has expired"
        assert toast.suggestion == "Sign in again"


# =============================================================================
# Comment submission
# =============================================================================


class TestSubmitComment:
    @pytest.mark.asyncio
    async def test_member_comment_without_content(
        self, service, backend, events, member_session, member_comment
    ):
        receipt = await service.submit_comment("r-5", member_comment, member_session)

        review_id, payload = backend.add_comment.call_args.args
        assert review_id == "r-5"
        assert payload.content is None
        assert receipt.resource_id == "c-1"
        assert receipt.message == COMMENT_ACCEPTED_MESSAGE
        assert events[0][1].event == "submission_accepted"

    @pytest.mark.asyncio
    async def test_missing_reaction_blocks(self, service, backend, member_session):
        with pytest.raises(SubmissionValidationError):
            await service.submit_comment("r-5", CommentDraft(), member_session)
        backend.add_comment.assert_not_called()


# =============================================================================
# Notifications
# =============================================================================


class TestNotificationChannels:
    @pytest.mark.asyncio
    async def test_failing_channel_does_not_break_submission(
        self, service, notifier, member_session, guest_review
    ):
        async def broken(recipient, toast):
            raise RuntimeError("channel down")

        notifier.register_channel(broken)
        receipt = await service.submit_review("m-1", guest_review, member_session)
        assert receipt.kind == "review"


class TestToastDelivery:
    @pytest.mark.asyncio
    async def test_rejection_reaches_only_the_submitter(
        self, service, backend, hub, member_session, guest_review
    ):
        other_member = SessionState(
            is_authenticated=True, user_id="u-77", access_token="other-token"
        )
        submitter_inbox = hub.open(member_session.recipient)
        other_inbox = hub.open(other_member.recipient)

        backend.create_review.side_effect = DuplicateReviewError()
        with pytest.raises(DuplicateReviewError):
            await service.submit_review("m-1", guest_review, member_session)

        toast = await asyncio.wait_for(submitter_inbox.next_toast(), timeout=1.0)
        assert toast["message"] == "You have already reviewed this merchant"
        assert toast["target_id"] == "m-1"
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(other_inbox.next_toast(), timeout=0.05)

    @pytest.mark.asyncio
    async def test_guest_toast_addressed_by_client_key(
        self, service, hub, guest_session, guest_review
    ):
        other_guest = SessionState.anonymous(client_key="guest-browser-2")
        own_inbox = hub.open(guest_session.recipient)
        other_inbox = hub.open(other_guest.recipient)

        guest_review.captcha_token = "tok"
        await service.submit_review("m-1", guest_review, guest_session)

        assert (await own_inbox.next_toast())["event"] == "submission_accepted"
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(other_inbox.next_toast(), timeout=0.05)

    @pytest.mark.asyncio
    async def test_guest_without_client_key_reaches_no_stream(
        self, service, hub, events, guest_review
    ):
        inbox = hub.open("client:someone-else")
        guest_review.captcha_token = "tok"
        await service.submit_review("m-1", guest_review, SessionState.anonymous())

        assert events[0][0] is None
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(inbox.next_toast(), timeout=0.05)
