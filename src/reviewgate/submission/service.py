"""Submission service: gate, normalize, forward, notify.

Plays the part of the submission form. The gate runs first; a blocked draft
never reaches the backend. Accepted drafts are normalized into backend
payloads, forwarded, and the outcome is sent to the submitter as a toast.
Backend refusals are re-raised after the failure toast is sent.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from reviewgate.backend.client import BackendClient
from reviewgate.exceptions import (
    AuthenticationError,
    BackendError,
    CaptchaRequiredError,
    SubmissionValidationError,
)
from reviewgate.submission.gate import ValidationResult, validate
from reviewgate.submission.notifications import SubmissionNotifier, notifier as _default_notifier
from reviewgate.submission.schemas import (
    REACTION_EMOJI,
    CommentDraft,
    CommentPayload,
    ReviewDraft,
    ReviewPayload,
    SessionState,
    SubmissionReceipt,
)
from reviewgate.submission.text import to_plain_text

logger = logging.getLogger(__name__)

REVIEW_ACCEPTED_MESSAGE = "Thanks! Your review has been submitted"
COMMENT_ACCEPTED_MESSAGE = "Your comment has been posted"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def ensure_submittable(result: ValidationResult) -> None:
    """Raise if the gate result blocks submission.

    Raises:
        SubmissionValidationError: one or more field errors.
        CaptchaRequiredError: guest submission without a challenge token.
    """
    if result.field_errors:
        raise SubmissionValidationError(result)
    if result.requires_captcha and not result.is_captcha_satisfied:
        raise CaptchaRequiredError()


# =============================================================================
# Payload builders
# =============================================================================


def build_review_payload(
    merchant_id: str, draft: ReviewDraft, session: SessionState
) -> ReviewPayload:
    """Normalize a validated review draft into the backend body."""
    display_name = _clean(draft.display_name)
    if session.is_authenticated and display_name is None:
        display_name = _clean(session.display_name)
    return ReviewPayload(
        merchant_id=merchant_id,
        rating=draft.rating,
        title=_clean(draft.title) or "",
        content=draft.content.strip(),
        recommend=draft.recommend,
        display_name=display_name,
        captcha_token=_clean(draft.captcha_token),
    )


def build_comment_payload(
    draft: CommentDraft, session: SessionState
) -> CommentPayload:
    """Normalize a validated comment draft into the backend body.

    Members are identified by their token, so only guests send a name.
    """
    content = draft.content.strip() if to_plain_text(draft.content).strip() else None
    return CommentPayload(
        reaction=REACTION_EMOJI[draft.reaction_kind],
        content=content,
        display_name=None if session.is_authenticated else _clean(draft.display_name),
        captcha_token=_clean(draft.captcha_token),
    )


def _resource_id(resource: dict[str, Any], key: str) -> Optional[str]:
    item = resource.get(key, resource)
    if not isinstance(item, dict):
        return None
    value = item.get("id") or item.get("_id")
    return str(value) if value is not None else None


# =============================================================================
# Service
# =============================================================================


class SubmissionService:
    """Gates and forwards review and comment submissions."""

    def __init__(
        self,
        backend: BackendClient,
        notifier: Optional[SubmissionNotifier] = None,
    ) -> None:
        self.backend = backend
        self.notifier = notifier or _default_notifier

    async def submit_review(
        self, merchant_id: str, draft: ReviewDraft, session: SessionState
    ) -> SubmissionReceipt:
        """Validate and forward a review.

        Raises:
            SubmissionValidationError / CaptchaRequiredError: blocked locally.
            BackendError (and subclasses), AuthenticationError: backend refused.
        """
        ensure_submittable(validate(draft, session))
        payload = build_review_payload(merchant_id, draft, session)

        try:
            resource = await self.backend.create_review(payload, token=session.access_token)
        except (BackendError, AuthenticationError) as e:
            await self._report_failure(session, "review", merchant_id, e)
            raise

        message = resource.get("message") or REVIEW_ACCEPTED_MESSAGE
        await self.notifier.accepted(session.recipient, "review", merchant_id, message)
        return SubmissionReceipt(
            kind="review",
            target_id=merchant_id,
            resource_id=_resource_id(resource, "review"),
            message=message,
            resource=resource,
        )

    async def submit_comment(
        self, review_id: str, draft: CommentDraft, session: SessionState
    ) -> SubmissionReceipt:
        """Validate and forward a comment on an existing review."""
        ensure_submittable(validate(draft, session))
        payload = build_comment_payload(draft, session)

        try:
            resource = await self.backend.add_comment(
                review_id, payload, token=session.access_token
            )
        except (BackendError, AuthenticationError) as e:
            await self._report_failure(session, "comment", review_id, e)
            raise

        message = resource.get("message") or COMMENT_ACCEPTED_MESSAGE
        await self.notifier.accepted(session.recipient, "comment", review_id, message)
        return SubmissionReceipt(
            kind="comment",
            target_id=review_id,
            resource_id=_resource_id(resource, "comment"),
            message=message,
            resource=resource,
        )

    async def _report_failure(
        self,
        session: SessionState,
        kind: str,
        target_id: str,
        error: BackendError | AuthenticationError,
    ) -> None:
        logger.warning(
            "%s submission for %s rejected by backend: %s",
            kind, target_id, error.detail,
        )
        await self.notifier.failed(
            session.recipient, kind, target_id, error.message, error.suggestion
        )
