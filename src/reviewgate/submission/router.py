"""Submission REST API router with SSE notification endpoint.

Provides endpoints to start a draft, run the gate without submitting, submit
reviews and comments, and stream submission notifications.

Error handling: SubmissionValidationError -> 422 (with field errors),
CaptchaRequiredError -> 400, DuplicateReviewError -> 409,
BackendUnavailableError -> 503, NotificationLimitError -> 429,
other backend errors -> 502 (also when resolving the session).

Backend client dependency is wired during app assembly (app.state.backend).
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request

from reviewgate.backend.client import BackendClient
from reviewgate.exceptions import (
    AuthenticationError,
    BackendError,
    BackendUnavailableError,
    CaptchaRejectedError,
    CaptchaRequiredError,
    DuplicateReviewError,
    NotificationLimitError,
    ReviewGateError,
    SpamRejectedError,
    SubmissionValidationError,
)
from reviewgate.submission.drafts import new_review_draft, resolve_display_name
from reviewgate.submission.events import toast_hub
from reviewgate.submission.gate import validate
from reviewgate.submission.schemas import (
    CommentDraft,
    ReviewDraft,
    SessionState,
    SubmissionReceipt,
    ValidationResultResponse,
)
from reviewgate.submission.service import SubmissionService

submission_router = APIRouter(tags=["submissions"])
events_router = APIRouter(tags=["events"])


# -- Dependencies -------------------------------------------------------------


def _get_backend(request: Request) -> BackendClient:
    """Return the shared backend client created in the app lifespan."""
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise HTTPException(status_code=503, detail="Review backend not configured")
    return backend


def _get_service(backend: BackendClient = Depends(_get_backend)) -> SubmissionService:
    return SubmissionService(backend)


async def _get_session_state(
    authorization: Optional[str] = Header(default=None),
    x_client_key: Optional[str] = Header(default=None),
    client_key: Optional[str] = Query(default=None),
    backend: BackendClient = Depends(_get_backend),
) -> SessionState:
    """Resolve the caller's session from the bearer token.

    No token, or a token the backend rejects, means a guest session. Guests
    are told apart by their client key, sent as the X-Client-Key header or,
    from EventSource which cannot set headers, as the client_key query param.
    """
    key = (x_client_key or client_key or "").strip() or None

    if not authorization or not authorization.lower().startswith("bearer "):
        return SessionState.anonymous(client_key=key)
    token = authorization[len("bearer "):].strip()
    if not token:
        return SessionState.anonymous(client_key=key)

    try:
        user = await backend.get_current_user(token)
    except AuthenticationError:
        return SessionState.anonymous(client_key=key)
    except BackendUnavailableError as e:
        raise HTTPException(status_code=503, detail=_error_body(e))
    except BackendError as e:
        raise HTTPException(status_code=502, detail=_error_body(e))

    user_id = user.get("id") or user.get("_id")
    return SessionState(
        is_authenticated=True,
        display_name=resolve_display_name(user),
        user_id=str(user_id) if user_id is not None else None,
        access_token=token,
        client_key=key,
    )


# -- Error mapping ------------------------------------------------------------


# Most specific first
_STATUS_BY_ERROR: list[tuple[type[ReviewGateError], int]] = [
    (SubmissionValidationError, 422),
    (CaptchaRequiredError, 400),
    (AuthenticationError, 401),
    (DuplicateReviewError, 409),
    (CaptchaRejectedError, 400),
    (SpamRejectedError, 422),
    (BackendUnavailableError, 503),
    (NotificationLimitError, 429),
    (BackendError, 502),
]


def _error_body(e: ReviewGateError) -> dict:
    body: dict = {"message": e.message, "suggestion": e.suggestion}
    if isinstance(e, SubmissionValidationError):
        body.update(e.result.to_dict())
    return body


def _to_http(e: ReviewGateError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(e, error_type):
            return HTTPException(status_code=status_code, detail=_error_body(e))
    return HTTPException(status_code=400, detail=_error_body(e))


# -- Draft & validation endpoints ---------------------------------------------


@submission_router.get("/api/submissions/reviews/draft")
async def get_review_draft(
    session: SessionState = Depends(_get_session_state),
) -> ReviewDraft:
    """Fresh review draft, pre-filled with the member's display name."""
    return new_review_draft(session)


@submission_router.post("/api/submissions/reviews/validate")
async def validate_review_endpoint(
    draft: ReviewDraft,
    session: SessionState = Depends(_get_session_state),
) -> ValidationResultResponse:
    """Run the gate on a review draft without submitting it."""
    return ValidationResultResponse(**validate(draft, session).to_dict())


@submission_router.post("/api/submissions/comments/validate")
async def validate_comment_endpoint(
    draft: CommentDraft,
    session: SessionState = Depends(_get_session_state),
) -> ValidationResultResponse:
    """Run the gate on a comment draft without submitting it."""
    return ValidationResultResponse(**validate(draft, session).to_dict())


# -- Submission endpoints -----------------------------------------------------


@submission_router.post("/api/merchants/{merchant_id}/reviews", status_code=201)
async def submit_review_endpoint(
    merchant_id: str,
    draft: ReviewDraft,
    session: SessionState = Depends(_get_session_state),
    service: SubmissionService = Depends(_get_service),
) -> SubmissionReceipt:
    """Gate and forward a review for a merchant."""
    try:
        return await service.submit_review(merchant_id, draft, session)
    except ReviewGateError as e:
        raise _to_http(e)


@submission_router.post("/api/reviews/{review_id}/comments", status_code=201)
async def submit_comment_endpoint(
    review_id: str,
    draft: CommentDraft,
    session: SessionState = Depends(_get_session_state),
    service: SubmissionService = Depends(_get_service),
) -> SubmissionReceipt:
    """Gate and forward a reaction comment on a review."""
    try:
        return await service.submit_comment(review_id, draft, session)
    except ReviewGateError as e:
        raise _to_http(e)


# -- SSE Endpoint (separate router) -------------------------------------------


@events_router.get("/api/submissions/events")
async def event_stream(session: SessionState = Depends(_get_session_state)):
    """SSE endpoint for the caller's own submission toasts.

    Members receive toasts for their user id, guests for their client key.
    Front-end clients render each event as a transient, dismissible toast.
    """
    from sse_starlette.sse import EventSourceResponse

    recipient = session.recipient
    if recipient is None:
        raise HTTPException(
            status_code=400,
            detail={
                "message": "Cannot tell who this stream is for",
                "suggestion": "Sign in, or pass a client_key query parameter",
            },
        )
    try:
        inbox = toast_hub.open(recipient)
    except NotificationLimitError as e:
        raise _to_http(e)

    async def generate():
        try:
            async for toast in inbox:
                yield {
                    "event": toast["event"],
                    "data": json.dumps(toast),
                    "retry": 5000,
                }
        finally:
            inbox.close()

    return EventSourceResponse(generate())
