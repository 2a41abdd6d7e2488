"""Async client for the review platform's REST backend.

All HTTP calls use one shared httpx.AsyncClient created at app startup.
Backend failures are classified into the reviewgate exception hierarchy so
the submission service can show the right message. No automatic retries:
the submitter resubmits manually.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from reviewgate.exceptions import (
    AuthenticationError,
    BackendError,
    BackendUnavailableError,
    CaptchaRejectedError,
    DuplicateReviewError,
    ReviewGateError,
    SpamRejectedError,
)
from reviewgate.submission.schemas import CommentPayload, ReviewPayload

logger = structlog.get_logger(__name__)

# Substrings / codes the backend uses for its domain errors
_DUPLICATE_MARKERS = ("already reviewed", "duplicate_review", "already_reviewed")
_CAPTCHA_MARKERS = ("captcha",)
_SPAM_MARKERS = ("spam", "meaningful")


def _error_text(body: dict[str, Any]) -> str:
    """Collect the backend's error fields into one searchable string."""
    parts = [
        str(body[key])
        for key in ("error", "message", "code")
        if body.get(key)
    ]
    return " ".join(parts)


def classify_backend_error(status_code: int, body: dict[str, Any]) -> ReviewGateError:
    """Map a backend error response to a reviewgate exception.

    Args:
        status_code: HTTP status of the failed response.
        body: Parsed JSON body (may be empty).

    Returns:
        The exception to raise. The backend's own text goes into ``detail``;
        ``message`` stays the user-facing default of the exception class.
    """
    text = _error_text(body)
    lowered = text.lower()
    detail = text or f"HTTP {status_code}"

    if status_code == 401:
        return AuthenticationError(detail=detail)
    if status_code == 409 or any(m in lowered for m in _DUPLICATE_MARKERS):
        return DuplicateReviewError(detail=detail, status_code=status_code)
    if any(m in lowered for m in _CAPTCHA_MARKERS):
        return CaptchaRejectedError(detail=detail, status_code=status_code)
    if any(m in lowered for m in _SPAM_MARKERS):
        return SpamRejectedError(detail=detail, status_code=status_code)
    return BackendError(detail=f"HTTP {status_code}: {detail}", status_code=status_code)


def _parse_body(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        body = response.json()
    except ValueError:
        return {"error": response.text[:200]}
    return body if isinstance(body, dict) else {"data": body}


def _unwrap(body: dict[str, Any]) -> dict[str, Any]:
    """Strip the ``{"data": ..., "message": ...}`` envelope if present.

    The envelope's message is kept alongside the data.
    """
    data = body.get("data")
    if not isinstance(data, dict):
        return body
    unwrapped = dict(data)
    if body.get("message") and "message" not in unwrapped:
        unwrapped["message"] = body["message"]
    return unwrapped


class BackendClient:
    """Thin typed wrapper over the review backend's create endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            response = await self._client.request(
                method, path, headers=headers, json=json
            )
        except httpx.TransportError as e:
            logger.warning(
                "backend_unreachable",
                method=method,
                path=path,
                error=type(e).__name__,
            )
            raise BackendUnavailableError(detail=str(e) or type(e).__name__) from e

        body = _parse_body(response)
        if response.is_error:
            error = classify_backend_error(response.status_code, body)
            logger.warning(
                "backend_request_failed",
                method=method,
                path=path,
                status_code=response.status_code,
                error=type(error).__name__,
            )
            raise error
        return body

    async def create_review(
        self, payload: ReviewPayload, token: Optional[str] = None
    ) -> dict[str, Any]:
        """POST /reviews. Returns the backend envelope contents."""
        body = await self._request("POST", "/reviews", token=token, json=payload.to_wire())
        logger.info("review_created", merchant_id=payload.merchant_id)
        return _unwrap(body)

    async def add_comment(
        self, review_id: str, payload: CommentPayload, token: Optional[str] = None
    ) -> dict[str, Any]:
        """POST /reviews/{review_id}/comments."""
        body = await self._request(
            "POST", f"/reviews/{review_id}/comments", token=token, json=payload.to_wire()
        )
        logger.info("comment_created", review_id=review_id)
        return _unwrap(body)

    async def get_current_user(self, token: str) -> dict[str, Any]:
        """GET /auth/me. Raises AuthenticationError for a rejected token."""
        body = _unwrap(await self._request("GET", "/auth/me", token=token))
        user = body.get("user", body)
        return user if isinstance(user, dict) else {}
