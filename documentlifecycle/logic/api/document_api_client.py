"""
===============================================================================
DocumentApiClient – async HTTP access to the document persistence API
-------------------------------------------------------------------------------
Endpoints:
    GET  /documents/{id}
    PUT  /documents/{id}                    {data}
    POST /documents/{id}/approve            {signatureData, [reviewerEmail]}
    POST /documents/{id}/reject             {reason, [reviewerEmail]}
    POST /documents/{id}/assign-reviewer    {reviewerEmail}
    POST /documents/{id}/mark-viewed

Error mapping (no automatic retries):
    401 -> SessionExpiredError      403 -> ForbiddenError
    404 -> DocumentNotFoundError    other 4xx -> ServerValidationError
    5xx / transport -> TransientNetworkError
===============================================================================
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from core.config.config_service import config_service
from core.logging.logic.logger import logger
from documentlifecycle.exceptions.errors import (
    DocumentLifecycleError,
    DocumentNotFoundError,
    ForbiddenError,
    ServerValidationError,
    SessionExpiredError,
    TransientNetworkError,
)
from documentlifecycle.models.document import Document, DocumentData
from documentlifecycle.models.mappers import data_to_wire, document_from_wire

_FEATURE = "DocumentApi"


def _server_message(resp: httpx.Response) -> Optional[str]:
    try:
        body = resp.json()
    except ValueError:
        text = resp.text.strip()
        return text or None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return None


def error_for_response(resp: httpx.Response) -> DocumentLifecycleError:
    code = resp.status_code
    message = _server_message(resp)
    if code == 401:
        return SessionExpiredError(status_code=code)
    if code == 403:
        return ForbiddenError(status_code=code)
    if code == 404:
        return DocumentNotFoundError(status_code=code)
    if 400 <= code < 500:
        return ServerValidationError(message or f"Request rejected ({code}).", status_code=code)
    return TransientNetworkError(status_code=code)


class DocumentApiClient:
    """Bearer-authenticated client; one instance per signed-in session."""

    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not token:
            raise ValueError("A bearer token is required")
        self._client = httpx.AsyncClient(
            base_url=base_url or config_service.api.base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            timeout=timeout if timeout is not None else config_service.api.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DocumentApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    async def _request(self, method: str, path: str, *, json: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, json=json)
        except httpx.TransportError as exc:
            logger.log(_FEATURE, "TransportError", level="WARNING", reference_id=path, message=str(exc))
            raise TransientNetworkError() from exc
        if resp.is_error:
            err = error_for_response(resp)
            logger.log(
                _FEATURE, type(err).__name__, level="WARNING",
                reference_id=path, message=f"{method} {resp.status_code}: {err}",
            )
            raise err
        return resp

    # ------------------------------------------------------------------ #
    async def get_document(self, document_id: int) -> Document:
        resp = await self._request("GET", f"/documents/{document_id}")
        return document_from_wire(resp.json())

    async def update_document(self, document_id: int, data: DocumentData) -> None:
        await self._request("PUT", f"/documents/{document_id}", json={"data": data_to_wire(data)})

    async def approve(self, document_id: int, signature_data: str, *, reviewer_email: Optional[str] = None) -> None:
        body: Dict[str, Any] = {"signatureData": signature_data}
        if reviewer_email:
            body["reviewerEmail"] = reviewer_email
        await self._request("POST", f"/documents/{document_id}/approve", json=body)

    async def reject(self, document_id: int, reason: str, *, reviewer_email: Optional[str] = None) -> None:
        body: Dict[str, Any] = {"reason": reason}
        if reviewer_email:
            body["reviewerEmail"] = reviewer_email
        await self._request("POST", f"/documents/{document_id}/reject", json=body)

    async def assign_reviewer(self, document_id: int, reviewer_email: str) -> None:
        await self._request("POST", f"/documents/{document_id}/assign-reviewer", json={"reviewerEmail": reviewer_email})

    async def mark_viewed(self, document_id: int) -> None:
        await self._request("POST", f"/documents/{document_id}/mark-viewed")

    async def fetch_asset(self, url: str) -> bytes:
        """Raw bytes of a page raster or other asset (absolute or API-relative URL)."""
        resp = await self._request("GET", url)
        return resp.content
