"""
REST client for the chat API.

Every response is an envelope; successful calls return its ``data`` and
failures raise APIError carrying the envelope's error fields. Transport
failures surface as APIError with status 0 and code NETWORK_ERROR.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"
DEFAULT_TIMEOUT = 10.0


class APIError(Exception):
    """
    Error envelope returned by the API (or a transport failure).

    Attributes:
        status_code: HTTP status, 0 when the request never completed
        error: Machine-readable code (e.g. VALIDATION_ERROR)
        message: Human-readable description
        details: Field errors or other context
        request_id: Server request id, when the server answered
    """

    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Any = None,
        request_id: str | None = None,
    ):
        self.status_code = status_code
        self.error = error
        self.message = message
        self.details = details
        self.request_id = request_id
        super().__init__(f"[{error}] {message}")

    @classmethod
    def from_response(cls, response: httpx.Response) -> APIError:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return cls(
                response.status_code,
                "INVALID_RESPONSE",
                f"Unexpected response ({response.status_code})",
                request_id=response.headers.get("X-Request-ID"),
            )
        return cls(
            body.get("statusCode", response.status_code),
            body.get("error") or "ERROR",
            body.get("message") or "Request failed",
            body.get("details"),
            body.get("requestId") or response.headers.get("X-Request-ID"),
        )


class ChatAPIClient:
    """
    Async client for the REST API.

    Example:
        async with ChatAPIClient() as api:
            conversations = await api.get_conversations("tech-store")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> ChatAPIClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise APIError(0, "NETWORK_ERROR", str(exc) or "Network error") from exc

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or not body.get("success"):
            raise APIError.from_response(response)
        return body.get("data")

    # -------------------------------------------------------------------------
    # Conversations
    # -------------------------------------------------------------------------

    async def get_conversations(self, business_id: str, search: str | None = None) -> list[dict]:
        params = {"search": search} if search else None
        return await self._request("GET", f"/conversations/business/{business_id}", params=params)

    async def get_conversation(self, conversation_id: int) -> dict:
        return await self._request("GET", f"/conversations/{conversation_id}")

    async def create_conversation(
        self,
        business_id: str,
        customer_name: str,
        customer_phone: str = "",
    ) -> dict:
        return await self._request(
            "POST",
            "/conversations",
            json={
                "businessId": business_id,
                "customerName": customer_name,
                "customerPhone": customer_phone,
            },
        )

    async def update_conversation_status(self, conversation_id: int, status: str) -> dict:
        return await self._request(
            "PATCH", f"/conversations/{conversation_id}/status", json={"status": status}
        )

    async def mark_conversation_read(self, conversation_id: int) -> dict:
        return await self._request("POST", f"/conversations/{conversation_id}/read")

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def get_messages(self, conversation_id: int, limit: int = 50, offset: int = 0) -> dict:
        """Returns ``{"messages", "conversation", "pagination"}``."""
        return await self._request(
            "GET",
            f"/conversations/{conversation_id}/messages",
            params={"limit": limit, "offset": offset},
        )

    async def send_message(
        self,
        conversation_id: int,
        *,
        sender_type: str,
        sender_name: str,
        content: str | None = None,
        message_type: str | None = None,
        file_url: str | None = None,
        file_name: str | None = None,
    ) -> dict:
        body = {"senderType": sender_type, "senderName": sender_name}
        optional = {
            "content": content,
            "messageType": message_type,
            "fileUrl": file_url,
            "fileName": file_name,
        }
        body.update({key: value for key, value in optional.items() if value is not None})
        return await self._request("POST", f"/conversations/{conversation_id}/messages", json=body)

    async def update_message_status(self, message_id: int, status: str) -> dict:
        return await self._request(
            "PATCH", f"/messages/{message_id}/status", json={"status": status}
        )

    # -------------------------------------------------------------------------
    # Business
    # -------------------------------------------------------------------------

    async def get_business(self, business_id: str) -> dict:
        return await self._request("GET", f"/business/{business_id}")

    async def update_business(
        self,
        business_id: str,
        *,
        name: str | None = None,
        logo_url: str | None = None,
    ) -> dict:
        body = {}
        if name is not None:
            body["name"] = name
        if logo_url is not None:
            body["logoUrl"] = logo_url
        return await self._request("PATCH", f"/business/{business_id}", json=body)

    async def update_business_status(self, business_id: str, status: str) -> dict:
        return await self._request(
            "PATCH", f"/business/{business_id}/status", json={"status": status}
        )

    async def get_business_stats(self, business_id: str) -> dict:
        return await self._request("GET", f"/business/{business_id}/stats")

    async def get_business_profile(self, business_id: str) -> dict:
        return await self._request("GET", f"/business/{business_id}/profile")

    # -------------------------------------------------------------------------
    # Uploads
    # -------------------------------------------------------------------------

    async def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        *,
        conversation_id: int | None = None,
        sender_type: str | None = None,
        sender_name: str | None = None,
    ) -> dict:
        form = {}
        if conversation_id is not None:
            form["conversationId"] = str(conversation_id)
        if sender_type:
            form["senderType"] = sender_type
        if sender_name:
            form["senderName"] = sender_name
        return await self._request(
            "POST",
            "/upload",
            data=form,
            files={"file": (filename, content, content_type)},
        )

    async def get_upload_info(self, filename: str) -> dict:
        return await self._request("GET", f"/upload/{filename}")

    async def delete_upload(self, filename: str) -> dict:
        return await self._request("DELETE", f"/upload/{filename}")

    async def health(self) -> dict:
        return await self._request("GET", "/health")
