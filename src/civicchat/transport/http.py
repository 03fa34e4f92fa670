"""HTTP transport for the portal's ``/chat`` endpoint."""

import asyncio
from typing import Any

import httpx
from pydantic import ValidationError

from .base import ChatTransport
from .classify import classify_error_status, classify_response
from .models import ChatError, ChatRequest, ChatResult, Err, ErrorKind, FeedbackRequest, Ok


class HttpChatTransport(ChatTransport):
    """Chat transport over HTTP using httpx.

    Hidden design decisions:
    - httpx client initialization and connection reuse
    - Request body format (camelCase JSON)
    - Overall call timeout, independent of httpx's per-phase timeouts
    - Mapping of httpx exceptions to the error taxonomy
    """

    def __init__(
        self,
        base_url: str,
        chat_path: str = "/chat",
        health_path: str = "/health",
        feedback_path: str = "/chat/feedback",
        timeout: float = 30.0,
        channel: str = "web",
        phone_number: str | None = None,
        client: httpx.AsyncClient | None = None,
        **client_kwargs: Any
    ):
        """Initialize HTTP transport.

        Args:
            base_url: Portal base URL (e.g. https://portal.example.gov/api)
            chat_path: Path of the chat endpoint
            health_path: Path used by reconnect probes
            feedback_path: Path of the feedback endpoint
            timeout: Upper bound in seconds for a whole exchange
            channel: Channel reported to the backend
            phone_number: Optional phone number for the WhatsApp channel
            client: Pre-built httpx client (not closed by this transport)
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._base_url = base_url
        self._chat_path = chat_path
        self._health_path = health_path
        self._feedback_path = feedback_path
        self._timeout = timeout
        self._channel = channel
        self._phone_number = phone_number
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            **client_kwargs
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> float:
        return self._timeout

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response | ChatError:
        """Issue a request, converting network failures into ChatError."""
        try:
            return await asyncio.wait_for(
                self._client.request(method, path, **kwargs),
                timeout=self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            return ChatError(
                kind=ErrorKind.NETWORK_TIMEOUT,
                detail=f"{method} {path} exceeded {self._timeout:g}s ({type(e).__name__})",
            )
        except httpx.HTTPError as e:
            return ChatError(
                kind=ErrorKind.NETWORK_UNAVAILABLE,
                detail=f"{method} {path} failed: {type(e).__name__}: {e}",
            )

    async def send(
        self,
        message: str,
        session_token: str | None,
        *,
        user_id: str | None = None
    ) -> ChatResult:
        """Send one user turn to ``POST /chat``.

        The raw body is read in full before any decoding is attempted.
        """
        request = ChatRequest(
            message=message,
            session_token=session_token,
            user_id=user_id,
            channel=self._channel,
            phone_number=self._phone_number,
        )
        self._debug("debug", f"POST {self._chat_path} ({len(message)} chars)")

        response = await self._request("POST", self._chat_path, json=request.to_wire())
        if isinstance(response, ChatError):
            self._report(response)
            return Err(response)

        result = classify_response(response.status_code, response.content)
        if isinstance(result, Err):
            self._report(result.error)
        else:
            self._debug("debug", f"HTTP {response.status_code}: reply of {len(result.value.content)} chars")
        return result

    async def probe(self) -> bool:
        response = await self._request("GET", self._health_path)
        if isinstance(response, ChatError):
            self._debug("debug", f"Probe failed: {response.describe()}")
            return False
        self._debug("debug", f"Probe answered HTTP {response.status_code}")
        return response.is_success

    async def send_feedback(
        self,
        session_token: str | None,
        message_id: str,
        feedback_type: str,
        comment: str | None = None
    ) -> Ok[None] | Err:
        """Post a rating to the feedback endpoint.

        Raises:
            ValueError: If the feedback type or comment is invalid
        """
        try:
            request = FeedbackRequest(
                message_id=message_id,
                feedback_type=feedback_type,
                comment=comment,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid feedback: {e}") from e

        headers = {"Authorization": f"Bearer {session_token}"} if session_token else {}
        response = await self._request(
            "POST", self._feedback_path, json=request.to_wire(), headers=headers
        )
        if isinstance(response, ChatError):
            self._report(response)
            return Err(response)
        if not response.is_success:
            error = classify_error_status(response.status_code, response.content)
            self._report(error)
            return Err(error)
        return Ok(None)

    async def close(self) -> None:
        """Close the httpx client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
