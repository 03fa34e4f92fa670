"""Unit tests for the transport module."""
import asyncio
import json

import httpx
import pytest
from conftest import json_response
from hypothesis import given
from hypothesis import strategies as st

from civicchat.transport import (
    ChatError,
    ChatRequest,
    ChatTransport,
    ErrorKind,
    HttpChatTransport,
    classify_error_status,
    classify_response,
    create_chat_transport,
    excerpt,
)


class TestChatTransport:
    """Tests for ChatTransport interface."""

    def test_chat_transport_is_abstract(self):
        """Test that ChatTransport cannot be instantiated directly."""
        with pytest.raises(TypeError):
            ChatTransport()  # type: ignore


class TestChatRequest:
    """Tests for the request body."""

    def test_wire_format_uses_camel_case(self):
        """Test the JSON keys sent to the backend."""
        request = ChatRequest(message="Hola", session_token="web_abc", user_id="u1")

        assert request.to_wire() == {
            "message": "Hola",
            "sessionToken": "web_abc",
            "userId": "u1",
            "channel": "web",
        }

    def test_wire_format_omits_missing_fields(self):
        """Test that absent optional fields are not sent."""
        assert ChatRequest(message="Hola").to_wire() == {"message": "Hola", "channel": "web"}


class TestClassifyResponse:
    """Tests for response classification."""

    def test_plain_reply(self):
        """Test the plain success shape."""
        result = classify_response(200, b'{"reply": "Buenos dias", "sessionToken": "web_new"}')

        assert result.ok
        assert result.value.content == "Buenos dias"
        assert result.value.session_token == "web_new"

    def test_portal_envelope(self):
        """Test the envelope shape with reply metadata."""
        body = {
            "success": True,
            "data": {
                "response": "Puede pagar en línea",
                "sessionToken": "web_abc",
                "messageId": 17,
                "confidence": 0.92,
                "sources": ["faq:predial"],
                "escalateToHuman": False,
            },
        }
        result = classify_response(200, json.dumps(body))

        assert result.ok
        assert result.value.content == "Puede pagar en línea"
        assert result.value.server_id == "17"
        assert result.value.confidence == 0.92
        assert result.value.sources == ["faq:predial"]
        assert result.value.escalated_to_human is False

    def test_envelope_reporting_failure_is_malformed(self):
        """Test a 200 envelope with success false."""
        result = classify_response(200, b'{"success": false, "error": "boom"}')

        assert not result.ok
        assert result.error.kind == ErrorKind.MALFORMED_RESPONSE
        assert "boom" in result.error.detail

    def test_html_error_page(self):
        """Test that an HTML 500 page becomes an HTTP error, not an exception."""
        body = b"<html><body><h1>Internal Server Error</h1></body></html>"
        result = classify_response(500, body)

        assert not result.ok
        assert result.error.kind == ErrorKind.HTTP_STATUS
        assert result.error.status_code == 500
        assert "Internal Server Error" in result.error.raw_excerpt
        assert result.error.recoverable

    def test_empty_error_body(self):
        """Test a non-2xx response without a body."""
        result = classify_response(502, b"")

        assert result.error.kind == ErrorKind.HTTP_STATUS
        assert result.error.describe() == "HTTP 502: Non-JSON error response"

    def test_json_error_message_is_extracted(self):
        """Test that the error field of a JSON body is kept."""
        result = classify_response(500, b'{"error": "Failed to process message"}')

        assert result.error.raw_excerpt == "Failed to process message"
        assert result.error.describe() == "HTTP 500: Failed to process message"

    def test_empty_success_body_is_malformed(self):
        """Test an empty 200 response."""
        result = classify_response(200, b"")

        assert result.error.kind == ErrorKind.MALFORMED_RESPONSE
        assert result.error.detail == "empty body"

    def test_non_json_success_body_is_malformed(self):
        """Test a 200 response that is not JSON."""
        result = classify_response(200, b"<html>maintenance</html>")

        assert result.error.kind == ErrorKind.MALFORMED_RESPONSE
        assert result.error.raw_excerpt == "<html>maintenance</html>"

    def test_wrong_shape_is_malformed(self):
        """Test JSON without a reply field."""
        result = classify_response(200, b'{"message": "hello"}')

        assert result.error.kind == ErrorKind.MALFORMED_RESPONSE
        assert result.error.detail == "missing 'reply' field"

    def test_wrong_reply_type_is_malformed(self):
        """Test a reply field of the wrong type."""
        result = classify_response(200, b'{"reply": 42}')

        assert result.error.kind == ErrorKind.MALFORMED_RESPONSE

    def test_json_array_is_malformed(self):
        """Test a top-level JSON array."""
        result = classify_response(200, b'["reply"]')

        assert result.error.kind == ErrorKind.MALFORMED_RESPONSE

    def test_client_error_is_fatal(self):
        """Test that a 400 is not retried."""
        result = classify_response(400, b'{"error": "Message is required"}')

        assert result.error.kind == ErrorKind.HTTP_STATUS
        assert result.error.fatal

    def test_rate_limit_is_recoverable(self):
        """Test that a 429 is retried."""
        assert classify_response(429, b"slow down").error.recoverable

    @pytest.mark.parametrize("status_code", [401, 403, 410])
    def test_session_statuses(self, status_code):
        """Test statuses that invalidate the session."""
        error = classify_error_status(status_code, b"")

        assert error.kind == ErrorKind.SESSION_INVALID
        assert error.fatal

    def test_session_message_on_404(self):
        """Test that a 404 naming the session is a session problem."""
        error = classify_error_status(404, b'{"error": "Session not found"}')

        assert error.kind == ErrorKind.SESSION_INVALID

    def test_plain_404_is_http_status(self):
        """Test that an unrelated 404 stays an HTTP error."""
        error = classify_error_status(404, b'{"error": "Route not found"}')

        assert error.kind == ErrorKind.HTTP_STATUS

    @given(st.integers(100, 599), st.binary(max_size=2000))
    def test_never_raises(self, status_code: int, body: bytes):
        """Property test: every status and body classifies without raising."""
        result = classify_response(status_code, body)

        if not result.ok:
            assert isinstance(result.error, ChatError)
            assert len(result.error.raw_excerpt) <= 200

    @given(st.text(max_size=1000))
    def test_excerpt_is_bounded(self, text: str):
        """Property test: excerpts never exceed the limit."""
        assert len(excerpt(text)) <= 200


class TestHttpChatTransport:
    """Tests for HttpChatTransport against a mocked backend."""

    @pytest.mark.asyncio
    async def test_send_posts_camel_case_body(self, mock_client):
        """Test the request sent to the chat endpoint."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return json_response(200, {"reply": "Hola"})

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))
        result = await transport.send("¿Horario?", "web_abc", user_id="u1")

        assert result.ok
        assert seen["method"] == "POST"
        assert seen["path"] == "/api/chat"
        assert seen["body"] == {
            "message": "¿Horario?",
            "sessionToken": "web_abc",
            "userId": "u1",
            "channel": "web",
        }

    @pytest.mark.asyncio
    async def test_html_500(self, mock_client):
        """Test that an HTML error page is classified."""
        def handler(request):
            return httpx.Response(500, content=b"<html>Internal Server Error</html>")

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))
        result = await transport.send("Hola", "web_abc")

        assert result.error.kind == ErrorKind.HTTP_STATUS
        assert result.error.status_code == 500

    @pytest.mark.asyncio
    async def test_httpx_timeout(self, mock_client):
        """Test that an httpx timeout becomes NETWORK_TIMEOUT."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))
        result = await transport.send("Hola", "web_abc")

        assert result.error.kind == ErrorKind.NETWORK_TIMEOUT
        assert result.error.is_connectivity

    @pytest.mark.asyncio
    async def test_overall_timeout(self, mock_client):
        """Test that a hanging backend is cut off by the call timeout."""
        async def handler(request):
            await asyncio.sleep(5)
            return json_response(200, {"reply": "too late"})

        transport = HttpChatTransport(
            "http://portal.test/api", timeout=0.05, client=mock_client(handler)
        )
        result = await transport.send("Hola", "web_abc")

        assert result.error.kind == ErrorKind.NETWORK_TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_refused(self, mock_client):
        """Test that a connection failure becomes NETWORK_UNAVAILABLE."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))
        result = await transport.send("Hola", "web_abc")

        assert result.error.kind == ErrorKind.NETWORK_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_probe(self, mock_client):
        """Test the health probe."""
        statuses = iter([503, 200])

        def handler(request):
            assert request.url.path == "/api/health"
            return httpx.Response(next(statuses))

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))

        assert await transport.probe() is False
        assert await transport.probe() is True

    @pytest.mark.asyncio
    async def test_probe_network_failure(self, mock_client):
        """Test that a probe never raises."""
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))

        assert await transport.probe() is False

    @pytest.mark.asyncio
    async def test_send_feedback(self, mock_client):
        """Test the feedback request and its bearer token."""
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return json_response(200, {"success": True})

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))
        result = await transport.send_feedback("web_abc", "17", "helpful")

        assert result.ok
        assert seen["path"] == "/api/chat/feedback"
        assert seen["auth"] == "Bearer web_abc"
        assert seen["body"] == {"messageId": "17", "feedbackType": "helpful"}

    @pytest.mark.asyncio
    async def test_send_feedback_rejects_unknown_type(self, mock_client):
        """Test that invalid feedback fails before any request."""
        def handler(request):
            raise AssertionError("no request expected")

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))

        with pytest.raises(ValueError):
            await transport.send_feedback("web_abc", "17", "excellent")

    @pytest.mark.asyncio
    async def test_send_feedback_unauthorized(self, mock_client):
        """Test a rejected feedback request."""
        def handler(request):
            return json_response(401, {"error": "Unauthorized"})

        transport = HttpChatTransport("http://portal.test/api", client=mock_client(handler))
        result = await transport.send_feedback("web_abc", "17", "not_helpful")

        assert result.error.kind == ErrorKind.SESSION_INVALID

    @pytest.mark.asyncio
    async def test_does_not_close_injected_client(self, mock_client):
        """Test that a client passed in stays open."""
        client = mock_client(lambda request: json_response(200, {"reply": "Hola"}))

        async with HttpChatTransport("http://portal.test/api", client=client) as transport:
            await transport.send("Hola", None)

        assert not client.is_closed
        await client.aclose()

    def test_rejects_non_positive_timeout(self):
        """Test timeout validation."""
        with pytest.raises(ValueError):
            HttpChatTransport("http://portal.test/api", timeout=0)


class TestCreateChatTransport:
    """Tests for the transport factory."""

    @pytest.mark.asyncio
    async def test_create_http_transport(self):
        """Test creating the HTTP transport."""
        transport = create_chat_transport("http", base_url="http://portal.test/api", timeout=5)

        assert isinstance(transport, HttpChatTransport)
        assert transport.timeout == 5
        await transport.close()

    def test_missing_base_url(self):
        """Test that the base URL is required."""
        with pytest.raises(TypeError):
            create_chat_transport("http")

    def test_unknown_kind(self):
        """Test that unknown transports are rejected."""
        with pytest.raises(ValueError):
            create_chat_transport("websocket", base_url="http://portal.test/api")
