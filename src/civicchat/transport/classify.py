"""Response classification.

Turns a raw status code and body into a tagged result. Nothing in here
raises on bad input: every body, including HTML error pages, empty
bodies and JSON of the wrong shape, maps to a ``ChatError``.
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from .models import (
    EXCERPT_LIMIT,
    SESSION_STATUSES,
    AssistantReply,
    ChatError,
    ChatResult,
    EnvelopeBody,
    Err,
    ErrorKind,
    Ok,
    ReplyBody,
)

_SESSION_PATTERN = re.compile(r"session", re.IGNORECASE)
_SESSION_PROBLEM_PATTERN = re.compile(r"invalid|expired|not found|unknown", re.IGNORECASE)


def decode_body(body: bytes | str) -> str:
    """Decode a raw body to text, replacing undecodable bytes."""
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


def excerpt(text: str, limit: int = EXCERPT_LIMIT) -> str:
    """Collapse whitespace and bound text for diagnostics."""
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    return collapsed[: limit - 3] + "..."


def _load_json(text: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except (ValueError, RecursionError):
        return False, None


def _error_text(text: str) -> str:
    """Pull a readable error out of a body, JSON or not."""
    parsed, payload = _load_json(text)
    if parsed and isinstance(payload, dict):
        message = payload.get("error") or payload.get("message") or payload.get("detail")
        if isinstance(message, str) and message.strip():
            return message
    return text


def _is_session_problem(status_code: int, message: str) -> bool:
    if status_code in SESSION_STATUSES:
        return True
    return bool(_SESSION_PATTERN.search(message) and _SESSION_PROBLEM_PATTERN.search(message))


def classify_error_status(status_code: int, body: bytes | str) -> ChatError:
    """Classify a non-2xx response.

    Args:
        status_code: HTTP status of the response
        body: Raw response body

    Returns:
        ChatError with kind SESSION_INVALID or HTTP_STATUS
    """
    message = _error_text(decode_body(body))
    raw = excerpt(message)
    if 400 <= status_code < 500 and _is_session_problem(status_code, message):
        return ChatError(
            kind=ErrorKind.SESSION_INVALID,
            status_code=status_code,
            raw_excerpt=raw,
            detail="Backend rejected the session token",
        )
    return ChatError(
        kind=ErrorKind.HTTP_STATUS,
        status_code=status_code,
        raw_excerpt=raw,
        detail=f"Backend answered with HTTP {status_code}",
    )


def _malformed(status_code: int, text: str, detail: str) -> Err:
    return Err(ChatError(
        kind=ErrorKind.MALFORMED_RESPONSE,
        status_code=status_code,
        raw_excerpt=excerpt(text),
        detail=detail,
    ))


def decode_reply(status_code: int, text: str) -> ChatResult:
    """Decode a 2xx body into an ``AssistantReply``, with fallback.

    Accepts the plain ``{"reply": ...}`` shape and the portal's
    ``{"success": ..., "data": {"response": ...}}`` envelope.
    """
    if not text.strip():
        return _malformed(status_code, text, "empty body")

    parsed, payload = _load_json(text)
    if not parsed:
        return _malformed(status_code, text, "body is not JSON")
    if not isinstance(payload, dict):
        return _malformed(status_code, text, f"expected a JSON object, got {type(payload).__name__}")

    reply: AssistantReply | None
    try:
        if "reply" in payload:
            reply = ReplyBody.model_validate(payload).to_reply()
        elif "success" in payload:
            envelope = EnvelopeBody.model_validate(payload)
            reply = envelope.to_reply()
            if reply is None:
                return _malformed(
                    status_code, text, envelope.error or "envelope reported failure"
                )
        else:
            return _malformed(status_code, text, "missing 'reply' field")
    except ValidationError as e:
        return _malformed(status_code, text, f"unexpected shape ({e.error_count()} errors)")

    return Ok(reply)


def classify_response(status_code: int, body: bytes | str) -> ChatResult:
    """Classify a complete HTTP response from ``POST /chat``.

    Args:
        status_code: HTTP status of the response
        body: Raw response body, read before any decoding

    Returns:
        Ok(AssistantReply) or Err(ChatError); never raises
    """
    if not 200 <= status_code < 300:
        return Err(classify_error_status(status_code, body))
    return decode_reply(status_code, decode_body(body))
