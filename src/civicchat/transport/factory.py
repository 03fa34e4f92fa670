from typing import Any

from .base import ChatTransport


def create_chat_transport(kind: str = "http", **config: Any) -> ChatTransport:
    """Create a chat transport instance.

    This factory function hides the instantiation logic for different transports.

    Args:
        kind: Transport type (currently only 'http')
        **config: Transport-specific configuration
            For HTTP:
                - base_url: str (required)
                - chat_path: str (default: '/chat')
                - health_path: str (default: '/health')
                - feedback_path: str (default: '/chat/feedback')
                - timeout: float (default: 30.0)
                - channel: str (default: 'web')
                - phone_number: str | None

    Returns:
        Initialized transport instance

    Raises:
        ValueError: If transport type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> transport = create_chat_transport(
        ...     "http",
        ...     base_url="https://portal.example.gov/api",
        ...     timeout=15.0
        ... )
    """
    kind_lower = kind.lower()

    if kind_lower == "http":
        if not config.get("base_url"):
            raise TypeError("HTTP transport requires 'base_url' in config")
        from .http import HttpChatTransport
        return HttpChatTransport(**config)

    raise ValueError(
        f"Unsupported transport: {kind}. "
        f"Supported transports: 'http'"
    )
