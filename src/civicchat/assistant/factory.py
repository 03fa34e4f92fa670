"""Factory for creating conversations from configuration."""

from ..config import AssistantConfig
from ..transport import ChatTransport, create_chat_transport
from .machine import ConversationStateMachine


def create_conversation(
    config: AssistantConfig,
    transport: ChatTransport | None = None,
    typing_delay: float | None = None,
) -> ConversationStateMachine | None:
    """Create a conversation state machine.

    Args:
        config: Assistant configuration
        transport: Transport to use (default: HTTP transport built from config)
        typing_delay: Override for the typing indicator delay

    Returns:
        ConversationStateMachine, or None when the assistant is disabled.
        A disabled assistant constructs no transport and issues no requests.
    """
    if not config.enabled:
        return None

    if transport is None:
        transport = create_chat_transport("http", **config.transport_config())

    return ConversationStateMachine(
        transport,
        retry_policy=config.retry_policy(),
        reconnect_policy=config.reconnect_policy(),
        max_input_length=config.max_input_length,
        typing_delay=config.typing_delay if typing_delay is None else typing_delay,
        user_id=config.user_id,
    )
