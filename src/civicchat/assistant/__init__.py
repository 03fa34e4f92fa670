"""Conversational assistant core.

Module structure (each module hides a design decision):
- events.py: States, transition reasons and snapshots
- machine.py: Transition rules, scheduling and cancellation
- factory.py: Construction from configuration, honoring the feature flag
"""

from .events import ChatState, Snapshot, Transition, TransitionListener, TransitionReason
from .factory import create_conversation
from .machine import ConversationStateMachine

__all__ = [
    "ChatState",
    "ConversationStateMachine",
    "Snapshot",
    "Transition",
    "TransitionListener",
    "TransitionReason",
    "create_conversation",
]
