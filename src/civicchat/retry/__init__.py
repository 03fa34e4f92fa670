"""Retry and reconnect policies for civicchat."""

from .policy import ReconnectPolicy, RetryDecision, RetryPolicy, calculate_backoff_delay

__all__ = [
    "ReconnectPolicy",
    "RetryDecision",
    "RetryPolicy",
    "calculate_backoff_delay",
]
