"""Retry and reconnect policies.

Both policies are pure: they receive attempt counts and classified
errors and return decisions and delays. Scheduling is left to the
conversation state machine.
"""

import random
from dataclasses import dataclass
from enum import Enum

from ..transport.models import ChatError


class RetryDecision(str, Enum):
    """What to do after a failed turn."""

    RETRY = "retry"          # Re-issue the turn after a backoff delay
    RECONNECT = "reconnect"  # Enter disconnected mode and probe
    GIVE_UP = "give_up"      # Wait for a manual retry


def calculate_backoff_delay(
    attempt: int,
    initial_delay: float,
    max_delay: float,
    exponential_base: float,
    jitter: bool = False,
    rng: random.Random | None = None,
) -> float:
    """Calculate delay for exponential backoff.

    Args:
        attempt: Current attempt number (0-indexed)
        initial_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential calculation
        jitter: Whether to add +/-25% random jitter
        rng: Random source for jitter

    Returns:
        Delay in seconds
    """
    delay = min(initial_delay * (exponential_base ** attempt), max_delay)

    if jitter:
        jitter_range = delay * 0.25
        delay += (rng or random).uniform(-jitter_range, jitter_range)

    return max(0.0, delay)


@dataclass(frozen=True)
class RetryPolicy:
    """Automatic retry of recoverable failures."""

    max_retries: int = 2
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_base: float = 2.0
    jitter: bool = False

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("delays cannot be negative")

    def decide(self, error: ChatError, attempts: int) -> RetryDecision:
        """Decide how to recover from a failed turn.

        Args:
            error: Classified failure of the last attempt
            attempts: Automatic retries already spent on this turn
        """
        if error.is_connectivity:
            return RetryDecision.RECONNECT
        if error.recoverable and attempts < self.max_retries:
            return RetryDecision.RETRY
        return RetryDecision.GIVE_UP

    def backoff_delay(self, attempt: int, rng: random.Random | None = None) -> float:
        return calculate_backoff_delay(
            attempt,
            self.initial_delay,
            self.max_delay,
            self.backoff_base,
            jitter=self.jitter,
            rng=rng,
        )


@dataclass(frozen=True)
class ReconnectPolicy:
    """Fixed-interval reconnect probing while disconnected."""

    probe_interval: float = 5.0
    max_probe_attempts: int | None = None  # None probes until reconnected or cleared

    def __post_init__(self) -> None:
        if self.probe_interval < 0:
            raise ValueError("probe_interval cannot be negative")

    def should_probe(self, attempts: int) -> bool:
        return self.max_probe_attempts is None or attempts < self.max_probe_attempts
