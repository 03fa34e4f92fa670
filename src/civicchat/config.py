"""Assistant configuration.

Centralizes the settings of the assistant client and how they are read
from the environment.

Environment variables (all optional except the base URL when enabled):
    CIVICCHAT_ENABLED: Feature flag for the whole subsystem (default: true)
    CIVICCHAT_BASE_URL: Portal API base URL (default: http://localhost:3000/api)
    CIVICCHAT_CHAT_PATH / CIVICCHAT_HEALTH_PATH / CIVICCHAT_FEEDBACK_PATH
    CIVICCHAT_TIMEOUT: Seconds before an exchange is abandoned (default: 30)
    CIVICCHAT_MAX_RETRIES: Automatic retries per turn (default: 2)
    CIVICCHAT_RETRY_DELAY / CIVICCHAT_RETRY_MAX_DELAY / CIVICCHAT_RETRY_BACKOFF
    CIVICCHAT_RETRY_JITTER: Add +/-25% jitter to backoff (default: false)
    CIVICCHAT_PROBE_INTERVAL: Seconds between reconnect probes (default: 5)
    CIVICCHAT_MAX_PROBES: Probes before giving up (default: unlimited)
    CIVICCHAT_TYPING_DELAY: Seconds the typing indicator is shown (default: 1)
    CIVICCHAT_MAX_VISIBLE_MESSAGES: Messages rendered by the widget (default: 50)
    CIVICCHAT_MAX_INPUT_LENGTH: Longest accepted message (default: 1000)
    CIVICCHAT_CHANNEL: Channel reported to the backend (default: web)
    CIVICCHAT_USER_ID: Authenticated user id, if any
    CIVICCHAT_REDUCED_MOTION: Force reduced motion on/off (default: follow the terminal)
"""

import os

from pydantic import BaseModel, Field

from .retry.policy import ReconnectPolicy, RetryPolicy

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool | None) -> bool | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


class AssistantConfig(BaseModel):
    """Settings for the assistant client and its widget."""

    enabled: bool = Field(default=True, description="Feature flag for the whole subsystem")
    base_url: str = Field(default="http://localhost:3000/api")
    chat_path: str = "/chat"
    health_path: str = "/health"
    feedback_path: str = "/chat/feedback"
    request_timeout: float = Field(default=30.0, gt=0)

    max_retries: int = Field(default=2, ge=0)
    retry_initial_delay: float = Field(default=1.0, ge=0)
    retry_max_delay: float = Field(default=30.0, ge=0)
    retry_backoff_base: float = Field(default=2.0, ge=1)
    retry_jitter: bool = False
    probe_interval: float = Field(default=5.0, ge=0)
    max_probe_attempts: int | None = Field(default=None, ge=1)

    typing_delay: float = Field(default=1.0, ge=0)
    max_visible_messages: int = Field(default=50, ge=1)
    max_input_length: int = Field(default=1000, ge=1)
    channel: str = "web"
    user_id: str | None = None
    reduced_motion: bool | None = Field(
        default=None,
        description="None follows the terminal's animation level"
    )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            initial_delay=self.retry_initial_delay,
            max_delay=self.retry_max_delay,
            backoff_base=self.retry_backoff_base,
            jitter=self.retry_jitter,
        )

    def reconnect_policy(self) -> ReconnectPolicy:
        return ReconnectPolicy(
            probe_interval=self.probe_interval,
            max_probe_attempts=self.max_probe_attempts,
        )

    def transport_config(self) -> dict:
        """Keyword arguments for ``create_chat_transport('http', ...)``."""
        return {
            "base_url": self.base_url,
            "chat_path": self.chat_path,
            "health_path": self.health_path,
            "feedback_path": self.feedback_path,
            "timeout": self.request_timeout,
            "channel": self.channel,
        }

    @classmethod
    def from_env(cls, **overrides) -> "AssistantConfig":
        """Build configuration from CIVICCHAT_* environment variables.

        Args:
            **overrides: Values that take precedence over the environment

        Raises:
            ValueError: If a variable cannot be parsed
        """
        values: dict = {}

        enabled = _env_bool("CIVICCHAT_ENABLED", None)
        if enabled is not None:
            values["enabled"] = enabled
        reduced_motion = _env_bool("CIVICCHAT_REDUCED_MOTION", None)
        if reduced_motion is not None:
            values["reduced_motion"] = reduced_motion
        retry_jitter = _env_bool("CIVICCHAT_RETRY_JITTER", None)
        if retry_jitter is not None:
            values["retry_jitter"] = retry_jitter

        mapping = {
            "CIVICCHAT_BASE_URL": "base_url",
            "CIVICCHAT_CHAT_PATH": "chat_path",
            "CIVICCHAT_HEALTH_PATH": "health_path",
            "CIVICCHAT_FEEDBACK_PATH": "feedback_path",
            "CIVICCHAT_TIMEOUT": "request_timeout",
            "CIVICCHAT_MAX_RETRIES": "max_retries",
            "CIVICCHAT_RETRY_DELAY": "retry_initial_delay",
            "CIVICCHAT_RETRY_MAX_DELAY": "retry_max_delay",
            "CIVICCHAT_RETRY_BACKOFF": "retry_backoff_base",
            "CIVICCHAT_PROBE_INTERVAL": "probe_interval",
            "CIVICCHAT_MAX_PROBES": "max_probe_attempts",
            "CIVICCHAT_TYPING_DELAY": "typing_delay",
            "CIVICCHAT_MAX_VISIBLE_MESSAGES": "max_visible_messages",
            "CIVICCHAT_MAX_INPUT_LENGTH": "max_input_length",
            "CIVICCHAT_CHANNEL": "channel",
            "CIVICCHAT_USER_ID": "user_id",
        }
        for env_name, field_name in mapping.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                values[field_name] = value.strip()

        values.update(overrides)
        return cls.model_validate(values)
