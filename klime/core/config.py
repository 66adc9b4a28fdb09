"""Client configuration and hard delivery limits."""

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

SDK_NAME = "python-sdk"
SDK_VERSION = "1.0.1"

DEFAULT_ENDPOINT = "https://i.klime.com"
DEFAULT_FLUSH_INTERVAL_MS = 2000
DEFAULT_MAX_BATCH_SIZE = 20
DEFAULT_MAX_QUEUE_SIZE = 1000
DEFAULT_RETRY_MAX_ATTEMPTS = 5
DEFAULT_RETRY_INITIAL_DELAY_MS = 1000

# Hard limits enforced by the collector; configuration can only go below them.
MAX_BATCH_SIZE = 100
MAX_EVENT_SIZE_BYTES = 200 * 1024
MAX_BATCH_SIZE_BYTES = 10 * 1024 * 1024
MAX_RETRY_DELAY_MS = 16_000
# Ceiling for a server-requested Retry-After wait.
MAX_RETRY_AFTER_MS = 60_000


class ConfigurationError(ValueError):
    """Raised when the client is configured incorrectly."""


class ClientConfig(BaseModel):
    """Immutable settings captured when a client is created.

    ``max_batch_size`` is silently capped at :data:`MAX_BATCH_SIZE`.
    ``on_error`` is called as ``on_error(error, events)`` and ``on_success`` as
    ``on_success(response)``; both may be coroutine functions.

    Raises:
        ConfigurationError: If any field is missing or invalid.
    """

    write_key: str | None = Field(default=None, validate_default=True)
    endpoint: str = DEFAULT_ENDPOINT
    flush_interval_ms: int = Field(default=DEFAULT_FLUSH_INTERVAL_MS, gt=0)
    max_batch_size: int = Field(default=DEFAULT_MAX_BATCH_SIZE, ge=1)
    max_queue_size: int = Field(default=DEFAULT_MAX_QUEUE_SIZE, ge=1)
    retry_max_attempts: int = Field(default=DEFAULT_RETRY_MAX_ATTEMPTS, ge=1)
    retry_initial_delay_ms: int = Field(default=DEFAULT_RETRY_INITIAL_DELAY_MS, ge=0)
    flush_on_shutdown: bool = True
    honor_retry_after: bool = False
    on_error: Callable[..., Any] | None = None
    on_success: Callable[..., Any] | None = None

    model_config = {
        "extra": "forbid",
        "frozen": True,
    }

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    @field_validator("write_key")
    @classmethod
    def validate_write_key(cls, v: str | None) -> str:
        if v is None or not v.strip():
            raise ValueError("write_key is required")
        return v

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("endpoint must not be empty")
        return v

    @field_validator("max_batch_size")
    @classmethod
    def cap_batch_size(cls, v: int) -> int:
        return min(v, MAX_BATCH_SIZE)

    @property
    def batch_url(self) -> str:
        return f"{self.endpoint}/v1/batch"


def build_config(**options: Any) -> ClientConfig:
    """Validate keyword options into a :class:`ClientConfig`.

    Raises:
        ConfigurationError: If any option is missing or invalid.
    """
    return ClientConfig(**options)
