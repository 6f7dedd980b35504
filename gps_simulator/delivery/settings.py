"""Webhook settings and the override > environment > default resolution rule."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from .. import config
from ..errors import DeliveryError

__all__ = ["WebhookSettings", "resolve_setting"]


def resolve_setting(
    override: Optional[str], env_var: Optional[str], default: Optional[str]
) -> str:
    """Return the first non-blank value of override, ``$env_var`` and default.

    The environment is read on every call so changes apply to the next
    delivery. Returns an empty string when every source is blank.
    """

    candidates = (
        override,
        os.getenv(env_var) if env_var else None,
        default,
    )
    for value in candidates:
        if value is not None and value.strip():
            return value.strip()
    return ""


@dataclass(frozen=True)
class WebhookSettings:
    """Static delivery configuration (lowest precedence source)."""

    default_url: str = config.WEBHOOK_DEFAULT_URL
    default_headers: str = config.WEBHOOK_DEFAULT_HEADERS
    timeout_seconds: float = config.WEBHOOK_TIMEOUT_SECONDS
    retry_count: int = config.WEBHOOK_RETRY_COUNT
    backoff_base_seconds: float = config.WEBHOOK_BACKOFF_BASE_SECONDS
    url_env_var: str = config.WEBHOOK_URL_ENV
    headers_env_var: str = config.WEBHOOK_HEADERS_ENV

    def __post_init__(self) -> None:
        if self.retry_count < 0:
            raise DeliveryError("retry_count must be >= 0")
        if self.timeout_seconds <= 0:
            raise DeliveryError("timeout_seconds must be > 0")
        if self.backoff_base_seconds < 0:
            raise DeliveryError("backoff_base_seconds must be >= 0")

    @property
    def max_attempts(self) -> int:
        return 1 + self.retry_count

    def backoff_delay(self, failed_attempt: int) -> float:
        """Delay after the ``failed_attempt``-th failure (1-based): 1s, 2s, 4s, ..."""

        return self.backoff_base_seconds * (2 ** (failed_attempt - 1))

    def resolve_url(self, override: Optional[str] = None) -> str:
        return resolve_setting(override, self.url_env_var, self.default_url)

    def resolve_default_headers(self) -> str:
        return resolve_setting(None, self.headers_env_var, self.default_headers)
