"""Webhook forwarder with bounded, cancellable exponential backoff."""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Mapping, Optional

import requests

from ..errors import DeliveryCancelledError
from ..models import GpsPayload
from .headers import merge_headers, parse_headers
from .session import get_default_session
from .settings import WebhookSettings
from .tracing import DeliveryTrace, TraceHook, emit_trace

LOGGER = logging.getLogger(__name__)

__all__ = ["DeliveryState", "WebhookForwarder", "get_default_forwarder"]


class DeliveryState(str, Enum):
    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    FAILED_FINAL = "failed_final"
    CANCELLED = "cancelled"


def _is_cancelled(cancel_event: Optional[threading.Event]) -> bool:
    return cancel_event is not None and cancel_event.is_set()


class WebhookForwarder:
    """Delivers GPS payloads to a webhook, retrying transient failures.

    Delivery failures are reported as ``False``; only an explicit
    cancellation (``cancel_event`` set) raises ``DeliveryCancelledError``.
    Instances hold no per-call state and may be shared between threads.
    """

    def __init__(
        self,
        settings: WebhookSettings | None = None,
        *,
        session: requests.Session | None = None,
        trace_hook: TraceHook | None = None,
    ) -> None:
        self._settings = settings or WebhookSettings()
        self._session = session or get_default_session()
        self._trace_hook = trace_hook

    @property
    def settings(self) -> WebhookSettings:
        return self._settings

    def forward(
        self,
        payload: GpsPayload,
        destination_override: Optional[str] = None,
        header_override: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> bool:
        url = self._settings.resolve_url(destination_override)
        if not url:
            LOGGER.warning("No webhook URL configured. Skipping GPS broadcast.")
            return False

        headers = merge_headers(
            parse_headers(self._settings.resolve_default_headers()),
            parse_headers(header_override),
        )

        state = (
            DeliveryState.CANCELLED
            if _is_cancelled(cancel_event)
            else DeliveryState.ATTEMPTING
        )
        attempt = 0
        while True:
            if state is DeliveryState.ATTEMPTING:
                attempt += 1
                outcome = self._attempt(url, headers, payload, attempt)
                if outcome:
                    state = DeliveryState.SUCCEEDED
                elif outcome is None or attempt >= self._settings.max_attempts:
                    state = DeliveryState.FAILED_FINAL
                elif _is_cancelled(cancel_event):
                    state = DeliveryState.CANCELLED
                else:
                    state = DeliveryState.BACKING_OFF
            elif state is DeliveryState.BACKING_OFF:
                delay = self._settings.backoff_delay(attempt)
                LOGGER.info(
                    "Retrying webhook %s in %.1fs (attempt %s/%s)",
                    url,
                    delay,
                    attempt + 1,
                    self._settings.max_attempts,
                )
                if self._wait(cancel_event, delay):
                    state = DeliveryState.CANCELLED
                else:
                    state = DeliveryState.ATTEMPTING
            elif state is DeliveryState.SUCCEEDED:
                return True
            elif state is DeliveryState.FAILED_FINAL:
                LOGGER.warning(
                    "Giving up on webhook %s after %s attempt(s); dropping payload seq=%s",
                    url,
                    attempt,
                    payload.sequence_number,
                )
                return False
            else:
                LOGGER.info(
                    "Webhook delivery to %s cancelled after %s attempt(s)", url, attempt
                )
                raise DeliveryCancelledError(
                    f"Delivery to {url} cancelled after {attempt} attempt(s)"
                )

    def _attempt(
        self,
        url: str,
        headers: Mapping[str, str],
        payload: GpsPayload,
        attempt: int,
    ) -> Optional[bool]:
        """Post once. ``None`` means the destination itself is unusable."""

        LOGGER.debug("Forwarding GPS payload to %s attempt=%s", url, attempt)
        try:
            response = self._session.post(
                url,
                json=payload.to_wire(),
                headers=dict(headers),
                timeout=self._settings.timeout_seconds,
            )
        except requests.Timeout:
            LOGGER.warning("Webhook request timed out url=%s attempt=%s", url, attempt)
            self._trace(url, payload, attempt, None, False, "Timeout")
            return False
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as exc:
            LOGGER.error(
                "Invalid webhook URL %s: %s. Skipping GPS broadcast.", url, exc
            )
            self._trace(url, payload, attempt, None, False, exc.__class__.__name__)
            return None
        except requests.RequestException as exc:
            LOGGER.warning(
                "Failed to forward GPS payload url=%s attempt=%s err=%s",
                url,
                attempt,
                exc.__class__.__name__,
            )
            self._trace(url, payload, attempt, None, False, exc.__class__.__name__)
            return False

        status = response.status_code
        success = 200 <= status < 300
        self._trace(url, payload, attempt, status, success, None)
        if success:
            LOGGER.info(
                "Successfully forwarded GPS payload. Lat: %s, Lng: %s",
                payload.latitude,
                payload.longitude,
            )
            return True
        LOGGER.warning(
            "Webhook returned non-success status: %s url=%s attempt=%s",
            status,
            url,
            attempt,
        )
        return False

    def _trace(
        self,
        url: str,
        payload: GpsPayload,
        attempt: int,
        status_code: Optional[int],
        success: bool,
        error_type: Optional[str],
    ) -> None:
        if self._trace_hook is None:
            return
        emit_trace(
            self._trace_hook,
            DeliveryTrace.for_attempt(
                url,
                payload,
                attempt,
                status_code=status_code,
                success=success,
                error_type=error_type,
            ),
        )

    @staticmethod
    def _wait(cancel_event: Optional[threading.Event], delay: float) -> bool:
        """Sleep for ``delay`` seconds; return True when cancelled meanwhile."""

        if cancel_event is None:
            if delay > 0:
                time.sleep(delay)
            return False
        return cancel_event.wait(delay)


_DEFAULT_FORWARDER: WebhookForwarder | None = None
_DEFAULT_FORWARDER_LOCK = threading.Lock()


def get_default_forwarder() -> WebhookForwarder:
    """Return a shared forwarder using the default settings and session."""

    global _DEFAULT_FORWARDER
    with _DEFAULT_FORWARDER_LOCK:
        if _DEFAULT_FORWARDER is None:
            _DEFAULT_FORWARDER = WebhookForwarder()
        return _DEFAULT_FORWARDER
