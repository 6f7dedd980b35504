"""Webhook delivery pipeline (header resolution, retries, tracing hook)."""

from .forwarder import DeliveryState, WebhookForwarder, get_default_forwarder  # noqa: F401
from .headers import HeaderSet, merge_headers, parse_headers  # noqa: F401
from .session import create_default_session, get_default_session  # noqa: F401
from .settings import WebhookSettings, resolve_setting  # noqa: F401
from .tracing import DeliveryTrace, TraceHook, logging_trace_hook  # noqa: F401
