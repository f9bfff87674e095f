"""
Azure Monitor / Application Insights telemetry configuration.

Configuration via environment variables:
- APPLICATIONINSIGHTS_CONNECTION_STRING: Required for Azure Monitor export
- DISABLE_CLOUD_TELEMETRY: Set to "true" to disable all cloud telemetry
- SERVICE_NAME / ENVIRONMENT / SERVICE_VERSION: Resource attributes
"""

from __future__ import annotations

import logging
import os
import re
import socket
import uuid
from re import Pattern

from opentelemetry.sdk.trace import ReadableSpan, SpanProcessor

logger = logging.getLogger("utils.telemetry_config")


# Loggers to suppress (set to WARNING level)
NOISY_LOGGERS = [
    "azure.identity",
    "azure.core.pipeline",
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.monitor.opentelemetry.exporter",
    "openai._base_client",
    "httpx",
    "httpcore",
    "websockets",
    "uvicorn.protocols.websockets",
    "uvicorn.access",
    "starlette.routing",
    "opentelemetry.sdk.trace",
]


def suppress_noisy_loggers(level: int = logging.WARNING) -> None:
    """Set noisy third-party loggers to the given level."""
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)


# Spans dropped before export
NOISY_SPAN_PATTERNS: list[Pattern[str]] = [
    re.compile(r".*websocket\s*(receive|send).*", re.IGNORECASE),
    re.compile(r"HTTP.*websocket.*", re.IGNORECASE),
    re.compile(r".*audio[._](chunk|frame).*", re.IGNORECASE),
]


class FilteringSpanProcessor(SpanProcessor):
    """SpanProcessor that drops noisy spans before delegating to the wrapped processor."""

    def __init__(self, next_processor: SpanProcessor):
        self._next = next_processor

    def on_start(self, span, parent_context=None) -> None:
        self._next.on_start(span, parent_context)

    def on_end(self, span: ReadableSpan) -> None:
        for pattern in NOISY_SPAN_PATTERNS:
            if pattern.match(span.name):
                return
        self._next.on_end(span)

    def shutdown(self) -> None:
        self._next.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._next.force_flush(timeout_millis)


def _get_instance_id() -> str:
    """Generate unique instance ID for Application Map visualization."""
    if instance_id := os.getenv("WEBSITE_INSTANCE_ID"):
        return instance_id[:8]
    if replica := os.getenv("CONTAINER_APP_REPLICA_NAME"):
        return replica
    try:
        return socket.gethostname()
    except OSError:
        return str(uuid.uuid4())[:8]


_azure_monitor_configured = False


def is_azure_monitor_configured() -> bool:
    """Return True if Azure Monitor was configured successfully."""
    return _azure_monitor_configured


def setup_azure_monitor(logger_name: str | None = None) -> bool:
    """
    Configure Azure Monitor / Application Insights if a connection string is available.

    Args:
        logger_name: Name for the Azure Monitor logger. Defaults to the root logger.

    Returns:
        True if configuration succeeded, False otherwise.
    """
    global _azure_monitor_configured

    suppress_noisy_loggers()

    if os.getenv("DISABLE_CLOUD_TELEMETRY", "false").lower() == "true":
        logger.info("Telemetry disabled (DISABLE_CLOUD_TELEMETRY=true) – skipping Azure Monitor setup")
        return False

    connection_string = os.getenv("APPLICATIONINSIGHTS_CONNECTION_STRING")
    if not connection_string:
        logger.info("APPLICATIONINSIGHTS_CONNECTION_STRING not found, skipping Azure Monitor configuration")
        return False

    resource_attrs = {
        "service.name": os.getenv("SERVICE_NAME", "homeplanner-api"),
        "service.namespace": os.getenv("SERVICE_NAMESPACE", "homeplanner"),
        "service.instance.id": _get_instance_id(),
    }
    if env_name := os.getenv("ENVIRONMENT"):
        resource_attrs["service.environment"] = env_name
    if service_version := os.getenv("SERVICE_VERSION"):
        resource_attrs["service.version"] = service_version

    try:
        from azure.monitor.opentelemetry import configure_azure_monitor
        from opentelemetry import trace
        from opentelemetry.sdk.resources import Resource

        from utils.azure_auth import get_credential
        from utils.session_context import SessionContextSpanProcessor

        configure_azure_monitor(
            resource=Resource(attributes=resource_attrs),
            logger_name=logger_name or os.getenv("AZURE_MONITOR_LOGGER_NAME", ""),
            credential=get_credential(),
            connection_string=connection_string,
            enable_live_metrics=False,
            instrumentation_options={
                "azure_sdk": {"enabled": True},
                "fastapi": {"enabled": True},
                "requests": {"enabled": False},
                "flask": {"enabled": False},
                "django": {"enabled": False},
                "psycopg2": {"enabled": False},
            },
        )

        provider = trace.get_tracer_provider()
        if hasattr(provider, "add_span_processor"):
            provider.add_span_processor(SessionContextSpanProcessor())
        if hasattr(provider, "_active_span_processor"):
            provider._active_span_processor = FilteringSpanProcessor(
                provider._active_span_processor
            )

        logger.info("✅ Azure Monitor configured successfully")
        _azure_monitor_configured = True
        return True
    except Exception as e:
        logger.error("⚠️ Failed to configure Azure Monitor: %s", e)
        return False
