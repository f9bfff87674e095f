"""
Session Context Management for Telemetry Correlation.

This module provides automatic propagation of session correlation attributes
(session_id, active agent, etc.) to all spans and logs within a session.

Design Principles:
    1. Set once at connection level, inherit everywhere below
    2. No need to pass correlation IDs through function arguments
    3. Works across async boundaries (asyncio tasks copy the context)

Usage:
    # At WebSocket/connection entry point (set once):
    async with session_context(session_id="session_xyz", transport_type="BROWSER"):
        await run_conversation()

    # In any nested function (no extra params needed):
    logger.info("Processing speech")  # Automatically includes session_id
"""

from __future__ import annotations

import contextvars
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import trace


@dataclass
class SessionCorrelation:
    """
    Correlation data for a session.

    Attributes:
        session_id: Conversation session identifier
        transport_type: "BROWSER" or "HTTP"
        agent_name: Agent currently handling the session (updated on handoff)
        extra: Additional custom attributes
    """

    session_id: str | None = None
    transport_type: str | None = None
    agent_name: str | None = None
    handoff_count: int = 0
    extra: dict = field(default_factory=dict)

    @property
    def short_id(self) -> str:
        """Short identifier for logging prefixes."""
        return self.session_id[-8:] if self.session_id else "unknown"

    def to_span_attributes(self) -> dict[str, Any]:
        """Convert to OpenTelemetry span attributes."""
        attrs = {}
        if self.session_id:
            attrs["session.id"] = self.session_id
            attrs["ai.user.id"] = self.session_id  # App Insights standard
        if self.transport_type:
            attrs["transport.type"] = self.transport_type
        if self.agent_name:
            attrs["agent.name"] = self.agent_name
        for key, value in self.extra.items():
            if isinstance(value, (str, int, float, bool)):
                attrs[key] = value
        return attrs

    def to_log_record(self) -> dict[str, Any]:
        """Convert to log record extras for structured logging."""
        return {
            "session_id": self.session_id or "-",
            "transport_type": self.transport_type or "-",
            "agent_name": self.agent_name or "-",
            "component": self.extra.get("component", "-"),
        }


_session_context: contextvars.ContextVar[SessionCorrelation | None] = contextvars.ContextVar(
    "session_correlation", default=None
)


@asynccontextmanager
async def session_context(
    session_id: str | None = None,
    transport_type: str | None = None,
    agent_name: str | None = None,
    **extra: Any,
):
    """
    Async context manager that establishes session correlation for all nested operations.

    Use this at the top-level connection handler (WebSocket accept, HTTP request).
    All spans and logs within this context automatically inherit correlation IDs.
    """
    correlation = SessionCorrelation(
        session_id=session_id,
        transport_type=transport_type,
        agent_name=agent_name,
        extra=extra,
    )

    token = _session_context.set(correlation)

    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        f"session[{transport_type or 'unknown'}]",
        kind=trace.SpanKind.SERVER,
        attributes=correlation.to_span_attributes(),
    ):
        try:
            yield correlation
        finally:
            _session_context.reset(token)


def get_session_correlation() -> SessionCorrelation | None:
    """Get current session correlation data, or None outside a session_context."""
    return _session_context.get()


def get_short_id() -> str:
    """Get short identifier for log prefixes."""
    ctx = _session_context.get()
    return ctx.short_id if ctx else "unknown"


def set_active_agent(agent_name: str) -> None:
    """
    Record the agent now handling the current session (no-op outside a session).

    A change of agent counts as a handoff and is stamped on the current span.
    """
    ctx = _session_context.get()
    if ctx is None:
        return
    if ctx.agent_name and ctx.agent_name != agent_name:
        ctx.handoff_count += 1
    ctx.agent_name = agent_name

    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute("agent.name", agent_name)
        span.set_attribute("session.handoff_count", ctx.handoff_count)


def inject_session_attributes(span: trace.Span | None = None) -> None:
    """Inject session correlation attributes into the current or provided span."""
    target_span = span or trace.get_current_span()
    if not target_span or not target_span.is_recording():
        return

    ctx = _session_context.get()
    if not ctx:
        return

    for key, value in ctx.to_span_attributes().items():
        target_span.set_attribute(key, value)


class SessionContextSpanProcessor:
    """
    OpenTelemetry SpanProcessor that automatically injects session attributes.

    Registered by utils.telemetry_config when Azure Monitor is configured.
    """

    def on_start(self, span: trace.Span, parent_context: Any | None = None) -> None:
        inject_session_attributes(span)

    def on_end(self, span: trace.Span) -> None:
        pass

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True
