"""
src/aoai/chat.py
----------------
Non-streaming chat completion call with GenAI tracing.

The SDK client is synchronous; calls run in a worker thread so the event
loop keeps serving other sessions while a completion is in flight.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode
from src.aoai.client import get_client
from utils.ml_logging import get_logger

logger = get_logger("aoai.chat")
tracer = trace.get_tracer(__name__)


class ChatCompletionError(RuntimeError):
    """The completion service failed; no partial result is available."""


class ChatCompletionClient:
    """
    Thin async wrapper over ``client.chat.completions.create``.

    Args:
        model: Deployment (Azure) or model (OpenAI) name
        client_factory: Returns the SDK client; defaults to the shared client
    """

    def __init__(
        self,
        model: str,
        *,
        client_factory: Callable[[], Any] = get_client,
    ) -> None:
        self.model = model
        self._client_factory = client_factory

    async def complete(
        self,
        messages: Sequence[dict[str, str]],
        *,
        max_tokens: int,
        temperature: float,
        agent_name: str | None = None,
    ) -> str | None:
        """
        Run one completion and return the first choice's content.

        Returns:
            The reply text, or None when the service returned no content.

        Raises:
            ChatCompletionError: On any transport or service failure.
        """
        with tracer.start_as_current_span(
            f"chat {self.model}",
            kind=SpanKind.CLIENT,
            attributes={
                "gen_ai.operation.name": "chat",
                "gen_ai.request.model": self.model,
                "gen_ai.request.max_tokens": max_tokens,
                "gen_ai.request.temperature": temperature,
                "gen_ai.agent.name": agent_name or "",
                "peer.service": "openai",
            },
        ) as span:
            start = time.perf_counter()
            try:
                client = self._client_factory()
                response = await asyncio.to_thread(
                    client.chat.completions.create,
                    model=self.model,
                    messages=list(messages),
                    max_tokens=max_tokens,
                    temperature=temperature,
                )
            except Exception as exc:
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                span.record_exception(exc)
                logger.error("Chat completion failed | model=%s error=%s", self.model, exc)
                raise ChatCompletionError(str(exc)) from exc

            elapsed_ms = (time.perf_counter() - start) * 1000
            content = None
            choices = getattr(response, "choices", None) or []
            if choices:
                message = getattr(choices[0], "message", None)
                content = getattr(message, "content", None)

            usage = getattr(response, "usage", None)
            if usage is not None:
                span.set_attribute("gen_ai.usage.input_tokens", getattr(usage, "prompt_tokens", 0) or 0)
                span.set_attribute(
                    "gen_ai.usage.output_tokens", getattr(usage, "completion_tokens", 0) or 0
                )
            span.set_attribute("chat.latency_ms", round(elapsed_ms, 1))
            span.set_status(Status(StatusCode.OK))

            logger.info(
                "Chat completion done | model=%s agent=%s latency_ms=%.0f chars=%d",
                self.model,
                agent_name or "-",
                elapsed_ms,
                len(content or ""),
            )
            return content
