"""
services/reasoning.py
---------------------
Reasoning gateway: turns the shared history plus the active agent's persona
into one chat completion and splits any ``[TRANSFER:<id>]`` directive out of
the reply.

The persona is prepended per request and never stored in history, so the
same transcript is reasoned over by whichever agent is active.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from apps.homeplanner.backend.config import (
    CHAT_MODEL,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    FALLBACK_REPLY,
)
from apps.homeplanner.backend.registries.agentstore.base import Agent, AgentId
from apps.homeplanner.backend.voice.handoffs.directives import parse_transfer_directive
from apps.homeplanner.backend.voice.shared.session_state import Message, Role
from src.aoai.chat import ChatCompletionClient, ChatCompletionError
from utils.ml_logging import get_logger

logger = get_logger("services.reasoning")


class ReasoningError(RuntimeError):
    """The completion service failed for this turn. Never retried."""


@dataclass(frozen=True)
class ReasoningReply:
    """Cleaned reply text plus the handoff the agent asked for, if any."""

    text: str
    directive: AgentId | None = None


def build_chat_messages(history: Sequence[Message], agent: Agent) -> list[dict[str, str]]:
    """
    Build the request payload: persona first, then every non-system message.

    Messages keep their original order; agent attribution is dropped because
    the completion API only knows user and assistant roles.
    """
    payload = [{"role": Role.SYSTEM.value, "content": agent.prompt}]
    for message in history:
        if message.role is Role.SYSTEM:
            continue
        role = Role.USER if message.role is Role.USER else Role.ASSISTANT
        payload.append({"role": role.value, "content": message.content})
    return payload


class ReasoningGateway:
    """
    Agent-aware adapter over :class:`ChatCompletionClient`.

    Args:
        chat: Completion client; built from CHAT_MODEL when omitted
        max_tokens: Generation budget per reply
        temperature: Sampling temperature
    """

    def __init__(
        self,
        chat: ChatCompletionClient | None = None,
        *,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self._chat = chat or ChatCompletionClient(CHAT_MODEL)
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def complete(self, history: Sequence[Message], agent: Agent) -> ReasoningReply:
        """
        Ask ``agent`` for its next reply to ``history``.

        Raises:
            ReasoningError: When the completion call fails.
        """
        messages = build_chat_messages(history, agent)
        try:
            raw = await self._chat.complete(
                messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                agent_name=agent.name,
            )
        except ChatCompletionError as exc:
            raise ReasoningError(f"{agent.name} could not reply: {exc}") from exc

        if not raw or not raw.strip():
            logger.warning("Empty completion for agent %s; using fallback reply", agent.name)
            return ReasoningReply(text=FALLBACK_REPLY)

        parsed = parse_transfer_directive(raw, agent.id)
        if parsed.directive is not None:
            logger.info(
                "Transfer directive in reply | agent=%s directive=%s",
                agent.id.value,
                parsed.directive.value,
            )
        return ReasoningReply(text=parsed.text, directive=parsed.directive)
