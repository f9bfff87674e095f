"""
Tests for Embedded Transfer Directives
======================================

Unit tests for splitting ``[TRANSFER:<id>]`` tokens out of agent replies.
"""

from __future__ import annotations

import pytest

from apps.homeplanner.backend.registries.agentstore.base import AgentId
from apps.homeplanner.backend.voice.handoffs.directives import (
    ParsedReply,
    parse_transfer_directive,
)


class TestParseTransferDirective:
    """Tests for parse_transfer_directive()."""

    @pytest.mark.parametrize(
        "raw",
        [
            "Let me bring in Alice for the electrical questions. [TRANSFER:alice]",
            "[TRANSFER:alice] Let me bring in Alice for the electrical questions.",
            "Let me bring in Alice [TRANSFER:alice] for the electrical questions.",
        ],
    )
    def test_token_anywhere(self, raw):
        """The directive is found wherever the token sits."""
        parsed = parse_transfer_directive(raw)
        assert parsed.directive is AgentId.ALICE
        assert "[TRANSFER" not in parsed.text
        assert parsed.text == parsed.text.strip()
        assert parsed.text.startswith("Let me bring in Alice")

    def test_case_insensitive_token(self):
        parsed = parse_transfer_directive("Over to Bob. [transfer:BOB]")
        assert parsed == ParsedReply(text="Over to Bob.", directive=AgentId.BOB)

    def test_no_token_leaves_text_untouched(self):
        """Without a token the raw text comes back byte for byte."""
        raw = "  Sounds like a big project!  "
        parsed = parse_transfer_directive(raw)
        assert parsed.directive is None
        assert parsed.text == raw

    def test_first_token_wins_without_active_agent(self):
        """Both agents' tokens are removed; with no active agent the first one is the directive."""
        parsed = parse_transfer_directive("[TRANSFER:bob] Actually [TRANSFER:alice] never mind")
        assert parsed.directive is AgentId.BOB
        assert "TRANSFER" not in parsed.text

    def test_active_agent_token_is_skipped(self):
        """A leading token naming the speaking agent does not hide the real target."""
        parsed = parse_transfer_directive(
            "[TRANSFER:bob] Let me get Alice. [TRANSFER:alice]", AgentId.BOB
        )
        assert parsed == ParsedReply(text="Let me get Alice.", directive=AgentId.ALICE)

    def test_only_active_agent_token_is_stripped_without_directive(self):
        parsed = parse_transfer_directive("Still with me. [TRANSFER:alice]", AgentId.ALICE)
        assert parsed == ParsedReply(text="Still with me.", directive=None)

    def test_unknown_agent_token_is_not_a_directive(self):
        raw = "Try [TRANSFER:carol] instead"
        parsed = parse_transfer_directive(raw)
        assert parsed.directive is None
        assert parsed.text == raw

    def test_token_only_reply_becomes_empty_text(self):
        parsed = parse_transfer_directive("[TRANSFER:alice]")
        assert parsed.text == ""
        assert parsed.directive is AgentId.ALICE
