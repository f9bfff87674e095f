"""
Handoff Detection
=================

Deciding, from free-form text, when control should pass between agents:

- **detect_transfer_intent**: user phrasing ("transfer me to Alice")
- **parse_transfer_directive**: ``[TRANSFER:<id>]`` tokens embedded in model replies
"""

from .directives import TRANSFER_TOKEN_PATTERN, ParsedReply, parse_transfer_directive
from .intent import TRANSFER_RULES, detect_transfer_intent

__all__ = [
    "TRANSFER_RULES",
    "TRANSFER_TOKEN_PATTERN",
    "ParsedReply",
    "detect_transfer_intent",
    "parse_transfer_directive",
]
