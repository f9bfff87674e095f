from .reasoning import ReasoningError, ReasoningGateway, ReasoningReply, build_chat_messages

__all__ = [
    "ReasoningError",
    "ReasoningGateway",
    "ReasoningReply",
    "build_chat_messages",
]
