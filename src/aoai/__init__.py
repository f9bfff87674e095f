from src.aoai.chat import ChatCompletionClient, ChatCompletionError
from src.aoai.client import create_openai_client, get_client, reset_client

__all__ = [
    "ChatCompletionClient",
    "ChatCompletionError",
    "create_openai_client",
    "get_client",
    "reset_client",
]
