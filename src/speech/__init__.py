from src.speech.speech_to_text import SpeechToTextGateway, TranscriptionError
from src.speech.text_to_speech import FALLBACK_VOICE, SynthesisError, TextToSpeechGateway

__all__ = [
    "FALLBACK_VOICE",
    "SpeechToTextGateway",
    "SynthesisError",
    "TextToSpeechGateway",
    "TranscriptionError",
]
