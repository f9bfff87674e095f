"""
Constants
=========

Hard-coded values that never change at runtime.
"""

# ==============================================================================
# STATUS MESSAGES (shown under the push-to-talk button)
# ==============================================================================

STATUS_IDLE = "Press and hold to speak"
STATUS_RECORDING = "Recording… release to send"
STATUS_PROCESSING = "Processing…"
STATUS_TRANSCRIBING = "Transcribing…"
STATUS_THINKING = "Thinking…"
STATUS_SPEAKING = "Speaking…"
STATUS_TRANSFERRING = "Transferring to {agent_name}…"

STATUS_NOT_UNDERSTOOD = "Couldn't understand. Try again."
STATUS_TRANSCRIPTION_FAILED = "Transcription failed. Try again."
STATUS_REASONING_FAILED = "Error occurred. Try again."
STATUS_MIC_DENIED = "Microphone access denied"

# ==============================================================================
# REASONING
# ==============================================================================

FALLBACK_REPLY = "I'm sorry, I didn't catch that."

# ==============================================================================
# AUDIO
# ==============================================================================

FALLBACK_TTS_VOICE = "alloy"
TTS_RESPONSE_FORMAT = "mp3"
TTS_CONTENT_TYPE = "audio/mpeg"
DEFAULT_RECORDING_FILENAME = "audio.webm"
DEFAULT_RECORDING_CONTENT_TYPE = "audio/webm"
