"""
WebSocket Helpers
=================

Browser transport for the conversation orchestrator.

Quick Reference:
----------------

EVENTS TO THE BROWSER:
    sink = WebSocketEventSink(ws, session_id=sid)
    await sink.emit_status("Thinking…")

AGENT SPEECH:
    output = WebSocketAudioOutput(ws, session_id=sid)
    # browser -> {"type": "playback_ended", "id": "<clip id>"}
    output.notify_playback_ended(clip_id)

BUILDING ENVELOPES (envelopes.py):
    make_envelope(etype=..., payload=..., session_id=sid)
    make_status_envelope(message, session_id=sid)
"""

from .shared_ws import WebSocketAudioOutput, WebSocketEventSink, send_envelope

__all__ = ["WebSocketAudioOutput", "WebSocketEventSink", "send_envelope"]
