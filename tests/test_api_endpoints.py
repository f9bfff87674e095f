"""
Tests for API v1 Endpoints
==========================

HTTP and WebSocket tests against the FastAPI app. The lifespan runs for real
(agent discovery, gateway construction); the gateways on ``app.state`` are
then swapped for test doubles so no model service is called.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from apps.homeplanner.backend.config import (
    DEFAULT_RECORDING_CONTENT_TYPE,
    DEFAULT_RECORDING_FILENAME,
    DEFAULT_SPEECH_SPEED,
    STATUS_IDLE,
)
from apps.homeplanner.backend.main import app
from apps.homeplanner.backend.registries.agentstore.base import AgentId
from apps.homeplanner.backend.src.services.reasoning import ReasoningError, ReasoningReply
from apps.homeplanner.backend.voice.shared.session_state import Role
from src.speech.speech_to_text import TranscriptionError
from src.speech.text_to_speech import SynthesisError


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def client(reasoning, stt, tts):
    with TestClient(app) as test_client:
        app.state.reasoning = reasoning
        app.state.stt = stt
        app.state.tts = tts
        yield test_client


def _receive_until(ws, etype: str, **payload) -> list[dict]:
    """Collect envelopes up to and including the first matching one."""
    seen = []
    while True:
        envelope = ws.receive_json()
        seen.append(envelope)
        if envelope["type"] == etype and all(
            envelope["payload"].get(key) == value for key, value in payload.items()
        ):
            return seen


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH
# ═══════════════════════════════════════════════════════════════════════════════


class TestHealth:
    """Tests for /health and /agents."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == "0.1.0"
        assert body["active_sessions"] == 0

    def test_startup_wires_agent_voices(self):
        """Each agent's configured voice and speed reach the speech gateway."""
        with TestClient(app):
            tts = app.state.tts
            for agent in app.state.agents.values():
                assert tts.voice_for(agent.id.value) == agent.voice.name
                expected = agent.voice.speed if agent.voice.speed is not None else DEFAULT_SPEECH_SPEED
                assert tts.speed_for(agent.id.value) == expected

    def test_agents(self, client):
        body = client.get("/api/v1/agents").json()

        assert body["start_agent"] == "bob"
        assert [a["id"] for a in body["agents"]] == ["alice", "bob"]
        assert all("prompt" not in a for a in body["agents"])


# ═══════════════════════════════════════════════════════════════════════════════
# STATELESS GATEWAY ROUTES
# ═══════════════════════════════════════════════════════════════════════════════


class TestChatRoute:
    """Tests for POST /chat."""

    def test_reply(self, client, reasoning):
        reasoning.replies = ["What's your budget?"]
        response = client.post(
            "/api/v1/chat",
            json={
                "messages": [{"role": "user", "content": "I want a new kitchen"}],
                "activeAgent": "bob",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"reply": "What's your budget?"}
        history, agent = reasoning.calls[0]
        assert agent.id is AgentId.BOB
        assert history[0].content == "I want a new kitchen"

    def test_transfer_reported(self, client, reasoning):
        reasoning.replies = [ReasoningReply("Alice will check the permits.", AgentId.ALICE)]
        response = client.post(
            "/api/v1/chat",
            json={"messages": [{"role": "user", "content": "Permits?"}], "activeAgent": "bob"},
        )

        assert response.json() == {
            "reply": "Alice will check the permits.",
            "transfer": "alice",
        }

    def test_history_keeps_authoring_agent(self, client, reasoning):
        client.post(
            "/api/v1/chat",
            json={
                "messages": [
                    {"role": "user", "content": "Can I remove this wall?"},
                    {"role": "assistant", "content": "Let me check.", "agentId": "Alice"},
                ],
                "activeAgent": "alice",
            },
        )

        history, _ = reasoning.calls[0]
        assert [m.role for m in history] == [Role.USER, Role.ASSISTANT]
        assert history[0].agent_id is None
        assert history[1].agent_id is AgentId.ALICE

    def test_self_transfer_not_reported(self, client, reasoning):
        reasoning.replies = [ReasoningReply("I'm still here.", AgentId.BOB)]
        response = client.post("/api/v1/chat", json={"messages": [], "activeAgent": "bob"})

        assert "transfer" not in response.json()

    @pytest.mark.parametrize("agent", ["carol", None])
    def test_invalid_agent(self, client, agent):
        response = client.post("/api/v1/chat", json={"messages": [], "activeAgent": agent})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid agent"}

    def test_reasoning_failure(self, client, reasoning):
        reasoning.replies = [ReasoningError("upstream 503")]
        response = client.post("/api/v1/chat", json={"messages": [], "activeAgent": "alice"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to get response"}


class TestTranscribeRoute:
    """Tests for POST /transcribe."""

    def test_transcribe(self, client, stt):
        stt.transcribe.return_value = "Hello Bob"
        response = client.post(
            "/api/v1/transcribe",
            files={"audio": ("clip.webm", b"\x1a\x45\xdf\xa3" * 500, "audio/webm")},
        )

        assert response.status_code == 200
        assert response.json() == {"text": "Hello Bob"}
        args = stt.transcribe.await_args.args
        assert args[1] == "clip.webm"
        assert args[2] == "audio/webm"

    def test_missing_audio(self, client):
        response = client.post(
            "/api/v1/transcribe", files={"other": ("note.txt", b"hi", "text/plain")}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No audio file provided"}

    def test_failure(self, client, stt):
        stt.transcribe.side_effect = TranscriptionError("bad audio")
        response = client.post(
            "/api/v1/transcribe", files={"audio": ("clip.webm", b"\x00" * 2000, "audio/webm")}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to transcribe audio"}


class TestSpeechRoute:
    """Tests for POST /tts."""

    def test_synthesize(self, client, tts):
        response = client.post("/api/v1/tts", json={"text": "Hello", "agentId": "alice"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"ID3-fake-mp3"
        tts.synthesize.assert_awaited_once_with("Hello", "alice")

    @pytest.mark.parametrize("body", [{}, {"text": "   "}])
    def test_missing_text(self, client, body):
        response = client.post("/api/v1/tts", json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "No text provided"}

    def test_failure(self, client, tts):
        tts.synthesize.side_effect = SynthesisError("quota")
        response = client.post("/api/v1/tts", json={"text": "Hello", "agentId": "bob"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to synthesize speech"}


# ═══════════════════════════════════════════════════════════════════════════════
# CONVERSATION WEBSOCKET
# ═══════════════════════════════════════════════════════════════════════════════


class TestConversationSocket:
    """Tests for the /conversation WebSocket."""

    def test_session_start_envelopes(self, client):
        with client.websocket_connect("/api/v1/conversation?session_id=ws-test-1") as ws:
            agent = ws.receive_json()
            state = ws.receive_json()
            status = ws.receive_json()

            assert agent["type"] == "agent"
            assert agent["session_id"] == "ws-test-1"
            assert agent["payload"]["agent"]["id"] == "bob"
            assert state["payload"] == {"state": "idle"}
            assert status["payload"] == {"message": STATUS_IDLE}

            assert client.get("/api/v1/health").json()["active_sessions"] == 1

    def test_typed_transfer_with_playback_handshake(self, client, reasoning, tts):
        with client.websocket_connect("/api/v1/conversation") as ws:
            _receive_until(ws, "status")
            ws.send_json({"type": "text", "text": "Transfer me to Alice"})

            seen = _receive_until(ws, "audio")
            transcripts = [e for e in seen if e["type"] == "transcript"]
            assert [t["payload"]["speaker"] for t in transcripts] == ["user", "alice"]
            assert transcripts[0]["sender"] == "User"
            agent_change = next(e for e in seen if e["type"] == "agent")
            assert agent_change["payload"]["agent"]["id"] == "alice"
            assert agent_change["payload"]["previous"]["id"] == "bob"

            audio_envelope = seen[-1]
            assert ws.receive_bytes() == b"ID3-fake-mp3"
            assert audio_envelope["payload"]["bytes"] == len(b"ID3-fake-mp3")

            ws.send_json({"type": "playback_ended", "id": audio_envelope["payload"]["id"]})
            _receive_until(ws, "state", state="idle")

        assert reasoning.calls == []
        assert tts.synthesize.await_args.args[1] == "alice"

    def test_recorded_turn(self, client, stt, reasoning):
        reasoning.replies = ["Let's start with the layout."]
        with client.websocket_connect("/api/v1/conversation") as ws:
            _receive_until(ws, "status")
            ws.send_json({"type": "record_start", "mime_type": "audio/ogg;codecs=opus"})
            _receive_until(ws, "state", state="recording")
            ws.send_bytes(b"\x00" * 1500)
            ws.send_bytes(b"\x01" * 1500)
            ws.send_json({"type": "record_stop"})

            seen = _receive_until(ws, "audio")
            ws.receive_bytes()
            ws.send_json({"type": "playback_ended"})
            _receive_until(ws, "state", state="idle")

        audio, filename, content_type = stt.transcribe.await_args.args
        assert audio == b"\x00" * 1500 + b"\x01" * 1500
        assert filename == "audio.ogg"
        assert content_type == "audio/ogg"
        texts = [e["payload"]["text"] for e in seen if e["type"] == "transcript"]
        assert texts == ["Hi Bob, I want to remodel my kitchen.", "Let's start with the layout."]

    def test_non_string_mime_type_uses_default_container(self, client, stt):
        with client.websocket_connect("/api/v1/conversation") as ws:
            _receive_until(ws, "status")
            ws.send_json({"type": "record_start", "mime_type": 123})
            _receive_until(ws, "state", state="recording")
            ws.send_bytes(b"\x00" * 3000)
            ws.send_json({"type": "record_stop"})

            _receive_until(ws, "audio")
            ws.receive_bytes()
            ws.send_json({"type": "playback_ended"})
            _receive_until(ws, "state", state="idle")

        _, filename, content_type = stt.transcribe.await_args.args
        assert filename == DEFAULT_RECORDING_FILENAME
        assert content_type == DEFAULT_RECORDING_CONTENT_TYPE

    def test_short_recording_discarded(self, client, stt):
        with client.websocket_connect("/api/v1/conversation") as ws:
            _receive_until(ws, "status")
            ws.send_json({"type": "record_start"})
            _receive_until(ws, "state", state="recording")
            ws.send_bytes(b"\x00" * 10)
            ws.send_json({"type": "record_stop"})
            _receive_until(ws, "state", state="idle")

        stt.transcribe.assert_not_awaited()

    @pytest.mark.parametrize(
        "frame, error_type",
        [("not json", "bad_message"), ('{"type": "dance"}', "bad_message")],
    )
    def test_bad_frames(self, client, frame, error_type):
        with client.websocket_connect("/api/v1/conversation") as ws:
            _receive_until(ws, "status")
            ws.send_text(frame)
            error = _receive_until(ws, "error")[-1]

            assert error["payload"]["error_type"] == error_type
