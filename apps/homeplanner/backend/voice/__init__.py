"""
Voice Layer - Conversation Orchestration
========================================

Transport-agnostic conversation core that sits between the API layer
(WebSocket / REST) and the model services.

Structure:
    voice/
    ├── speech_cascade/
    │   ├── state_machine.py # TurnState + transition table
    │   └── orchestrator.py  # CascadeOrchestrator (turn pipeline, barge-in)
    ├── handoffs/
    │   ├── intent.py        # detect_transfer_intent (user phrasing)
    │   └── directives.py    # parse_transfer_directive ([TRANSFER:x] tokens)
    ├── shared/
    │   ├── session_state.py # ConversationState (history, transcript, active agent)
    │   ├── status.py        # StatusReporter
    │   └── base.py          # SessionEventSink protocol
    └── tts/
        └── playback.py      # TTSPlayback (cancellable speech)
"""
