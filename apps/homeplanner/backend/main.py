"""
homeplanner.main
================
Entrypoint that stitches everything together:

• config / CORS
• shared objects on `app.state`  (agent table, reasoning + speech gateways)
• route registration (v1 router)

Configuration Loading Order:
    1. .env.local / .env (local development overrides) - loaded by config.settings
    2. Environment variables (container/cloud deployments)
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

import uvicorn
from apps.homeplanner.backend.api.v1.router import v1_router
from apps.homeplanner.backend.config import (
    ALLOWED_ORIGINS,
    DEFAULT_SPEECH_SPEED,
    ENABLE_DOCS,
    ENVIRONMENT,
    FALLBACK_TTS_VOICE,
    HOST,
    PORT,
    SPEECH_MODEL,
    START_AGENT,
    TRANSCRIPTION_LANGUAGE,
    TRANSCRIPTION_MODEL,
    TTS_RESPONSE_FORMAT,
    validate_settings,
)
from apps.homeplanner.backend.registries.agentstore import AgentId, discover_agents
from apps.homeplanner.backend.src.services.reasoning import ReasoningGateway
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from opentelemetry import trace
from src.aoai.client import reset_client
from src.speech.speech_to_text import SpeechToTextGateway
from src.speech.text_to_speech import TextToSpeechGateway
from utils.ml_logging import get_logger
from utils.telemetry_config import is_azure_monitor_configured, setup_azure_monitor

setup_azure_monitor(logger_name="")

logger = get_logger("main")

SERVICE_VERSION = "0.1.0"

StepCallable = Callable[[], Awaitable[None]]
LifecycleStep = tuple[str, StepCallable, StepCallable | None]


# --------------------------------------------------------------------------- #
#  Lifecycle Management
# --------------------------------------------------------------------------- #
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Load agents and build the shared gateways on startup.

    Gateways create their SDK client lazily on first use, so the service starts
    (and serves health checks) without model credentials.
    """
    tracer = trace.get_tracer(__name__)
    startup_steps: list[LifecycleStep] = []
    executed_steps: list[LifecycleStep] = []

    def add_step(name: str, start: StepCallable, shutdown: StepCallable | None = None) -> None:
        startup_steps.append((name, start, shutdown))

    async def check_settings() -> None:
        report = validate_settings()
        for warning in report["warnings"]:
            logger.warning("⚠️ %s", warning)
        if report["errors"]:
            raise RuntimeError("Invalid settings: " + "; ".join(report["errors"]))

    async def start_agents() -> None:
        agents = discover_agents()
        start_agent = AgentId.parse(START_AGENT)
        if start_agent is None:
            logger.warning("Unknown START_AGENT '%s', falling back to bob", START_AGENT)
            start_agent = AgentId.BOB
        app.state.agents = agents
        app.state.start_agent = start_agent

    async def start_gateways() -> None:
        agents = app.state.agents
        app.state.reasoning = ReasoningGateway()
        app.state.stt = SpeechToTextGateway(TRANSCRIPTION_MODEL, language=TRANSCRIPTION_LANGUAGE)
        app.state.tts = TextToSpeechGateway(
            {agent.id.value: agent.voice.name for agent in agents.values()},
            model=SPEECH_MODEL,
            speed=DEFAULT_SPEECH_SPEED,
            speeds={
                agent.id.value: agent.voice.speed
                for agent in agents.values()
                if agent.voice.speed is not None
            },
            response_format=TTS_RESPONSE_FORMAT,
            fallback_voice=FALLBACK_TTS_VOICE,
        )

    async def stop_gateways() -> None:
        reset_client()

    async def start_sessions() -> None:
        app.state.active_sessions = 0

    add_step("settings", check_settings)
    add_step("agents", start_agents)
    add_step("gateways", start_gateways, stop_gateways)
    add_step("sessions", start_sessions)

    with tracer.start_as_current_span("startup.lifespan") as startup_span:
        startup_begin = time.perf_counter()
        for name, start, shutdown in startup_steps:
            step_begin = time.perf_counter()
            await start()
            executed_steps.append((name, start, shutdown))
            logger.debug("startup step '%s' done in %.3fs", name, time.perf_counter() - step_begin)
        startup_duration = time.perf_counter() - startup_begin
        startup_span.set_attributes(
            {
                "service.name": "homeplanner-api",
                "service.version": SERVICE_VERSION,
                "startup.duration_sec": startup_duration,
            }
        )
        logger.info(
            "✅ Startup complete (%.2fs) | agents=%s start_agent=%s telemetry=%s",
            startup_duration,
            ", ".join(a.name for a in app.state.agents.values()),
            app.state.start_agent.value,
            "azure-monitor" if is_azure_monitor_configured() else "off",
        )

    yield

    with tracer.start_as_current_span("shutdown.lifespan"):
        logger.info("🛑 shutdown…")
        for name, _start, shutdown in reversed(executed_steps):
            if shutdown is None:
                continue
            try:
                await shutdown()
            except Exception as exc:
                logger.error("shutdown step '%s' failed: %s", name, exc)


# --------------------------------------------------------------------------- #
#  App factory
# --------------------------------------------------------------------------- #
def create_app() -> FastAPI:
    """Create FastAPI app with configurable documentation."""
    app = FastAPI(
        title="Home Renovation Voice Assistant API",
        description="Two-agent (Bob and Alice) push-to-talk renovation assistant.",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if ENABLE_DOCS else None,
        redoc_url="/redoc" if ENABLE_DOCS else None,
        openapi_url="/openapi.json" if ENABLE_DOCS else None,
    )
    setup_app_middleware_and_routes(app)
    logger.debug("App created for environment: %s", ENVIRONMENT)
    return app


def setup_app_middleware_and_routes(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )
    app.include_router(v1_router)


app = create_app()


# --------------------------------------------------------------------------- #
#  Main entry point
# --------------------------------------------------------------------------- #
def main():
    """Entry point for the homeplanner-server script."""
    uvicorn.run(
        app,
        host=HOST,  # nosec: B104
        port=PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
