import json
import logging
import os

from colorama import Fore, Style
from colorama import init as colorama_init
from dotenv import load_dotenv

# Early .env load to check DISABLE_CLOUD_TELEMETRY before importing any OTel
if os.path.isfile(".env"):
    load_dotenv(override=False)

_telemetry_disabled = os.getenv("DISABLE_CLOUD_TELEMETRY", "false").lower() == "true"

if not _telemetry_disabled:
    from opentelemetry import trace
else:
    trace = None

colorama_init(autoreset=True)

# Define a new logging level named "KEYINFO" with a level of 25
KEYINFO_LEVEL_NUM = 25
logging.addLevelName(KEYINFO_LEVEL_NUM, "KEYINFO")


def keyinfo(self: logging.Logger, message, *args, **kws):
    if self.isEnabledFor(KEYINFO_LEVEL_NUM):
        self._log(KEYINFO_LEVEL_NUM, message, args, **kws)


logging.Logger.keyinfo = keyinfo


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging in deployed environments."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "name": record.name,
            "process": record.processName,
            "level": record.levelname,
            "trace_id": getattr(record, "trace_id", "-"),
            "span_id": getattr(record, "span_id", "-"),
            "session_id": getattr(record, "session_id", "-"),
            "agent_name": getattr(record, "agent_name", "-"),
            "component": getattr(record, "component", "-"),
            "message": record.getMessage(),
            "file": record.filename,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Custom correlation attributes set by TraceLogFilter
        for attr_name in dir(record):
            if attr_name.startswith(("session_", "agent_", "turn_")):
                log_record[attr_name] = getattr(record, attr_name)

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record, default=str)


class PrettyFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": Fore.CYAN,
        "INFO": Fore.GREEN,
        "WARNING": Fore.YELLOW,
        "ERROR": Fore.RED,
        "CRITICAL": Fore.MAGENTA,
        "KEYINFO": Fore.BLUE,
    }

    def format(self, record: logging.LogRecord) -> str:
        timestamp = self.formatTime(record, self.datefmt)
        level = record.levelname
        name = record.name
        msg = record.getMessage()

        color = self.LEVEL_COLORS.get(level, "")
        line = f"{Fore.WHITE}[{timestamp}]{Style.RESET_ALL} {color}{level}{Style.RESET_ALL} - {Fore.BLUE}{name}{Style.RESET_ALL}: {msg}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


# Patterns for noisy log messages that should be filtered out
_NOISY_LOG_PATTERNS = [
    "websocket receive",
    "websocket send",
    "< TEXT",
    "> TEXT",
    "< BINARY",
    "> BINARY",
    "< PING",
    "> PONG",
    "ASGI [",
]


class WebSocketNoiseFilter(logging.Filter):
    """Drop high-frequency WebSocket frame logs and empty messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        if not msg or not msg.strip():
            return False

        msg_lower = msg.lower()
        for pattern in _NOISY_LOG_PATTERNS:
            if pattern.lower() in msg_lower:
                return False

        name_lower = record.name.lower()
        if any(n in name_lower for n in ("websocket", "uvicorn.protocols", "starlette")):
            if record.levelno <= logging.INFO:
                return False

        return True


class TraceLogFilter(logging.Filter):
    """
    Enrich log records with session correlation and trace context.

    Correlation is sourced in priority order:
    1. Session context (contextvars) - set once at connection level
    2. Current span context - trace/span ids only
    3. Default values ("-")
    """

    def filter(self, record):
        record.trace_id = "-"
        record.span_id = "-"

        if not _telemetry_disabled and trace is not None:
            span = trace.get_current_span()
            context = span.get_span_context() if span else None
            if context and context.trace_id:
                record.trace_id = f"{context.trace_id:032x}"
                record.span_id = f"{context.span_id:016x}"

        from utils.session_context import get_session_correlation

        session_ctx = get_session_correlation()
        if session_ctx:
            for key, value in session_ctx.to_log_record().items():
                setattr(record, key, value)
        else:
            record.session_id = "-"
            record.agent_name = "-"
            record.component = "-"

        return True


def get_logger(
    name: str = "homeplanner",
    level: int | None = None,
    include_stream_handler: bool = True,
) -> logging.Logger:
    """
    Get or create a logger with correlation filters and a console handler.

    Azure Monitor (when configured) attaches its own handler to the root
    logger, so only filters and a StreamHandler are added here.

    Args:
        name: Logger name (hierarchical, e.g., "api.v1.conversation")
        level: Optional logging level; defaults to INFO if logger has no level set
        include_stream_handler: Whether to add a console StreamHandler

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is not None or logger.level == 0:
        logger.setLevel(level or logging.INFO)

    is_production = os.environ.get("ENV", "dev").lower() == "prod"

    if not any(isinstance(f, TraceLogFilter) for f in logger.filters):
        logger.addFilter(TraceLogFilter())

    if not any(isinstance(f, WebSocketNoiseFilter) for f in logger.filters):
        logger.addFilter(WebSocketNoiseFilter())

    if include_stream_handler and not any(
        isinstance(h, logging.StreamHandler) for h in logger.handlers
    ):
        sh = logging.StreamHandler()
        sh.setFormatter(JsonFormatter() if is_production else PrettyFormatter())
        sh.addFilter(TraceLogFilter())
        logger.addHandler(sh)

    return logger
