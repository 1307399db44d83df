"""Log setup for albumsense: JSON or compact text output, tagged with a refresh correlation id."""

import contextvars
import logging
import sys
import traceback
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any

from pythonjsonlogger import jsonlogger

# Hey future me, every album refresh attempt sets its own correlation ID, so all log lines of
# one attempt (candidates tried, Last.fm errors, file writes) can be grepped together even when
# the scheduler runs dozens of albums concurrently. contextvars are asyncio-task local.
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "albumsense_correlation_id", default=""
)

# Chatty third-party loggers, capped at WARNING
_NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "asyncio", "aiosqlite")

TEXT_LOG_FORMAT = "%(asctime)s │ %(levelname)-7s │ %(name)s:%(lineno)d │ %(message)s"
JSON_LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


def get_correlation_id() -> str:
    """Correlation ID of the running refresh attempt ("" outside of one)."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Tag the current task with a correlation ID, generating a UUID4 when none is given."""
    value = correlation_id or str(uuid.uuid4())
    correlation_id_var.set(value)
    return value


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Fresh correlation ID for the duration of the block; the previous one is restored after."""
    token = correlation_id_var.set(correlation_id or str(uuid.uuid4()))
    try:
        yield correlation_id_var.get()
    finally:
        correlation_id_var.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Copies the task's correlation ID onto every record passing the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


def _exception_chain(exc: BaseException) -> list[BaseException]:
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__ or current.__context__
    chain.reverse()
    return chain


class CompactExceptionFormatter(logging.Formatter):
    """Text formatter that prints exception chains root-cause first, one line per frame.

    Example output:
    12:00:01 │ WARNING │ albumsense.application...:196 │ Last.fm refresh of /music/x aborted
    ╰─► ConnectError: All connection attempts failed
    ╰─► ExternalServiceError: Last.fm request failed: All connection attempts failed
        File "lastfm_client.py", line 175, in _make_request
          raise ExternalServiceError(
    """

    def formatException(self, ei: Any) -> str:
        exc_value = ei[1]
        if exc_value is None:
            return ""

        lines: list[str] = []
        for exc in _exception_chain(exc_value):
            lines.append(f"╰─► {type(exc).__name__}: {exc}")
            for frame in traceback.extract_tb(exc.__traceback__):
                # Our own frames only; httpx/sqlalchemy internals are noise here
                if "albumsense" not in frame.filename or "site-packages" in frame.filename:
                    continue
                lines.append(
                    f'    File "{Path(frame.filename).name}", line {frame.lineno}, in {frame.name}'
                )
                if frame.line:
                    lines.append(f"      {frame.line.strip()}")
        return "\n".join(lines)


class CustomJsonFormatter(jsonlogger.JsonFormatter):  # type: ignore[name-defined,misc]
    """One JSON object per line, with source location and the refresh correlation ID."""

    def __init__(self, *args: Any, app_name: str = "albumsense", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.app_name = app_name

    def add_fields(
        self,
        log_record: dict[str, Any],
        record: logging.LogRecord,
        message_dict: dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.update(
            timestamp=self.formatTime(record, self.datefmt),
            level=record.levelname,
            logger=record.name,
            app=self.app_name,
            location=f"{record.module}.{record.funcName}",
            line=record.lineno,
        )

        correlation_id = getattr(record, "correlation_id", "")
        if correlation_id:
            log_record["correlation_id"] = correlation_id
        else:
            log_record.pop("correlation_id", None)

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)


def _build_formatter(json_format: bool, app_name: str) -> logging.Formatter:
    if json_format:
        return CustomJsonFormatter(
            JSON_LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S", app_name=app_name
        )
    return CompactExceptionFormatter(fmt=TEXT_LOG_FORMAT, datefmt="%H:%M:%S")


def configure_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    app_name: str = "albumsense",
    stream: IO[str] | None = None,
) -> None:
    """Replace the root handlers with a single albumsense handler. Call once at startup.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown names fall back to INFO)
        json_format: JSON lines instead of the compact text layout
        app_name: Value of the ``app`` field in JSON output
        stream: Target stream, stdout by default
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(_build_formatter(json_format, app_name))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging configured (level=%s, json=%s, app=%s)",
        logging.getLevelName(level),
        json_format,
        app_name,
    )
