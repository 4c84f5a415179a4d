"""
Logging configuration.

Application and uvicorn loggers share one level. HTTP client libraries used by the
OpenAI SDK log every request at INFO, so they are held at WARNING unless DEBUG is asked for.
"""
import logging
import sys

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "healthmate")
CLIENT_LOGGERS = ("httpx", "httpcore", "openai")


def _resolve(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO, format_string: str | None = None) -> None:
    numeric = _resolve(level)
    logging.basicConfig(
        level=numeric,
        format=format_string or DEFAULT_FORMAT,
        stream=sys.stdout,
        force=True,
    )
    for name in SERVER_LOGGERS:
        logging.getLogger(name).setLevel(numeric)
    client_level = numeric if numeric <= logging.DEBUG else max(numeric, logging.WARNING)
    for name in CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)
