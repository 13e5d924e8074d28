"""
lingala_api.observability.logging

structlog setup shared by the API, the CLI and background tasks.

Responsibilities:
- Route structlog through stdlib logging so uvicorn and SQLAlchemy lines share one stream.
- Mask credential-bearing fields (tokens, passwords, secrets, cookies) before rendering,
  including inside nested payloads such as webhook metadata.
- Render JSON in deployed environments and a readable console format in dev.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Literal

import structlog

# Substring match on lowercase keys; "session_token", "new_password" etc. are covered.
_SENSITIVE_KEY_PARTS = ("token", "password", "authorization", "secret", "cookie")
_REDACTED = "[REDACTED]"
_NOISY_LOGGERS = ("aiosqlite", "httpx", "httpcore")


def configure_logging(
    *, service_name: str, level: str, renderer: Literal["json", "console"] = "json"
) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    final: Any = (
        structlog.dev.ConsoleRenderer()
        if renderer == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            redact_sensitive,
            structlog.processors.dict_tracebacks,
            final,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in _SENSITIVE_KEY_PARTS)


def _scrub(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _REDACTED if _is_sensitive(str(k)) else _scrub(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_scrub(v) for v in value]
    return value


def redact_sensitive(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in list(event_dict):
        if key == "event":
            continue
        if _is_sensitive(key):
            event_dict[key] = _REDACTED
        else:
            event_dict[key] = _scrub(event_dict[key])
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
