"""Environment driven defaults for message builders and mail sessions."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

_DEFAULT_SMTP_PORT = 25
_DEFAULT_SSL_SMTP_PORT = 465
_DEFAULT_SOCKET_TIMEOUT_MS = 60_000


def _env_int(name: str, default: int) -> int:
    env_value = os.getenv(name)

    if env_value is None or env_value == "":
        return default

    try:
        value = int(env_value)
    except ValueError:
        logger.warning(
            "Invalid %s value '%s'. Falling back to default (%s).",
            name,
            env_value,
            default,
        )
        return default

    if value < 0:
        logger.warning("%s must not be negative, using default (%s).", name, default)
        return default
    return value


SMTP_HOST = os.getenv("EMAILBUILDER_SMTP_HOST") or None
"""Host name used when a builder is created without one."""

SMTP_PORT = _env_int("EMAILBUILDER_SMTP_PORT", _DEFAULT_SMTP_PORT)
SSL_SMTP_PORT = _env_int("EMAILBUILDER_SSL_SMTP_PORT", _DEFAULT_SSL_SMTP_PORT)

SOCKET_CONNECTION_TIMEOUT_MS = _env_int(
    "EMAILBUILDER_SOCKET_CONNECTION_TIMEOUT_MS", _DEFAULT_SOCKET_TIMEOUT_MS
)
"""Milliseconds to wait while opening the transport connection."""

SOCKET_TIMEOUT_MS = _env_int("EMAILBUILDER_SOCKET_TIMEOUT_MS", _DEFAULT_SOCKET_TIMEOUT_MS)
"""Milliseconds to wait on reads once connected."""

DEFAULT_CHARSET = os.getenv("EMAILBUILDER_CHARSET") or None

TEXT_PLAIN = "text/plain"
TEXT_HTML = "text/html"
