"""Transport sessions handed out by message builders."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from typing import Optional

from . import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailSession:
    """Connection settings for an SMTP server.

    Timeouts are kept in milliseconds and converted to seconds only when a
    socket is opened.
    """

    host: str
    port: int = config.SMTP_PORT
    connection_timeout_ms: int = config.SOCKET_CONNECTION_TIMEOUT_MS
    timeout_ms: int = config.SOCKET_TIMEOUT_MS
    bounce_address: Optional[str] = None
    ssl_on_connect: bool = False
    start_tls_enabled: bool = False
    debug: bool = False

    @property
    def connection_timeout(self) -> float | None:
        return self.connection_timeout_ms / 1000 if self.connection_timeout_ms > 0 else None

    @property
    def timeout(self) -> float | None:
        return self.timeout_ms / 1000 if self.timeout_ms > 0 else None

    def connect(self) -> smtplib.SMTP:
        """Open a connection to ``host:port``.

        The caller owns the returned client and is expected to ``quit()`` it.
        """
        logger.info("Connecting to %s:%s", self.host, self.port)
        if self.ssl_on_connect:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                self.host, self.port, timeout=self.connection_timeout
            )
        else:
            smtp = smtplib.SMTP(self.host, self.port, timeout=self.connection_timeout)

        if self.debug:
            smtp.set_debuglevel(1)
        if smtp.sock is not None:
            smtp.sock.settimeout(self.timeout)

        if self.start_tls_enabled and not self.ssl_on_connect:
            smtp.ehlo()
            smtp.starttls()
            smtp.ehlo()
        return smtp
