"""Message library collaborators used by :class:`MessageBuilder`."""

from __future__ import annotations

import logging
from datetime import datetime
from email.headerregistry import Address
from email.utils import make_msgid
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol, Sequence

from .message import MimeMessage
from .session import MailSession

logger = logging.getLogger(__name__)


class MessageLibrary(Protocol):
    """Protocol for the objects that turn builder state into messages and sessions."""

    def create_message(
        self,
        *,
        host_name: str,
        from_address: Optional[Address],
        to: Sequence[Address],
        cc: Sequence[Address],
        bcc: Sequence[Address],
        reply_to: Sequence[Address],
        headers: Mapping[str, str],
        subject: Optional[str],
        content: Any,
        content_type: str,
        charset: Optional[str],
        sent_date: Optional[datetime],
    ) -> MimeMessage:
        """Return the message assembled from the given fields."""

    def create_session(
        self,
        *,
        host_name: str,
        port: int,
        connection_timeout_ms: int,
        timeout_ms: int,
        bounce_address: Optional[str],
        ssl_on_connect: bool,
        start_tls_enabled: bool,
        debug: bool,
    ) -> MailSession:
        """Return a transport session for ``host_name``."""


class StdlibMessageLibrary:
    """Default library producing :class:`MimeMessage` and :class:`MailSession` objects."""

    def create_message(
        self,
        *,
        host_name: str,
        from_address: Optional[Address],
        to: Sequence[Address],
        cc: Sequence[Address],
        bcc: Sequence[Address],
        reply_to: Sequence[Address],
        headers: Mapping[str, str],
        subject: Optional[str],
        content: Any,
        content_type: str,
        charset: Optional[str],
        sent_date: Optional[datetime],
    ) -> MimeMessage:
        message_id = make_msgid(domain=host_name)
        logger.debug("Creating message %s (%s)", message_id, content_type)
        return MimeMessage(
            host_name=host_name,
            message_id=message_id,
            from_address=from_address,
            to=tuple(to),
            cc=tuple(cc),
            bcc=tuple(bcc),
            reply_to=tuple(reply_to),
            headers=MappingProxyType(dict(headers)),
            subject=subject,
            content=content,
            content_type=content_type,
            charset=charset,
            sent_date=sent_date,
        )

    def create_session(
        self,
        *,
        host_name: str,
        port: int,
        connection_timeout_ms: int,
        timeout_ms: int,
        bounce_address: Optional[str],
        ssl_on_connect: bool,
        start_tls_enabled: bool,
        debug: bool,
    ) -> MailSession:
        return MailSession(
            host=host_name,
            port=port,
            connection_timeout_ms=connection_timeout_ms,
            timeout_ms=timeout_ms,
            bounce_address=bounce_address,
            ssl_on_connect=ssl_on_connect,
            start_tls_enabled=start_tls_enabled,
            debug=debug,
        )
