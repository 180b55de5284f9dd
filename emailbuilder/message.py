"""Immutable message objects produced by a builder."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from datetime import datetime
from email import encoders
from email.header import Header
from email.headerregistry import Address
from email.message import Message
from email.mime.base import MIMEBase
from email.mime.text import MIMEText
from email.utils import format_datetime
from types import MappingProxyType
from typing import Any, Mapping, Tuple

_WIRE_RECIPIENT_HEADERS = (("To", "to"), ("Cc", "cc"))


class RecipientType(enum.Enum):
    TO = "To"
    CC = "Cc"
    BCC = "Bcc"


def split_content_type(value: str) -> tuple[str, dict[str, str]]:
    """Split ``type/subtype; key=value`` into the media type and its parameters."""
    media_type, *raw_params = value.split(";")
    params: dict[str, str] = {}
    for raw_param in raw_params:
        key, sep, param_value = raw_param.partition("=")
        if not sep:
            continue
        params[key.strip().lower()] = param_value.strip().strip('"')
    return media_type.strip().lower(), params


def is_multipart(content: object) -> bool:
    return isinstance(content, Message) and content.is_multipart()


def _format_addresses(addresses: Tuple[Address, ...]) -> str:
    return ", ".join(str(address) for address in addresses)


def _set_header(root: Message, name: str, value: Any) -> None:
    # a multipart root may already carry its own copy of the header
    del root[name]
    root[name] = value


@dataclass(frozen=True)
class MimeMessage:
    """A fully resolved message, ready to be rendered to wire format.

    The getters return exactly what the builder transferred: recipient
    tuples keep their order, the content object is the one that was set and
    the sent date is not normalized to any timezone.
    """

    host_name: str
    message_id: str
    from_address: Address | None = None
    to: Tuple[Address, ...] = ()
    cc: Tuple[Address, ...] = ()
    bcc: Tuple[Address, ...] = ()
    reply_to: Tuple[Address, ...] = ()
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    subject: str | None = None
    content: Any = None
    content_type: str = "text/plain"
    charset: str | None = None
    sent_date: datetime | None = None

    def get_recipients(self, kind: RecipientType) -> Tuple[Address, ...]:
        if kind is RecipientType.TO:
            return self.to
        if kind is RecipientType.CC:
            return self.cc
        return self.bcc

    def get_all_recipients(self) -> Tuple[Address, ...]:
        return self.to + self.cc + self.bcc

    def get_reply_to(self) -> Tuple[Address, ...]:
        return self.reply_to

    def get_from(self) -> Address | None:
        return self.from_address

    def get_subject(self) -> str | None:
        return self.subject

    def get_header(self, name: str) -> str | None:
        return self.headers.get(name)

    def get_content(self) -> Any:
        return self.content

    def get_content_type(self) -> str:
        return self.content_type

    def get_charset(self) -> str | None:
        return self.charset

    def get_sent_date(self) -> datetime | None:
        return self.sent_date

    def as_email_message(self) -> Message:
        """Render the message as a :class:`email.message.Message`.

        Multipart content is copied and used as the root part. Bcc recipients
        are left out of the headers.
        """
        if is_multipart(self.content):
            root = copy.deepcopy(self.content)
        else:
            root = self._build_body()

        del root["Bcc"]
        if self.from_address is not None:
            _set_header(root, "From", str(self.from_address))
        for header, attribute in _WIRE_RECIPIENT_HEADERS:
            addresses = getattr(self, attribute)
            if addresses:
                _set_header(root, header, _format_addresses(addresses))
        if self.reply_to:
            _set_header(root, "Reply-To", _format_addresses(self.reply_to))
        if self.subject is not None:
            _set_header(root, "Subject", Header(self.subject, self.charset) if self.charset else self.subject)
        if self.sent_date is not None:
            _set_header(root, "Date", format_datetime(self.sent_date))
        _set_header(root, "Message-ID", self.message_id)

        for name, value in self.headers.items():
            _set_header(root, name, value)
        return root

    def as_bytes(self) -> bytes:
        return self.as_email_message().as_bytes()

    def as_string(self) -> str:
        return self.as_email_message().as_string()

    def _build_body(self) -> Message:
        media_type, params = split_content_type(self.content_type)
        maintype, _, subtype = media_type.partition("/")
        charset = params.get("charset") or self.charset
        content = self.content

        if maintype == "text":
            if content is None:
                text = ""
            elif isinstance(content, bytes):
                text = content.decode(charset or "utf-8")
            else:
                text = str(content)
            return MIMEText(text, subtype or "plain", charset)

        part = MIMEBase(maintype or "application", subtype or "octet-stream", **params)
        if isinstance(content, bytes):
            part.set_payload(content)
            encoders.encode_base64(part)
        else:
            part.set_payload("" if content is None else str(content))
        return part
