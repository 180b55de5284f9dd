"""One-shot builder for email messages."""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from email.headerregistry import Address
from typing import Any, Iterable, List, Mapping, Optional, Union

from . import config
from .addresses import AddressParser, DefaultAddressParser, with_display_name
from .exceptions import AddressError, AlreadyBuiltError, EmailError, InvalidArgument, MissingHostError
from .library import MessageLibrary, StdlibMessageLibrary
from .message import MimeMessage, split_content_type
from .session import MailSession

logger = logging.getLogger(__name__)

AddressInput = Union[str, Address]
AddressesInput = Union[AddressInput, Iterable[AddressInput]]


def _has_line_break(value: str) -> bool:
    return "\r" in value or "\n" in value


class BuilderState(enum.Enum):
    EMPTY = "empty"
    CONFIGURING = "configuring"
    BUILT = "built"


class MessageBuilder:
    """Accumulates addressing, headers and content, then builds one message.

    Every mutator validates its whole input before touching the builder, so
    a call that raises leaves the previous state intact. Once :meth:`build`
    succeeds the builder is frozen: further mutators and builds raise
    :class:`AlreadyBuiltError`, while the accessors keep working.
    """

    def __init__(
        self,
        *,
        address_parser: AddressParser | None = None,
        library: MessageLibrary | None = None,
    ) -> None:
        self._parser: AddressParser = address_parser or DefaultAddressParser()
        self._library: MessageLibrary = library or StdlibMessageLibrary()
        self._state = BuilderState.EMPTY

        self._host_name: Optional[str] = None
        self._from: Optional[Address] = None
        self._to: List[Address] = []
        self._cc: List[Address] = []
        self._bcc: List[Address] = []
        self._reply_to: List[Address] = []
        self._headers: dict[str, str] = {}
        self._subject: Optional[str] = None
        self._content: Any = None
        self._content_type: Optional[str] = None
        self._charset: Optional[str] = config.DEFAULT_CHARSET
        self._sent_date: Optional[datetime] = None

        self._smtp_port = config.SMTP_PORT
        self._ssl_smtp_port = config.SSL_SMTP_PORT
        self._socket_connection_timeout = config.SOCKET_CONNECTION_TIMEOUT_MS
        self._socket_timeout = config.SOCKET_TIMEOUT_MS
        self._bounce_address: Optional[str] = None
        self._ssl_on_connect = False
        self._start_tls_enabled = False
        self._debug = False

        self._message: Optional[MimeMessage] = None

    # State

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def is_built(self) -> bool:
        return self._state is BuilderState.BUILT

    def _mutate(self) -> None:
        if self._state is BuilderState.BUILT:
            raise AlreadyBuiltError("Cannot modify a message builder after build()")
        self._state = BuilderState.CONFIGURING

    # Addresses

    def _parse_address(self, address: AddressInput | None) -> Address:
        if address is None:
            raise AddressError("Address must not be None")
        if isinstance(address, Address):
            return address
        return self._parser.parse(address)

    def _parse_addresses(self, addresses: AddressesInput | None, name: str | None = None) -> list[Address]:
        if addresses is None:
            raise AddressError("Address list provided was invalid")

        if isinstance(addresses, (str, Address)):
            return [with_display_name(self._parse_address(addresses), name)]

        try:
            entries = list(addresses)
        except TypeError as exc:
            raise AddressError(
                f"Expected an address or a sequence of addresses, got {type(addresses).__name__}", addresses
            ) from exc
        if not entries:
            raise AddressError("Address list provided was invalid")
        if name is not None:
            raise AddressError("A display name can only be given with a single address")
        return [self._parse_address(entry) for entry in entries]

    def _add_addresses(
        self, target: List[Address], label: str, addresses: AddressesInput | None, name: str | None
    ) -> "MessageBuilder":
        parsed = self._parse_addresses(addresses, name)
        self._mutate()
        target.extend(parsed)
        logger.debug("Added %s %s address(es)", len(parsed), label)
        return self

    def _replace_addresses(
        self, target: List[Address], label: str, addresses: AddressesInput | None
    ) -> "MessageBuilder":
        parsed = self._parse_addresses(addresses)
        self._mutate()
        target[:] = parsed
        logger.debug("Replaced %s addresses with %s entries", label, len(parsed))
        return self

    def add_to(self, addresses: AddressesInput, name: str | None = None) -> "MessageBuilder":
        return self._add_addresses(self._to, "to", addresses, name)

    def add_cc(self, addresses: AddressesInput, name: str | None = None) -> "MessageBuilder":
        return self._add_addresses(self._cc, "cc", addresses, name)

    def add_bcc(self, addresses: AddressesInput, name: str | None = None) -> "MessageBuilder":
        return self._add_addresses(self._bcc, "bcc", addresses, name)

    def add_reply_to(self, addresses: AddressesInput, name: str | None = None) -> "MessageBuilder":
        return self._add_addresses(self._reply_to, "reply-to", addresses, name)

    def set_to(self, addresses: AddressesInput) -> "MessageBuilder":
        return self._replace_addresses(self._to, "to", addresses)

    def set_cc(self, addresses: AddressesInput) -> "MessageBuilder":
        return self._replace_addresses(self._cc, "cc", addresses)

    def set_bcc(self, addresses: AddressesInput) -> "MessageBuilder":
        return self._replace_addresses(self._bcc, "bcc", addresses)

    def set_reply_to(self, addresses: AddressesInput) -> "MessageBuilder":
        return self._replace_addresses(self._reply_to, "reply-to", addresses)

    @property
    def to_addresses(self) -> List[Address]:
        return list(self._to)

    @property
    def cc_addresses(self) -> List[Address]:
        return list(self._cc)

    @property
    def bcc_addresses(self) -> List[Address]:
        return list(self._bcc)

    @property
    def reply_to_addresses(self) -> List[Address]:
        return list(self._reply_to)

    def set_from(self, address: AddressInput, name: str | None = None) -> "MessageBuilder":
        parsed = with_display_name(self._parse_address(address), name)
        self._mutate()
        self._from = parsed
        return self

    @property
    def from_address(self) -> Optional[Address]:
        return self._from

    # Headers

    @staticmethod
    def _validate_header(name: str, value: str) -> None:
        if not name:
            raise InvalidArgument("name can not be null or empty")
        if not value:
            raise InvalidArgument("value can not be null or empty")
        if _has_line_break(name) or _has_line_break(value):
            raise InvalidArgument(f"header {name!r} must not contain line breaks")

    def add_header(self, name: str, value: str) -> "MessageBuilder":
        self._validate_header(name, value)
        self._mutate()
        self._headers[name] = value
        return self

    def set_headers(self, headers: Mapping[str, str]) -> "MessageBuilder":
        validated = dict(headers)
        for name, value in validated.items():
            self._validate_header(name, value)
        self._mutate()
        self._headers = validated
        return self

    def get_header(self, name: str) -> Optional[str]:
        return self._headers.get(name)

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    # Content

    def set_content(self, body: Any, content_type: str | None = None) -> "MessageBuilder":
        """Store ``body`` and ``content_type`` as given.

        A ``charset`` parameter in ``content_type`` also becomes the
        builder charset. The default type is applied by :meth:`build`.
        """
        charset = None
        if content_type:
            _, params = split_content_type(content_type)
            charset = params.get("charset")
        self._mutate()
        self._content = body
        self._content_type = content_type
        if charset:
            self._charset = charset
        return self

    def set_msg(self, text: str) -> "MessageBuilder":
        if not text:
            raise EmailError("Invalid message supplied")
        return self.set_content(text, config.TEXT_PLAIN)

    @property
    def content(self) -> Any:
        return self._content

    @property
    def content_type(self) -> Optional[str]:
        return self._content_type

    @property
    def subject(self) -> Optional[str]:
        return self._subject

    @subject.setter
    def subject(self, value: Optional[str]) -> None:
        if value is not None and _has_line_break(value):
            raise InvalidArgument("subject must not contain line breaks")
        self._mutate()
        self._subject = value

    @property
    def charset(self) -> Optional[str]:
        return self._charset

    @charset.setter
    def charset(self, value: Optional[str]) -> None:
        self._mutate()
        self._charset = value

    @property
    def sent_date(self) -> datetime:
        """The configured sent date, or the current time when none was set."""
        return self._sent_date if self._sent_date is not None else datetime.now()

    @sent_date.setter
    def sent_date(self, value: Optional[datetime]) -> None:
        self._mutate()
        self._sent_date = value

    # Transport settings

    @property
    def host_name(self) -> str:
        """The configured host name.

        Raises :class:`MissingHostError` instead of returning ``None``.
        """
        if not self._host_name:
            raise MissingHostError()
        return self._host_name

    @host_name.setter
    def host_name(self, value: Optional[str]) -> None:
        self._mutate()
        self._host_name = value

    @property
    def socket_connection_timeout(self) -> int:
        return self._socket_connection_timeout

    @socket_connection_timeout.setter
    def socket_connection_timeout(self, millis: int) -> None:
        if millis < 0:
            raise InvalidArgument("socket connection timeout must not be negative")
        self._mutate()
        self._socket_connection_timeout = millis

    @property
    def socket_timeout(self) -> int:
        return self._socket_timeout

    @socket_timeout.setter
    def socket_timeout(self, millis: int) -> None:
        if millis < 0:
            raise InvalidArgument("socket timeout must not be negative")
        self._mutate()
        self._socket_timeout = millis

    @property
    def smtp_port(self) -> int:
        return self._smtp_port

    @smtp_port.setter
    def smtp_port(self, port: int) -> None:
        if port < 1:
            raise InvalidArgument(f"Cannot connect to a port number that is less than 1 ( {port} )")
        self._mutate()
        self._smtp_port = port

    @property
    def ssl_smtp_port(self) -> int:
        return self._ssl_smtp_port

    @ssl_smtp_port.setter
    def ssl_smtp_port(self, port: int) -> None:
        if port < 1:
            raise InvalidArgument(f"Cannot connect to a port number that is less than 1 ( {port} )")
        self._mutate()
        self._ssl_smtp_port = port

    @property
    def ssl_on_connect(self) -> bool:
        return self._ssl_on_connect

    @ssl_on_connect.setter
    def ssl_on_connect(self, enabled: bool) -> None:
        self._mutate()
        self._ssl_on_connect = enabled

    @property
    def start_tls_enabled(self) -> bool:
        return self._start_tls_enabled

    @start_tls_enabled.setter
    def start_tls_enabled(self, enabled: bool) -> None:
        self._mutate()
        self._start_tls_enabled = enabled

    @property
    def bounce_address(self) -> Optional[str]:
        return self._bounce_address

    @bounce_address.setter
    def bounce_address(self, address: Optional[str]) -> None:
        parsed = None if address is None else self._parse_address(address)
        self._mutate()
        self._bounce_address = parsed.addr_spec if parsed is not None else None

    @property
    def debug(self) -> bool:
        return self._debug

    @debug.setter
    def debug(self, enabled: bool) -> None:
        self._mutate()
        self._debug = enabled

    # Build

    def _resolve_content_type(self) -> str:
        content_type = self._content_type or config.TEXT_PLAIN
        media_type, params = split_content_type(content_type)
        if (
            self._charset
            and media_type.startswith("text/")
            and "charset" not in params
            and isinstance(self._content, str)
        ):
            content_type = f"{content_type}; charset={self._charset}"
        return content_type

    def build(self) -> MimeMessage:
        """Build the message once and cache it.

        Raises :class:`AlreadyBuiltError` on every call after the first
        success and :class:`MissingHostError` when no host name is set.
        """
        if self._state is BuilderState.BUILT:
            raise AlreadyBuiltError()
        host_name = self.host_name

        message = self._library.create_message(
            host_name=host_name,
            from_address=self._from,
            to=list(self._to),
            cc=list(self._cc),
            bcc=list(self._bcc),
            reply_to=list(self._reply_to),
            headers=dict(self._headers),
            subject=self._subject,
            content=self._content,
            content_type=self._resolve_content_type(),
            charset=self._charset,
            sent_date=self.sent_date,
        )
        self._message = message
        self._state = BuilderState.BUILT
        logger.info(
            "Built message for %s recipient(s) on %s",
            len(self._to) + len(self._cc) + len(self._bcc),
            host_name,
        )
        return message

    @property
    def message(self) -> Optional[MimeMessage]:
        """The message produced by :meth:`build`, or ``None`` before building."""
        return self._message

    def get_session(self) -> MailSession:
        host_name = self.host_name
        port = self._ssl_smtp_port if self._ssl_on_connect else self._smtp_port
        logger.debug("Creating mail session for %s:%s", host_name, port)
        return self._library.create_session(
            host_name=host_name,
            port=port,
            connection_timeout_ms=self._socket_connection_timeout,
            timeout_ms=self._socket_timeout,
            bounce_address=self._bounce_address,
            ssl_on_connect=self._ssl_on_connect,
            start_tls_enabled=self._start_tls_enabled,
            debug=self._debug,
        )
