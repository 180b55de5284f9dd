"""Parsing and validation of email addresses."""

from __future__ import annotations

import re
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.utils import parseaddr
from typing import Protocol

from .exceptions import AddressError

_ADDR_SPEC_PATTERN = re.compile(r"^[^@\s<>(),;:\"\[\]]+@[^@\s<>(),;:\"\[\]]+$")


class AddressParser(Protocol):
    """Protocol for collaborators that turn raw strings into addresses."""

    def parse(self, raw: str) -> Address:
        """Return a validated address or raise :class:`AddressError`."""


class DefaultAddressParser:
    """Address parser built on :mod:`email.utils` and :mod:`email.headerregistry`.

    Accepts either a bare ``local@domain`` or the ``Name <local@domain>`` form.
    """

    def parse(self, raw: str) -> Address:
        if not isinstance(raw, str):
            raise AddressError(f"Address must be a string, got {type(raw).__name__}", raw)

        text = raw.strip()
        if not text:
            raise AddressError("Address must not be empty", raw)

        display_name, addr_spec = parseaddr(text)
        # parseaddr silently drops whitespace and comments inside the address
        bracketed = text[text.rfind("<") + 1 : text.rfind(">")].strip() if "<" in text else text
        if not addr_spec or addr_spec != bracketed or not _ADDR_SPEC_PATTERN.match(addr_spec):
            raise AddressError(f"Invalid email address: {raw!r}", raw)

        local_part, _, domain = addr_spec.rpartition("@")
        if not local_part or not domain or domain.startswith(".") or domain.endswith("."):
            raise AddressError(f"Invalid email address: {raw!r}", raw)

        try:
            return Address(display_name=display_name, addr_spec=addr_spec)
        except (ValueError, IndexError, HeaderParseError) as exc:
            raise AddressError(f"Invalid email address: {raw!r}", raw) from exc


def with_display_name(address: Address, name: str | None) -> Address:
    """Return ``address`` carrying ``name`` as its display name."""
    if not name:
        return address
    return Address(display_name=name, username=address.username, domain=address.domain)
