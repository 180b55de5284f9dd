"""Build email messages once, from validated addresses, headers and content."""

from .addresses import AddressParser, DefaultAddressParser
from .builder import BuilderState, MessageBuilder
from .exceptions import AddressError, AlreadyBuiltError, EmailError, InvalidArgument, MissingHostError
from .library import MessageLibrary, StdlibMessageLibrary
from .message import MimeMessage, RecipientType
from .session import MailSession

__all__ = [
    "AddressError",
    "AddressParser",
    "AlreadyBuiltError",
    "BuilderState",
    "DefaultAddressParser",
    "EmailError",
    "InvalidArgument",
    "MailSession",
    "MessageBuilder",
    "MessageLibrary",
    "MimeMessage",
    "MissingHostError",
    "RecipientType",
    "StdlibMessageLibrary",
]
