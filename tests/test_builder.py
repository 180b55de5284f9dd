from datetime import datetime
from email.headerregistry import Address
from email.mime.multipart import MIMEMultipart

import pytest

from emailbuilder import (
    AddressError,
    AlreadyBuiltError,
    BuilderState,
    EmailError,
    InvalidArgument,
    MessageBuilder,
    MissingHostError,
    RecipientType,
)

TEST_EMAILS = ["ab@BC.com", "a.b@c.org", "asdfaklsdfalskfdlasdfk@asdlfaksdfj.com.bd"]


@pytest.fixture
def builder() -> MessageBuilder:
    return MessageBuilder()


@pytest.fixture
def addressed_builder() -> MessageBuilder:
    builder = MessageBuilder()
    builder.host_name = "localhost"
    builder.set_from("sender@gmail.com")
    builder.add_to("recipient@gmail.com")
    return builder


def test_add_bcc_with_valid_emails(builder):
    builder.add_bcc(TEST_EMAILS)

    assert len(builder.bcc_addresses) == 3
    assert [address.addr_spec for address in builder.bcc_addresses] == TEST_EMAILS


@pytest.mark.parametrize("adder", ["add_bcc", "add_cc", "add_to", "add_reply_to"])
@pytest.mark.parametrize("addresses", [None, []])
def test_add_rejects_missing_addresses(builder, adder, addresses):
    with pytest.raises(AddressError):
        getattr(builder, adder)(addresses)

    assert builder.bcc_addresses == []
    assert builder.cc_addresses == []
    assert builder.state is BuilderState.EMPTY


def test_add_single_bcc_and_cc(builder):
    builder.add_bcc("test@example.com").add_cc("test@example.com")

    assert len(builder.bcc_addresses) == 1
    assert len(builder.cc_addresses) == 1


def test_add_cc_with_valid_emails(builder):
    builder.add_cc(TEST_EMAILS)

    assert len(builder.cc_addresses) == 3


def test_add_is_all_or_nothing_on_malformed_entry(builder):
    builder.add_cc("first@example.com")

    with pytest.raises(AddressError):
        builder.add_cc(["second@example.com", "not-an-address", "third@example.com"])

    assert [address.addr_spec for address in builder.cc_addresses] == ["first@example.com"]


def test_add_keeps_duplicates_in_order(builder):
    builder.add_to(["b@example.com", "a@example.com"]).add_to("b@example.com")

    assert [address.addr_spec for address in builder.to_addresses] == [
        "b@example.com",
        "a@example.com",
        "b@example.com",
    ]


def test_add_to_with_display_name(builder):
    builder.add_to("jane@example.com", name="Jane Doe")

    (address,) = builder.to_addresses
    assert address.display_name == "Jane Doe"
    assert address.addr_spec == "jane@example.com"


def test_display_name_requires_single_address(builder):
    with pytest.raises(AddressError):
        builder.add_to(["a@example.com", "b@example.com"], name="Both")


def test_add_accepts_address_objects(builder):
    builder.add_to(Address("Bob", "bob", "example.com"))

    assert builder.to_addresses[0].display_name == "Bob"


def test_add_reply_to_single_email(builder):
    builder.add_reply_to("don@gmail.com")

    assert len(builder.reply_to_addresses) == 1


def test_set_to_replaces_list(builder):
    builder.add_to(TEST_EMAILS)
    builder.set_to("only@example.com")

    assert [address.addr_spec for address in builder.to_addresses] == ["only@example.com"]


def test_set_bcc_rejects_empty_and_keeps_list(builder):
    builder.add_bcc(TEST_EMAILS)

    with pytest.raises(AddressError):
        builder.set_bcc([])

    assert len(builder.bcc_addresses) == 3


def test_accessors_return_copies(builder):
    builder.add_to("a@example.com")
    builder.to_addresses.clear()
    builder.headers["X-Test"] = "ignored"

    assert len(builder.to_addresses) == 1
    assert builder.headers == {}


def test_add_header(builder):
    builder.add_header("Don", "don@gmail.com")

    assert len(builder.headers) == 1
    assert builder.get_header("Don") == "don@gmail.com"


def test_add_header_last_write_wins(builder):
    builder.add_header("X-Priority", "1").add_header("X-Priority", "3")

    assert builder.headers == {"X-Priority": "3"}


@pytest.mark.parametrize("name, value", [("", "don@gmail.com"), ("don", ""), (None, "x")])
def test_add_header_rejects_empty_parts(builder, name, value):
    with pytest.raises(InvalidArgument):
        builder.add_header(name, value)

    assert builder.headers == {}


@pytest.mark.parametrize(
    "name, value",
    [("X-Tag", "a\r\nBcc: evil@example.com"), ("X-Tag", "line\nbreak"), ("X-Bad\r\nName", "value")],
)
def test_add_header_rejects_line_breaks(builder, name, value):
    with pytest.raises(InvalidArgument):
        builder.add_header(name, value)
    with pytest.raises(InvalidArgument):
        builder.set_headers({name: value})

    assert builder.headers == {}


def test_subject_rejects_line_breaks(builder):
    with pytest.raises(InvalidArgument):
        builder.subject = "Hello\r\nBcc: evil@example.com"

    assert builder.subject is None


def test_built_message_with_headers_renders(addressed_builder):
    addressed_builder.add_header("X-Tag", "a, b")

    assert "X-Tag: a, b" in addressed_builder.build().as_string()


@pytest.mark.parametrize("addresses", [5, 3.5, object()])
def test_add_rejects_non_address_input(builder, addresses):
    with pytest.raises(AddressError):
        builder.add_cc(addresses)

    assert builder.cc_addresses == []
    assert builder.state is BuilderState.EMPTY


def test_set_headers_validates_before_replacing(builder):
    builder.add_header("Keep", "me")

    with pytest.raises(InvalidArgument):
        builder.set_headers({"Good": "value", "Bad": ""})

    assert builder.headers == {"Keep": "me"}


def test_build_twice_fails(builder):
    builder.add_bcc(TEST_EMAILS)
    builder.add_cc(TEST_EMAILS)
    builder.add_header("Don", "don@gmail.com")
    builder.host_name = "localhost"
    builder.subject = "Test Subject"
    builder.bounce_address = "donMimeTest@gmail.com"

    builder.build()

    with pytest.raises(AlreadyBuiltError):
        builder.build()
    with pytest.raises(AlreadyBuiltError):
        builder.build()
    assert builder.state is BuilderState.BUILT


def test_build_transfers_recipients(builder):
    builder.add_bcc(TEST_EMAILS)
    builder.add_cc(TEST_EMAILS)
    builder.add_header("Don", "don@gmail.com")
    builder.add_reply_to("jared@gmail.com")
    builder.host_name = "localhost"
    builder.subject = "Test Subject"
    builder.set_msg("TEST")

    message = builder.build()

    assert len(message.get_recipients(RecipientType.BCC)) == 3
    assert len(message.get_recipients(RecipientType.CC)) == 3
    assert message.get_recipients(RecipientType.TO) == ()
    assert message.get_reply_to()[0].addr_spec == "jared@gmail.com"
    assert message.get_header("Don") == "don@gmail.com"
    assert message.get_subject() == "Test Subject"
    assert builder.message is message


def test_message_is_none_before_build(addressed_builder):
    assert addressed_builder.message is None


def test_build_text_plain_with_charset(addressed_builder):
    addressed_builder.charset = "UTF-8"
    addressed_builder.set_content("Test Content", "text/plain")

    message = addressed_builder.build()

    assert message.get_content() == "Test Content"
    assert "text/plain" in message.get_content_type()
    assert message.get_content_type() == "text/plain; charset=UTF-8"


def test_build_text_plain_without_charset(addressed_builder):
    addressed_builder.set_content("Test Content", "text/plain")

    message = addressed_builder.build()

    assert message.get_content() == "Test Content"
    assert message.get_content_type() == "text/plain"


def test_build_non_string_content(addressed_builder):
    addressed_builder.charset = "UTF-8"
    addressed_builder.set_content(42, "text/plain")

    message = addressed_builder.build()

    assert message.get_content() == 42
    assert message.get_content_type() == "text/plain"


def test_build_multipart_without_content_type(addressed_builder):
    multipart = MIMEMultipart()
    addressed_builder.set_content(multipart)

    message = addressed_builder.build()

    assert message.get_content() is multipart
    assert isinstance(message.get_content(), MIMEMultipart)
    assert "text/plain" in message.get_content_type()


def test_null_content_type_defaults_to_text_plain(addressed_builder):
    addressed_builder.set_content("Test Content", None)

    message = addressed_builder.build()

    assert message.get_content() == "Test Content"
    assert "text/plain" in message.get_content_type()
    assert addressed_builder.host_name == "localhost"


def test_explicit_content_type_is_kept(addressed_builder):
    addressed_builder.charset = "UTF-8"
    addressed_builder.set_content("<p>hi</p>", "text/html")

    assert addressed_builder.build().get_content_type() == "text/html; charset=UTF-8"


def test_content_type_charset_updates_builder(addressed_builder):
    addressed_builder.set_content("olá", "text/plain; charset=ISO-8859-1")

    message = addressed_builder.build()

    assert addressed_builder.charset == "ISO-8859-1"
    assert message.get_charset() == "ISO-8859-1"
    assert message.get_content_type() == "text/plain; charset=ISO-8859-1"


def test_set_msg_rejects_empty_text(builder):
    with pytest.raises(EmailError):
        builder.set_msg(None)
    with pytest.raises(EmailError):
        builder.set_msg("")


def test_get_host_name(builder):
    builder.host_name = "localhost"

    assert builder.host_name == "localhost"


@pytest.mark.parametrize("host", [None, ""])
def test_missing_host_name_fails_on_access(builder, host):
    builder.host_name = host
    builder.set_from("sender@gmail.com")
    builder.add_to("recipient@gmail.com")
    builder.set_content("Test Content", None)

    with pytest.raises(MissingHostError):
        builder.host_name
    with pytest.raises(MissingHostError):
        builder.get_session()
    with pytest.raises(MissingHostError):
        builder.build()
    assert builder.state is BuilderState.CONFIGURING


def test_sent_date_is_transferred_exactly(addressed_builder):
    expected = datetime(2025, 3, 18)
    addressed_builder.subject = "Test Subject"
    addressed_builder.set_msg("Test Content")
    addressed_builder.sent_date = expected

    message = addressed_builder.build()

    assert message.get_sent_date() == expected
    assert message.get_sent_date().tzinfo is None


def test_sent_date_defaults_to_build_time(addressed_builder):
    before = datetime.now()
    message = addressed_builder.build()
    after = datetime.now()

    assert before <= message.get_sent_date() <= after


def test_socket_connection_timeout_round_trip(addressed_builder):
    addressed_builder.socket_connection_timeout = 10

    assert addressed_builder.socket_connection_timeout == 10


def test_negative_timeout_is_rejected(builder):
    with pytest.raises(InvalidArgument):
        builder.socket_connection_timeout = -1

    assert builder.socket_connection_timeout == 60_000


def test_session_carries_settings(addressed_builder):
    addressed_builder.socket_connection_timeout = 10
    addressed_builder.socket_timeout = 20
    addressed_builder.bounce_address = "bounce@example.com"

    session = addressed_builder.get_session()

    assert session.host == "localhost"
    assert session.port == 25
    assert session.connection_timeout_ms == 10
    assert session.timeout_ms == 20
    assert session.bounce_address == "bounce@example.com"


def test_session_uses_ssl_port(addressed_builder):
    addressed_builder.ssl_on_connect = True
    addressed_builder.ssl_smtp_port = 2465

    assert addressed_builder.get_session().port == 2465


def test_session_available_after_build(addressed_builder):
    addressed_builder.build()

    assert addressed_builder.get_session().host == "localhost"


def test_mutators_fail_after_build(addressed_builder):
    addressed_builder.build()

    with pytest.raises(AlreadyBuiltError):
        addressed_builder.add_to("late@example.com")
    with pytest.raises(AlreadyBuiltError):
        addressed_builder.subject = "late"

    assert len(addressed_builder.to_addresses) == 1
    assert addressed_builder.subject is None


def test_state_transitions(builder):
    assert builder.state is BuilderState.EMPTY

    builder.host_name = "localhost"
    assert builder.state is BuilderState.CONFIGURING

    builder.build()
    assert builder.state is BuilderState.BUILT
    assert builder.is_built


def test_builder_uses_injected_collaborators():
    class RecordingLibrary:
        def __init__(self) -> None:
            self.calls: list[dict] = []

        def create_message(self, **fields):
            self.calls.append(fields)
            return "built"

        def create_session(self, **settings):
            return settings

    class UpperParser:
        def parse(self, raw):
            return Address(addr_spec=raw.upper())

    library = RecordingLibrary()
    builder = MessageBuilder(address_parser=UpperParser(), library=library)
    builder.host_name = "mail.example.com"
    builder.add_to("a@example.com")

    assert builder.build() == "built"
    assert library.calls[0]["to"][0].addr_spec == "A@EXAMPLE.COM"
    assert library.calls[0]["content_type"] == "text/plain"
    assert builder.get_session()["host_name"] == "mail.example.com"
