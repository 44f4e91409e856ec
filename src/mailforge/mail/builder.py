"""Email builder with a one-shot build guarantee.

:class:`Email` accumulates addressing fields, headers, subject, body and
delivery settings, then constructs a :class:`MimeMessage` exactly once.
Field-level validation happens when a value is set; cross-field validation
(sender present, at least one recipient, resolvable host) happens in
:meth:`Email.build`.

A builder belongs to a single caller and is not safe for concurrent use
from several threads.

Examples:
    >>> message = (
    ...     SimpleEmail()
    ...     .set_host_name("smtp.example.com")
    ...     .set_from("sender@example.com")
    ...     .add_to("alice@example.com", "bob@example.org")
    ...     .set_subject("Hello")
    ...     .set_msg("Plain text body")
    ...     .build()
    ... )
    >>> message.get_header("Subject")
    ['Hello']
"""

from __future__ import annotations

import codecs
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

from mailforge.logging import TRACE_LEVEL
from mailforge.mail.address import Address, parse_addresses
from mailforge.mail.exceptions import (
    AlreadyBuiltError,
    InvalidAddressError,
    InvalidArgumentError,
    MailConfigurationError,
    MailTransportError,
    MailValidationError,
    MissingRecipientError,
    MissingSenderError,
)
from mailforge.mail.message import MimeMessage, RecipientType, split_content_type
from mailforge.mail.session import DEFAULT_SMTP_PORT, DEFAULT_SSL_SMTP_PORT, SOCKET_TIMEOUT_MS, MailSession
from mailforge.mail.transports.smtp import SMTPCredentials, SMTPSecurity

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mailforge.mail.transport import MailTransport

log = logging.getLogger(__name__)


class BuildState(str, Enum):
    """Lifecycle of a builder.

    Attributes:
        UNBUILT: Fields may be set; :meth:`Email.build` has not succeeded yet.
        BUILT: The message exists; building again is an error.
    """

    UNBUILT = "unbuilt"
    BUILT = "built"


def _is_address_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(value, (str, Address))


def _check_single_line(label: str, value: str) -> None:
    if "\r" in value or "\n" in value:
        raise InvalidArgumentError(f"{label} must not contain line breaks")


def _check_header(name: str, value: str) -> None:
    if not name:
        raise InvalidArgumentError("name can not be null or empty")
    if not value:
        raise InvalidArgumentError("value can not be null or empty")
    _check_single_line("Header name", name)
    _check_single_line("Header value", value)


def _check_port(port: int) -> int:
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise InvalidArgumentError(f"Cannot connect to a port number that is out of range: {port!r}")
    return port


def _check_timeout(timeout: int) -> int:
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
        raise InvalidArgumentError(f"Timeout must be a positive number of milliseconds: {timeout!r}")
    return timeout


class Email(ABC):
    """Base email builder.

    Subclasses decide how a plain message body is set by implementing
    :meth:`set_msg`. Mutators return the builder so calls can be chained.
    """

    def __init__(self) -> None:
        self._from: Address | None = None
        self._to: list[Address] = []
        self._cc: list[Address] = []
        self._bcc: list[Address] = []
        self._reply_to: list[Address] = []
        self._headers: dict[str, str] = {}

        self._subject: str | None = None
        self._charset: str | None = None
        self._content: str | bytes | None = None
        self._content_type: str | None = None
        self._sent_date: datetime | None = None

        self._host_name: str | None = None
        self._smtp_port = DEFAULT_SMTP_PORT
        self._ssl_smtp_port = DEFAULT_SSL_SMTP_PORT
        self._socket_connection_timeout = SOCKET_TIMEOUT_MS
        self._socket_timeout = SOCKET_TIMEOUT_MS
        self._bounce_address: str | None = None
        self._authentication: SMTPCredentials | None = None
        self._ssl_on_connect = False
        self._start_tls_enabled = False
        self._start_tls_required = False

        self._mail_session: MailSession | None = None
        self._derived_session: MailSession | None = None
        self._transport: MailTransport | None = None

        self._state = BuildState.UNBUILT
        self._mime_message: MimeMessage | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None = None) -> Email:
        """Create a builder whose session comes from the ``mail.smtp`` config."""
        email = cls()
        email.set_mail_session(MailSession.from_config(config))
        return email

    @abstractmethod
    def set_msg(self, msg: str) -> Email:
        """Set the message body from plain text."""

    # ------------------------------------------------------------------
    # Addressing
    # ------------------------------------------------------------------

    def set_from(self, address: str | Address, name: str | None = None) -> Email:
        """Set the sender.

        Raises:
            InvalidAddressError: If *address* is invalid.
        """
        self._from = Address.parse(address, name)
        return self

    def add_to(self, *addresses: str | Address, name: str | None = None) -> Email:
        """Append one or more ``To`` recipients (all or nothing)."""
        self._to.extend(self._parse_batch(addresses, name))
        return self

    def add_cc(self, *addresses: str | Address, name: str | None = None) -> Email:
        """Append one or more ``Cc`` recipients (all or nothing)."""
        self._cc.extend(self._parse_batch(addresses, name))
        return self

    def add_bcc(self, *addresses: str | Address, name: str | None = None) -> Email:
        """Append one or more ``Bcc`` recipients (all or nothing)."""
        self._bcc.extend(self._parse_batch(addresses, name))
        return self

    def add_reply_to(self, *addresses: str | Address, name: str | None = None) -> Email:
        """Append one or more ``Reply-To`` addresses (all or nothing)."""
        self._reply_to.extend(self._parse_batch(addresses, name))
        return self

    def set_to(self, addresses: Iterable[str | Address]) -> Email:
        """Replace the ``To`` list."""
        self._to = self._parse_replacement(addresses)
        return self

    def set_cc(self, addresses: Iterable[str | Address]) -> Email:
        """Replace the ``Cc`` list."""
        self._cc = self._parse_replacement(addresses)
        return self

    def set_bcc(self, addresses: Iterable[str | Address]) -> Email:
        """Replace the ``Bcc`` list."""
        self._bcc = self._parse_replacement(addresses)
        return self

    def set_reply_to(self, addresses: Iterable[str | Address]) -> Email:
        """Replace the ``Reply-To`` list."""
        self._reply_to = self._parse_replacement(addresses)
        return self

    @staticmethod
    def _parse_batch(addresses: tuple[Any, ...], name: str | None) -> list[Address]:
        if len(addresses) == 1 and _is_address_collection(addresses[0]):
            addresses = tuple(addresses[0])
        if not addresses:
            raise InvalidArgumentError("At least one address is required")
        if name is not None:
            if len(addresses) > 1:
                raise InvalidArgumentError("A display name can only be given for a single address")
            return [Address.parse(addresses[0], name)]
        return parse_addresses(addresses)

    @staticmethod
    def _parse_replacement(addresses: Iterable[str | Address]) -> list[Address]:
        if not _is_address_collection(addresses):
            addresses = [addresses]  # type: ignore[list-item]
        parsed = parse_addresses(addresses)
        if not parsed:
            raise InvalidAddressError(addresses, "address list is empty")
        return parsed

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def add_header(self, name: str, value: str) -> Email:
        """Set header *name* to *value*, replacing any previous value.

        Headers are applied after every structural field when the message
        is built, so a header named like one of them (``Subject``, ``To``)
        wins over the value set through the typed setter.

        Raises:
            InvalidArgumentError: If *name* or *value* is empty or spans
                several lines.
        """
        _check_header(name, value)
        self._headers[name] = value
        return self

    def set_headers(self, headers: Mapping[str, str]) -> Email:
        """Replace every header; all pairs are validated before any is kept."""
        staged = dict(headers)
        for name, value in staged.items():
            _check_header(name, value)
        self._headers = staged
        return self

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def set_subject(self, subject: str | None) -> Email:
        if subject is not None:
            _check_single_line("Subject", subject)
        self._subject = subject
        return self

    def set_charset(self, charset: str | None) -> Email:
        """Set the body charset.

        Raises:
            InvalidArgumentError: If *charset* is not a known codec.
        """
        if charset is not None:
            try:
                codecs.lookup(charset)
            except LookupError as e:
                raise InvalidArgumentError(f"Unknown charset: {charset!r}") from e
        self._charset = charset
        return self

    def set_content(self, content: str | bytes, content_type: str = "text/plain") -> Email:
        """Set the body and its MIME type.

        A ``charset`` parameter in *content_type* becomes the builder
        charset when none was set explicitly.
        """
        if not content_type:
            raise InvalidArgumentError("content type can not be null or empty")
        _, _, type_charset = split_content_type(content_type)
        if type_charset and self._charset is None:
            self.set_charset(type_charset)
        self._content = content
        self._content_type = content_type
        return self

    def set_sent_date(self, sent_date: datetime | None) -> Email:
        self._sent_date = sent_date
        return self

    # ------------------------------------------------------------------
    # Delivery settings
    # ------------------------------------------------------------------

    def set_host_name(self, host_name: str | None) -> Email:
        self._host_name = host_name or None
        self._derived_session = None
        return self

    def set_smtp_port(self, port: int) -> Email:
        self._smtp_port = _check_port(port)
        self._derived_session = None
        return self

    def set_ssl_smtp_port(self, port: int) -> Email:
        self._ssl_smtp_port = _check_port(port)
        self._derived_session = None
        return self

    def set_socket_connection_timeout(self, timeout_ms: int) -> Email:
        self._socket_connection_timeout = _check_timeout(timeout_ms)
        self._derived_session = None
        return self

    def set_socket_timeout(self, timeout_ms: int) -> Email:
        self._socket_timeout = _check_timeout(timeout_ms)
        self._derived_session = None
        return self

    def set_bounce_address(self, address: str | None) -> Email:
        """Set the envelope sender that receives bounces.

        Raises:
            InvalidAddressError: If *address* is invalid.
        """
        self._bounce_address = Address.parse(address).email if address is not None else None
        self._derived_session = None
        return self

    def set_authentication(self, username: str, password: str) -> Email:
        if not username:
            raise InvalidArgumentError("username can not be null or empty")
        self._authentication = SMTPCredentials(username=username, password=password)
        self._derived_session = None
        return self

    def set_ssl_on_connect(self, enabled: bool) -> Email:
        self._ssl_on_connect = enabled
        self._derived_session = None
        return self

    def set_start_tls_enabled(self, enabled: bool) -> Email:
        self._start_tls_enabled = enabled
        self._derived_session = None
        return self

    def set_start_tls_required(self, required: bool) -> Email:
        self._start_tls_required = required
        self._derived_session = None
        return self

    def set_mail_session(self, session: MailSession | None) -> Email:
        """Attach an explicit session, or detach it with ``None``."""
        self._mail_session = session
        return self

    def transport(self, transport: MailTransport | None) -> Email:
        """Attach a transport used by :meth:`send` instead of the session's."""
        self._transport = transport
        return self

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def from_address(self) -> Address | None:
        return self._from

    @property
    def to_addresses(self) -> list[Address]:
        return list(self._to)

    @property
    def cc_addresses(self) -> list[Address]:
        return list(self._cc)

    @property
    def bcc_addresses(self) -> list[Address]:
        return list(self._bcc)

    @property
    def reply_to_addresses(self) -> list[Address]:
        return list(self._reply_to)

    @property
    def headers(self) -> dict[str, str]:
        """A copy of the custom headers."""
        return dict(self._headers)

    @property
    def subject(self) -> str | None:
        return self._subject

    @property
    def charset(self) -> str | None:
        return self._charset

    @property
    def content(self) -> str | bytes | None:
        return self._content

    @property
    def content_type(self) -> str | None:
        return self._content_type

    @property
    def host_name(self) -> str | None:
        """Explicit host name, else the attached session's host, else ``None``."""
        if self._host_name:
            return self._host_name
        if self._mail_session is not None:
            return self._mail_session.host
        return None

    @property
    def smtp_port(self) -> int:
        return self._smtp_port

    @property
    def ssl_smtp_port(self) -> int:
        return self._ssl_smtp_port

    @property
    def socket_connection_timeout(self) -> int:
        """Connect timeout in milliseconds (default 60000)."""
        return self._socket_connection_timeout

    @property
    def socket_timeout(self) -> int:
        """Read timeout in milliseconds (default 60000)."""
        return self._socket_timeout

    @property
    def bounce_address(self) -> str | None:
        return self._bounce_address

    @property
    def sent_date(self) -> datetime:
        """The explicit sent date, or the current UTC time at each read."""
        if self._sent_date is not None:
            return self._sent_date
        return datetime.now(timezone.utc)

    @property
    def mail_session(self) -> MailSession:
        """The attached session, or one derived from the builder settings.

        A derived session is cached until a delivery setting changes. It
        may lack a host; :meth:`build` reports that.
        """
        if self._mail_session is not None:
            return self._mail_session
        if self._derived_session is None:
            self._derived_session = self._derive_session()
        return self._derived_session

    @property
    def state(self) -> BuildState:
        return self._state

    @property
    def is_built(self) -> bool:
        return self._state is BuildState.BUILT

    @property
    def mime_message(self) -> MimeMessage | None:
        """The built message, ``None`` until :meth:`build` succeeds."""
        return self._mime_message

    def _derive_session(self) -> MailSession:
        port = self._ssl_smtp_port if self._ssl_on_connect else self._smtp_port
        session = MailSession(
            host=self._host_name,
            port=port,
            connection_timeout=self._socket_connection_timeout,
            timeout=self._socket_timeout,
            credentials=self._authentication,
            security=SMTPSecurity(
                use_ssl=self._ssl_on_connect,
                use_starttls=self._start_tls_enabled or self._start_tls_required,
                require_starttls=self._start_tls_required,
            ),
            bounce_address=self._bounce_address,
        )
        if log.isEnabledFor(TRACE_LEVEL):
            log.log(TRACE_LEVEL, "Derived mail session host=%s port=%s", session.host, session.port)
        return session

    def _resolve_session(self) -> MailSession:
        """Return :attr:`mail_session` carrying the :attr:`host_name` host.

        Raises:
            MailConfigurationError: If no host can be resolved.
        """
        session = self.mail_session
        host = self.host_name
        if not host:
            raise MailConfigurationError("Cannot find valid hostname for mail session")
        if session.host != host:
            session = replace(session, host=host)
        return session

    # ------------------------------------------------------------------
    # Build and send
    # ------------------------------------------------------------------

    def build(self) -> MimeMessage:
        """Construct the message. Succeeds at most once per builder.

        Headers are applied last so they override structural fields of the
        same name. A ``Message-ID`` is generated when none was given.

        Returns:
            The built :class:`MimeMessage`, also kept as :attr:`mime_message`.

        Raises:
            AlreadyBuiltError: If the message was already built.
            MissingSenderError: If no sender is set.
            MissingRecipientError: If no To, Cc or Bcc recipient is set.
            MailConfigurationError: If no host can be resolved.
        """
        if self._state is BuildState.BUILT:
            raise AlreadyBuiltError()

        if self._from is None:
            raise MissingSenderError()
        if not (self._to or self._cc or self._bcc):
            raise MissingRecipientError()

        session = self._resolve_session()

        message = MimeMessage()
        message.set_from(self._from)
        message.add_recipients(RecipientType.TO, self._to)
        message.add_recipients(RecipientType.CC, self._cc)
        message.add_recipients(RecipientType.BCC, self._bcc)
        message.set_reply_to(self._reply_to)
        if self._subject:
            message.set_subject(self._subject)
        if self._content is not None:
            message.set_content(self._content, self._content_type or "text/plain", self._charset)
        else:
            message.set_content("", "text/plain", self._charset)
        message.set_sent_date(self.sent_date)

        for name, value in self._headers.items():
            message.set_header(name, value)

        message.save_changes(domain=session.host)

        self._mime_message = message
        self._state = BuildState.BUILT
        log.debug(
            "Built message %s for %d recipient(s)",
            message.message_id,
            len(self._to) + len(self._cc) + len(self._bcc),
        )
        return message

    def send_mime_message(self) -> str | None:
        """Deliver the built message.

        The envelope sender is the bounce address when set (on the builder
        or its session), otherwise the ``From`` address. Envelope
        recipients are all To, Cc and Bcc addresses.

        Returns:
            The ``Message-ID`` of the delivered message.

        Raises:
            MailValidationError: If :meth:`build` has not been called.
            MailConfigurationError: If no transport can be resolved.
            MailTransportError: If delivery fails.
        """
        message = self._mime_message
        if message is None or self._from is None:
            raise MailValidationError("The message has not been built yet")

        session = self.mail_session
        transport = self._transport or self._resolve_session().get_transport()
        envelope_from = self._bounce_address or session.bounce_address or self._from.email
        envelope_to = [address.email for address in message.all_recipients()]

        try:
            transport.send(message.as_email_message(), from_addr=envelope_from, to_addrs=envelope_to)
        except MailTransportError:
            log.error("Sending message %s failed", message.message_id)
            raise

        log.info("Message %s sent to %d recipient(s)", message.message_id, len(envelope_to))
        return message.message_id

    def send(self) -> str | None:
        """Build the message and deliver it.

        Returns:
            The ``Message-ID`` of the delivered message.
        """
        self.build()
        return self.send_mime_message()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(from={self._from!r}, to={len(self._to)}, cc={len(self._cc)}, "
            f"bcc={len(self._bcc)}, state={self._state.value})"
        )


class SimpleEmail(Email):
    """Builder for plain-text messages."""

    def set_msg(self, msg: str) -> SimpleEmail:
        """Set a ``text/plain`` body.

        Raises:
            InvalidArgumentError: If *msg* is empty.
        """
        if not msg:
            raise InvalidArgumentError("Invalid message supplied")
        self.set_content(msg, "text/plain")
        return self


__all__ = ["BuildState", "Email", "SimpleEmail"]
