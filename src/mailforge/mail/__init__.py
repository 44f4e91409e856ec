"""Email construction and delivery.

:class:`SimpleEmail` (a concrete :class:`Email`) collects addresses,
headers, subject and body, builds a :class:`MimeMessage` exactly once and
delivers it through the session's SMTP transport.

Examples:
    >>> from mailforge.mail import SimpleEmail
    >>> email = SimpleEmail().set_host_name("smtp.example.com")
    >>> email.set_from("sender@example.com").add_to("user@example.com")  # doctest: +ELLIPSIS
    SimpleEmail(...)
    >>> email.set_subject("Hi").set_msg("Hello").build()  # doctest: +ELLIPSIS
    MimeMessage(...)
"""

from mailforge.mail.address import Address, parse_addresses
from mailforge.mail.builder import BuildState, Email, SimpleEmail
from mailforge.mail.exceptions import (
    ALREADY_BUILT_MESSAGE,
    AlreadyBuiltError,
    InvalidAddressError,
    InvalidArgumentError,
    MailConfigurationError,
    MailError,
    MailTransportError,
    MailValidationError,
    MissingRecipientError,
    MissingSenderError,
)
from mailforge.mail.message import MimeMessage, RecipientType
from mailforge.mail.session import SOCKET_TIMEOUT_MS, MailSession
from mailforge.mail.transport import MailTransport
from mailforge.mail.transports import SMTPCredentials, SMTPSecurity, SMTPTransport

__all__ = [
    "ALREADY_BUILT_MESSAGE",
    "SOCKET_TIMEOUT_MS",
    "Address",
    "AlreadyBuiltError",
    "BuildState",
    "Email",
    "InvalidAddressError",
    "InvalidArgumentError",
    "MailConfigurationError",
    "MailError",
    "MailSession",
    "MailTransport",
    "MailTransportError",
    "MailValidationError",
    "MimeMessage",
    "MissingRecipientError",
    "MissingSenderError",
    "RecipientType",
    "SMTPCredentials",
    "SMTPSecurity",
    "SMTPTransport",
    "SimpleEmail",
    "parse_addresses",
]
