"""Transport-level message built by :class:`mailforge.mail.Email`.

:class:`MimeMessage` wraps :class:`email.message.EmailMessage` behind the
small set of operations the builder needs. Header writes always replace any
existing value, so the last writer wins.
"""

from __future__ import annotations

from datetime import datetime
from email import policy, utils
from email.message import EmailMessage, Message
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mailforge.mail.address import Address

DEFAULT_CHARSET = "utf-8"


class RecipientType(str, Enum):
    """Recipient classes and the header each one maps to.

    Attributes:
        TO: Primary recipients (``To``).
        CC: Carbon-copy recipients (``Cc``).
        BCC: Blind carbon-copy recipients (``Bcc``).
    """

    TO = "To"
    CC = "Cc"
    BCC = "Bcc"


def split_content_type(content_type: str) -> tuple[str, str, str | None]:
    """Split a content type into ``(maintype, subtype, charset)``.

    Examples:
        >>> split_content_type("text/html; charset=ISO-8859-1")
        ('text', 'html', 'ISO-8859-1')
        >>> split_content_type("text/plain")
        ('text', 'plain', None)
    """
    probe = Message()
    probe["Content-Type"] = content_type
    charset = probe.get_param("charset")
    return probe.get_content_maintype(), probe.get_content_subtype(), charset if isinstance(charset, str) else None


class MimeMessage:
    """A single outgoing message.

    Bcc recipients are tracked separately and are never written to the
    headers; they only show up in :meth:`all_recipients`.
    """

    def __init__(self) -> None:
        self._message = EmailMessage(policy=policy.SMTP)
        self._recipients: dict[RecipientType, list[Address]] = {kind: [] for kind in RecipientType}

    def set_from(self, address: Address) -> None:
        self.set_header("From", str(address))

    def add_recipients(self, kind: RecipientType, addresses: Iterable[Address]) -> None:
        """Append *addresses* to the *kind* recipient list."""
        self._recipients[kind].extend(addresses)
        if kind is not RecipientType.BCC and self._recipients[kind]:
            self.set_header(kind.value, ", ".join(str(address) for address in self._recipients[kind]))

    def set_reply_to(self, addresses: Iterable[Address]) -> None:
        addresses = list(addresses)
        if addresses:
            self.set_header("Reply-To", ", ".join(str(address) for address in addresses))

    def set_subject(self, subject: str) -> None:
        self.set_header("Subject", subject)

    def set_content(self, content: str | bytes, content_type: str = "text/plain", charset: str | None = None) -> None:
        """Set the message body.

        Text bodies are encoded with *charset* (falling back to the charset
        parameter of *content_type*, then UTF-8). Non-text string bodies
        are encoded with the same charset and attached as bytes.
        """
        maintype, subtype, type_charset = split_content_type(content_type)
        charset = charset or type_charset or DEFAULT_CHARSET

        if maintype == "text" and isinstance(content, str):
            self._message.set_content(content, subtype=subtype, charset=charset)
            return

        payload = content.encode(charset) if isinstance(content, str) else content
        self._message.set_content(payload, maintype=maintype, subtype=subtype)

    def set_header(self, name: str, value: str) -> None:
        """Set header *name* to *value*, replacing every previous occurrence."""
        del self._message[name]
        self._message[name] = value

    def get_header(self, name: str) -> list[str]:
        """Return every value of header *name* (empty list when absent)."""
        return [str(value) for value in self._message.get_all(name, [])]

    def set_sent_date(self, sent_date: datetime) -> None:
        self.set_header("Date", utils.format_datetime(sent_date))

    def save_changes(self, domain: str | None = None) -> None:
        """Finalize the message, adding a ``Message-ID`` when none is set."""
        if self._message["Message-ID"] is None:
            self._message["Message-ID"] = utils.make_msgid(domain=domain)

    @property
    def message_id(self) -> str | None:
        value = self._message["Message-ID"]
        return str(value) if value is not None else None

    def recipients(self, kind: RecipientType) -> list[Address]:
        return list(self._recipients[kind])

    def all_recipients(self) -> list[Address]:
        """Return To, Cc and Bcc recipients in that order."""
        return [address for kind in RecipientType for address in self._recipients[kind]]

    def as_email_message(self) -> EmailMessage:
        """Return the underlying :class:`EmailMessage` (not a copy)."""
        return self._message

    def as_bytes(self) -> bytes:
        return self._message.as_bytes()

    def __repr__(self) -> str:
        return f"MimeMessage(subject={self._message['Subject']!r}, message_id={self.message_id!r})"


__all__ = ["DEFAULT_CHARSET", "MimeMessage", "RecipientType", "split_content_type"]
