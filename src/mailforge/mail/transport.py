"""Abstract mail transport.

A transport receives a finished :class:`email.message.EmailMessage` and
delivers it. Builders never talk to sockets directly; they hand the message
to a transport obtained from their session or attached explicitly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from email.message import EmailMessage


class MailTransport(ABC):
    """Interface for synchronous mail delivery backends."""

    @abstractmethod
    def send(
        self,
        message: EmailMessage,
        *,
        from_addr: str | None = None,
        to_addrs: Sequence[str] | None = None,
    ) -> None:
        """Deliver *message*.

        Args:
            message: The message to deliver.
            from_addr: Envelope sender. Defaults to the message's ``From``.
            to_addrs: Envelope recipients. Defaults to the addresses in the
                message's ``To``, ``Cc`` and ``Bcc`` headers.

        Raises:
            MailTransportError: If delivery fails.
        """


__all__ = ["MailTransport"]
