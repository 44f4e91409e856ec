"""Exceptions raised by the mailforge.mail module.

Exception hierarchy::

    MailforgeError
        MailError (base for all mail errors)
            InvalidArgumentError (empty or malformed argument, also ValueError)
            InvalidAddressError (address failed validation, also ValueError)
            MailValidationError (message cannot be built as configured)
                MissingSenderError
                MissingRecipientError
            AlreadyBuiltError (second build on the same builder, also RuntimeError)
            MailConfigurationError (session or transport misconfigured)
            MailTransportError (delivery failed)
"""

from __future__ import annotations

from mailforge.config.exceptions import MailforgeError

ALREADY_BUILT_MESSAGE = "The message is already built."


class MailError(MailforgeError):
    """Base exception for all mail module errors."""


class InvalidArgumentError(MailError, ValueError):
    """An argument is empty or otherwise unusable.

    Raised for empty header names or values, out-of-range ports, unknown
    charsets and similar local precondition failures.
    """


class InvalidAddressError(MailError, ValueError):
    """An email address failed validation.

    Attributes:
        address: The offending input.
    """

    def __init__(self, address: object, reason: str) -> None:
        """Initialize InvalidAddressError.

        Args:
            address: The offending input.
            reason: Why it was rejected.
        """
        super().__init__(f"Invalid email address {address!r}: {reason}")
        self.address = address
        self.reason = reason


class MailValidationError(MailError):
    """The message cannot be built with the current fields."""


class MissingSenderError(MailValidationError):
    """No sender (``From``) address was set before building."""

    def __init__(self) -> None:
        """Initialize MissingSenderError."""
        super().__init__("From address required")


class MissingRecipientError(MailValidationError):
    """No To, Cc or Bcc recipient was set before building."""

    def __init__(self) -> None:
        """Initialize MissingRecipientError."""
        super().__init__("At least one receiver address required")


class AlreadyBuiltError(MailError, RuntimeError):
    """``build()`` was called on a builder that already built its message.

    This signals a programming error: a builder produces one message and
    must not be reused.
    """

    def __init__(self) -> None:
        """Initialize AlreadyBuiltError with its fixed message."""
        super().__init__(ALREADY_BUILT_MESSAGE)


class MailConfigurationError(MailError):
    """The mail session or transport is misconfigured."""


class MailTransportError(MailError):
    """The transport failed to deliver a message."""


__all__ = [
    "ALREADY_BUILT_MESSAGE",
    "AlreadyBuiltError",
    "InvalidAddressError",
    "InvalidArgumentError",
    "MailConfigurationError",
    "MailError",
    "MailTransportError",
    "MailValidationError",
    "MissingRecipientError",
    "MissingSenderError",
]
