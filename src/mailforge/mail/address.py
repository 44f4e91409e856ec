"""Validated email address value.

Parsing is delegated to :class:`email.headerregistry.Address`; this module
only adds the checks the builder needs (non-empty, single line, local part
and domain present) and the batch helper used for all-or-nothing appends.
"""

from __future__ import annotations

from dataclasses import dataclass
from email import errors as email_errors
from email import headerregistry
from typing import TYPE_CHECKING

from mailforge.mail.exceptions import InvalidAddressError

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True, slots=True)
class Address:
    """An email address with an optional display name.

    Attributes:
        email: The addr-spec, e.g. ``alice@example.com``.
        name: Optional display name, e.g. ``Alice``.

    Examples:
        >>> Address.parse("alice@example.com", "Alice")
        Address(email='alice@example.com', name='Alice')
        >>> str(Address.parse("bob@example.org"))
        'bob@example.org'
    """

    email: str
    name: str | None = None

    @classmethod
    def parse(cls, value: str | Address, name: str | None = None) -> Address:
        """Validate *value* and return an :class:`Address`.

        Args:
            value: A bare addr-spec string or an existing :class:`Address`.
            name: Display name. When *value* is an :class:`Address`, a
                non-``None`` name replaces its own.

        Raises:
            InvalidAddressError: If the address is empty, spans several
                lines or does not parse as ``local@domain``.
        """
        if isinstance(value, Address):
            if name is None:
                return value
            return cls.parse(value.email, name)

        if not isinstance(value, str):
            raise InvalidAddressError(value, "expected a string")

        email = value.strip()
        if not email:
            raise InvalidAddressError(value, "address is empty")
        if "\r" in email or "\n" in email:
            raise InvalidAddressError(value, "address must be a single line")
        if name is not None and ("\r" in name or "\n" in name):
            raise InvalidAddressError(value, "display name must be a single line")

        try:
            parsed = headerregistry.Address(addr_spec=email)
        except (ValueError, email_errors.HeaderParseError) as e:
            raise InvalidAddressError(value, str(e) or type(e).__name__) from e

        if not parsed.username or not parsed.domain:
            raise InvalidAddressError(value, "expected local@domain")

        return cls(email=parsed.addr_spec, name=name or None)

    def to_header(self) -> headerregistry.Address:
        """Return the :mod:`email` package representation of this address."""
        return headerregistry.Address(display_name=self.name or "", addr_spec=self.email)

    def __str__(self) -> str:
        return str(self.to_header())


def parse_addresses(values: Iterable[str | Address]) -> list[Address]:
    """Validate every entry of *values* before returning any of them.

    Raises:
        InvalidAddressError: On the first invalid entry; nothing is returned.
    """
    return [Address.parse(value) for value in values]


__all__ = ["Address", "parse_addresses"]
