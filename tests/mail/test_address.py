"""Tests for the validated address value."""

from __future__ import annotations

import pytest

from mailforge.mail import Address, InvalidAddressError, parse_addresses


class TestAddressParse:
    """Validation performed by ``Address.parse``."""

    @pytest.mark.parametrize(
        "value",
        ["alice@example.com", "bob@work.org", "user123456789@longdomainnameexample.co.uk", "root@localhost"],
    )
    def test_valid_addresses(self, value: str) -> None:
        """Plain addr-specs are accepted unchanged."""
        assert Address.parse(value).email == value

    @pytest.mark.parametrize("value", ["", "  ", "no-at-sign", "@example.com", "two@@example.com"])
    def test_invalid_addresses(self, value: str) -> None:
        """Empty or malformed addresses are rejected."""
        with pytest.raises(InvalidAddressError):
            Address.parse(value)

    def test_non_string_rejected(self) -> None:
        """Only strings and Address values are accepted."""
        with pytest.raises(InvalidAddressError, match="expected a string"):
            Address.parse(42)  # type: ignore[arg-type]

    def test_surrounding_whitespace_stripped(self) -> None:
        """Leading and trailing blanks are ignored."""
        assert Address.parse("  alice@example.com ").email == "alice@example.com"

    def test_multiline_name_rejected(self) -> None:
        """Display names cannot carry line breaks."""
        with pytest.raises(InvalidAddressError):
            Address.parse("alice@example.com", "Alice\nBcc: x@y.com")

    def test_error_keeps_offending_input(self) -> None:
        """The exception exposes what was rejected."""
        with pytest.raises(InvalidAddressError) as exc_info:
            Address.parse("")
        assert exc_info.value.address == ""

    def test_address_instance_passthrough(self) -> None:
        """An Address is returned as is unless a new name is given."""
        address = Address("alice@example.com", "Alice")
        assert Address.parse(address) is address
        assert Address.parse(address, "Ally").name == "Ally"

    def test_empty_name_normalized(self) -> None:
        """An empty display name is stored as None."""
        assert Address.parse("alice@example.com", "").name is None


class TestAddressFormatting:
    """Header rendering of addresses."""

    def test_str_without_name(self) -> None:
        """A bare address renders as the addr-spec."""
        assert str(Address("alice@example.com")) == "alice@example.com"

    def test_str_with_name(self) -> None:
        """A display name is rendered before the angle-addr."""
        assert str(Address("replyto@mail.net", "Reply User")) == "Reply User <replyto@mail.net>"

    def test_str_quotes_special_characters(self) -> None:
        """Names with specials are quoted."""
        assert str(Address("doe@example.com", "Doe, John")) == '"Doe, John" <doe@example.com>'

    def test_to_header(self) -> None:
        """Conversion to the email package type keeps both parts."""
        header = Address("alice@example.com", "Alice").to_header()
        assert header.addr_spec == "alice@example.com"
        assert header.display_name == "Alice"


class TestParseAddresses:
    """Batch validation."""

    def test_all_valid(self) -> None:
        """Every entry is converted in order."""
        parsed = parse_addresses(["a@example.com", Address("b@example.com")])
        assert [a.email for a in parsed] == ["a@example.com", "b@example.com"]

    def test_one_invalid_fails_whole_batch(self) -> None:
        """A single bad entry raises."""
        with pytest.raises(InvalidAddressError):
            parse_addresses(["a@example.com", ""])
