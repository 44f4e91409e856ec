"""Shared pytest fixtures for the mailforge test suite."""

from __future__ import annotations

# Disable Rich colors BEFORE any imports
import os

os.environ["NO_COLOR"] = "1"
os.environ["TERM"] = "dumb"

import logging
from collections.abc import Generator, Sequence
from datetime import datetime, timezone
from email.message import EmailMessage

import pytest

import mailforge.logging as mailforge_logging
from mailforge.config import clear_config
from mailforge.mail import Email, MailTransport, SimpleEmail

# pylint: disable=redefined-outer-name


class EmailConcrete(Email):
    """Minimal concrete builder exercising the abstract base directly."""

    def set_msg(self, msg: str) -> EmailConcrete:
        """Store *msg* as a plain-text body."""
        self.set_content(msg, "text/plain")
        return self


class FakeTransport(MailTransport):
    """In-memory transport recording every delivery."""

    def __init__(self) -> None:
        self.sent: list[tuple[EmailMessage, str | None, list[str] | None]] = []

    def send(
        self,
        message: EmailMessage,
        *,
        from_addr: str | None = None,
        to_addrs: Sequence[str] | None = None,
    ) -> None:
        """Record the message and its envelope."""
        self.sent.append((message, from_addr, list(to_addrs) if to_addrs is not None else None))


@pytest.fixture
def email() -> EmailConcrete:
    """Return a fresh concrete builder."""
    return EmailConcrete()


@pytest.fixture
def ready_email() -> SimpleEmail:
    """Return a builder with every field required for a successful build."""
    builder = SimpleEmail()
    builder.set_host_name("testhost.local").set_smtp_port(2525)
    builder.set_from("sender@demo.com").add_to("receiver@demo.com")
    builder.set_subject("Successful Build Test").set_content("This is a test email.", "text/plain")
    return builder


@pytest.fixture
def test_date() -> datetime:
    """A fixed sent date."""
    return datetime(2025, 4, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Return an empty recording transport."""
    return FakeTransport()


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None, None, None]:
    """Forget loaded configuration and logging setup between tests."""
    yield
    clear_config()
    mailforge_logging._root_logger = None  # pylint: disable=protected-access
    std_logger = logging.getLogger("mailforge")
    for handler in std_logger.handlers[:]:
        std_logger.removeHandler(handler)
    std_logger.setLevel(logging.NOTSET)
    std_logger.propagate = True
