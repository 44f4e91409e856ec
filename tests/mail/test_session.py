"""Tests for mail session configuration."""

from __future__ import annotations

from typing import Any

import pytest
from box import Box

from mailforge.config import ConfigNotLoadedError, load_from_mapping
from mailforge.mail import MailConfigurationError, MailSession, SimpleEmail, SMTPSecurity, SMTPTransport
from mailforge.mail.session import HARD_MAX_TIMEOUT_MS, HARD_MIN_TIMEOUT_MS


class TestMailSession:
    """Construction and host resolution."""

    def test_defaults(self) -> None:
        """A bare session uses port 25, 60 s timeouts and the transport TLS defaults."""
        session = MailSession()
        assert session.host is None
        assert session.port == 25
        assert session.connection_timeout == 60000
        assert session.timeout == 60000
        assert session.security == SMTPSecurity()
        assert session.security.use_starttls is True

    def test_is_frozen(self) -> None:
        """Sessions are immutable."""
        session = MailSession(host="smtp.example.com")
        with pytest.raises(AttributeError):
            session.host = "other"  # type: ignore[misc]

    def test_host_from_mail_host_property(self) -> None:
        """``mail.host`` is used when no host is given."""
        assert MailSession.from_properties({"mail.host": "mail.fakehost.com"}).host == "mail.fakehost.com"

    def test_smtp_host_property_preferred(self) -> None:
        """``mail.smtp.host`` wins over ``mail.host``."""
        session = MailSession.from_properties({"mail.host": "generic.example.com", "mail.smtp.host": "smtp.example.com"})
        assert session.host == "smtp.example.com"

    def test_from_properties_reads_settings(self) -> None:
        """Port, timeouts, TLS, sender and login are parsed."""
        session = MailSession.from_properties(
            {
                "mail.smtp.host": "smtp.example.com",
                "mail.smtp.port": "587",
                "mail.smtp.connectiontimeout": "5000",
                "mail.smtp.timeout": "7000",
                "mail.smtp.starttls.enable": "true",
                "mail.smtp.from": "bounce@example.com",
                "mail.smtp.user": "user",
                "mail.smtp.password": "secret",
            }
        )
        assert session.port == 587
        assert session.connection_timeout == 5000
        assert session.timeout == 7000
        assert session.security.use_starttls is True
        assert session.bounce_address == "bounce@example.com"
        assert session.credentials is not None
        assert session.credentials.username == "user"

    def test_password_hidden_from_repr(self) -> None:
        """Credentials never print the password."""
        session = MailSession.from_properties({"mail.smtp.user": "user", "mail.smtp.password": "secret"})
        assert "secret" not in repr(session)

    def test_invalid_port_property(self) -> None:
        """A non-numeric port is a configuration error."""
        with pytest.raises(MailConfigurationError):
            MailSession.from_properties({"mail.smtp.port": "abc"})


class TestSessionTransport:
    """Transport derivation."""

    def test_get_transport(self) -> None:
        """The transport mirrors the session and converts the timeout."""
        session = MailSession(host="smtp.example.com", port=2525, connection_timeout=5000, timeout=8000)
        transport = session.get_transport()
        assert isinstance(transport, SMTPTransport)
        assert transport.host == "smtp.example.com"
        assert transport.port == 2525
        assert transport.timeout == 8.0

    def test_default_security_matches_transport(self) -> None:
        """A bare session and a bare transport negotiate TLS the same way."""
        transport = MailSession(host="smtp.example.com").get_transport()
        assert transport.security == SMTPTransport("smtp.example.com").security

    def test_get_transport_without_host(self) -> None:
        """A session without host cannot produce a transport."""
        with pytest.raises(MailConfigurationError, match="hostname"):
            MailSession().get_transport()


class TestSessionFromConfig:
    """Building sessions from the ``mail.smtp`` configuration section."""

    def test_reads_smtp_section(self) -> None:
        """Values are read from an explicit mapping."""
        config = {
            "mail": {
                "smtp": {
                    "host": "smtp.example.com",
                    "port": 587,
                    "start_tls": True,
                    "username": "user",
                    "password": "pass",
                    "bounce_address": "bounces@example.com",
                }
            }
        }
        session = MailSession.from_config(config)
        assert session.host == "smtp.example.com"
        assert session.port == 587
        assert session.security.use_starttls is True
        assert session.credentials is not None
        assert session.bounce_address == "bounces@example.com"

    def test_ssl_port_used_with_ssl_on_connect(self) -> None:
        """Implicit TLS selects ``ssl_port``."""
        config = {"mail": {"smtp": {"host": "h.example.com", "ssl_on_connect": True, "ssl_port": 2465}}}
        session = MailSession.from_config(config)
        assert session.port == 2465
        assert session.security.use_ssl is True

    def test_timeouts_clamped(self) -> None:
        """Out-of-bounds timeouts are clamped to the hard limits."""
        config = {"mail": {"smtp": {"connection_timeout": 1, "timeout": 10**9}}}
        session = MailSession.from_config(config)
        assert session.connection_timeout == HARD_MIN_TIMEOUT_MS
        assert session.timeout == HARD_MAX_TIMEOUT_MS

    def test_empty_config_uses_defaults(self) -> None:
        """Missing sections fall back to defaults."""
        session = MailSession.from_config({})
        assert session.host is None
        assert session.port == 25

    def test_accepts_box(self) -> None:
        """A Box configuration works like a dict."""
        session = MailSession.from_config(Box({"mail": {"smtp": {"host": "boxed.example.com"}}}))
        assert session.host == "boxed.example.com"

    def test_uses_loaded_config(self) -> None:
        """Without an argument, the loaded configuration is used."""
        load_from_mapping({"mail": {"smtp": {"host": "loaded.example.com", "port": 2525}}})
        session = MailSession.from_config()
        assert (session.host, session.port) == ("loaded.example.com", 2525)

    def test_requires_loaded_config(self) -> None:
        """Without an argument and nothing loaded, the error is explicit."""
        with pytest.raises(ConfigNotLoadedError):
            MailSession.from_config()

    def test_email_from_config(self) -> None:
        """The builder factory attaches the configured session."""
        email = SimpleEmail.from_config({"mail": {"smtp": {"host": "cfg.example.com"}}})
        assert isinstance(email, SimpleEmail)
        assert email.host_name == "cfg.example.com"
        email.set_from("a@b.com").add_to("c@d.com")
        assert email.build() is not None

    def test_email_from_config_without_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A host set on the builder completes a config that has none."""
        connections: list[tuple[str, int]] = []

        class RecordingSMTP:
            """SMTP stand-in recording where it connects."""

            def __init__(self, **kwargs: Any) -> None:
                connections.append((kwargs["host"], kwargs["port"]))

            def __enter__(self) -> RecordingSMTP:
                return self

            def __exit__(self, *exc: Any) -> None:
                return None

            def ehlo(self) -> None:
                """Accept EHLO."""

            def has_extn(self, name: str) -> bool:
                """Advertise nothing."""
                return False

            def send_message(self, message: Any, from_addr: Any = None, to_addrs: Any = None) -> None:
                """Accept the message."""

        monkeypatch.setattr("mailforge.mail.transports.smtp.smtplib.SMTP", RecordingSMTP)

        email = SimpleEmail.from_config({"mail": {"smtp": {"port": 2525}}})
        assert email.mail_session.host is None
        email.set_host_name("host.backup.com")
        email.set_from("a@b.com").add_to("c@d.com").set_msg("hi")

        message_id = email.send()

        assert message_id is not None
        assert message_id.endswith("@host.backup.com>")
        assert connections == [("host.backup.com", 2525)]
