"""Mail session: where and how messages are delivered.

A :class:`MailSession` bundles the SMTP host, ports, timeouts, credentials
and TLS flags. Builders derive one lazily from their own settings, or use
one attached explicitly, and ask it for a transport when sending.

Timeouts are expressed in milliseconds like the builder settings they come
from; :meth:`MailSession.get_transport` converts them for :mod:`smtplib`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mailforge.mail.exceptions import MailConfigurationError
from mailforge.mail.transports.smtp import SMTPCredentials, SMTPSecurity, SMTPTransport

if TYPE_CHECKING:
    from collections.abc import Mapping

log = logging.getLogger(__name__)

DEFAULT_SMTP_PORT = 25
DEFAULT_SSL_SMTP_PORT = 465
SOCKET_TIMEOUT_MS = 60000

# Hard bounds applied to timeouts read from configuration files
HARD_MIN_TIMEOUT_MS = 1000
HARD_MAX_TIMEOUT_MS = 600000

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _clamp_timeout(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        timeout = int(value)
    except (TypeError, ValueError) as e:
        raise MailConfigurationError(f"Invalid timeout value: {value!r}") from e
    return max(HARD_MIN_TIMEOUT_MS, min(timeout, HARD_MAX_TIMEOUT_MS))


def _as_port(value: Any, default: int) -> int:
    if value is None:
        return default
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise MailConfigurationError(f"Invalid port value: {value!r}") from e
    if not 0 < port < 65536:
        raise MailConfigurationError(f"Port out of range: {port}")
    return port


@dataclass(frozen=True, slots=True)
class MailSession:
    """Transport session configuration.

    Attributes:
        host: SMTP host. ``None`` means "look it up in *properties*".
        port: SMTP port.
        connection_timeout: Connect timeout in milliseconds.
        timeout: Socket read timeout in milliseconds.
        credentials: Optional SMTP login.
        security: TLS settings; defaults to :class:`SMTPSecurity` (opportunistic
            STARTTLS), the same default as :class:`SMTPTransport`.
        bounce_address: Envelope sender used instead of the ``From`` address.
        properties: Free-form dotted ``mail.*`` properties
            (``mail.smtp.host``, ``mail.host``, ...).

    Examples:
        >>> MailSession(host="smtp.example.com", port=587).host
        'smtp.example.com'
        >>> MailSession.from_properties({"mail.host": "mail.example.com"}).host
        'mail.example.com'
    """

    host: str | None = None
    port: int = DEFAULT_SMTP_PORT
    connection_timeout: int = SOCKET_TIMEOUT_MS
    timeout: int = SOCKET_TIMEOUT_MS
    credentials: SMTPCredentials | None = None
    security: SMTPSecurity = field(default_factory=SMTPSecurity)
    bounce_address: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.host is None:
            resolved = self.properties.get("mail.smtp.host") or self.properties.get("mail.host")
            object.__setattr__(self, "host", resolved or None)

    @classmethod
    def from_properties(cls, properties: Mapping[str, str]) -> MailSession:
        """Build a session from dotted ``mail.smtp.*`` property names.

        Recognized keys: ``mail.smtp.host``/``mail.host``,
        ``mail.smtp.port``, ``mail.smtp.connectiontimeout``,
        ``mail.smtp.timeout``, ``mail.smtp.ssl.enable``,
        ``mail.smtp.starttls.enable``, ``mail.smtp.starttls.required``,
        ``mail.smtp.from``, ``mail.smtp.user`` and ``mail.smtp.password``.
        Every key except the password is kept in :attr:`properties`.
        """
        props = dict(properties)
        user = props.get("mail.smtp.user")
        password = props.pop("mail.smtp.password", "")
        credentials = SMTPCredentials(user, password) if user else None
        security = SMTPSecurity(
            use_ssl=_as_bool(props.get("mail.smtp.ssl.enable", False)),
            use_starttls=_as_bool(props.get("mail.smtp.starttls.enable", False)),
            require_starttls=_as_bool(props.get("mail.smtp.starttls.required", False)),
        )
        return cls(
            port=_as_port(props.get("mail.smtp.port"), DEFAULT_SMTP_PORT),
            connection_timeout=_clamp_timeout(props.get("mail.smtp.connectiontimeout"), SOCKET_TIMEOUT_MS),
            timeout=_clamp_timeout(props.get("mail.smtp.timeout"), SOCKET_TIMEOUT_MS),
            credentials=credentials,
            security=security,
            bounce_address=props.get("mail.smtp.from"),
            properties=props,
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any] | None = None) -> MailSession:
        """Build a session from the ``mail.smtp`` section of a configuration.

        Args:
            config: Full configuration mapping. Defaults to the loaded
                mailforge configuration.

        Raises:
            ConfigNotLoadedError: If *config* is omitted and nothing was loaded.
            MailConfigurationError: If a port or timeout value is invalid.
        """
        if config is None:
            from mailforge.config import get_config

            config = get_config()

        smtp = (config.get("mail") or {}).get("smtp") or {}
        ssl_on_connect = _as_bool(smtp.get("ssl_on_connect", False))
        port = (
            _as_port(smtp.get("ssl_port"), DEFAULT_SSL_SMTP_PORT)
            if ssl_on_connect
            else _as_port(smtp.get("port"), DEFAULT_SMTP_PORT)
        )

        username = smtp.get("username")
        credentials = SMTPCredentials(username, smtp.get("password") or "") if username else None

        session = cls(
            host=smtp.get("host") or None,
            port=port,
            connection_timeout=_clamp_timeout(smtp.get("connection_timeout"), SOCKET_TIMEOUT_MS),
            timeout=_clamp_timeout(smtp.get("timeout"), SOCKET_TIMEOUT_MS),
            credentials=credentials,
            security=SMTPSecurity(
                use_ssl=ssl_on_connect,
                use_starttls=_as_bool(smtp.get("start_tls", False)),
                require_starttls=_as_bool(smtp.get("start_tls_required", False)),
            ),
            bounce_address=smtp.get("bounce_address") or None,
        )
        log.debug("Mail session from config: host=%s port=%s", session.host, session.port)
        return session

    def get_transport(self) -> SMTPTransport:
        """Return an SMTP transport for this session.

        ``smtplib`` has a single timeout covering both connect and reads,
        so the larger of the two configured values is used.

        Raises:
            MailConfigurationError: If the session has no host.
        """
        if not self.host:
            raise MailConfigurationError("Cannot find valid hostname for mail session")
        return SMTPTransport(
            self.host,
            self.port,
            credentials=self.credentials,
            security=self.security,
            timeout=max(self.connection_timeout, self.timeout) / 1000,
        )


__all__ = [
    "DEFAULT_SMTP_PORT",
    "DEFAULT_SSL_SMTP_PORT",
    "HARD_MAX_TIMEOUT_MS",
    "HARD_MIN_TIMEOUT_MS",
    "SOCKET_TIMEOUT_MS",
    "MailSession",
]
