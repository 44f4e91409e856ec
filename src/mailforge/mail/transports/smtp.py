"""SMTP transport built on :mod:`smtplib`.

Opens one connection per message, optionally upgrades it with STARTTLS (or
connects over implicit TLS), authenticates when credentials are given and
hands the message to ``send_message``. Every :mod:`smtplib` or socket error
is translated into :class:`~mailforge.mail.exceptions.MailTransportError`.

When the ``mailforge.mail.transports.smtp`` logger is enabled for TRACE, the
full SMTP dialogue captured from smtplib's debug output is logged along
with TLS and authentication details.

Examples:
    >>> transport = SMTPTransport(
    ...     "smtp.example.com",
    ...     port=587,
    ...     credentials=SMTPCredentials(username="user", password="secret"),
    ... )
    >>> transport.send(message)  # doctest: +SKIP
"""

from __future__ import annotations

import contextlib
import io
import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mailforge.logging import TRACE_LEVEL
from mailforge.mail.exceptions import MailConfigurationError, MailTransportError
from mailforge.mail.transport import MailTransport

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from email.message import EmailMessage

__all__ = ["SMTPCredentials", "SMTPSecurity", "SMTPTransport"]

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SMTPCredentials:
    """Username and password for SMTP AUTH.

    Attributes:
        username: Login name.
        password: Login password. Never logged.
    """

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class SMTPSecurity:
    """TLS settings for an SMTP connection.

    Attributes:
        use_ssl: Connect with implicit TLS (``SMTP_SSL``). Disables STARTTLS.
        use_starttls: Upgrade a plain connection when the server offers it.
        require_starttls: Fail instead of continuing in clear text when the
            server does not offer STARTTLS.
        verify_certificates: Verify the server certificate.
    """

    use_ssl: bool = False
    use_starttls: bool = True
    require_starttls: bool = False
    verify_certificates: bool = True

    def ssl_context(self) -> ssl.SSLContext:
        """Return the SSL context matching these settings."""
        context = ssl.create_default_context()
        if not self.verify_certificates:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context


@contextlib.contextmanager
def _capture_smtp_debug() -> Iterator[io.StringIO]:
    """Redirect stderr (where smtplib prints its debug output) into a buffer."""
    buffer = io.StringIO()
    with contextlib.redirect_stderr(buffer):
        yield buffer


def _extract_ssl_info(sock: ssl.SSLSocket | None) -> dict[str, Any]:
    """Collect TLS version, cipher and peer certificate names from *sock*.

    Every lookup is best effort: a failing version lookup reports ``"unknown"``
    and other failing accessors leave their keys out.
    """
    if sock is None:
        return {}

    info: dict[str, Any] = {}
    try:
        info["version"] = sock.version() or "unknown"
    except Exception:  # pylint: disable=broad-except
        info["version"] = "unknown"

    try:
        cipher = sock.cipher()
    except Exception:  # pylint: disable=broad-except
        cipher = None
    if cipher:
        info["cipher_name"], info["cipher_protocol"], info["cipher_bits"] = cipher

    try:
        cert = sock.getpeercert()
    except Exception:  # pylint: disable=broad-except
        cert = None
    if cert:
        peer_cn = _common_name(cert.get("subject"))
        if peer_cn:
            info["peer_cn"] = peer_cn
        issuer_cn = _common_name(cert.get("issuer"))
        if issuer_cn:
            info["issuer_cn"] = issuer_cn
        if "notBefore" in cert:
            info["valid_from"] = cert["notBefore"]
        if "notAfter" in cert:
            info["valid_until"] = cert["notAfter"]
    return info


def _common_name(rdns: Any) -> str | None:
    if not isinstance(rdns, tuple):
        return None
    for rdn in rdns:
        if not isinstance(rdn, tuple):
            continue
        for attribute in rdn:
            if isinstance(attribute, tuple) and len(attribute) == 2 and attribute[0] == "commonName":
                return str(attribute[1])
    return None


def _log_ssl_info(prefix: str, sock: Any) -> None:
    info = _extract_ssl_info(sock)
    if not info:
        return
    log.log(
        TRACE_LEVEL,
        "[SMTP] %s: %s, cipher=%s (%s bits)",
        prefix,
        info.get("version"),
        info.get("cipher_name", "?"),
        info.get("cipher_bits", "?"),
    )
    if "peer_cn" in info:
        log.log(TRACE_LEVEL, "[SMTP] Peer certificate: CN=%s, issuer=%s", info["peer_cn"], info.get("issuer_cn", "?"))


def _log_smtp_debug_output(buffer: io.StringIO) -> None:
    """Replay smtplib's captured debug output at TRACE level."""
    if not log.isEnabledFor(TRACE_LEVEL):
        return
    for raw_line in buffer.getvalue().splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("send:"):
            log.log(TRACE_LEVEL, "[SMTP] >>> %s", line[len("send:") :].strip())
        elif line.startswith("reply:"):
            log.log(TRACE_LEVEL, "[SMTP] <<< %s", line[len("reply:") :].strip())
        else:
            log.log(TRACE_LEVEL, "[SMTP] %s", line)


class SMTPTransport(MailTransport):
    """Deliver messages through an SMTP server.

    Args:
        host: SMTP server host name.
        port: Server port (587 for submission, 465 for implicit TLS, 25 for
            relay).
        credentials: Optional login credentials.
        security: TLS settings. Defaults to opportunistic STARTTLS.
        timeout: Socket timeout in seconds.

    Raises:
        MailConfigurationError: If *host* is empty, *port* is out of range
            or *timeout* is not positive.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        *,
        credentials: SMTPCredentials | None = None,
        security: SMTPSecurity | None = None,
        timeout: float = 30.0,
    ) -> None:
        if not host:
            raise MailConfigurationError("SMTP host is required")
        if not 0 < port < 65536:
            raise MailConfigurationError(f"SMTP port out of range: {port}")
        if timeout <= 0:
            raise MailConfigurationError("Timeout must be greater than 0")

        self.host = host
        self.port = port
        self.credentials = credentials
        self.security = security or SMTPSecurity()
        self.timeout = timeout

    def send(
        self,
        message: EmailMessage,
        *,
        from_addr: str | None = None,
        to_addrs: Sequence[str] | None = None,
    ) -> None:
        """Connect, secure, authenticate and send *message*.

        Raises:
            MailTransportError: On any SMTP or socket failure, or when
                STARTTLS is required but not offered.
        """
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Connecting to %s:%s (timeout=%ss)", self.host, self.port, self.timeout)

        buffer: io.StringIO | None = None
        try:
            with contextlib.ExitStack() as stack:
                if trace_enabled:
                    buffer = stack.enter_context(_capture_smtp_debug())
                client = stack.enter_context(self._connect())
                if trace_enabled:
                    client.set_debuglevel(1)
                self._secure(client, trace_enabled)
                self._login(client, trace_enabled)

                if trace_enabled:
                    log.log(TRACE_LEVEL, "[SMTP] MAIL FROM: %s", from_addr or message.get("From"))
                    log.log(TRACE_LEVEL, "[SMTP] RCPT TO: %s", ", ".join(to_addrs) if to_addrs else message.get("To"))
                client.send_message(message, from_addr=from_addr, to_addrs=list(to_addrs) if to_addrs else None)
        except smtplib.SMTPException as e:
            raise MailTransportError(f"SMTP delivery failed: {e}") from e
        except OSError as e:
            raise MailTransportError(f"SMTP connection to {self.host}:{self.port} failed: {e}") from e
        finally:
            if buffer is not None:
                _log_smtp_debug_output(buffer)

        log.debug("Message sent via SMTP %s:%s", self.host, self.port)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Message sent successfully")

    def _connect(self) -> smtplib.SMTP:
        if self.security.use_ssl:
            client: smtplib.SMTP = smtplib.SMTP_SSL(
                host=self.host,
                port=self.port,
                timeout=self.timeout,
                context=self.security.ssl_context(),
            )
            if log.isEnabledFor(TRACE_LEVEL):
                _log_ssl_info("SSL", getattr(client, "sock", None))
            return client
        return smtplib.SMTP(host=self.host, port=self.port, timeout=self.timeout)

    def _secure(self, client: smtplib.SMTP, trace_enabled: bool) -> None:
        client.ehlo()
        if self.security.use_ssl or not self.security.use_starttls:
            return

        if not client.has_extn("STARTTLS"):
            if self.security.require_starttls:
                raise MailTransportError(f"STARTTLS required but not offered by {self.host}")
            log.warning("Server %s does not offer STARTTLS, continuing without TLS", self.host)
            return

        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Upgrading connection with STARTTLS")
        client.starttls(context=self.security.ssl_context())
        client.ehlo()
        if trace_enabled:
            _log_ssl_info("TLS", getattr(client, "sock", None))

    def _login(self, client: smtplib.SMTP, trace_enabled: bool) -> None:
        if self.credentials is None:
            return
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Authenticating as: %s", self.credentials.username)
        client.login(self.credentials.username, self.credentials.password)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Authentication successful")
