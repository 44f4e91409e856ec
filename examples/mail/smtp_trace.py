#!/usr/bin/env python3
"""Send a message with SMTP TRACE-level logging enabled.

Setup:
    1. Go to https://ethereal.email and create a free account
    2. Set environment variables:
       export ETHEREAL_USER="your-user@ethereal.email"
       export ETHEREAL_PASS="your-password"

Usage:
    python examples/mail/smtp_trace.py
"""

from __future__ import annotations

import os
import sys

from mailforge.logging import init_logging
from mailforge.mail import SimpleEmail
from mailforge.mail.transports import SMTPCredentials

ETHEREAL_HOST = "smtp.ethereal.email"
ETHEREAL_PORT = 587


def get_ethereal_credentials() -> SMTPCredentials:
    """Load Ethereal credentials from environment variables."""
    user = os.getenv("ETHEREAL_USER")
    password = os.getenv("ETHEREAL_PASS")
    if not user or not password:
        print("Set ETHEREAL_USER and ETHEREAL_PASS first (see https://ethereal.email).")
        sys.exit(1)
    return SMTPCredentials(username=user, password=password)


def main() -> None:
    """Send email with TRACE logging enabled."""
    log = init_logging(config={"console": {"level": "TRACE"}})
    log.info("TRACE logging enabled - SMTP session details will be shown")

    credentials = get_ethereal_credentials()
    email = (
        SimpleEmail()
        .set_host_name(ETHEREAL_HOST)
        .set_smtp_port(ETHEREAL_PORT)
        .set_start_tls_required(True)
        .set_authentication(credentials.username, credentials.password)
        .set_socket_timeout(30000)
        .set_from(credentials.username)
        .add_to(credentials.username)
        .set_subject("TRACE logging test from mailforge")
        .set_msg("This email was sent with TRACE-level logging enabled.")
    )
    message_id = email.send()
    log.success("Email sent", message_id=message_id)


if __name__ == "__main__":  # pragma: no cover - manual example
    main()
