"""Plain-text mail composition using :class:`mailforge.mail.SimpleEmail`."""

from __future__ import annotations

from mailforge.mail import SimpleEmail


def build_plain_message() -> None:
    """Construct a plain-text message and print the RFC822 payload."""
    email = (
        SimpleEmail()
        .set_host_name("localhost")
        .set_from("sender@example.com", "Sender")
        .add_to("user@example.com", "ops@example.com")
        .add_reply_to("replies@example.com")
        .set_subject("Plain Greetings")
        .set_msg("Hello from mailforge!\nThis message uses the plain content type.")
    )
    email.add_header("X-Priority", "1")
    message = email.build()
    print(message.as_bytes().decode("utf-8"))


if __name__ == "__main__":  # pragma: no cover - manual example
    build_plain_message()
