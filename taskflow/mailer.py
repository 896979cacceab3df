# PURPOSE: outgoing mail seam. Delivery is not part of this service; the
# default mailer only logs. Deployments (and tests) swap it through the
# `get_mailer` dependency.

import logging
from dataclasses import dataclass, field

from .config import settings

logger = logging.getLogger("taskflow.mailer")


@dataclass
class Message:
    to: str
    subject: str
    body: str
    sender: str = field(default_factory=lambda: settings.MAIL_FROM)


class LoggingMailer:
    """Records that a message would be sent. The body is never logged: it can
    carry a live reset token."""

    def send(self, message: Message) -> None:
        logger.info("mail_queued to=%s subject=%r", message.to, message.subject)


def reset_link(token: str) -> str:
    return f"{settings.APP_BASE_URL.rstrip('/')}/reset-password?token={token}"


def password_reset_message(email: str, token: str) -> Message:
    link = reset_link(token)
    body = (
        "You requested a password reset.\n\n"
        f"Open this link to choose a new password: {link}\n\n"
        f"The link expires in {settings.RESET_TOKEN_TTL_MIN} minutes. "
        "If you did not ask for this, ignore this e-mail.\n"
    )
    return Message(to=email, subject="Reset your password", body=body)


_default_mailer = LoggingMailer()


def get_mailer():
    """FastAPI dependency returning the active mailer."""
    return _default_mailer
