"""Outbound mail for confirmation links and one-time codes."""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Optional

from blooddash.core.config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    def send(self, to: str, subject: str, body: str) -> bool:
        raise NotImplementedError


class LogMailer(Mailer):
    """Development transport: the message goes to the log instead of a mailbox."""

    def send(self, to: str, subject: str, body: str) -> bool:
        logger.info("mail", extra={"to": to, "subject": subject, "body": body})
        return True


class SmtpMailer(Mailer):
    def __init__(self, sender: Optional[str], password: Optional[str], host: str, port: int):
        self.sender = sender
        self.password = password
        self.host = host
        self.port = port

    def send(self, to: str, subject: str, body: str) -> bool:
        if not (self.sender and self.password):
            logger.warning("SMTP credentials missing; mail to %s not sent", to)
            return False

        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to

        try:
            with smtplib.SMTP(self.host, self.port, timeout=20) as smtp:
                smtp.starttls()
                smtp.login(self.sender, self.password)
                smtp.sendmail(self.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception("SMTP send failed", extra={"to": to})
            return False
        return True


def build_mailer(settings: Settings) -> Mailer:
    if (settings.mail_transport or "log").lower() == "smtp":
        return SmtpMailer(
            sender=settings.mail_sender,
            password=settings.mail_password,
            host=settings.mail_smtp_host,
            port=settings.mail_smtp_port,
        )
    return LogMailer()
