"""Blocking SMTP email client used by Celery workers."""
from __future__ import annotations

import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from core.config import NotificationSettings
from core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SMTPEmailClient:
    host: str
    port: int
    sender: str
    username: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    timeout: float = 10.0

    @classmethod
    def from_settings(cls, cfg: NotificationSettings) -> "SMTPEmailClient":
        return cls(
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            sender=cfg.sender,
            username=cfg.smtp_username,
            password=cfg.smtp_password,
            use_tls=cfg.smtp_use_tls,
            timeout=cfg.smtp_timeout,
        )

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send a plain-text email; returns False instead of raising on transport errors."""
        message = self.build_message(to, subject, body)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls(context=ssl.create_default_context())
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("smtp_send_failed", to=to, subject=subject, host=self.host, error=str(exc))
            return False
        logger.info("smtp_message_sent", to=to, subject=subject)
        return True
