"""
SubSlayer Reminder Delivery

SMTP email delivery for renewal reminders.
"""

from __future__ import annotations

import os
import smtplib
from collections.abc import Callable
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from subslayer.config import SMTP_MAX_RETRIES
from subslayer.observability.logging import get_logger
from subslayer.observability.telemetry import counter

logger = get_logger(__name__)

# Connection drops, timeouts and 4xx-style temporary refusals
TRANSIENT_SMTP_ERRORS: tuple[type[Exception], ...] = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    smtplib.SMTPHeloError,
    TimeoutError,
    ConnectionError,
)


class ReminderDelivery:
    """Handles email delivery for renewal reminders"""

    def __init__(
        self,
        smtp_host: str | None = None,
        smtp_port: int | None = None,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        from_email: str | None = None,
        from_name: str = "SubSlayer",
        max_attempts: int = SMTP_MAX_RETRIES,
        wait: Any = None,
        smtp_factory: Callable[[str, int], smtplib.SMTP] = smtplib.SMTP,
    ):
        """
        Initialize SMTP delivery

        Environment variables (if params not provided):
        - SMTP_HOST: SMTP server hostname
        - SMTP_PORT: SMTP server port (default: 587)
        - SMTP_USER: SMTP username
        - SMTP_PASSWORD: SMTP password
        - SMTP_FROM_EMAIL: From email address
        - SMTP_FROM_NAME: From name (default: "SubSlayer")
        """
        self.smtp_host = smtp_host or os.getenv("SMTP_HOST", "smtp.gmail.com")
        self.smtp_port = smtp_port or int(os.getenv("SMTP_PORT", "587"))
        self.smtp_user = smtp_user or os.getenv("SMTP_USER")
        self.smtp_password = smtp_password or os.getenv("SMTP_PASSWORD")
        self.from_email = from_email or os.getenv("SMTP_FROM_EMAIL", self.smtp_user)
        self.from_name = os.getenv("SMTP_FROM_NAME", from_name)
        self._smtp_factory = smtp_factory
        self._retrying = Retrying(
            stop=stop_after_attempt(max(1, max_attempts)),
            wait=wait if wait is not None else wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(TRANSIENT_SMTP_ERRORS),
            reraise=True,
        )

        if not all([self.smtp_host, self.smtp_user, self.smtp_password, self.from_email]):
            logger.warning("SMTP not fully configured. Set SMTP_* environment variables.")
            self.enabled = False
        else:
            self.enabled = True
            logger.info(
                "SMTP delivery configured: %s@%s:%s",
                self.smtp_user,
                self.smtp_host,
                self.smtp_port,
            )

    def build_message(self, to_email: str, subject: str, html: str, text: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg["Date"] = datetime.now().astimezone().strftime("%a, %d %b %Y %H:%M:%S %z")
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def send(self, to_email: str, subject: str, html: str, text: str) -> bool:
        """
        Send a reminder email

        Transient SMTP failures are retried; anything else fails immediately.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.error("SMTP delivery not enabled. Configure SMTP_* environment variables.")
            return False

        msg = self.build_message(to_email, subject, html, text)
        try:
            self._retrying(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            counter("reminders.delivery.failed")
            logger.error("Failed to send reminder to %s: %s", to_email, e)
            return False

        counter("reminders.delivery.sent")
        logger.info("Reminder sent to %s", to_email)
        return True

    def _deliver(self, msg: MIMEMultipart) -> None:
        assert self.smtp_host is not None
        assert self.smtp_user is not None
        assert self.smtp_password is not None

        logger.info("Connecting to %s:%s", self.smtp_host, self.smtp_port)
        with self._smtp_factory(self.smtp_host, self.smtp_port) as server:
            server.starttls()
            server.login(self.smtp_user, self.smtp_password)
            server.send_message(msg)
