"""Email notification handler."""

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Protocol

from infrapulse.alerts import AlertBatch
from infrapulse.config import SMTPConfig, parse_recipients
from infrapulse.notifiers.base import BaseNotifier, DeliveryOutcome

logger = logging.getLogger(__name__)

DEFAULT_SENDER = "infrapulse@localhost"
SMTPS_PORT = 465


class MailTransport(Protocol):
    def send(self, sender: str, recipients: list[str], message: bytes) -> None:
        ...


class SMTPTransport:
    """Deliver raw messages through an SMTP server."""

    def __init__(self, config: SMTPConfig) -> None:
        self.config = config

    def _connect(self) -> smtplib.SMTP:
        if self.config.port == SMTPS_PORT:
            return smtplib.SMTP_SSL(self.config.host, self.config.port, timeout=self.config.timeout)
        return smtplib.SMTP(self.config.host, self.config.port, timeout=self.config.timeout)

    def send(self, sender: str, recipients: list[str], message: bytes) -> None:
        """Send a message.

        Raises:
            smtplib.SMTPException: On protocol or authentication errors.
            OSError: On connection errors.
        """
        with self._connect() as server:
            server.ehlo()
            if not isinstance(server, smtplib.SMTP_SSL) and server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if self.config.username:
                server.login(self.config.username, self.config.password)
            server.sendmail(sender, recipients, message)


class EmailNotifier(BaseNotifier):
    """Send a cycle's alerts as one email."""

    def __init__(
        self,
        smtp: SMTPConfig,
        recipients: str | list[str] | None,
        transport: MailTransport | None = None,
    ) -> None:
        """Initialize email notifier.

        Args:
            smtp: SMTP settings. An empty host disables sending.
            recipients: Comma-separated string or list of addresses.
            transport: Mail transport, defaults to SMTPTransport(smtp).
        """
        self.smtp = smtp
        if isinstance(recipients, str) or recipients is None:
            self.recipients = parse_recipients(recipients)
        else:
            self.recipients = [r.strip() for r in recipients if r.strip()]
        self.transport = transport or SMTPTransport(smtp)

    @property
    def sender(self) -> str:
        return self.smtp.username or DEFAULT_SENDER

    def build_message(self, batch: AlertBatch) -> bytes:
        msg = MIMEText(batch.body(), "plain", "utf-8")
        msg["Subject"] = batch.subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)
        return msg.as_bytes()

    def send_batch(self, batch: AlertBatch) -> DeliveryOutcome:
        """Send all alerts in one email."""
        if not batch.has_alerts():
            return DeliveryOutcome.NOTHING_TO_SEND

        if not self.smtp.enabled:
            logger.warning("SMTP configuration not found, skipping email alerts")
            return DeliveryOutcome.DISABLED

        if not self.recipients:
            logger.warning("Email alert not sent: alert_recipient is not set")
            return DeliveryOutcome.NO_RECIPIENTS

        try:
            self.transport.send(self.sender, self.recipients, self.build_message(batch))
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"Email alert failed: SMTP authentication error: {e}")
            return DeliveryOutcome.FAILED
        except Exception as e:
            logger.error(f"Email alert failed to send: {e}")
            return DeliveryOutcome.FAILED

        logger.info(f"Email alert sent to {len(self.recipients)} recipient(s)")
        return DeliveryOutcome.SENT
