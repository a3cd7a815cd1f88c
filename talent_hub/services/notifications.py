"""
Applicant notifications (shortlisted / rejected / payment reminder) over SMTP.

Sending is best effort: notify() returns True if the message was handed to the
SMTP server and False if it was skipped or failed. It never raises, because the
status change that triggered it is already committed.
Set SMTP_USER, SMTP_PASSWORD (and optionally NOTIFY_FROM) in .env.
"""
import enum
import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Optional

from talent_hub.config import settings

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    shortlisted = "Shortlisted"
    rejected = "Rejected"
    payment_reminder = "PaymentReminder"


@dataclass(frozen=True)
class Recipient:
    email: Optional[str]
    name: str


def _render(kind: NotificationKind, recipient: Recipient, context: dict[str, Any]) -> tuple[str, str]:
    title = context.get("title") or "your application"
    company = context.get("company") or settings.COMPANY_NAME
    if kind is NotificationKind.shortlisted:
        subject = f"Application Shortlisted - {title} at {company}"
        body = (
            f"Dear {recipient.name},\n\n"
            f"Thank you for applying for {title} at {company}. We are pleased to inform you "
            "that your application has been shortlisted for the next stage. "
            "You will be contacted shortly with the details of the next steps.\n"
        )
    elif kind is NotificationKind.rejected:
        subject = f"Application Update - {title} at {company}"
        body = (
            f"Dear {recipient.name},\n\n"
            f"Thank you for your interest in {title} at {company}. After careful review we "
            "will not be moving forward with your application at this time.\n"
        )
    else:
        subject = f"Payment Pending - {title}"
        body = (
            f"Dear {recipient.name},\n\n"
            f"Your registration for {title} is approved and awaiting payment.\n"
        )
        if context.get("payment_link"):
            body += f"Complete your booking here: {context['payment_link']}\n"
    return subject, body + f"\nThanks,\nTeam {company}\n"


class Notifier:
    """Interface the lifecycle engine talks to."""

    def notify(self, kind: NotificationKind, recipient: Recipient, context: dict[str, Any]) -> bool:
        raise NotImplementedError


class EmailNotifier(Notifier):
    def __init__(self, host: str, port: int, user: str, password: str,
                 from_address: str = "", timeout: float = 10):
        self.host = host
        self.port = port
        self.user = (user or "").strip()
        self.password = (password or "").strip()
        self.from_address = (from_address or "").strip()
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "EmailNotifier":
        return cls(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_address=settings.NOTIFY_FROM,
        )

    def _from(self) -> str:
        if self.from_address:
            return self.from_address
        if self.user:
            return f"{settings.COMPANY_NAME} <{self.user}>"
        return f"{settings.COMPANY_NAME} <noreply@localhost>"

    def notify(self, kind: NotificationKind, recipient: Recipient, context: dict[str, Any]) -> bool:
        to_email = (recipient.email or "").strip()
        if not to_email:
            logger.info("No email address for %s notification; skipping", kind.value)
            return False
        if not self.user or not self.password:
            logger.debug("SMTP_USER or SMTP_PASSWORD not set; skipping %s email", kind.value)
            return False

        subject, body = _render(kind, recipient, context)
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self._from()
        msg["To"] = to_email
        msg.attach(MIMEText(body, "plain"))
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, [to_email], msg.as_string())
            logger.info("%s email sent to %s", kind.value, to_email)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.exception("Failed to send %s email: %s", kind.value, e)
            return False


def get_notifier() -> Notifier:
    """FastAPI dependency; overridden in tests."""
    return EmailNotifier.from_settings()
