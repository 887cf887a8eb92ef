import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.utils import formataddr

from app.core.config import settings
from app.services.email_templates import (
    build_verification_email, build_password_reset_email, build_welcome_email,
)

logger = logging.getLogger(__name__)


class EmailSender:
    """Notification channel: send(to, subject, html, text) raises on failure."""

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        raise NotImplementedError


class SmtpEmailSender(EmailSender):
    def __init__(self, host: str, port: int, user: str, password: str, from_name: str, from_email: str):
        self.host = host
        self.port = int(port)
        self.user = user
        self.password = password
        self.from_name = from_name
        self.from_email = from_email

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        """
        Send transactional email over SMTP.
        Uses STARTTLS on port 587 and logs in when credentials are configured.
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = to

        if text:
            msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))

        with smtplib.SMTP(self.host, self.port, timeout=30) as s:
            s.starttls()
            if self.user:
                s.login(self.user, self.password)
            s.sendmail(self.from_email, [to], msg.as_string())
        logger.info("Email sent", extra={"to": to, "subject": subject})


class LogEmailSender(EmailSender):
    """Used when EMAIL_ENABLED is off: nothing leaves the process."""

    def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        logger.info("Email delivery disabled, dropping message", extra={"to": to, "subject": subject})


def get_email_sender() -> EmailSender:
    if not settings.email_enabled:
        return LogEmailSender()
    return SmtpEmailSender(
        host=settings.smtp_host,
        port=settings.smtp_port,
        user=settings.smtp_user,
        password=settings.smtp_password,
        from_name=settings.smtp_from_name,
        from_email=settings.smtp_from_email,
    )


# ----------------- Message helpers -----------------
# Plain values only: these may run after the request's session is closed.
def send_verification_email(sender: EmailSender, *, to: str, first_name: str, token: str) -> None:
    verify_link = f"{settings.app_backend_url}/v1/auth/verify/email?token={token}"
    html, text = build_verification_email(first_name, verify_link, settings.email_verify_ttl_hours)
    sender.send(to=to, subject="Verify your Realtor Space account", html=html, text=text)


def send_password_reset_email(sender: EmailSender, *, to: str, first_name: str, token: str) -> None:
    reset_link = f"{settings.app_frontend_url}/reset-password?token={token}"
    html, text = build_password_reset_email(first_name, reset_link, settings.password_reset_ttl_minutes)
    sender.send(to=to, subject="Reset your Realtor Space password", html=html, text=text)


def send_welcome_email(sender: EmailSender, *, to: str, first_name: str, user_type: str) -> None:
    html, text = build_welcome_email(first_name, user_type, settings.app_frontend_url, settings.support_email)
    sender.send(to=to, subject="Welcome to Realtor Space", html=html, text=text)
