"""Service for sending emails."""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """Raised when the SMTP relay rejects or cannot deliver a message."""


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "LeadConnect",
    ):
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def send_verification_email(
        self, to_email: str, company_name: str, verification_url: str
    ) -> None:
        """
        Send the email-verification link.

        Args:
            to_email: Recipient email
            company_name: Company the account belongs to
            verification_url: Absolute verification link including the token

        Raises:
            EmailDeliveryError: If SMTP delivery fails
        """
        if not self.enabled:
            logger.info("SMTP disabled; skipping verification email for %s", to_email)
            return

        subject = "Verify your email - LeadConnect"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">Welcome to LeadConnect, {company_name}!</h2>
                <p style="color: #475569; line-height: 1.6;">
                    Please confirm your email address to activate your company account.
                </p>
                <div style="text-align: center; margin: 30px 0;">
                    <a href="{verification_url}"
                       style="background-color: #3b82f6; color: white; padding: 15px 30px;
                              text-decoration: none; border-radius: 5px; font-weight: bold;">
                        Verify Email
                    </a>
                </div>
                <p style="color: #64748b; font-size: 14px;">This link expires in 24 hours.</p>
            </body>
        </html>
        """
        text_body = f"""
        Welcome to LeadConnect, {company_name}!

        Confirm your email address by opening the link below:
        {verification_url}

        This link expires in 24 hours.
        """
        self._send_email(to_email, subject, html_body, text_body)

    def send_welcome_email(self, to_email: str, company_name: str, portal_url: str) -> None:
        if not self.enabled:
            logger.info("SMTP disabled; skipping welcome email for %s", to_email)
            return

        subject = "Your LeadConnect account is verified"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #1e293b;">You're all set, {company_name}!</h2>
                <p style="color: #475569; line-height: 1.6;">
                    Your email is verified. Subscribe from the company portal to unlock lead contact details.
                </p>
                <p><a href="{portal_url}">Open the company portal</a></p>
            </body>
        </html>
        """
        text_body = f"""
        You're all set, {company_name}!

        Your email is verified. Open the company portal: {portal_url}
        """
        self._send_email(to_email, subject, html_body, text_body)

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email

        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email to %s: %s", to_email, exc)
            raise EmailDeliveryError(str(exc)) from exc

        logger.info("Sent '%s' to %s", subject, to_email)
