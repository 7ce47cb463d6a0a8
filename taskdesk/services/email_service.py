"""Service for sending account emails."""

import logging
import smtplib
from datetime import timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


def describe_duration(ttl: timedelta) -> str:
    """Render a link lifetime for email copy, e.g. ``24 hours`` or ``30 minutes``."""
    minutes = int(ttl.total_seconds() // 60)
    if minutes % (24 * 60) == 0 and minutes >= 48 * 60:
        amount, unit = minutes // (24 * 60), "day"
    elif minutes % 60 == 0 and minutes >= 60:
        amount, unit = minutes // 60, "hour"
    else:
        amount, unit = minutes, "minute"
    return f"{amount} {unit}" if amount == 1 else f"{amount} {unit}s"


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_username: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: str = "TaskDesk",
        verification_ttl: timedelta = timedelta(hours=24),
        reset_ttl: timedelta = timedelta(hours=1),
    ):
        self.smtp_host = smtp_host or ""
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username or ""
        self.smtp_password = smtp_password or ""
        self.from_email = from_email or ""
        self.from_name = from_name
        self.verification_ttl = verification_ttl
        self.reset_ttl = reset_ttl
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def send_verification_email(self, to_email: str, verification_token: str, base_url: str) -> bool:
        """
        Send email verification email.

        Args:
            to_email: Recipient email
            verification_token: Verification token
            base_url: Frontend base URL for the verification link

        Returns:
            True if sent (or logged when SMTP is not configured), False otherwise
        """
        verification_url = f"{base_url}/verify-email?token={verification_token}"
        expires_in = describe_duration(self.verification_ttl)
        if not self.enabled:
            logger.info("Verification URL for %s: %s", to_email, verification_url)
            return True

        subject = "Verify your email - TaskDesk"
        html_body = self._render_html(
            heading="Welcome to TaskDesk!",
            intro="Thanks for signing up. Confirm your email address to activate your account:",
            action_url=verification_url,
            action_label="Verify email",
            footnote=f"This link expires in {expires_in}. If you did not create an account, ignore this email.",
        )
        text_body = f"""
        TaskDesk - Email verification

        Confirm your email address by opening the link below:
        {verification_url}

        This link expires in {expires_in}.
        """
        return self._send_email(to_email, subject, html_body, text_body)

    def send_password_reset_email(self, to_email: str, reset_token: str, base_url: str) -> bool:
        """Send a password reset link. Same return contract as ``send_verification_email``."""
        reset_url = f"{base_url}/reset-password?token={reset_token}"
        expires_in = describe_duration(self.reset_ttl)
        if not self.enabled:
            logger.info("Password reset URL for %s: %s", to_email, reset_url)
            return True

        subject = "Reset your password - TaskDesk"
        html_body = self._render_html(
            heading="Password reset requested",
            intro="Someone asked to reset the password for your TaskDesk account. Choose a new one here:",
            action_url=reset_url,
            action_label="Reset password",
            footnote=f"This link expires in {expires_in}. If you did not request a reset, ignore this email.",
        )
        text_body = f"""
        TaskDesk - Password reset

        Choose a new password by opening the link below:
        {reset_url}

        This link expires in {expires_in}.
        """
        return self._send_email(to_email, subject, html_body, text_body)

    @staticmethod
    def _render_html(heading: str, intro: str, action_url: str, action_label: str, footnote: str) -> str:
        return f"""
        <html>
            <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
                <div style="background-color: #0f172a; padding: 30px; border-radius: 10px; text-align: center;">
                    <h1 style="color: #93c5fd; margin: 0;">TaskDesk</h1>
                </div>

                <div style="padding: 30px 0;">
                    <h2 style="color: #1e293b; margin-bottom: 20px;">{heading}</h2>
                    <p style="color: #475569; line-height: 1.6; margin-bottom: 20px;">{intro}</p>

                    <div style="text-align: center; margin: 30px 0;">
                        <a href="{action_url}"
                           style="background-color: #3b82f6; color: white; padding: 15px 30px;
                                  text-decoration: none; border-radius: 5px; display: inline-block;
                                  font-weight: bold;">
                            {action_label}
                        </a>
                    </div>

                    <p style="color: #64748b; font-size: 14px; margin-top: 30px;">{footnote}</p>
                </div>
            </body>
        </html>
        """

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.from_name} <{self.from_email}>"
            msg["To"] = to_email

            msg.attach(MIMEText(text_body, "plain", "utf-8"))
            msg.attach(MIMEText(html_body, "html", "utf-8"))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.send_message(msg)

            return True

        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", to_email)
            return False
