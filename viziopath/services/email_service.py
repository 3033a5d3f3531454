"""Service for sending emails."""

import logging
import smtplib
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

logger = logging.getLogger(__name__)

_LAYOUT = """
<html>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background-color: {accent}; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
            <h1 style="margin: 0;">{heading}</h1>
        </div>
        <div style="background-color: #f9fafb; padding: 30px; border-radius: 0 0 8px 8px;">
            <h2>Hello {name},</h2>
            {content}
        </div>
        <div style="text-align: center; margin-top: 30px; color: #6b7280; font-size: 14px;">
            <p>&copy; {year} Viziopath. All rights reserved.</p>
        </div>
    </body>
</html>
"""

_BUTTON = """
<p style="text-align: center; margin: 30px 0;">
    <a href="{url}" style="background-color: {accent}; color: white; padding: 12px 24px;
       text-decoration: none; border-radius: 6px; display: inline-block;">{label}</a>
</p>
<p>If the button doesn't work, you can copy and paste this link into your browser:</p>
<p><a href="{url}">{url}</a></p>
"""


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: str = "",
        smtp_port: int = 587,
        smtp_username: str = "",
        smtp_password: str = "",
        from_email: str = "",
        frontend_base_url: str = "http://localhost:3000",
        from_name: str = "Viziopath",
        timeout: float = 10.0,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_username = smtp_username
        self.smtp_password = smtp_password
        self.from_email = from_email
        self.frontend_base_url = frontend_base_url.rstrip("/")
        self.from_name = from_name
        self.timeout = timeout
        self.enabled = bool(self.smtp_host and self.smtp_username and self.from_email)

    def send_verification_email(self, to_email: str, name: str, verification_token: str) -> bool:
        """
        Send the email verification link.

        Args:
            to_email: Recipient email
            name: Recipient display name
            verification_token: Verification token

        Returns:
            True if sent successfully, False otherwise
        """
        url = f"{self.frontend_base_url}/verify-email?token={verification_token}"
        if not self.enabled:
            logger.info("SMTP not configured; verification URL for %s: %s", to_email, url)
            return True

        accent = "#4f46e5"
        content = (
            "<p>Thank you for registering with Viziopath. To complete your registration, "
            "please verify your email address by clicking the button below:</p>"
            + _BUTTON.format(url=url, accent=accent, label="Verify Email Address")
            + "<p>This link will expire in 24 hours.</p>"
            "<p>If you didn't create an account with Viziopath, you can safely ignore this email.</p>"
        )
        text_body = (
            f"Hello {name},\n\nPlease verify your Viziopath account by opening this link:\n"
            f"{url}\n\nThis link will expire in 24 hours."
        )
        return self._send_email(
            to_email,
            "Verify your Viziopath account",
            self._render(accent, "Welcome to Viziopath!", name, content),
            text_body,
        )

    def send_password_reset_email(self, to_email: str, name: str, reset_token: str) -> bool:
        url = f"{self.frontend_base_url}/reset-password?token={reset_token}"
        if not self.enabled:
            logger.info("SMTP not configured; password reset URL for %s: %s", to_email, url)
            return True

        accent = "#dc2626"
        content = (
            "<p>We received a request to reset your password for your Viziopath account. "
            "Click the button below to reset your password:</p>"
            + _BUTTON.format(url=url, accent=accent, label="Reset Password")
            + "<p>This link will expire in 1 hour.</p>"
            "<p>If you didn't request a password reset, you can safely ignore this email. "
            "Your password will remain unchanged.</p>"
        )
        text_body = (
            f"Hello {name},\n\nReset your Viziopath password by opening this link:\n"
            f"{url}\n\nThis link will expire in 1 hour."
        )
        return self._send_email(
            to_email,
            "Reset your Viziopath password",
            self._render(accent, "Password Reset Request", name, content),
            text_body,
        )

    def send_welcome_email(self, to_email: str, name: str) -> bool:
        if not self.enabled:
            return True

        accent = "#059669"
        content = (
            "<p>Your account has been successfully verified and you're now ready to explore "
            "all the features we have to offer.</p>"
            f'<p style="text-align: center;"><a href="{self.frontend_base_url}">Get Started</a></p>'
        )
        text_body = f"Hello {name},\n\nYour Viziopath account is verified. Welcome aboard!"
        return self._send_email(
            to_email,
            "Welcome to Viziopath!",
            self._render(accent, "Welcome to Viziopath!", name, content),
            text_body,
        )

    @staticmethod
    def _render(accent: str, heading: str, name: str, content: str) -> str:
        return _LAYOUT.format(
            accent=accent,
            heading=heading,
            name=escape(name),
            content=content,
            year=datetime.now().year,
        )

    def _send_email(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        """
        Send an email via SMTP.

        Returns:
            True if sent successfully, False otherwise
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        try:
            if self.smtp_port == 465:
                with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                    server.login(self.smtp_username, self.smtp_password)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                    server.starttls()
                    server.login(self.smtp_username, self.smtp_password)
                    server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send email '%s' to %s: %s", subject, to_email, exc)
            return False

        logger.info("Email '%s' sent to %s", subject, to_email)
        return True
