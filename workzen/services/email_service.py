"""
WorkZen - Email Service

Handles transactional email sending over SMTP, with a mock provider for
development and tests. Every send_* method returns a bool and never raises.
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from workzen.config import settings

logger = logging.getLogger(__name__)


class EmailProvider:
    """Email provider types."""
    SMTP = "smtp"
    MOCK = "mock"


@dataclass
class EmailMessage:
    """Email message data structure."""
    to: List[str]
    subject: str
    body_text: str
    body_html: Optional[str] = None
    reply_to: Optional[str] = None


def _layout(title: str, content: str) -> str:
    return f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h1 style="color: #4f46e5;">{title}</h1>
                {content}
                <p>Best regards,<br>The WorkZen HR Team</p>
            </div>
        </body>
        </html>
        """


def _button(url: str, label: str) -> str:
    return (
        f'<p><a href="{url}" style="display: inline-block; background-color: #4f46e5; '
        f'color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">{label}</a></p>'
    )


class EmailService:
    """Service for sending transactional emails."""

    def __init__(self):
        self.from_email = settings.email_from or "noreply@workzen.local"
        self.from_name = settings.mail_from_name
        self.provider = settings.mail_provider

        # SMTP settings
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_username = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.smtp_use_tls = settings.mail_use_tls

    def _determine_provider(self) -> str:
        """Determine which email provider to use based on configuration."""
        if self.provider == EmailProvider.MOCK:
            return EmailProvider.MOCK
        if self.smtp_host and self.smtp_username:
            return EmailProvider.SMTP
        return EmailProvider.MOCK

    async def send_email(self, message: EmailMessage) -> bool:
        """
        Send an email using the configured provider.

        Returns:
            True if the message was handed to the transport, False otherwise
        """
        provider = self._determine_provider()

        try:
            if provider == EmailProvider.SMTP:
                return await self._send_via_smtp(message)
            return await self._send_mock(message)
        except Exception as e:
            logger.error(f"Failed to send email via {provider}: {e}")
            return False

    async def _send_via_smtp(self, message: EmailMessage) -> bool:
        """Send email via SMTP."""
        msg = MIMEMultipart('alternative')
        msg['Subject'] = message.subject
        msg['From'] = f"{self.from_name} <{self.from_email}>"
        msg['To'] = ', '.join(message.to)

        if message.reply_to:
            msg['Reply-To'] = message.reply_to

        msg.attach(MIMEText(message.body_text, 'plain'))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, 'html'))

        # smtplib blocks; keep it off the event loop
        await asyncio.to_thread(self._deliver, msg.as_string(), list(message.to))

        logger.info(f"Email sent via SMTP to {message.to}")
        return True

    def _deliver(self, payload: str, recipients: List[str]) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            if self.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.smtp_username and self.smtp_password:
                server.login(self.smtp_username, self.smtp_password)
            server.sendmail(self.from_email, recipients, payload)

    async def _send_mock(self, message: EmailMessage) -> bool:
        """Mock email sending for development."""
        logger.info(f"[MOCK EMAIL] To: {message.to} | Subject: {message.subject}")
        logger.debug(f"[MOCK EMAIL] Body: {message.body_text[:200]}...")
        return True

    # ===========================================
    # TRANSACTIONAL EMAIL TEMPLATES
    # ===========================================

    async def send_otp_email(self, to_email: str, otp: str, full_name: str = "") -> bool:
        """Send the email-verification code."""
        subject = "Verify your email - WorkZen HR"
        minutes = settings.otp_expiry_minutes
        body_html = _layout(
            "Verify your email",
            f"""
                <p>Hi {full_name or 'there'},</p>
                <p>Your verification code is:</p>
                <p style="font-size: 28px; font-weight: bold; letter-spacing: 6px;">{otp}</p>
                <p>This code expires in {minutes} minutes. If you did not request it, ignore this email.</p>
            """,
        )
        body_text = (
            f"Hi {full_name or 'there'},\n\n"
            f"Your WorkZen verification code is: {otp}\n"
            f"This code expires in {minutes} minutes.\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))

    async def send_account_activated_email(self, to_email: str, full_name: str) -> bool:
        """Confirm a successful email verification."""
        subject = "Your WorkZen account is active"
        login_url = f"{settings.frontend_url}/login"
        body_html = _layout(
            "Account activated",
            f"<p>Hi {full_name},</p><p>Your email has been verified and your account is now active.</p>"
            + _button(login_url, "Log in"),
        )
        body_text = (
            f"Hi {full_name},\n\nYour email has been verified and your account is now active.\n"
            f"Log in: {login_url}\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))

    async def send_onboarding_invite(
        self,
        to_email: str,
        candidate_name: str,
        onboarding_link: str,
        position: Optional[str] = None,
        department: Optional[str] = None,
    ) -> bool:
        """Invite a candidate to complete onboarding."""
        subject = "Complete your onboarding - WorkZen HR"
        role_line = ""
        if position:
            role_line = f" as {position}" + (f" in {department}" if department else "")
        body_html = _layout(
            "Welcome aboard!",
            f"""
                <p>Hi {candidate_name},</p>
                <p>We are excited to have you join us{role_line}. Please complete your onboarding
                details using the link below. The link is valid for {settings.onboarding_token_ttl_days} days.</p>
            """ + _button(onboarding_link, "Start onboarding"),
        )
        body_text = (
            f"Hi {candidate_name},\n\n"
            f"We are excited to have you join us{role_line}.\n"
            f"Complete your onboarding here: {onboarding_link}\n"
            f"The link is valid for {settings.onboarding_token_ttl_days} days.\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))

    async def send_welcome_email(
        self,
        to_email: str,
        first_name: str,
        employee_id: str,
        temporary_password: str,
    ) -> bool:
        """Send login credentials to an approved candidate."""
        subject = "Welcome to WorkZen - your account details"
        login_url = f"{settings.frontend_url}/login"
        body_html = _layout(
            f"Welcome, {first_name}!",
            f"""
                <p>Your onboarding has been approved. Your account details:</p>
                <ul>
                    <li><strong>Employee ID:</strong> {employee_id}</li>
                    <li><strong>Email:</strong> {to_email}</li>
                    <li><strong>Temporary password:</strong> {temporary_password}</li>
                </ul>
                <p>Please change your password after your first login.</p>
            """ + _button(login_url, "Log in"),
        )
        body_text = (
            f"Hi {first_name},\n\n"
            f"Your onboarding has been approved.\n"
            f"Employee ID: {employee_id}\n"
            f"Email: {to_email}\n"
            f"Temporary password: {temporary_password}\n\n"
            f"Log in at {login_url} and change your password.\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))

    async def send_changes_requested_email(
        self,
        to_email: str,
        candidate_name: str,
        onboarding_link: str,
        comments: str,
        fields_to_change: Optional[List[str]] = None,
    ) -> bool:
        """Ask a candidate to revise their onboarding submission."""
        subject = "Action required: update your onboarding details"
        fields = ", ".join(fields_to_change or [])
        fields_html = f"<p><strong>Fields to update:</strong> {fields}</p>" if fields else ""
        body_html = _layout(
            "Changes requested",
            f"""
                <p>Hi {candidate_name},</p>
                <p>HR reviewed your onboarding details and requested some changes:</p>
                <blockquote>{comments}</blockquote>
                {fields_html}
            """ + _button(onboarding_link, "Update details"),
        )
        body_text = (
            f"Hi {candidate_name},\n\n"
            f"HR requested changes to your onboarding details:\n{comments}\n"
            + (f"Fields to update: {fields}\n" if fields else "")
            + f"\nUpdate here: {onboarding_link}\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))

    async def send_rejection_email(self, to_email: str, candidate_name: str, reason: str) -> bool:
        """Notify a candidate that onboarding was rejected."""
        subject = "Update on your onboarding - WorkZen HR"
        body_html = _layout(
            "Onboarding update",
            f"""
                <p>Hi {candidate_name},</p>
                <p>We regret to inform you that your onboarding request could not be approved.</p>
                <p><strong>Reason:</strong> {reason}</p>
            """,
        )
        body_text = (
            f"Hi {candidate_name},\n\n"
            f"We regret to inform you that your onboarding request could not be approved.\n"
            f"Reason: {reason}\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))

    async def send_password_reset_email(self, to_email: str, full_name: str, reset_link: str) -> bool:
        """Send a password reset link."""
        subject = "Reset your WorkZen password"
        hours = settings.reset_token_ttl_hours
        body_html = _layout(
            "Password reset",
            f"""
                <p>Hi {full_name},</p>
                <p>We received a request to reset your password. The link expires in {hours} hours.</p>
            """ + _button(reset_link, "Reset password")
            + "<p>If you did not request this, you can ignore this email.</p>",
        )
        body_text = (
            f"Hi {full_name},\n\n"
            f"Reset your password here (valid for {hours} hours): {reset_link}\n"
            f"If you did not request this, ignore this email.\n"
        )
        return await self.send_email(EmailMessage([to_email], subject, body_text, body_html))
