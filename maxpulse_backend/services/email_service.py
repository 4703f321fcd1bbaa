# maxpulse_backend/services/email_service.py
"""
Email service for the MaxPulse backend.
Sends the welcome email with sign-in credentials and the password reset email over SMTP.
"""

import asyncio
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from html import escape

from fastapi import HTTPException, status

from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.core.config import settings

logger = get_logger(__name__)


class EmailService:
    """Service for transactional emails over SMTP"""

    SMTP_HOST = settings.EMAIL_HOST
    SMTP_PORT = settings.EMAIL_PORT
    SMTP_USERNAME = settings.EMAIL_USERNAME
    SMTP_PASSWORD = settings.EMAIL_PASSWORD
    SMTP_USE_SSL = settings.EMAIL_USE_SSL
    SMTP_USE_TLS = settings.EMAIL_USE_TLS
    FROM_EMAIL = settings.EMAIL_FROM
    FROM_NAME = "MaxPulse"
    SMTP_TIMEOUT = 30

    APP_STORE_URL = "https://apps.apple.com/app/maxpulse"

    @classmethod
    def _create_welcome_email_html(cls, name: str, email: str, password: str, plan_type: str) -> str:
        """
        HTML welcome email with the temporary sign-in credentials.
        """
        plan_label = "Annual" if plan_type == "annual" else "Monthly"
        return f"""
        <!DOCTYPE html>
        <html lang="en">
        <head>
            <meta charset="UTF-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
            <title>Welcome to MaxPulse</title>
        </head>
        <body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f5f5f5;">
            <div style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
                <div style="background: linear-gradient(135deg, #dc2626, #991b1b); border-radius: 8px 8px 0 0; padding: 40px 30px; text-align: center;">
                    <h1 style="color: #ffffff; font-size: 28px; margin: 0;">Welcome to MaxPulse</h1>
                    <p style="color: #fecaca; font-size: 16px; margin: 10px 0 0 0;">Your Health Journey Begins Now 🎯</p>
                </div>
                <div style="background: white; border-radius: 0 0 8px 8px; padding: 40px 30px;">
                    <p style="color: #1f2937; font-size: 16px;">Hi <strong>{escape(name)}</strong>,</p>
                    <p style="color: #4b5563; font-size: 15px; line-height: 1.6;">
                        Your MaxPulse account is ready ({plan_label} plan).
                    </p>
                    <ol style="color: #374151; font-size: 15px; line-height: 1.8;">
                        <li>Download MaxPulse: <a href="{cls.APP_STORE_URL}" style="color: #dc2626;">Download Now →</a></li>
                        <li>Sign in with these credentials:
                            <div style="background: #f9fafb; border: 2px solid #e5e7eb; border-radius: 8px; padding: 15px; margin-top: 10px;">
                                <p style="margin: 0;">Email: <strong>{escape(email)}</strong></p>
                                <p style="margin: 8px 0 0 0;">Password: <strong style="font-family: 'Courier New', monospace;">{escape(password)}</strong></p>
                            </div>
                        </li>
                        <li>Change your password after the first sign-in.</li>
                    </ol>
                </div>
            </div>
        </body>
        </html>
        """

    @classmethod
    def _create_password_reset_email_html(cls, name: str, reset_link: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html lang="en">
        <head><meta charset="UTF-8"><title>Reset your MaxPulse password</title></head>
        <body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f5f5f5;">
            <div style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
                <div style="background: white; border-radius: 8px; padding: 40px 30px;">
                    <h2 style="color: #dc2626; margin: 0 0 20px 0;">Password reset</h2>
                    <p style="color: #4b5563; font-size: 15px;">Hi {escape(name or "there")},</p>
                    <p style="color: #4b5563; font-size: 15px; line-height: 1.6;">
                        An account with this email already exists. Use the link below to set a new password.
                        The link is valid for {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.
                    </p>
                    <p style="text-align: center; margin: 30px 0;">
                        <a href="{reset_link}" style="background: #dc2626; color: white; padding: 12px 24px; border-radius: 6px; text-decoration: none;">Reset password</a>
                    </p>
                    <p style="color: #9ca3af; font-size: 13px;">If you did not request this, you can ignore this email.</p>
                </div>
            </div>
        </body>
        </html>
        """

    @classmethod
    def _send_email_smtp(cls, to_email: str, subject: str, html_content: str) -> bool:
        """
        Send email via SMTP with SSL/STARTTLS.

        Returns:
            True if sent successfully

        Raises:
            HTTPException: If SMTP configuration is missing or send fails
        """
        if not cls.SMTP_USERNAME or not cls.SMTP_PASSWORD:
            logger.error("❌ SMTP credentials not configured in settings")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Email service not configured"
            )

        msg = MIMEMultipart('alternative')
        msg['From'] = f"{cls.FROM_NAME} <{cls.FROM_EMAIL}>"
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(html_content, 'html', 'utf-8'))

        logger.info(f"📧 Sending '{subject}' to {to_email} via {cls.SMTP_HOST}:{cls.SMTP_PORT}")

        try:
            if cls.SMTP_USE_SSL:
                with smtplib.SMTP_SSL(cls.SMTP_HOST, cls.SMTP_PORT, timeout=cls.SMTP_TIMEOUT) as server:
                    server.login(cls.SMTP_USERNAME, cls.SMTP_PASSWORD)
                    server.send_message(msg)
            else:
                with smtplib.SMTP(cls.SMTP_HOST, cls.SMTP_PORT, timeout=cls.SMTP_TIMEOUT) as server:
                    if cls.SMTP_USE_TLS:
                        server.starttls()
                    server.login(cls.SMTP_USERNAME, cls.SMTP_PASSWORD)
                    server.send_message(msg)

            logger.info(f"✅ Email sent successfully to {to_email}")
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"❌ SMTP authentication failed: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Email authentication failed"
            )
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ SMTP error: {type(e).__name__}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Email sending failed: {str(e)}"
            )

    @classmethod
    async def _send(cls, to_email: str, subject: str, html_content: str) -> bool:
        # smtplib blocks, keep it off the event loop
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, cls._send_email_smtp, to_email, subject, html_content)

    @classmethod
    async def send_welcome_email(
        cls,
        to_email: str,
        name: str,
        temporary_password: str,
        plan_type: str = "annual"
    ) -> bool:
        """
        Send the welcome email with the temporary password.
        """
        html_content = cls._create_welcome_email_html(name, to_email, temporary_password, plan_type)
        return await cls._send(to_email, "Welcome to MaxPulse - Your Health Journey Begins 🎯", html_content)

    @classmethod
    async def send_password_reset_email(cls, to_email: str, name: str, reset_link: str) -> bool:
        """
        Send a password reset link to an existing account.
        """
        html_content = cls._create_password_reset_email_html(name, reset_link)
        return await cls._send(to_email, "Reset your MaxPulse password", html_content)
