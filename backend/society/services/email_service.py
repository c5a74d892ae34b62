"""
Email Service for Society Management
====================================
Handles outbound email:
- Verification codes on signup
- Payment confirmations

Delivery goes over SMTP (STARTTLS) with aiosmtplib. Sends never raise:
every method returns True on success and False otherwise.
"""

import html
import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from datetime import datetime

from society.core.config import settings
from society.core.logging_config import logger


_BASE_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }
    .content { background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }
    .code { font-size: 32px; font-weight: bold; color: #667eea; letter-spacing: 5px; background: #f8f9fa; padding: 15px 30px; border-radius: 8px; display: inline-block; }
    .footer { text-align: center; margin-top: 30px; font-size: 12px; color: #6b7280; }
"""


class EmailService:
    """Async email service using SMTP"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        return bool(self.smtp_user and self.smtp_password)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning("[Email] Email service not configured, skipping email send")
            return False

        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # Plain text first so HTML is the preferred part
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Successfully sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    def _wrap(self, title: str, body: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head><style>{_BASE_STYLE}</style></head>
        <body>
            <div class="container">
                <div class="header"><h1>{title}</h1></div>
                <div class="content">{body}</div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} {settings.APP_NAME}. Best regards, Society Management Team.</p>
                </div>
            </div>
        </body>
        </html>
        """

    async def send_verification_email(
        self,
        to_email: str,
        user_name: str,
        code: str
    ) -> bool:
        """Send the signup verification code"""
        subject = "Email Verification - Society Management System"

        html_content = self._wrap("Email Verification", f"""
            <p>Hi {html.escape(user_name)},</p>
            <p>Thank you for registering with {settings.APP_NAME}. Your verification code is:</p>
            <p style="text-align: center; margin: 30px 0;"><span class="code">{code}</span></p>
            <p>Enter this code on the verification page at
               <a href="{self.frontend_url}/verify-email">{self.frontend_url}/verify-email</a>
               to complete your registration.</p>
        """)

        text_content = f"""
        Hi {user_name},

        Your verification code is: {code}

        Enter it at {self.frontend_url}/verify-email to complete your registration.

        - Society Management Team
        """

        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_payment_confirmation(
        self,
        to_email: str,
        user_name: str,
        amount: float,
        month: str,
        year: int
    ) -> bool:
        """Send a receipt after a maintenance bill is paid"""
        period = f"{month.capitalize()} {year}"
        subject = f"Payment Confirmation - Maintenance {period}"

        html_content = self._wrap("Payment Confirmed", f"""
            <p>Hi {html.escape(user_name)},</p>
            <p>We have received your maintenance payment.</p>
            <table style="margin: 20px 0;">
                <tr><td><strong>Amount:</strong></td><td>&#8377;{amount:,.2f}</td></tr>
                <tr><td><strong>Period:</strong></td><td>{period}</td></tr>
                <tr><td><strong>Paid on:</strong></td><td>{datetime.utcnow().strftime('%d %b %Y')}</td></tr>
            </table>
            <p>Thank you for your timely payment.</p>
        """)

        text_content = f"""
        Hi {user_name},

        We have received your maintenance payment of Rs. {amount:,.2f} for {period}.

        - Society Management Team
        """

        return await self.send_email(to_email, subject, html_content, text_content)


# Singleton instance
email_service = EmailService()
