import logging
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self):
        self.template_dir = Path(__file__).resolve().parent.parent / "email-templates" / "src"
        self.env = Environment(loader=FileSystemLoader(str(self.template_dir)), autoescape=True)

    def render_template(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self.env.get_template(template_name)
        return template.render(**context)

    def build_message(self, *, email_to: str, subject: str, html_content: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = email_to
        msg.attach(MIMEText(html_content, "html"))
        return msg

    def send_email(
        self,
        *,
        email_to: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any] | None = None,
        max_retries: int = 3,
    ) -> None:
        if not settings.SMTP_HOST:
            raise RuntimeError("SMTP_HOST is not configured")
        if not settings.EMAILS_FROM_EMAIL:
            raise RuntimeError("EMAILS_FROM_EMAIL is not configured")

        html_content = self.render_template(template_name, context or {})
        msg = self.build_message(email_to=email_to, subject=subject, html_content=html_content)

        for attempt in range(max_retries):
            try:
                logger.info(f"Connecting to SMTP server: {settings.SMTP_HOST}:{settings.SMTP_PORT} (Attempt {attempt+1}/{max_retries})")
                with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=60) as server:
                    server.ehlo()
                    if settings.SMTP_TLS:
                        server.starttls()
                        server.ehlo()
                    if settings.SMTP_USER and settings.SMTP_PASSWORD:
                        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
                    server.sendmail(settings.EMAILS_FROM_EMAIL, [email_to], msg.as_string())
                logger.info(f"Email sent to {email_to} with template: {template_name}")
                return
            except (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError) as e:
                logger.warning(f"SMTP connection error on attempt {attempt+1}: {e}")
                if attempt == max_retries - 1:
                    logger.error(f"Failed to send email to {email_to} after {max_retries} attempts")
                    raise
                time.sleep(2)

    def send_notification_email(self, *, email_to: str, subject: str, context: Dict[str, Any]) -> None:
        self.send_email(
            email_to=email_to,
            subject=subject,
            template_name="notification.html",
            context={"project_name": settings.PROJECT_NAME, **context},
        )


email_service = EmailService()
