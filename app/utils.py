import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import Settings

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(__file__), 'email_templates')
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(["html"]))


class Mailer:
    """Renders the email templates and hands them to the SMTP relay.

    Delivery errors are not caught here; the request that triggered the
    email fails with them.
    """

    def __init__(self, settings: Settings):
        self.server = settings.SMTP_SERVER
        self.port = settings.SMTP_PORT
        self.user = settings.SMTP_USER
        self.password = settings.SMTP_PASSWORD
        self.frontend_url = settings.FRONTEND_URL.rstrip("/")
        self.contact_recipient = settings.contact_recipient

    def send_email(self, to_email: str, subject: str, template_name: str, context: dict,
                   sender_name: Optional[str] = None, reply_to: Optional[str] = None,
                   text_content: Optional[str] = None):
        template = env.get_template(template_name)
        html_content = template.render(context)

        msg = MIMEMultipart("alternative")
        msg['From'] = formataddr((sender_name, self.user)) if sender_name else self.user
        msg['To'] = to_email
        msg['Subject'] = subject
        if reply_to:
            msg['Reply-To'] = reply_to

        if text_content:
            msg.attach(MIMEText(text_content, 'plain'))
        msg.attach(MIMEText(html_content, 'html'))

        try:
            with smtplib.SMTP(self.server, self.port) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send %r to %s", subject, to_email)
            raise
        logger.info("Sent %r to %s", subject, to_email)

    def send_verification_email(self, to_email: str, name: str, token: str):
        verify_url = f"{self.frontend_url}/verify-email?token={token}"
        return self.send_email(
            to_email=to_email,
            subject="Verify your account",
            template_name="verification.html",
            context={"name": name, "verify_url": verify_url}
        )

    def send_password_reset_email(self, to_email: str, token: str):
        reset_url = f"{self.frontend_url}/reset-password?token={token}"
        return self.send_email(
            to_email=to_email,
            subject="Password Reset Request",
            template_name="reset_password.html",
            context={"reset_url": reset_url}
        )

    def send_contact_message(self, name: str, email: str, message: str):
        return self.send_email(
            to_email=self.contact_recipient,
            subject="New contact message",
            template_name="contact.html",
            context={"name": name, "email": email, "message": message},
            sender_name="DevImageHost Contact",
            reply_to=email,
            text_content=f"From: {name} <{email}>\n\n{message}"
        )
