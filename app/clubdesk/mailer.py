from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Protocol

import requests
from bs4 import BeautifulSoup
from markupsafe import escape

from app.clubdesk.config import is_production
from app.clubdesk.models import first_name_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailMessage:
    from_: str
    to: str
    subject: str
    html: str
    text: str


class Transport(Protocol):
    def send_mail(self, message: MailMessage) -> None: ...


def html_to_text(html: str) -> str:
    text = BeautifulSoup(html or "", "html.parser").get_text("\n")
    lines = [line.strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


@dataclass(frozen=True)
class SmtpTransport:
    host: str
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    timeout_seconds: int = 30

    def send_mail(self, message: MailMessage) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = message.from_
        msg["To"] = message.to
        msg.attach(MIMEText(message.text, "plain"))
        msg.attach(MIMEText(message.html, "html"))

        with smtplib.SMTP(self.host, int(self.port), timeout=self.timeout_seconds) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)


@dataclass(frozen=True)
class MailgunTransport:
    api_key: str
    domain: str
    base_url: str = "https://api.mailgun.net/v3"
    timeout_seconds: int = 30

    def send_mail(self, message: MailMessage) -> None:
        resp = requests.post(
            f"{self.base_url.rstrip('/')}/{self.domain}/messages",
            auth=("api", self.api_key),
            data={
                "from": message.from_,
                "to": message.to,
                "subject": message.subject,
                "html": message.html,
                "text": message.text,
            },
            timeout=self.timeout_seconds,
        )
        resp.raise_for_status()


def transport_from_config(config: Any) -> Transport:
    if is_production(config.get("ENV")) and config.get("MAILGUN_API_KEY") and config.get("MAILGUN_DOMAIN"):
        return MailgunTransport(
            api_key=config["MAILGUN_API_KEY"],
            domain=config["MAILGUN_DOMAIN"],
            base_url=config.get("MAILGUN_BASE_URL") or "https://api.mailgun.net/v3",
        )
    return SmtpTransport(
        host=config.get("EMAIL_HOST") or "localhost",
        port=int(config.get("EMAIL_PORT") or 587),
        username=config.get("EMAIL_USERNAME") or "",
        password=config.get("EMAIL_PASSWORD") or "",
        use_tls=bool(config.get("EMAIL_USE_TLS", True)),
    )


class Email:
    """
    Transactional email for one recipient.

    `user` needs `email` and `name` attributes (a User row works). `url` is
    the link embedded in messages that have one and may be None.
    Transport errors are not caught here.
    """

    def __init__(self, user: Any, url: str | None = None, *, config: Any = None, transport: Transport | None = None):
        if config is None:
            from flask import current_app

            config = current_app.config
        self.config = config
        self.to = user.email
        self.first_name = first_name_of(user.name)
        self.url = url
        self.from_ = f"{config.get('EMAIL_FROM_NAME') or 'XL Soccer'} <{config.get('EMAIL_FROM')}>"
        self._transport = transport

    def new_transport(self) -> Transport:
        if self._transport is not None:
            return self._transport
        return transport_from_config(self.config)

    def send(self, subject: str, html_content: str) -> None:
        message = MailMessage(
            from_=self.from_,
            to=self.to,
            subject=subject,
            html=html_content,
            text=html_to_text(html_content),
        )
        self.new_transport().send_mail(message)
        logger.info("Email sent to=%s subject=%r", self.to, subject)

    def send_welcome(self) -> None:
        html_content = f"""
        <h1>Welcome to the XL Family!</h1>
        <p>Hi {escape(self.first_name)},</p>
        <p>Welcome to XL Soccer! We're excited to have you join our community.</p>
        <p>You can now book sessions and manage your account.</p>
        <p>Best regards,<br>The XL Team</p>
        """
        self.send("Welcome to the XL Family!", html_content)

    def send_password_reset(self) -> None:
        link = f'<a href="{escape(self.url)}">Reset Password</a>' if self.url else "(link unavailable)"
        html_content = f"""
        <h1>Password Reset</h1>
        <p>Hi {escape(self.first_name)},</p>
        <p>You requested a password reset. Click the link below to reset your password:</p>
        <p>{link}</p>
        <p>This link is valid for only 10 minutes.</p>
        <p>If you didn't request this, please ignore this email.</p>
        <p>Best regards,<br>The XL Team</p>
        """
        self.send("Your password reset token (valid for only 10 minutes)", html_content)
