"""
Mail delivery backends

- SMTPDelivery: sends through an SMTP relay (STARTTLS and login optional)
- MemoryDelivery: keeps messages in `deliveries`, for tests and local runs
"""
import logging
import smtplib
import ssl
import uuid
from dataclasses import dataclass, field
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate
from typing import List, Optional

from hubadmin.core.config import Settings, settings

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    """An outgoing email"""
    to: str
    from_address: str
    subject: str
    text_body: str
    html_body: Optional[str] = None
    headers: dict = field(default_factory=dict)

    def to_mime(self) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = self.subject
        msg['From'] = self.from_address
        msg['To'] = self.to
        msg['Date'] = formatdate(localtime=True)
        domain = self.from_address.rsplit('@', 1)[-1].strip('>') or 'localhost'
        msg['Message-ID'] = f"<{uuid.uuid4()}@{domain}>"
        for name, value in self.headers.items():
            msg[name] = value

        msg.attach(MIMEText(self.text_body, 'plain', 'utf-8'))
        if self.html_body:
            msg.attach(MIMEText(self.html_body, 'html', 'utf-8'))
        return msg


class MailDelivery:
    """Base class for delivery backends"""

    def deliver(self, message: MailMessage) -> None:
        raise NotImplementedError


class SMTPDelivery(MailDelivery):
    """Delivers through smtplib; connection errors propagate to the caller"""

    def __init__(
        self,
        host: str,
        port: int,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: int = 30
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def deliver(self, message: MailMessage) -> None:
        mime = message.to_mime()

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(mime)

        logger.debug(f"SMTP {self.host}:{self.port} accepted message for {message.to}")


class MemoryDelivery(MailDelivery):
    """Collects messages instead of sending them"""

    def __init__(self):
        self.deliveries: List[MailMessage] = []

    def deliver(self, message: MailMessage) -> None:
        self.deliveries.append(message)


def build_delivery(config: Settings = settings) -> MailDelivery:
    """Delivery backend selected by MAIL_DELIVERY_METHOD"""
    method = config.MAIL_DELIVERY_METHOD.lower()

    if method == "smtp":
        return SMTPDelivery(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            use_tls=config.SMTP_USE_TLS,
            timeout=config.SMTP_TIMEOUT
        )
    if method == "memory":
        return MemoryDelivery()

    raise ValueError(f"Unknown MAIL_DELIVERY_METHOD: {config.MAIL_DELIVERY_METHOD}")
