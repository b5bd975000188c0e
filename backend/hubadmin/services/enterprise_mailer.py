"""
Enterprise Mailer
Welcome and email-confirmation messages sent to enterprises

Bodies are Jinja2 templates under hubadmin/templates/enterprise_mailer/,
one .txt and one .html per message.

Author: Hub Admin team
Date: 2025-11-01
"""
import logging
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from hubadmin.core.config import Settings, settings
from hubadmin.core.exceptions import EnterpriseNotFoundError
from hubadmin.domain.enterprise import Enterprise
from hubadmin.repositories.enterprise_repository import EnterpriseRepository
from hubadmin.services.mail_delivery import MailDelivery, MailMessage, build_delivery

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def build_template_environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


class EnterpriseMailer:
    """
    Sends enterprise notifications

    Messages are delivered immediately and returned to the caller. Delivery
    errors are not retried.
    """

    def __init__(
        self,
        enterprise_repository: Optional[EnterpriseRepository] = None,
        delivery: Optional[MailDelivery] = None,
        config: Settings = settings,
        template_env: Optional[Environment] = None
    ):
        self.enterprise_repository = enterprise_repository or EnterpriseRepository()
        self.delivery = delivery or build_delivery(config)
        self.config = config
        self.template_env = template_env or build_template_environment()

    @property
    def from_address(self) -> str:
        return self.config.MAILS_FROM

    def welcome(self, enterprise: Enterprise) -> MailMessage:
        """Tell the enterprise it is now listed on the site"""
        return self._mail(
            "welcome",
            to=enterprise.email,
            subject=f"{enterprise.name} is now on {self.config.SITE_NAME}",
            enterprise=enterprise,
        )

    def confirmation_instructions(
        self,
        record: Union[Enterprise, int],
        token: str,
        opts: Optional[dict] = None
    ) -> MailMessage:
        """
        Ask the enterprise to confirm its email address

        Args:
            record: Enterprise, or the ID of one
            token: Confirmation token to embed in the link
            opts: Accepted for interface compatibility, unused

        Raises:
            EnterpriseNotFoundError: record is an ID with no enterprise
        """
        enterprise = self._find_enterprise(record)
        return self._mail(
            "confirmation_instructions",
            to=enterprise.contact_email,
            subject=f"Please confirm your email for {enterprise.name}",
            enterprise=enterprise,
            token=token,
            confirmation_url=self.confirmation_url(token),
        )

    def confirmation_url(self, token: str) -> str:
        base = self.config.SITE_URL.rstrip("/")
        return f"{base}/enterprises/confirmation?{urlencode({'confirmation_token': token})}"

    def _find_enterprise(self, record: Union[Enterprise, int]) -> Enterprise:
        if isinstance(record, Enterprise):
            return record

        enterprise = self.enterprise_repository.find_by_id(record)
        if enterprise is None:
            raise EnterpriseNotFoundError(record)
        return enterprise

    def _mail(self, template: str, to: str, subject: str, **context) -> MailMessage:
        context.setdefault("site_name", self.config.SITE_NAME)
        context.setdefault("site_url", self.config.SITE_URL)

        text_body = self.template_env.get_template(f"enterprise_mailer/{template}.txt").render(**context)
        html_body = self.template_env.get_template(f"enterprise_mailer/{template}.html").render(**context)

        message = MailMessage(
            to=to,
            from_address=self.from_address,
            subject=subject,
            text_body=text_body,
            html_body=html_body,
        )
        self.delivery.deliver(message)

        logger.info(f"Sent {template} email to {to}: {subject}")
        return message
