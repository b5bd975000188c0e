"""
Enterprise Notification Service
Admin-triggered enterprise emails: resend welcome, reissue confirmation
"""
import logging
import secrets
from datetime import datetime, timezone
from typing import Callable, Optional

from hubadmin.core.exceptions import EnterpriseNotFoundError
from hubadmin.repositories.enterprise_repository import EnterpriseRepository
from hubadmin.services.enterprise_mailer import EnterpriseMailer
from hubadmin.services.mail_delivery import MailMessage

logger = logging.getLogger(__name__)


class EnterpriseNotificationService:

    def __init__(
        self,
        enterprise_repository: Optional[EnterpriseRepository] = None,
        mailer: Optional[EnterpriseMailer] = None,
        token_factory: Callable[[], str] = lambda: secrets.token_urlsafe(20)
    ):
        self.enterprise_repository = enterprise_repository or EnterpriseRepository()
        self.mailer = mailer or EnterpriseMailer(enterprise_repository=self.enterprise_repository)
        self.token_factory = token_factory

    def resend_welcome(self, enterprise_id: int) -> MailMessage:
        enterprise = self.enterprise_repository.find_by_id(enterprise_id)
        if enterprise is None:
            raise EnterpriseNotFoundError(enterprise_id)
        return self.mailer.welcome(enterprise)

    def send_confirmation_instructions(self, enterprise_id: int) -> MailMessage:
        """
        Issue a new confirmation token and mail it

        The token replaces any earlier one.
        """
        token = self.token_factory()
        sent_at = datetime.now(timezone.utc)

        if not self.enterprise_repository.update_confirmation_token(enterprise_id, token, sent_at):
            raise EnterpriseNotFoundError(enterprise_id)

        logger.info(f"Issued confirmation token for enterprise {enterprise_id}")
        return self.mailer.confirmation_instructions(enterprise_id, token)
