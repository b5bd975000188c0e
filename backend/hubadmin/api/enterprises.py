"""
Admin Enterprise Notification Endpoints
Resend the welcome email or reissue email-confirmation instructions
"""
from fastapi import APIRouter, Depends, HTTPException

from hubadmin.api.deps import get_enterprise_notification_service
from hubadmin.core.auth import TokenUser, require_admin
from hubadmin.core.exceptions import HubAdminError
from hubadmin.services.enterprise_notification_service import EnterpriseNotificationService

router = APIRouter()


def _summary(message) -> dict:
    return {"to": message.to, "from": message.from_address, "subject": message.subject}


@router.post("/{enterprise_id}/welcome-email")
async def resend_welcome_email(
    enterprise_id: int,
    user: TokenUser = Depends(require_admin),
    service: EnterpriseNotificationService = Depends(get_enterprise_notification_service)
):
    try:
        message = service.resend_welcome(enterprise_id)
        return {"status": "success", "data": _summary(message)}

    except HubAdminError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sending welcome email: {str(e)}")


@router.post("/{enterprise_id}/confirmation-email")
async def send_confirmation_email(
    enterprise_id: int,
    user: TokenUser = Depends(require_admin),
    service: EnterpriseNotificationService = Depends(get_enterprise_notification_service)
):
    """Issues a new confirmation token and mails the instructions"""
    try:
        message = service.send_confirmation_instructions(enterprise_id)
        return {"status": "success", "data": _summary(message)}

    except HubAdminError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error sending confirmation email: {str(e)}")
