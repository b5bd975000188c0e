"""
Domain errors raised by services and translated to HTTP responses by the routers
"""
from fastapi import status


class HubAdminError(Exception):
    """Base class for business-rule failures"""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(HubAdminError):
    status_code = status.HTTP_404_NOT_FOUND


class EnterpriseNotFoundError(NotFoundError):
    def __init__(self, enterprise_id):
        super().__init__(f"Enterprise {enterprise_id} not found")
        self.enterprise_id = enterprise_id


class OrderNotFoundError(NotFoundError):
    def __init__(self, number: str):
        super().__init__(f"Order {number} not found")
        self.number = number


class PermissionDeniedError(HubAdminError):
    status_code = status.HTTP_403_FORBIDDEN


class OrderLockedError(HubAdminError):
    """Distributor and order cycle are frozen once the order is finalized"""
    status_code = status.HTTP_409_CONFLICT


class InvalidDistributionError(HubAdminError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class VariantNotAvailableError(HubAdminError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class PaymentNotCapturableError(HubAdminError):
    status_code = status.HTTP_409_CONFLICT
