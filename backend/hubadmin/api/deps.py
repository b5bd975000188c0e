"""
Service providers for the routers

Kept as FastAPI dependencies so tests can swap them through
app.dependency_overrides.
"""
from fastapi import Depends

from hubadmin.services.adjustment_service import AdjustmentService
from hubadmin.services.enterprise_notification_service import EnterpriseNotificationService
from hubadmin.services.order_admin_service import OrderAdminService
from hubadmin.services.payment_service import PaymentService


def get_order_admin_service() -> OrderAdminService:
    return OrderAdminService()


def get_payment_service(
    order_admin_service: OrderAdminService = Depends(get_order_admin_service)
) -> PaymentService:
    return PaymentService(order_admin_service=order_admin_service)


def get_adjustment_service(
    order_admin_service: OrderAdminService = Depends(get_order_admin_service)
) -> AdjustmentService:
    return AdjustmentService(order_admin_service=order_admin_service)


def get_enterprise_notification_service() -> EnterpriseNotificationService:
    return EnterpriseNotificationService()
