"""
Payment Service
Captures pending payments from the admin order screens
"""
import logging
from typing import Optional, Tuple

from hubadmin.core.auth import TokenUser
from hubadmin.core.exceptions import PaymentNotCapturableError
from hubadmin.domain.order import Order
from hubadmin.repositories.order_repository import OrderRepository
from hubadmin.services.order_admin_service import OrderAdminService

logger = logging.getLogger(__name__)

PAYMENT_UPDATED = "Payment Updated"


class PaymentService:
    """
    Payment capture

    Capturing marks the payment completed; the order's payment total and
    payment state follow. Talking to a payment gateway is not done here,
    manual methods (check, cash) are captured as-is.
    """

    def __init__(
        self,
        order_admin_service: Optional[OrderAdminService] = None,
        order_repository: Optional[OrderRepository] = None
    ):
        self.order_admin_service = order_admin_service or OrderAdminService()
        self.order_repository = order_repository or self.order_admin_service.order_repository

    def capture(self, user: TokenUser, number: str, payment_id: Optional[int] = None) -> Tuple[Order, str]:
        """
        Capture one payment on the order

        Args:
            payment_id: Payment to capture; the first capturable one when None

        Returns:
            Tuple of (updated order, flash message)

        Raises:
            PaymentNotCapturableError: No such payment, or it is not pending/checkout
        """
        order = self.order_admin_service.get_order(user, number)

        if payment_id is None:
            payment = order.capturable_payment()
            if payment is None:
                raise PaymentNotCapturableError(f"Order {order.number} has no payment to capture")
        else:
            payment = next((p for p in order.payments if p.id == payment_id), None)
            if payment is None:
                raise PaymentNotCapturableError(f"Payment {payment_id} does not belong to order {order.number}")
            if not payment.can_capture:
                raise PaymentNotCapturableError(f"Payment {payment_id} is {payment.state} and cannot be captured")

        if not self.order_repository.capture_payment(payment.id):
            raise PaymentNotCapturableError(f"Payment {payment.id} was captured or changed by someone else")
        payment.state = 'completed'

        order.update_totals()
        self.order_repository.save_totals(order)

        logger.info(
            f"Captured payment {payment.id} ({payment.amount}) on order {order.number}, "
            f"payment state now {order.payment_state}"
        )
        return order, PAYMENT_UPDATED
