"""
Adjustment Service
Manual adjustments on orders, with the tax they include

Adjustment amounts are tax inclusive. Choosing a tax rate stores the tax
contained in the amount (110 at 10% includes 10.00); choosing "Remove tax"
stores zero.

Author: Hub Admin team
Date: 2025-11-02
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from hubadmin.core.auth import TokenUser
from hubadmin.core.exceptions import HubAdminError, NotFoundError
from hubadmin.domain.order import Adjustment, Order, TaxRate, money
from hubadmin.repositories.order_repository import OrderRepository
from hubadmin.repositories.tax_rate_repository import TaxRateRepository
from hubadmin.services.order_admin_service import OrderAdminService

logger = logging.getLogger(__name__)

REMOVE_TAX_LABEL = "Remove tax"

# update_adjustment default: leave the tax rate as it is
KEEP_TAX_RATE = object()


def closest_tax_rate(adjustment: Adjustment, tax_rates: List[TaxRate]) -> Optional[TaxRate]:
    """
    Tax rate that best explains the adjustment's included tax

    The stored tax is turned back into a rate (tax / (amount - tax)) and the
    nearest configured rate wins. No tax means no rate.
    """
    included_tax = Decimal(adjustment.included_tax)
    if included_tax == 0 or not tax_rates:
        return None

    net = Decimal(adjustment.amount) - included_tax
    if net == 0:
        return None

    implied_rate = included_tax / net
    return min(tax_rates, key=lambda rate: abs(rate.amount - implied_rate))


class AdjustmentService:
    """Create, edit and display order adjustments"""

    def __init__(
        self,
        order_admin_service: Optional[OrderAdminService] = None,
        order_repository: Optional[OrderRepository] = None,
        tax_rate_repository: Optional[TaxRateRepository] = None
    ):
        self.order_admin_service = order_admin_service or OrderAdminService()
        self.order_repository = order_repository or self.order_admin_service.order_repository
        self.tax_rate_repository = tax_rate_repository or TaxRateRepository()

    def list_adjustments(self, user: TokenUser, number: str) -> List[Adjustment]:
        return self.order_admin_service.get_order(user, number).adjustments

    def create_adjustment(
        self,
        user: TokenUser,
        number: str,
        label: str,
        amount,
        tax_rate_id: Optional[int] = None
    ) -> Adjustment:
        order = self.order_admin_service.get_order(user, number)

        amount = self._parse_amount(amount)
        tax_rate = self._find_tax_rate(tax_rate_id)

        adjustment = Adjustment(
            order_id=order.id,
            label=self._clean_label(label),
            amount=amount,
            included_tax=tax_rate.included_tax_for(amount) if tax_rate else Decimal('0.00'),
        )
        adjustment = self.order_repository.create_adjustment(adjustment)

        order.adjustments.append(adjustment)
        self._update_order_totals(order)

        logger.info(
            f"Adjustment '{adjustment.label}' ({adjustment.amount}, tax {adjustment.included_tax}) "
            f"added to order {order.number}"
        )
        return adjustment

    def adjustment_form(self, user: TokenUser, number: str, adjustment_id: int) -> Dict:
        """
        Data for the adjustment edit form

        Included tax is shown read-only; the tax rate select defaults to the
        closest rate, or "Remove tax" when the adjustment carries no tax.
        """
        order = self.order_admin_service.get_order(user, number)
        adjustment = self._find_adjustment(order, adjustment_id)
        tax_rates = self.tax_rate_repository.find_all()
        selected = closest_tax_rate(adjustment, tax_rates)

        return {
            'adjustment': adjustment.to_dict(),
            'included_tax': f"{money(adjustment.included_tax):.2f}",
            'included_tax_editable': False,
            'tax_rate_options': [{'id': None, 'name': REMOVE_TAX_LABEL}] + [
                {'id': rate.id, 'name': rate.name} for rate in tax_rates
            ],
            'selected_tax_rate_id': selected.id if selected else None,
        }

    def update_adjustment(
        self,
        user: TokenUser,
        number: str,
        adjustment_id: int,
        tax_rate_id=KEEP_TAX_RATE,
        label: Optional[str] = None,
        amount=None
    ) -> Adjustment:
        """
        Update an adjustment's label, amount and tax

        tax_rate_id None is "Remove tax" and clears the included tax; a rate
        ID recomputes the tax from that rate. Left as KEEP_TAX_RATE, the
        adjustment keeps its current rate: the tax only changes when the
        amount does.
        """
        order = self.order_admin_service.get_order(user, number)
        adjustment = self._find_adjustment(order, adjustment_id)

        if tax_rate_id is KEEP_TAX_RATE:
            tax_rate = closest_tax_rate(adjustment, self.tax_rate_repository.find_all())
            recompute_tax = amount is not None
        else:
            tax_rate = self._find_tax_rate(tax_rate_id)
            recompute_tax = True

        if label is not None:
            adjustment.label = self._clean_label(label)
        if amount is not None:
            adjustment.amount = self._parse_amount(amount)

        if recompute_tax:
            adjustment.included_tax = tax_rate.included_tax_for(adjustment.amount) if tax_rate else Decimal('0.00')

        self.order_repository.update_adjustment(adjustment)
        self._update_order_totals(order)

        logger.info(
            f"Adjustment {adjustment.id} on order {order.number} updated "
            f"(tax rate {tax_rate.name if tax_rate else 'none'}, tax {adjustment.included_tax})"
        )
        return adjustment

    # ============================================
    # Helpers
    # ============================================

    def _update_order_totals(self, order: Order) -> None:
        order.update_totals()
        self.order_repository.save_totals(order)

    def _find_tax_rate(self, tax_rate_id: Optional[int]) -> Optional[TaxRate]:
        if tax_rate_id is None:
            return None
        tax_rate = self.tax_rate_repository.find_by_id(tax_rate_id)
        if tax_rate is None:
            raise NotFoundError(f"Tax rate {tax_rate_id} not found")
        return tax_rate

    @staticmethod
    def _find_adjustment(order: Order, adjustment_id: int) -> Adjustment:
        for adjustment in order.adjustments:
            if adjustment.id == adjustment_id:
                return adjustment
        raise NotFoundError(f"Adjustment {adjustment_id} not found on order {order.number}")

    @staticmethod
    def _parse_amount(amount) -> Decimal:
        try:
            return money(amount)
        except (InvalidOperation, TypeError, ValueError):
            raise HubAdminError(f"Invalid adjustment amount: {amount!r}")

    @staticmethod
    def _clean_label(label: str) -> str:
        label = (label or "").strip()
        if not label:
            raise HubAdminError("Adjustment label can't be blank")
        return label
