"""
Order Admin Service
Business rules behind the admin "Orders" screens

Handles:
- Order index scoped to the user's enterprises
- New orders and line items
- Distributor / order cycle assignment (frozen once finalized)
- Finalizing orders

Author: Hub Admin team
Date: 2025-10-31
"""
import logging
import secrets
from typing import Callable, Dict, List, Optional, Tuple
from datetime import datetime, timezone

from hubadmin.core.auth import TokenUser
from hubadmin.core.exceptions import (
    HubAdminError,
    InvalidDistributionError,
    OrderLockedError,
    OrderNotFoundError,
    PermissionDeniedError,
    VariantNotAvailableError,
)
from hubadmin.domain.order import Order, OrderFilters
from hubadmin.domain.product import Variant
from hubadmin.repositories.enterprise_repository import EnterpriseRepository
from hubadmin.repositories.order_cycle_repository import OrderCycleRepository
from hubadmin.repositories.order_repository import OrderRepository
from hubadmin.repositories.variant_repository import VariantRepository
from hubadmin.services.permissions import OrderPermissions

logger = logging.getLogger(__name__)

# Where the admin goes after choosing the distribution of a new order
NEXT_STEP_CUSTOMER_DETAILS = "customer_details"

ORDER_NUMBER_ATTEMPTS = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderAdminService:
    """
    Service for the admin order workflows

    Every public method takes the acting user and enforces what that user
    may see and change.
    """

    def __init__(
        self,
        order_repository: Optional[OrderRepository] = None,
        variant_repository: Optional[VariantRepository] = None,
        enterprise_repository: Optional[EnterpriseRepository] = None,
        order_cycle_repository: Optional[OrderCycleRepository] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.order_repository = order_repository or OrderRepository()
        self.variant_repository = variant_repository or VariantRepository()
        self.enterprise_repository = enterprise_repository or EnterpriseRepository()
        self.order_cycle_repository = order_cycle_repository or OrderCycleRepository()
        self.clock = clock

    def permissions_for(self, user: TokenUser) -> OrderPermissions:
        return OrderPermissions(
            user,
            self.enterprise_repository,
            self.order_cycle_repository,
            now=self.clock()
        )

    # ============================================
    # Queries
    # ============================================

    def list_orders(self, user: TokenUser, filters: OrderFilters) -> Tuple[List[Order], int]:
        """
        Orders for the index page, newest first

        Enterprise users see orders of their enterprises and the orders
        they created.
        """
        permissions = self.permissions_for(user)
        return self.order_repository.find_all(
            filters,
            enterprise_ids=permissions.managed_enterprise_ids,
            created_by_id=user.id
        )

    def get_order(self, user: TokenUser, number: str) -> Order:
        """
        Load an order the user may manage

        Raises:
            OrderNotFoundError: No such order
            PermissionDeniedError: Order belongs to enterprises the user does not manage
        """
        order = self.order_repository.find_by_number(number)
        if order is None:
            raise OrderNotFoundError(number)

        if not self.permissions_for(user).can_manage_order(order):
            raise PermissionDeniedError(f"You cannot manage order {number}")

        return order

    def distribution_form(self, user: TokenUser, number: str) -> Dict:
        """
        Distributor / order cycle part of the order edit form

        Editable orders get option lists. Finalized orders get no selects,
        only read-only labels.
        """
        order = self.get_order(user, number)

        if order.is_finalized:
            return {
                'editable': False,
                'distributor_label': f"Distributor: {order.distributor_name or 'None'}",
                'order_cycle_label': f"Order cycle: {order.order_cycle_name or 'None'}",
            }

        permissions = self.permissions_for(user)
        return {
            'editable': True,
            'distributor_id': order.distributor_id,
            'order_cycle_id': order.order_cycle_id,
            'distributor_options': permissions.distributor_options(),
            'order_cycle_options': permissions.order_cycle_options(order.distributor_id),
        }

    def search_variants(self, user: TokenUser, number: str, query: str, limit: int = 20) -> List[Variant]:
        """
        Variants that may be added to the order

        With a distribution set: only what the order cycle sells through the
        order's distributor. Without one: everything for admins, the
        user's visible cycles otherwise.
        """
        order = self.get_order(user, number)
        variant_ids = self._allowed_variant_ids(user, order)
        return self.variant_repository.search(query, variant_ids=variant_ids, limit=limit)

    # ============================================
    # Commands
    # ============================================

    def create_order(self, user: TokenUser, email: Optional[str] = None) -> Order:
        number = self._generate_number()
        order = self.order_repository.create(number, created_by_id=user.id, email=email)
        logger.info(f"Order {order.number} created by user {user.id}")
        return order

    def add_line_item(self, user: TokenUser, number: str, variant_id: int, quantity: int = 1) -> Order:
        """
        Add a variant to the order, or increase its quantity

        Raises:
            VariantNotAvailableError: Variant unknown, or not sold through
                the order's distributor and order cycle
        """
        if quantity < 1:
            raise HubAdminError("Quantity must be at least 1")

        order = self.get_order(user, number)

        variant = self.variant_repository.find_by_id(variant_id)
        if variant is None:
            raise VariantNotAvailableError(f"Variant {variant_id} not found")

        allowed = self._allowed_variant_ids(user, order)
        if allowed is not None and variant.id not in allowed:
            raise VariantNotAvailableError(
                f"{variant.full_name} is not available from this order's distributor and order cycle"
            )

        existing = next((line for line in order.line_items if line.variant_id == variant.id), None)
        if existing is not None:
            new_quantity = self.order_repository.increment_line_item_quantity(existing.id, quantity)
            if new_quantity is None:
                raise HubAdminError(f"Line item {existing.id} no longer exists on order {order.number}")
            existing.quantity = new_quantity
        else:
            line = self.order_repository.add_line_item(order.id, variant.id, quantity, variant.price)
            line.product_name = variant.product_name
            line.sku = variant.sku
            order.line_items.append(line)

        order.update_totals()
        self.order_repository.save_totals(order)

        logger.info(f"Added {quantity} x variant {variant.id} to order {order.number}")
        return order

    def update_distribution(
        self,
        user: TokenUser,
        number: str,
        distributor_id: int,
        order_cycle_id: int
    ) -> Tuple[Order, str]:
        """
        Set the order's distributor and order cycle

        Returns:
            Tuple of (updated order, next step for the admin)

        Raises:
            OrderLockedError: Order already finalized
            PermissionDeniedError: Distributor not selectable by the user
            InvalidDistributionError: Distributor disabled, order cycle not
                selectable for it, or line items not sold through the pair
        """
        order = self.get_order(user, number)

        if order.is_finalized:
            raise OrderLockedError(
                "Distributor and order cycle cannot be changed once the order has been finalized"
            )

        permissions = self.permissions_for(user)

        distributor = permissions.find_selectable_distributor(distributor_id)
        if distributor is None:
            raise PermissionDeniedError(f"You cannot select distributor {distributor_id}")

        order_cycle = permissions.find_selectable_order_cycle(order_cycle_id, distributor.id)
        if order_cycle is None:
            raise InvalidDistributionError(
                f"Order cycle {order_cycle_id} is not open for distributor {distributor.name}"
            )

        unavailable = [
            line for line in order.line_items
            if not order_cycle.distributes(distributor.id, line.variant_id)
        ]
        if unavailable:
            names = ", ".join(line.product_name or str(line.variant_id) for line in unavailable)
            raise InvalidDistributionError(
                f"{distributor.name} does not sell {names} in {order_cycle.name}"
            )

        self.order_repository.update_distribution(order.id, distributor.id, order_cycle.id)

        order.distributor_id = distributor.id
        order.distributor_name = distributor.name
        order.order_cycle_id = order_cycle.id
        order.order_cycle_name = order_cycle.name

        logger.info(
            f"Order {order.number} assigned to distributor {distributor.id} "
            f"and order cycle {order_cycle.id} by user {user.id}"
        )
        return order, NEXT_STEP_CUSTOMER_DETAILS

    def finalize_order(self, user: TokenUser, number: str) -> Order:
        """
        Complete the order: state becomes 'complete' and payment state is set

        Raises:
            OrderLockedError: Already finalized
            InvalidDistributionError: No distribution or no line items
        """
        order = self.get_order(user, number)

        if order.is_finalized:
            raise OrderLockedError(f"Order {order.number} has already been finalized")
        if not order.has_distribution:
            raise InvalidDistributionError("Choose a distributor and order cycle before finalizing")
        if not order.line_items:
            raise InvalidDistributionError("An order needs at least one line item to be finalized")

        completed_at = self.clock()
        self.order_repository.mark_complete(order.id, completed_at)

        order.state = 'complete'
        order.completed_at = completed_at
        order.update_totals()
        self.order_repository.save_totals(order)

        logger.info(f"Order {order.number} finalized, payment state {order.payment_state}")
        return order

    # ============================================
    # Helpers
    # ============================================

    def _allowed_variant_ids(self, user: TokenUser, order: Order) -> Optional[List[int]]:
        if order.has_distribution:
            cycle = self.order_cycle_repository.find_by_id(order.order_cycle_id)
            if cycle is None:
                return []
            return cycle.variants_distributed_by(order.distributor_id)
        return self.permissions_for(user).visible_variant_ids()

    def _generate_number(self) -> str:
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            number = "R" + "".join(str(secrets.randbelow(10)) for _ in range(9))
            if not self.order_repository.number_exists(number):
                return number
        raise RuntimeError("Could not generate a unique order number")
