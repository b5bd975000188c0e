"""
Order Permissions
Works out which distributors, order cycles and orders a user may work with

Admins see everything. Enterprise users see the enterprises they hold a role
for ("managed enterprises") and what hangs off them:

- distributors: managed distributors only
- order cycles: open cycles coordinated by, or distributing through, a
  managed enterprise
- orders: distributed by a managed enterprise, in a cycle coordinated by
  one, or created by the user

Author: Hub Admin team
Date: 2025-10-31
"""
import logging
from typing import Dict, List, Optional
from datetime import datetime, timezone

from hubadmin.core.auth import TokenUser
from hubadmin.domain.enterprise import Enterprise
from hubadmin.domain.order import Order
from hubadmin.domain.order_cycle import OrderCycle
from hubadmin.repositories.enterprise_repository import EnterpriseRepository
from hubadmin.repositories.order_cycle_repository import OrderCycleRepository

logger = logging.getLogger(__name__)


class OrderPermissions:
    """
    Permission checks for one user

    Lookups are cached for the lifetime of the instance, which is a single
    request.
    """

    def __init__(
        self,
        user: TokenUser,
        enterprise_repository: EnterpriseRepository,
        order_cycle_repository: OrderCycleRepository,
        now: Optional[datetime] = None
    ):
        self.user = user
        self.enterprise_repository = enterprise_repository
        self.order_cycle_repository = order_cycle_repository
        self.now = now or datetime.now(timezone.utc)

        self._managed_ids = None
        self._order_cycles = None
        self._distributors = None

    @property
    def managed_enterprise_ids(self) -> Optional[List[int]]:
        """Managed enterprise IDs, or None for admins (no restriction)"""
        if self.user.is_admin:
            return None
        if self._managed_ids is None:
            self._managed_ids = self.enterprise_repository.find_managed_ids(self.user.id)
        return self._managed_ids

    def visible_order_cycles(self) -> List[OrderCycle]:
        if self._order_cycles is None:
            cycles = [c for c in self.order_cycle_repository.find_open(self.now) if c.is_open(self.now)]
            managed = self.managed_enterprise_ids
            if managed is not None:
                cycles = [c for c in cycles if c.involves_any(managed)]
            self._order_cycles = sorted(cycles, key=lambda c: (c.name.lower(), c.id))
        return self._order_cycles

    def selectable_distributors(self) -> List[Enterprise]:
        if self._distributors is None:
            self._distributors = self.enterprise_repository.find_distributors(self.managed_enterprise_ids)
        return self._distributors

    def distributor_options(self) -> List[Dict]:
        """
        Distributor choices for the order form

        A distributor without an open order cycle is listed but disabled.
        """
        cycles = self.visible_order_cycles()
        options = []
        for distributor in self.selectable_distributors():
            has_cycle = any(c.has_distributor(distributor.id) for c in cycles)
            options.append({
                'id': distributor.id,
                'name': distributor.name,
                'disabled': not has_cycle,
            })
        return options

    def order_cycle_options(self, distributor_id: Optional[int] = None) -> List[Dict]:
        """Order cycle choices, filtered to one distributor when given"""
        cycles = self.visible_order_cycles()
        if distributor_id is not None:
            cycles = [c for c in cycles if c.has_distributor(distributor_id)]
        return [
            {'id': c.id, 'name': c.name, 'distributor_ids': c.distributor_ids}
            for c in cycles
        ]

    def find_selectable_distributor(self, distributor_id: int) -> Optional[Enterprise]:
        for distributor in self.selectable_distributors():
            if distributor.id == distributor_id:
                return distributor
        return None

    def find_selectable_order_cycle(self, order_cycle_id: int, distributor_id: int) -> Optional[OrderCycle]:
        for cycle in self.visible_order_cycles():
            if cycle.id == order_cycle_id and cycle.has_distributor(distributor_id):
                return cycle
        return None

    def can_manage_order(self, order: Order) -> bool:
        managed = self.managed_enterprise_ids
        if managed is None:
            return True
        if order.created_by_id == self.user.id:
            return True
        if order.distributor_id in managed:
            return True
        if order.order_cycle_id is not None:
            cycle = self.order_cycle_repository.find_by_id(order.order_cycle_id)
            if cycle is not None and cycle.coordinator_id in managed:
                return True
        logger.debug(f"User {self.user.id} cannot manage order {order.number}")
        return False

    def visible_variant_ids(self) -> Optional[List[int]]:
        """
        Variants an enterprise user may add before the order has a
        distribution: everything sold in their visible open cycles.
        None for admins.
        """
        if self.managed_enterprise_ids is None:
            return None
        variant_ids = set()
        for cycle in self.visible_order_cycles():
            for variants in cycle.distributor_variants.values():
                variant_ids.update(variants)
        return sorted(variant_ids)
