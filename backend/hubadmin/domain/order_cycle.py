"""
Order Cycle Domain Model

An order cycle is a time-boxed trading window run by a coordinator. Suppliers
send products in (incoming exchanges) and distributors receive a selection of
variants to sell (outgoing exchanges).

Author: Hub Admin team
Date: 2025-10-29
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime, timezone


class OrderCycle(BaseModel):
    """
    Order cycle with its exchanges flattened

    Fields:
        coordinator_id: Enterprise running the cycle
        orders_open_at / orders_close_at: Trading window, both required
            for the cycle to be open
        supplier_ids: Enterprises with incoming exchanges
        distributor_variants: distributor id -> variant ids it sells in
            this cycle (outgoing exchanges)
    """

    id: int = Field(..., description="Order cycle ID")
    name: str = Field(..., description="Order cycle name")
    coordinator_id: int = Field(..., description="Coordinator enterprise ID")
    orders_open_at: Optional[datetime] = Field(None, description="Opening time")
    orders_close_at: Optional[datetime] = Field(None, description="Closing time")
    supplier_ids: List[int] = Field(default_factory=list, description="Supplier enterprise IDs")
    distributor_variants: Dict[int, List[int]] = Field(
        default_factory=dict,
        description="Variant IDs distributed by each distributor"
    )

    model_config = ConfigDict(from_attributes=True)

    @property
    def distributor_ids(self) -> List[int]:
        return sorted(self.distributor_variants.keys())

    def is_open(self, now: Optional[datetime] = None) -> bool:
        if self.orders_open_at is None or self.orders_close_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.orders_open_at <= now < self.orders_close_at

    def has_distributor(self, distributor_id: int) -> bool:
        return distributor_id in self.distributor_variants

    def variants_distributed_by(self, distributor_id: int) -> List[int]:
        return list(self.distributor_variants.get(distributor_id, []))

    def distributes(self, distributor_id: int, variant_id: int) -> bool:
        return variant_id in self.distributor_variants.get(distributor_id, [])

    def involves_any(self, enterprise_ids) -> bool:
        """True if the cycle is coordinated by, or distributes through, one of the enterprises"""
        enterprise_ids = set(enterprise_ids)
        if self.coordinator_id in enterprise_ids:
            return True
        return bool(enterprise_ids.intersection(self.distributor_variants.keys()))
