"""
Order Cycle Repository - Data Access Layer for Order Cycles

Order cycles are returned with their exchanges flattened into supplier ids
and the variants each distributor sells.

Author: Hub Admin team
Date: 2025-10-30
"""
from typing import List, Optional
from datetime import datetime

from hubadmin.domain.order_cycle import OrderCycle
from hubadmin.core.database import get_db_connection_dict


class OrderCycleRepository:
    """Repository for OrderCycle data access"""

    def find_by_id(self, order_cycle_id: int) -> Optional[OrderCycle]:
        cycles = self._find(
            "WHERE oc.id = %s",
            [order_cycle_id]
        )
        return cycles[0] if cycles else None

    def find_open(self, now: datetime) -> List[OrderCycle]:
        """Order cycles trading at `now`, sorted by name"""
        return self._find(
            "WHERE oc.orders_open_at <= %s AND oc.orders_close_at > %s",
            [now, now]
        )

    def _find(self, where_clause: str, params: list) -> List[OrderCycle]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT oc.id, oc.name, oc.coordinator_id, oc.orders_open_at, oc.orders_close_at
                FROM order_cycles oc
                {where_clause}
                ORDER BY oc.name, oc.id
            """, params)

            rows = cursor.fetchall()
            if not rows:
                return []

            # All exchanges of these cycles in ONE query
            cycle_ids = [row['id'] for row in rows]
            cursor.execute("""
                SELECT
                    e.order_cycle_id, e.sender_id, e.receiver_id, e.incoming,
                    ev.variant_id
                FROM exchanges e
                LEFT JOIN exchange_variants ev ON ev.exchange_id = e.id
                WHERE e.order_cycle_id = ANY(%s)
                ORDER BY e.id, ev.variant_id
            """, (cycle_ids,))

            suppliers = {cycle_id: [] for cycle_id in cycle_ids}
            distributors = {cycle_id: {} for cycle_id in cycle_ids}

            for exchange in cursor.fetchall():
                cycle_id = exchange['order_cycle_id']
                if exchange['incoming']:
                    if exchange['sender_id'] not in suppliers[cycle_id]:
                        suppliers[cycle_id].append(exchange['sender_id'])
                    continue

                variants = distributors[cycle_id].setdefault(exchange['receiver_id'], [])
                if exchange['variant_id'] is not None and exchange['variant_id'] not in variants:
                    variants.append(exchange['variant_id'])

            return [
                OrderCycle(
                    **row,
                    supplier_ids=suppliers[row['id']],
                    distributor_variants=distributors[row['id']]
                )
                for row in rows
            ]

        finally:
            cursor.close()
            conn.close()
