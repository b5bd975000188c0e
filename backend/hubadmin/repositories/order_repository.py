"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and their children (line items,
adjustments, payments) and returns Order domain models.

Author: Hub Admin team
Date: 2025-10-30
"""
from typing import List, Optional, Tuple, Iterable
from datetime import datetime

from hubadmin.domain.order import Order, LineItem, Adjustment, Payment, OrderFilters
from hubadmin.core.database import get_db_connection_dict, like_pattern


ORDER_COLUMNS = """
    o.id, o.number, o.user_id, o.email,
    o.distributor_id, o.order_cycle_id,
    o.state, o.payment_state,
    o.item_total, o.adjustment_total, o.total, o.payment_total,
    o.completed_at, o.created_by_id, o.created_at, o.updated_at,
    d.name as distributor_name,
    oc.name as order_cycle_name
"""

ORDER_JOINS = """
    FROM orders o
    LEFT JOIN enterprises d ON o.distributor_id = d.id
    LEFT JOIN order_cycles oc ON o.order_cycle_id = oc.id
"""


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    Returns Order domain models with related data (distributor, order cycle, children).
    """

    def find_by_number(self, number: str) -> Optional[Order]:
        """
        Find order by number with line items, adjustments and payments

        Args:
            number: Order number (R123456789)

        Returns:
            Order with all related data or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                {ORDER_JOINS}
                WHERE o.number = %s
            """, (number,))

            row = cursor.fetchone()
            if not row:
                return None

            order_id = row['id']

            cursor.execute("""
                SELECT
                    li.id, li.order_id, li.variant_id, li.quantity, li.price,
                    p.name as product_name, v.sku
                FROM line_items li
                LEFT JOIN variants v ON li.variant_id = v.id
                LEFT JOIN products p ON v.product_id = p.id
                WHERE li.order_id = %s
                ORDER BY li.id
            """, (order_id,))
            line_items = cursor.fetchall()

            cursor.execute("""
                SELECT id, order_id, label, amount, included_tax, created_at
                FROM adjustments
                WHERE order_id = %s
                ORDER BY id
            """, (order_id,))
            adjustments = cursor.fetchall()

            cursor.execute("""
                SELECT id, order_id, amount, state, payment_method, created_at
                FROM payments
                WHERE order_id = %s
                ORDER BY id
            """, (order_id,))
            payments = cursor.fetchall()

            order_dict = dict(row)
            order_dict['line_items'] = [LineItem(**item) for item in line_items]
            order_dict['adjustments'] = [Adjustment(**adj) for adj in adjustments]
            order_dict['payments'] = [Payment(**payment) for payment in payments]

            return Order(**order_dict)

        finally:
            cursor.close()
            conn.close()

    def find_all(
        self,
        filters: OrderFilters,
        enterprise_ids: Optional[Iterable[int]] = None,
        created_by_id: Optional[int] = None
    ) -> Tuple[List[Order], int]:
        """
        Find orders for the admin index

        Args:
            filters: state, payment_state, search (number or email), limit, offset
            enterprise_ids: When given, only orders distributed by, or in an
                order cycle coordinated by, one of these enterprises
            created_by_id: With enterprise_ids, also orders this user created

        Returns:
            Tuple of (list of orders with payments, total count)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = []
            params = []

            if enterprise_ids is not None:
                ids = list(enterprise_ids)
                scope = "o.distributor_id = ANY(%s) OR oc.coordinator_id = ANY(%s)"
                params.extend([ids, ids])
                if created_by_id is not None:
                    scope += " OR o.created_by_id = %s"
                    params.append(created_by_id)
                conditions.append(f"({scope})")

            if filters.state:
                conditions.append("o.state = %s")
                params.append(filters.state)

            if filters.payment_state:
                conditions.append("o.payment_state = %s")
                params.append(filters.payment_state)

            if filters.search:
                conditions.append("(o.number ILIKE %s OR o.email ILIKE %s)")
                search_param = like_pattern(filters.search)
                params.extend([search_param, search_param])

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                {ORDER_JOINS}
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                {ORDER_JOINS}
                WHERE {where_clause}
                ORDER BY o.created_at DESC, o.id DESC
                LIMIT %s OFFSET %s
            """, params + [filters.limit, filters.offset])

            order_rows = cursor.fetchall()
            if not order_rows:
                return [], total

            # Payments for every order on the page in one query
            order_ids = [row['id'] for row in order_rows]
            cursor.execute("""
                SELECT id, order_id, amount, state, payment_method, created_at
                FROM payments
                WHERE order_id = ANY(%s)
                ORDER BY id
            """, (order_ids,))

            payments_by_order = {}
            for payment in cursor.fetchall():
                payments_by_order.setdefault(payment['order_id'], []).append(Payment(**payment))

            orders = []
            for row in order_rows:
                order_dict = dict(row)
                order_dict['payments'] = payments_by_order.get(row['id'], [])
                orders.append(Order(**order_dict))

            return orders, total

        finally:
            cursor.close()
            conn.close()

    def number_exists(self, number: str) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT 1 FROM orders WHERE number = %s", (number,))
            return cursor.fetchone() is not None

        finally:
            cursor.close()
            conn.close()

    def create(self, number: str, created_by_id: Optional[int], email: Optional[str] = None) -> Order:
        """
        Insert a new cart order

        Returns:
            The created Order (no children yet)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO orders (number, email, state, created_by_id)
                VALUES (%s, %s, 'cart', %s)
                RETURNING id, number, user_id, email, distributor_id, order_cycle_id,
                          state, payment_state, item_total, adjustment_total, total,
                          payment_total, completed_at, created_by_id, created_at, updated_at
            """, (number, email, created_by_id))

            row = cursor.fetchone()
            conn.commit()
            return Order(**row)

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def update_distribution(self, order_id: int, distributor_id: int, order_cycle_id: int) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE orders SET
                    distributor_id = %s,
                    order_cycle_id = %s,
                    updated_at = NOW()
                WHERE id = %s
            """, (distributor_id, order_cycle_id, order_id))

            conn.commit()
            return cursor.rowcount == 1

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def save_totals(self, order: Order) -> bool:
        """Persist totals and payment state computed by Order.update_totals()"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE orders SET
                    item_total = %s,
                    adjustment_total = %s,
                    total = %s,
                    payment_total = %s,
                    payment_state = %s,
                    updated_at = NOW()
                WHERE id = %s
            """, (
                order.item_total,
                order.adjustment_total,
                order.total,
                order.payment_total,
                order.payment_state,
                order.id
            ))

            conn.commit()
            return cursor.rowcount == 1

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def mark_complete(self, order_id: int, completed_at: datetime) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE orders SET
                    state = 'complete',
                    completed_at = %s,
                    updated_at = NOW()
                WHERE id = %s
            """, (completed_at, order_id))

            conn.commit()
            return cursor.rowcount == 1

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    # ============================================
    # Children
    # ============================================

    def add_line_item(self, order_id: int, variant_id: int, quantity: int, price) -> LineItem:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO line_items (order_id, variant_id, quantity, price)
                VALUES (%s, %s, %s, %s)
                RETURNING id, order_id, variant_id, quantity, price
            """, (order_id, variant_id, quantity, price))

            row = cursor.fetchone()
            conn.commit()
            return LineItem(**row)

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def increment_line_item_quantity(self, line_item_id: int, quantity: int) -> Optional[int]:
        """
        Add to a line item's quantity in the database

        Returns:
            The new quantity, or None if the line item is gone
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(
                "UPDATE line_items SET quantity = quantity + %s WHERE id = %s RETURNING quantity",
                (quantity, line_item_id)
            )

            row = cursor.fetchone()
            conn.commit()
            return row['quantity'] if row else None

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def create_adjustment(self, adjustment: Adjustment) -> Adjustment:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO adjustments (order_id, label, amount, included_tax)
                VALUES (%s, %s, %s, %s)
                RETURNING id, order_id, label, amount, included_tax, created_at
            """, (adjustment.order_id, adjustment.label, adjustment.amount, adjustment.included_tax))

            row = cursor.fetchone()
            conn.commit()
            return Adjustment(**row)

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def update_adjustment(self, adjustment: Adjustment) -> bool:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE adjustments SET
                    label = %s,
                    amount = %s,
                    included_tax = %s
                WHERE id = %s AND order_id = %s
            """, (
                adjustment.label,
                adjustment.amount,
                adjustment.included_tax,
                adjustment.id,
                adjustment.order_id
            ))

            conn.commit()
            return cursor.rowcount == 1

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()

    def capture_payment(self, payment_id: int) -> bool:
        """
        Mark a pending or checkout payment completed

        Returns:
            False if the payment is missing or no longer capturable
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE payments SET state = 'completed'
                WHERE id = %s AND state IN ('pending', 'checkout')
            """, (payment_id,))

            conn.commit()
            return cursor.rowcount == 1

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()
