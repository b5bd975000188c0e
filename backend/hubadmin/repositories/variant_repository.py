"""
Variant Repository - Data Access Layer for purchasable variants

Author: Hub Admin team
Date: 2025-10-30
"""
from typing import List, Optional, Iterable

from hubadmin.domain.product import Variant
from hubadmin.core.database import get_db_connection_dict, like_pattern


VARIANT_SELECT = """
    SELECT
        v.id, v.product_id, p.name as product_name, v.sku,
        v.unit_description, v.price, p.supplier_id
    FROM variants v
    JOIN products p ON v.product_id = p.id
"""


class VariantRepository:
    """Repository for Variant data access"""

    def find_by_id(self, variant_id: int) -> Optional[Variant]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"{VARIANT_SELECT} WHERE v.id = %s", (variant_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return Variant(**row)

        finally:
            cursor.close()
            conn.close()

    def search(
        self,
        query: str,
        variant_ids: Optional[Iterable[int]] = None,
        limit: int = 20
    ) -> List[Variant]:
        """
        Search variants by product name or SKU

        Args:
            query: Text to match (case-insensitive, substring)
            variant_ids: Restrict to these variants (None = all)
            limit: Maximum results to return
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            conditions = ["(p.name ILIKE %s OR v.sku ILIKE %s)"]
            search_param = like_pattern(query)
            params = [search_param, search_param]

            if variant_ids is not None:
                conditions.append("v.id = ANY(%s)")
                params.append(list(variant_ids))

            cursor.execute(f"""
                {VARIANT_SELECT}
                WHERE {" AND ".join(conditions)}
                ORDER BY p.name, v.id
                LIMIT %s
            """, params + [limit])

            return [Variant(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()
