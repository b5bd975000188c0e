"""
Tax Rate Repository - Data Access Layer for Tax Rates

Author: Hub Admin team
Date: 2025-10-30
"""
from typing import List, Optional

from hubadmin.domain.order import TaxRate
from hubadmin.core.database import get_db_connection_dict


class TaxRateRepository:
    """Repository for TaxRate data access"""

    def find_all(self) -> List[TaxRate]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id, name, amount FROM tax_rates ORDER BY name, id")
            return [TaxRate(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_by_id(self, tax_rate_id: int) -> Optional[TaxRate]:
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("SELECT id, name, amount FROM tax_rates WHERE id = %s", (tax_rate_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return TaxRate(**row)

        finally:
            cursor.close()
            conn.close()
