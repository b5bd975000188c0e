"""
Enterprise Repository - Data Access Layer for Enterprises and Enterprise Roles

Author: Hub Admin team
Date: 2025-10-30
"""
from typing import List, Optional
from datetime import datetime

from hubadmin.domain.enterprise import Enterprise
from hubadmin.core.database import get_db_connection_dict


ENTERPRISE_COLUMNS = """
    id, name, email, unconfirmed_email,
    confirmation_token, confirmation_sent_at, confirmed_at,
    is_distributor, is_primary_producer,
    created_at, updated_at
"""


class EnterpriseRepository:
    """
    Repository for Enterprise data access

    Returns Enterprise domain models, not raw dictionaries.
    """

    def find_by_id(self, enterprise_id: int) -> Optional[Enterprise]:
        """
        Find enterprise by ID

        Returns:
            Enterprise or None if not found
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute(f"""
                SELECT {ENTERPRISE_COLUMNS}
                FROM enterprises
                WHERE id = %s
            """, (enterprise_id,))

            row = cursor.fetchone()
            if not row:
                return None

            return Enterprise(**row)

        finally:
            cursor.close()
            conn.close()

    def find_distributors(self, enterprise_ids: Optional[List[int]] = None) -> List[Enterprise]:
        """
        Find distributor enterprises, sorted by name

        Args:
            enterprise_ids: Restrict to these enterprises (None = all)
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            if enterprise_ids is None:
                cursor.execute(f"""
                    SELECT {ENTERPRISE_COLUMNS}
                    FROM enterprises
                    WHERE is_distributor = true
                    ORDER BY name
                """)
            else:
                cursor.execute(f"""
                    SELECT {ENTERPRISE_COLUMNS}
                    FROM enterprises
                    WHERE is_distributor = true AND id = ANY(%s)
                    ORDER BY name
                """, (list(enterprise_ids),))

            return [Enterprise(**row) for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def find_managed_ids(self, user_id: int) -> List[int]:
        """IDs of the enterprises the user holds a role for"""
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                SELECT enterprise_id
                FROM enterprise_roles
                WHERE user_id = %s
                ORDER BY enterprise_id
            """, (user_id,))

            return [row['enterprise_id'] for row in cursor.fetchall()]

        finally:
            cursor.close()
            conn.close()

    def update_confirmation_token(self, enterprise_id: int, token: str, sent_at: datetime) -> bool:
        """
        Store a freshly issued confirmation token

        Returns:
            True if the enterprise was updated
        """
        conn = get_db_connection_dict()
        cursor = conn.cursor()

        try:
            cursor.execute("""
                UPDATE enterprises SET
                    confirmation_token = %s,
                    confirmation_sent_at = %s,
                    updated_at = NOW()
                WHERE id = %s
            """, (token, sent_at, enterprise_id))

            conn.commit()
            return cursor.rowcount == 1

        except Exception as e:
            conn.rollback()
            raise e

        finally:
            cursor.close()
            conn.close()
