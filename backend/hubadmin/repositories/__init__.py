"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic.
"""
from hubadmin.repositories.enterprise_repository import EnterpriseRepository
from hubadmin.repositories.order_cycle_repository import OrderCycleRepository
from hubadmin.repositories.order_repository import OrderRepository
from hubadmin.repositories.tax_rate_repository import TaxRateRepository
from hubadmin.repositories.variant_repository import VariantRepository

__all__ = [
    'EnterpriseRepository',
    'OrderCycleRepository',
    'OrderRepository',
    'TaxRateRepository',
    'VariantRepository',
]
