"""
Domain Layer - Business Entities

This layer contains Pydantic models representing business entities.
These models enforce type safety and validation across the application.
"""
from hubadmin.domain.enterprise import Enterprise
from hubadmin.domain.order_cycle import OrderCycle
from hubadmin.domain.product import Variant
from hubadmin.domain.order import Order, LineItem, Adjustment, Payment, TaxRate, OrderFilters

__all__ = [
    'Enterprise',
    'OrderCycle',
    'Variant',
    'Order',
    'LineItem',
    'Adjustment',
    'Payment',
    'TaxRate',
    'OrderFilters',
]
