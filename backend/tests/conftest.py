"""
Pytest fixtures and configuration for Hub Admin backend tests

Services are tested against in-memory repositories seeded with a small
network:

    Hillside Farm, Orchard Co          producers
    Northside Co-op                    coordinates "Autumn Harvest" (open)
                                       and "Last Summer" (closed)
    Southside Co-op                    coordinates "Winter Pantry" (open)
    Green Grocer Hub, Riverside Hub    distribute in "Autumn Harvest"
    Lonely Hub                         distributor with no order cycle

The manager user holds roles for Hillside Farm, Northside Co-op and
Green Grocer Hub.
"""
import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

from hubadmin.core.auth import TokenUser
from hubadmin.core.config import Settings
from hubadmin.domain.enterprise import Enterprise
from hubadmin.domain.order import Order, LineItem, Adjustment, Payment, TaxRate, OrderFilters
from hubadmin.domain.order_cycle import OrderCycle
from hubadmin.domain.product import Variant
from hubadmin.services.adjustment_service import AdjustmentService
from hubadmin.services.order_admin_service import OrderAdminService
from hubadmin.services.payment_service import PaymentService


NOW = datetime(2025, 11, 5, 12, 0, tzinfo=timezone.utc)

HILLSIDE_FARM = 1
ORCHARD_CO = 2
NORTHSIDE_COOP = 3
SOUTHSIDE_COOP = 4
GREEN_GROCER = 5
RIVERSIDE_HUB = 6
LONELY_HUB = 7

TOMATOES = 101
APPLES = 102
HONEY = 103

AUTUMN_HARVEST = 10
WINTER_PANTRY = 11
LAST_SUMMER = 12

GST = 1
VAT = 2

EXISTING_ORDER = "R000000001"


# =============================================================================
# In-memory repositories
# =============================================================================

class FakeEnterpriseRepository:

    def __init__(self):
        self.enterprises = {}
        self.roles = []

    def add(self, enterprise: Enterprise) -> Enterprise:
        self.enterprises[enterprise.id] = enterprise
        return enterprise

    def grant(self, user_id: int, enterprise_id: int) -> None:
        self.roles.append((user_id, enterprise_id))

    def find_by_id(self, enterprise_id: int) -> Optional[Enterprise]:
        enterprise = self.enterprises.get(enterprise_id)
        return enterprise.model_copy(deep=True) if enterprise else None

    def find_distributors(self, enterprise_ids=None) -> List[Enterprise]:
        distributors = [
            e for e in self.enterprises.values()
            if e.is_distributor and (enterprise_ids is None or e.id in enterprise_ids)
        ]
        return sorted(distributors, key=lambda e: e.name)

    def find_managed_ids(self, user_id: int) -> List[int]:
        return sorted(enterprise_id for uid, enterprise_id in self.roles if uid == user_id)

    def update_confirmation_token(self, enterprise_id, token, sent_at) -> bool:
        enterprise = self.enterprises.get(enterprise_id)
        if enterprise is None:
            return False
        enterprise.confirmation_token = token
        enterprise.confirmation_sent_at = sent_at
        return True


class FakeOrderCycleRepository:

    def __init__(self):
        self.cycles = {}

    def add(self, cycle: OrderCycle) -> OrderCycle:
        self.cycles[cycle.id] = cycle
        return cycle

    def find_by_id(self, order_cycle_id: int) -> Optional[OrderCycle]:
        cycle = self.cycles.get(order_cycle_id)
        return cycle.model_copy(deep=True) if cycle else None

    def find_open(self, now: datetime) -> List[OrderCycle]:
        cycles = [c.model_copy(deep=True) for c in self.cycles.values() if c.is_open(now)]
        return sorted(cycles, key=lambda c: c.name)


class FakeVariantRepository:

    def __init__(self):
        self.variants = {}

    def add(self, variant: Variant) -> Variant:
        self.variants[variant.id] = variant
        return variant

    def find_by_id(self, variant_id: int) -> Optional[Variant]:
        return self.variants.get(variant_id)

    def search(self, query, variant_ids=None, limit=20) -> List[Variant]:
        query = (query or "").strip().lower()
        found = [
            v for v in self.variants.values()
            if (query in v.product_name.lower() or query in (v.sku or "").lower())
            and (variant_ids is None or v.id in variant_ids)
        ]
        return sorted(found, key=lambda v: v.product_name)[:limit]


class FakeTaxRateRepository:

    def __init__(self, tax_rates=None):
        self.tax_rates = {rate.id: rate for rate in (tax_rates or [])}

    def find_all(self) -> List[TaxRate]:
        return sorted(self.tax_rates.values(), key=lambda rate: rate.name)

    def find_by_id(self, tax_rate_id: int) -> Optional[TaxRate]:
        return self.tax_rates.get(tax_rate_id)


class FakeOrderRepository:
    """Stores orders by number and hands out copies, like a database would"""

    def __init__(self, enterprise_repository, order_cycle_repository, variant_repository):
        self.enterprise_repository = enterprise_repository
        self.order_cycle_repository = order_cycle_repository
        self.variant_repository = variant_repository
        self.orders = {}
        self._next_id = 1000

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _by_id(self, order_id: int) -> Order:
        return next(o for o in self.orders.values() if o.id == order_id)

    def insert(self, order: Order) -> Order:
        self.orders[order.number] = order
        return order

    def find_by_number(self, number: str) -> Optional[Order]:
        order = self.orders.get(number)
        return order.model_copy(deep=True) if order else None

    def find_all(self, filters: OrderFilters, enterprise_ids=None, created_by_id=None):
        orders = list(self.orders.values())
        if enterprise_ids is not None:
            ids = set(enterprise_ids)
            visible = []
            for order in orders:
                cycle = self.order_cycle_repository.cycles.get(order.order_cycle_id)
                if (order.distributor_id in ids
                        or (cycle is not None and cycle.coordinator_id in ids)
                        or (created_by_id is not None and order.created_by_id == created_by_id)):
                    visible.append(order)
            orders = visible
        if filters.state:
            orders = [o for o in orders if o.state == filters.state]
        if filters.payment_state:
            orders = [o for o in orders if o.payment_state == filters.payment_state]
        if filters.search:
            search = filters.search.lower()
            orders = [o for o in orders if search in o.number.lower() or search in (o.email or "").lower()]
        orders.sort(key=lambda o: (o.created_at or datetime.min.replace(tzinfo=timezone.utc), o.id), reverse=True)
        page = orders[filters.offset:filters.offset + filters.limit]
        return [o.model_copy(deep=True) for o in page], len(orders)

    def number_exists(self, number: str) -> bool:
        return number in self.orders

    def create(self, number, created_by_id, email=None) -> Order:
        order = Order(id=self._id(), number=number, created_by_id=created_by_id, email=email, created_at=NOW)
        self.orders[number] = order
        return order.model_copy(deep=True)

    def update_distribution(self, order_id, distributor_id, order_cycle_id) -> bool:
        order = self._by_id(order_id)
        order.distributor_id = distributor_id
        order.order_cycle_id = order_cycle_id
        order.distributor_name = self.enterprise_repository.enterprises[distributor_id].name
        order.order_cycle_name = self.order_cycle_repository.cycles[order_cycle_id].name
        return True

    def save_totals(self, order: Order) -> bool:
        stored = self._by_id(order.id)
        for field in ['item_total', 'adjustment_total', 'total', 'payment_total', 'payment_state']:
            setattr(stored, field, getattr(order, field))
        return True

    def mark_complete(self, order_id, completed_at) -> bool:
        order = self._by_id(order_id)
        order.state = 'complete'
        order.completed_at = completed_at
        return True

    def add_line_item(self, order_id, variant_id, quantity, price) -> LineItem:
        variant = self.variant_repository.find_by_id(variant_id)
        line = LineItem(id=self._id(), order_id=order_id, variant_id=variant_id, quantity=quantity, price=price,
                        product_name=variant.product_name, sku=variant.sku)
        self._by_id(order_id).line_items.append(line.model_copy())
        return line

    def increment_line_item_quantity(self, line_item_id, quantity) -> Optional[int]:
        for order in self.orders.values():
            for line in order.line_items:
                if line.id == line_item_id:
                    line.quantity += quantity
                    return line.quantity
        return None

    def create_adjustment(self, adjustment: Adjustment) -> Adjustment:
        created = adjustment.model_copy(update={'id': self._id(), 'created_at': NOW})
        self._by_id(adjustment.order_id).adjustments.append(created.model_copy())
        return created

    def update_adjustment(self, adjustment: Adjustment) -> bool:
        order = self._by_id(adjustment.order_id)
        for index, existing in enumerate(order.adjustments):
            if existing.id == adjustment.id:
                order.adjustments[index] = adjustment.model_copy()
                return True
        return False

    def capture_payment(self, payment_id) -> bool:
        for order in self.orders.values():
            for payment in order.payments:
                if payment.id == payment_id and payment.can_capture:
                    payment.state = 'completed'
                    return True
        return False


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def now():
    return NOW


@pytest.fixture
def admin_user():
    return TokenUser(id=1, email="admin@hub.example", name="Admin", role="admin")


@pytest.fixture
def manager_user():
    return TokenUser(id=2, email="manager@hub.example", name="Manager", role="enterprise_user")


@pytest.fixture
def enterprise_repository(manager_user):
    repo = FakeEnterpriseRepository()
    repo.add(Enterprise(id=HILLSIDE_FARM, name="Hillside Farm", email="farm@hillside.example", is_primary_producer=True))
    repo.add(Enterprise(id=ORCHARD_CO, name="Orchard Co", email="hello@orchard.example", is_primary_producer=True))
    repo.add(Enterprise(id=NORTHSIDE_COOP, name="Northside Co-op", email="coop@northside.example", is_distributor=True))
    repo.add(Enterprise(id=SOUTHSIDE_COOP, name="Southside Co-op", email="coop@southside.example", is_distributor=True))
    repo.add(Enterprise(id=GREEN_GROCER, name="Green Grocer Hub", email="hub@greengrocer.example", is_distributor=True))
    repo.add(Enterprise(id=RIVERSIDE_HUB, name="Riverside Hub", email="hub@riverside.example", is_distributor=True))
    repo.add(Enterprise(id=LONELY_HUB, name="Lonely Hub", email="hub@lonely.example", is_distributor=True))

    for enterprise_id in (HILLSIDE_FARM, NORTHSIDE_COOP, GREEN_GROCER):
        repo.grant(manager_user.id, enterprise_id)
    return repo


@pytest.fixture
def order_cycle_repository():
    repo = FakeOrderCycleRepository()
    repo.add(OrderCycle(
        id=AUTUMN_HARVEST,
        name="Autumn Harvest",
        coordinator_id=NORTHSIDE_COOP,
        orders_open_at=NOW - timedelta(days=1),
        orders_close_at=NOW + timedelta(days=7),
        supplier_ids=[HILLSIDE_FARM, ORCHARD_CO],
        distributor_variants={GREEN_GROCER: [TOMATOES, APPLES], RIVERSIDE_HUB: [TOMATOES, APPLES]},
    ))
    repo.add(OrderCycle(
        id=WINTER_PANTRY,
        name="Winter Pantry",
        coordinator_id=SOUTHSIDE_COOP,
        orders_open_at=NOW - timedelta(days=2),
        orders_close_at=NOW + timedelta(days=5),
        supplier_ids=[ORCHARD_CO],
        distributor_variants={SOUTHSIDE_COOP: [APPLES]},
    ))
    repo.add(OrderCycle(
        id=LAST_SUMMER,
        name="Last Summer",
        coordinator_id=NORTHSIDE_COOP,
        orders_open_at=NOW - timedelta(days=120),
        orders_close_at=NOW - timedelta(days=90),
        supplier_ids=[HILLSIDE_FARM],
        distributor_variants={GREEN_GROCER: [TOMATOES, HONEY]},
    ))
    return repo


@pytest.fixture
def variant_repository():
    repo = FakeVariantRepository()
    repo.add(Variant(id=TOMATOES, product_id=1, product_name="Heirloom Tomatoes", sku="TOM-1KG",
                     unit_description="1kg", price=Decimal('4.50'), supplier_id=HILLSIDE_FARM))
    repo.add(Variant(id=APPLES, product_id=2, product_name="Crunchy Apples", sku="APP-2KG",
                     unit_description="2kg", price=Decimal('3.00'), supplier_id=ORCHARD_CO))
    repo.add(Variant(id=HONEY, product_id=3, product_name="Wildflower Honey", sku="HON-500",
                     unit_description="500g", price=Decimal('9.00'), supplier_id=HILLSIDE_FARM))
    return repo


@pytest.fixture
def tax_rate_repository():
    return FakeTaxRateRepository([
        TaxRate(id=GST, name="GST", amount=Decimal('0.10')),
        TaxRate(id=VAT, name="VAT", amount=Decimal('0.20')),
    ])


@pytest.fixture
def order_repository(enterprise_repository, order_cycle_repository, variant_repository):
    repo = FakeOrderRepository(enterprise_repository, order_cycle_repository, variant_repository)

    # Completed order at Green Grocer Hub with a check payment awaiting capture
    order = Order(
        id=1,
        number=EXISTING_ORDER,
        user_id=50,
        email="customer@example.com",
        distributor_id=GREEN_GROCER,
        distributor_name="Green Grocer Hub",
        order_cycle_id=AUTUMN_HARVEST,
        order_cycle_name="Autumn Harvest",
        state='complete',
        completed_at=NOW - timedelta(hours=3),
        created_at=NOW - timedelta(hours=4),
        line_items=[LineItem(id=1, order_id=1, variant_id=TOMATOES, quantity=2, price=Decimal('4.50'),
                             product_name="Heirloom Tomatoes", sku="TOM-1KG")],
        payments=[Payment(id=1, order_id=1, amount=Decimal('9.00'), state='checkout', payment_method="Check")],
    )
    order.update_totals()
    repo.insert(order)
    return repo


@pytest.fixture
def order_admin_service(order_repository, variant_repository, enterprise_repository, order_cycle_repository):
    return OrderAdminService(
        order_repository=order_repository,
        variant_repository=variant_repository,
        enterprise_repository=enterprise_repository,
        order_cycle_repository=order_cycle_repository,
        clock=lambda: NOW
    )


@pytest.fixture
def payment_service(order_admin_service):
    return PaymentService(order_admin_service=order_admin_service)


@pytest.fixture
def adjustment_service(order_admin_service, tax_rate_repository):
    return AdjustmentService(
        order_admin_service=order_admin_service,
        tax_rate_repository=tax_rate_repository
    )


@pytest.fixture
def mail_settings():
    """Settings isolated from the developer's .env"""
    return Settings(
        _env_file=None,
        SITE_NAME="Food Hub Network",
        SITE_URL="https://foodhub.example",
        MAILS_FROM="no-reply@foodhub.example",
        MAIL_DELIVERY_METHOD="memory",
    )
