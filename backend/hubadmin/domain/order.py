"""
Order Domain Models

Represents an order placed with a distributor during an order cycle, together
with its line items, adjustments and payments. Totals and payment state are
derived here so every service computes them the same way.

Author: Hub Admin team
Date: 2025-10-29
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP


CENTS = Decimal('0.01')

# Payment states that can still be captured
CAPTURABLE_PAYMENT_STATES = ('pending', 'checkout')


def money(value) -> Decimal:
    """Quantize to cents, rounding half up"""
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


class TaxRate(BaseModel):
    """
    Tax rate applied to tax-inclusive amounts

    amount is a fraction: 0.10 means 10%.
    """

    id: int = Field(..., description="Tax rate ID")
    name: str = Field(..., description="Tax rate name, e.g. GST")
    amount: Decimal = Field(..., description="Rate as a fraction", ge=0)

    model_config = ConfigDict(from_attributes=True)

    def included_tax_for(self, amount: Decimal) -> Decimal:
        """Tax contained in a tax-inclusive amount: 110 at 10% -> 10.00"""
        amount = Decimal(amount)
        return money(amount * self.amount / (Decimal('1') + self.amount))


class LineItem(BaseModel):
    """
    Line item - a variant bought in an order

    price is frozen at the moment the line is added.
    """

    id: Optional[int] = Field(None, description="Line item ID")
    order_id: int = Field(..., description="Parent order ID")
    variant_id: int = Field(..., description="Variant ID")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    price: Decimal = Field(..., description="Unit price", ge=0)

    # From variant/product (optional, from JOIN)
    product_name: Optional[str] = Field(None, description="Product name (from JOIN)")
    sku: Optional[str] = Field(None, description="Variant SKU (from JOIN)")

    model_config = ConfigDict(from_attributes=True)

    @property
    def amount(self) -> Decimal:
        return money(self.price * self.quantity)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price)
        data['amount'] = float(self.amount)
        return data


class Adjustment(BaseModel):
    """
    Manual adjustment to an order total (fees, discounts)

    amount is tax-inclusive; included_tax records the tax inside it.
    """

    id: Optional[int] = Field(None, description="Adjustment ID")
    order_id: int = Field(..., description="Parent order ID")
    label: str = Field(..., description="Label shown on the order")
    amount: Decimal = Field(..., description="Adjustment amount (tax inclusive)")
    included_tax: Decimal = Field(Decimal('0'), description="Tax included in amount")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['amount'] = float(self.amount)
        data['included_tax'] = float(self.included_tax)
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        return data


class Payment(BaseModel):
    """
    Payment against an order

    state: checkout, pending, processing, completed, failed, void
    """

    id: Optional[int] = Field(None, description="Payment ID")
    order_id: int = Field(..., description="Parent order ID")
    amount: Decimal = Field(..., description="Payment amount")
    state: str = Field("checkout", description="Payment state")
    payment_method: Optional[str] = Field(None, description="Payment method name, e.g. Check")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def can_capture(self) -> bool:
        return self.state in CAPTURABLE_PAYMENT_STATES

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['amount'] = float(self.amount)
        data['can_capture'] = self.can_capture
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        return data


class Order(BaseModel):
    """
    Order domain model

    Fields:
        id: Internal order ID (primary key)
        number: Human-readable order number (R123456789)
        user_id: Customer account, if any
        email: Customer email
        distributor_id: Hub fulfilling the order
        order_cycle_id: Order cycle the order belongs to
        state: cart, address, delivery, payment, confirm, complete, canceled
        payment_state: balance_due, paid, credit_owed (None while a cart)
        item_total / adjustment_total / total / payment_total: stored totals
        completed_at: Set when the order is finalized
        created_by_id: Admin user who created the order

        # Related data (optional, from JOINs)
        distributor_name, order_cycle_name

        line_items, adjustments, payments: children
    """

    id: int = Field(..., description="Internal order ID")
    number: str = Field(..., description="Order number")
    user_id: Optional[int] = Field(None, description="Customer user ID")
    email: Optional[str] = Field(None, description="Customer email")

    distributor_id: Optional[int] = Field(None, description="Distributor enterprise ID")
    order_cycle_id: Optional[int] = Field(None, description="Order cycle ID")

    state: str = Field("cart", description="Order state")
    payment_state: Optional[str] = Field(None, description="Payment state")

    item_total: Decimal = Field(Decimal('0'), description="Sum of line items")
    adjustment_total: Decimal = Field(Decimal('0'), description="Sum of adjustments")
    total: Decimal = Field(Decimal('0'), description="Order total")
    payment_total: Decimal = Field(Decimal('0'), description="Sum of completed payments")

    completed_at: Optional[datetime] = Field(None, description="When the order was finalized")
    created_by_id: Optional[int] = Field(None, description="Admin user who created the order")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    distributor_name: Optional[str] = Field(None, description="Distributor name (from JOIN)")
    order_cycle_name: Optional[str] = Field(None, description="Order cycle name (from JOIN)")

    line_items: List[LineItem] = Field(default_factory=list, description="Line items")
    adjustments: List[Adjustment] = Field(default_factory=list, description="Adjustments")
    payments: List[Payment] = Field(default_factory=list, description="Payments")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_finalized(self) -> bool:
        return self.completed_at is not None

    @property
    def has_distribution(self) -> bool:
        return self.distributor_id is not None and self.order_cycle_id is not None

    def capturable_payment(self) -> Optional[Payment]:
        for payment in self.payments:
            if payment.can_capture:
                return payment
        return None

    @property
    def can_capture(self) -> bool:
        return self.payment_state == 'balance_due' and self.capturable_payment() is not None

    def update_totals(self) -> None:
        """Recompute stored totals and, for finalized orders, the payment state"""
        self.item_total = money(sum((line.amount for line in self.line_items), Decimal('0')))
        self.adjustment_total = money(sum((adj.amount for adj in self.adjustments), Decimal('0')))
        self.total = money(self.item_total + self.adjustment_total)
        self.payment_total = money(sum(
            (payment.amount for payment in self.payments if payment.state == 'completed'),
            Decimal('0')
        ))
        self.payment_state = self._derive_payment_state()

    def _derive_payment_state(self) -> Optional[str]:
        if not self.is_finalized:
            return None
        if self.payment_total < self.total:
            return 'balance_due'
        if self.payment_total > self.total:
            return 'credit_owed'
        return 'paid'

    def to_dict(self) -> dict:
        """Dictionary with Decimal converted to float and computed flags"""
        data = self.model_dump(exclude={'line_items', 'adjustments', 'payments'})

        for field in ['item_total', 'adjustment_total', 'total', 'payment_total']:
            data[field] = float(data[field])
        for field in ['completed_at', 'created_at', 'updated_at']:
            if data.get(field):
                data[field] = data[field].isoformat()

        data['is_finalized'] = self.is_finalized
        data['can_capture'] = self.can_capture
        data['line_items'] = [line.to_dict() for line in self.line_items]
        data['adjustments'] = [adj.to_dict() for adj in self.adjustments]
        data['payments'] = [payment.to_dict() for payment in self.payments]
        return data


class OrderFilters(BaseModel):
    """Filters for the admin order index"""
    state: Optional[str] = None
    payment_state: Optional[str] = None
    search: Optional[str] = None
    limit: int = 50
    offset: int = 0
