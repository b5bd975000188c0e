"""
Variant Domain Model

A variant is the purchasable unit of a product (e.g. "Apples 1kg"). Line
items reference variants, order cycles distribute variants.

Author: Hub Admin team
Date: 2025-10-29
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from decimal import Decimal


class Variant(BaseModel):
    """
    Variant domain model

    Fields:
        id: Internal variant ID (primary key)
        product_id: Parent product
        product_name: Parent product name (from JOIN)
        sku: Stock Keeping Unit
        unit_description: Size/weight label shown next to the name
        price: Current selling price
        supplier_id: Producer supplying the product
    """

    id: int = Field(..., description="Variant ID")
    product_id: int = Field(..., description="Product ID")
    product_name: str = Field(..., description="Product name")
    sku: Optional[str] = Field(None, description="Stock Keeping Unit")
    unit_description: Optional[str] = Field(None, description="Unit label, e.g. 1kg")
    price: Decimal = Field(..., description="Selling price", ge=0)
    supplier_id: Optional[int] = Field(None, description="Supplier enterprise ID")

    model_config = ConfigDict(from_attributes=True)

    @property
    def full_name(self) -> str:
        if self.unit_description:
            return f"{self.product_name} - {self.unit_description}"
        return self.product_name

    def to_dict(self) -> dict:
        data = self.model_dump()
        data['price'] = float(self.price)
        data['full_name'] = self.full_name
        return data
