"""
Enterprise Domain Models

Enterprises are the businesses trading on the network: producers supplying
products, hubs distributing orders, and coordinators running order cycles.

Author: Hub Admin team
Date: 2025-10-29
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional
from datetime import datetime


class Enterprise(BaseModel):
    """
    Enterprise domain model

    Fields:
        id: Internal enterprise ID
        name: Public name
        email: Confirmed contact address
        unconfirmed_email: Address awaiting confirmation (set when the
            contact address changes)
        confirmation_token: Token mailed with the confirmation instructions
        confirmation_sent_at: When the last instructions were sent
        confirmed_at: When the contact address was confirmed
        is_distributor: Whether the enterprise sells to customers (a hub)
        is_primary_producer: Whether the enterprise supplies products
    """

    id: int = Field(..., description="Enterprise ID")
    name: str = Field(..., description="Enterprise name")
    email: str = Field(..., description="Contact email")
    unconfirmed_email: Optional[str] = Field(None, description="Email awaiting confirmation")
    confirmation_token: Optional[str] = Field(None, description="Pending confirmation token")
    confirmation_sent_at: Optional[datetime] = Field(None, description="When instructions were sent")
    confirmed_at: Optional[datetime] = Field(None, description="When the email was confirmed")
    is_distributor: bool = Field(False, description="Sells to customers")
    is_primary_producer: bool = Field(False, description="Supplies products")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    @property
    def contact_email(self) -> str:
        """Address confirmation mail goes to: the pending one if any"""
        return self.unconfirmed_email or self.email
