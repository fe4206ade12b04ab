# logistics/schemas/delivery.py
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

DeliveryStatus = Literal["pending", "assigned", "picked_up", "in_transit", "delivered", "cancelled"]


class DeliveryItem(BaseModel):
    product_id: str
    name: str = ""
    quantity: float = Field(..., gt=0)


class DeliveryCreate(BaseModel):
    customer_id: str = Field(..., description="UID of the customer")
    customer_name: str = ""
    delivery_address: str = Field(..., min_length=1)
    items: List[DeliveryItem] = Field(default_factory=list)
    delivery_fee: Optional[int] = Field(None, ge=0)
    scheduled_date: Optional[datetime] = None
    note: str = ""
    company_id: Optional[str] = Field(None, description="Admins only")


class DeliveryAssign(BaseModel):
    driver_id: str


class DeliveryStatusUpdate(BaseModel):
    status: DeliveryStatus


class DeliveryOut(BaseModel):
    id: str
    company_id: str
    customer_id: str
    customer_name: str = ""
    driver_id: Optional[str] = None
    delivery_address: str = ""
    items: List[DeliveryItem] = Field(default_factory=list)
    status: DeliveryStatus = "pending"
    delivery_fee: Optional[int] = None
    driver_earnings: Optional[int] = None
    note: str = ""
