# logistics/schemas/product.py
from typing import Literal, Optional
from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """
    Product registration input.
    tax_rate is derived from main_category when not sent.
    """
    name: str = Field(..., min_length=1)
    main_category: str = Field(..., min_length=1)
    sub_category: str = ""
    type: Literal["weight", "unit"] = "weight"
    unit: str = "kg"
    weight_per_unit: Optional[float] = None
    price: float = Field(..., gt=0, description="Purchase price")
    sell_price: float = Field(..., gt=0, description="Selling price (tax excluded)")
    tax_rate: Optional[int] = Field(None, ge=0, le=100, description="Percent")
    supplier_id: str = Field(..., min_length=1)
    supplier_name: str = ""
    minimum_order_lot: Optional[int] = Field(None, ge=0)
    stock_lower_limit: Optional[int] = Field(None, ge=0)
    current_stock: int = Field(0, ge=0)
    storage_type: Literal["normal", "chilled", "frozen"] = "normal"
    barcode: str = ""
    sku: str = ""
    description: str = ""
    is_active: bool = True
    company_id: Optional[str] = Field(None, description="Admins only; others use their own company")


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    main_category: Optional[str] = None
    sub_category: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    sell_price: Optional[float] = Field(None, gt=0)
    tax_rate: Optional[int] = Field(None, ge=0, le=100)
    current_stock: Optional[int] = Field(None, ge=0)
    stock_lower_limit: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: str
    company_id: str
    name: str
    main_category: str
    sub_category: str = ""
    price: float
    sell_price: float
    tax_rate: int
    tax_amount: int
    total_price: int
    currency: str = "JPY"
    is_food_item: bool = True
    sku: str = ""
    supplier_id: str = ""
    supplier_name: str = ""
    current_stock: int = 0
    stock_lower_limit: Optional[int] = None
    status: str = "active"


class TaxRateOut(BaseModel):
    category: str
    tax_rate: int
    is_food_item: bool
