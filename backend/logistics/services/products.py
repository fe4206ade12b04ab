# logistics/services/products.py
"""
Product registration: tax rate by category, tax/total amounts and SKU.

Food categories are taxed at 8 %, non-food at 10 %, anything else at 5 %.
Amounts are whole yen, rounded half up.
"""
import random
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional, Tuple

from logistics.schemas.product import ProductCreate, ProductOut

FOOD_CATEGORIES = {
    "Meat & Poultry", "Spices & Masalas", "Pulses & Lentils",
    "Rice & Grains", "Vegetables", "Dairy", "Oils & Fats",
    "Beverages", "Fruits", "Bakery", "Ready Mix", "Marinades",
    "Sauces & Condiments", "Seafood",
}

NON_FOOD_CATEGORIES = {
    "Packaging", "Cleaning Supplies", "Utensils", "Disposables",
    "Kitchen Equipment", "Wraps & Foils", "Office Supplies",
    "Maintenance", "Uniforms",
}

FOOD_TAX_RATE = 8
NON_FOOD_TAX_RATE = 10
DEFAULT_TAX_RATE = 5


def tax_rate_for(category: str) -> int:
    if category in FOOD_CATEGORIES:
        return FOOD_TAX_RATE
    if category in NON_FOOD_CATEGORIES:
        return NON_FOOD_TAX_RATE
    return DEFAULT_TAX_RATE


def is_food(category: str) -> bool:
    return category not in NON_FOOD_CATEGORIES


def _yen(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def price_with_tax(sell_price, tax_rate: int) -> Tuple[int, int]:
    """(tax amount, total) for a tax-excluded price."""
    price = Decimal(str(sell_price))
    tax = price * Decimal(tax_rate) / Decimal(100)
    return _yen(tax), _yen(price + tax)


def generate_sku(category: str, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    code = category[:3].upper() if category else "GEN"
    return f"{code}-{rng.randint(1000, 9999)}"


def build_product(payload: ProductCreate, company_id: str, created_by: Dict[str, Any]) -> Dict[str, Any]:
    rate = payload.tax_rate if payload.tax_rate is not None else tax_rate_for(payload.main_category)
    tax_amount, total = price_with_tax(payload.sell_price, rate)
    return {
        "name": payload.name.strip(),
        "mainCategory": payload.main_category,
        "subCategory": payload.sub_category,
        "type": payload.type,
        "unit": payload.unit,
        "weightPerUnit": payload.weight_per_unit,
        "price": payload.price,
        "sellPrice": payload.sell_price,
        "taxRate": rate,
        "taxAmount": tax_amount,
        "totalPrice": total,
        "currency": "JPY",
        "isFoodItem": is_food(payload.main_category),
        "supplierId": payload.supplier_id,
        "supplierName": payload.supplier_name,
        "minimumOrderLot": payload.minimum_order_lot,
        "stockLowerLimit": payload.stock_lower_limit,
        "currentStock": payload.current_stock,
        "storageType": payload.storage_type,
        "barcode": payload.barcode,
        "sku": payload.sku or generate_sku(payload.main_category),
        "description": payload.description,
        "isActive": payload.is_active,
        "status": "active",
        "companyId": company_id,
        "createdBy": created_by.get("uid"),
        "createdByEmail": created_by.get("email"),
    }


def reprice(current: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Recompute tax fields when the price, rate or category changes."""
    if not {"sellPrice", "taxRate", "mainCategory"} & changes.keys():
        return changes
    merged = {**current, **changes}
    if "taxRate" not in changes and "mainCategory" in changes:
        changes["taxRate"] = tax_rate_for(merged["mainCategory"])
        changes["isFoodItem"] = is_food(merged["mainCategory"])
        merged["taxRate"] = changes["taxRate"]
    tax_amount, total = price_with_tax(merged.get("sellPrice", 0), int(merged.get("taxRate", DEFAULT_TAX_RATE)))
    changes["taxAmount"] = tax_amount
    changes["totalPrice"] = total
    return changes


def to_product_out(src: Dict[str, Any]) -> ProductOut:
    return ProductOut(
        id=src.get("id", ""),
        company_id=src.get("companyId", ""),
        name=src.get("name", ""),
        main_category=src.get("mainCategory", ""),
        sub_category=src.get("subCategory", "") or "",
        price=float(src.get("price", 0) or 0),
        sell_price=float(src.get("sellPrice", 0) or 0),
        tax_rate=int(src.get("taxRate", DEFAULT_TAX_RATE)),
        tax_amount=int(src.get("taxAmount", 0) or 0),
        total_price=int(src.get("totalPrice", 0) or 0),
        currency=src.get("currency", "JPY"),
        is_food_item=bool(src.get("isFoodItem", True)),
        sku=src.get("sku", "") or "",
        supplier_id=src.get("supplierId", "") or "",
        supplier_name=src.get("supplierName", "") or "",
        current_stock=int(src.get("currentStock", 0) or 0),
        stock_lower_limit=src.get("stockLowerLimit"),
        status=src.get("status", "active"),
    )
