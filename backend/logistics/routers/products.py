"""
# `logistics/routers/products.py`: Product catalogue

Products belong to one company (`companyId`). Operators work in their own
company; admins pass `company_id`.

| Method | Path | Who |
|--------|------|-----|
| GET    | /products?category= | admin, operator, supplier, customer |
| GET    | /products/tax-rate?category= | signed in |
| GET    | /products/{id} | admin, operator, supplier, customer |
| POST   | /products | admin, operator |
| PUT    | /products/{id} | admin, operator |
| DELETE | /products/{id} | admin, operator |

Tax: food 8 %, non-food 10 %, other 5 %; `taxAmount` and `totalPrice` are
recomputed whenever price, rate or category change.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from logistics.core import constants as C
from logistics.core.auth import get_principal
from logistics.core.security import get_company_staff, require_workspace
from logistics.repositories import activities
from logistics.repositories import products as repo
from logistics.schemas.principal import Principal
from logistics.schemas.product import ProductCreate, ProductOut, ProductUpdate, TaxRateOut
from logistics.schemas.workspace import WorkspaceContext
from logistics.services import products as product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

_catalogue_readers = require_workspace(C.ROLE_ADMIN, C.ROLE_OPERATOR, C.ROLE_SUPPLIER, C.ROLE_CUSTOMER)

UPDATE_FIELDS = {
    "name": "name",
    "main_category": "mainCategory",
    "sub_category": "subCategory",
    "price": "price",
    "sell_price": "sellPrice",
    "tax_rate": "taxRate",
    "current_stock": "currentStock",
    "stock_lower_limit": "stockLowerLimit",
    "description": "description",
    "is_active": "isActive",
}


def _company_scope(context: WorkspaceContext, requested: Optional[str]) -> str:
    if context.role == C.ROLE_ADMIN:
        if not requested:
            raise HTTPException(status_code=422, detail="company_id is required")
        return requested
    return context.company_id


async def _owned_product(product_id: str, context: WorkspaceContext) -> dict:
    product = await repo.get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if context.role != C.ROLE_ADMIN and product.get("companyId") != context.company_id:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/tax-rate", response_model=TaxRateOut)
async def tax_rate(category: str = Query(..., min_length=1), _: Principal = Depends(get_principal)):
    return TaxRateOut(
        category=category,
        tax_rate=product_service.tax_rate_for(category),
        is_food_item=product_service.is_food(category),
    )


@router.get("", response_model=List[ProductOut])
async def list_products(
    category: Optional[str] = Query(None, description="Main category"),
    company_id: Optional[str] = Query(None, description="Admins only"),
    context: WorkspaceContext = Depends(_catalogue_readers),
):
    scope = _company_scope(context, company_id)
    items = await repo.list_by_company(scope, category)
    return [product_service.to_product_out(p) for p in items]


@router.get("/{product_id}", response_model=ProductOut)
async def get_product(product_id: str, context: WorkspaceContext = Depends(_catalogue_readers)):
    return product_service.to_product_out(await _owned_product(product_id, context))


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate, context: WorkspaceContext = Depends(get_company_staff)):
    company_id = _company_scope(context, payload.company_id)
    actor = {"uid": context.principal.uid, "email": context.principal.email}
    data = product_service.build_product(payload, company_id, actor)
    product_id = await repo.create(data)
    await activities.log(
        "PRODUCT_CREATED", "product", company_id, actor["uid"], actor["email"],
        {"productId": product_id, "productName": data["name"], "category": data["mainCategory"]},
    )
    logger.info("Product %s created in %s", product_id, company_id)
    return product_service.to_product_out({**data, "id": product_id})


@router.put("/{product_id}", response_model=ProductOut)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    context: WorkspaceContext = Depends(get_company_staff),
):
    current = await _owned_product(product_id, context)
    sent = payload.model_dump(exclude_unset=True)
    changes = {UPDATE_FIELDS[k]: v for k, v in sent.items() if k in UPDATE_FIELDS and v is not None}
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    changes = product_service.reprice(current, changes)
    await repo.update(product_id, changes)
    return product_service.to_product_out({**current, **changes})


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, context: WorkspaceContext = Depends(get_company_staff)):
    product = await _owned_product(product_id, context)
    await repo.delete(product_id)
    await activities.log(
        "PRODUCT_DELETED", "product", product.get("companyId", ""),
        context.principal.uid, context.principal.email, {"productId": product_id},
    )
