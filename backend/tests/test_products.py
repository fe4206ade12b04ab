import random
import re

import pytest

from logistics.schemas.product import ProductCreate
from logistics.services import products as service


@pytest.mark.parametrize(
    "category, rate",
    [("Vegetables", 8), ("Meat & Poultry", 8), ("Packaging", 10), ("Cleaning Supplies", 10), ("Gift Cards", 5)],
)
def test_tax_rate_by_category(category, rate):
    assert service.tax_rate_for(category) == rate


def test_amounts_round_half_up():
    assert service.price_with_tax(1000, 8) == (80, 1080)
    # 10.5 → 11, 115.5 → 116
    assert service.price_with_tax(105, 10) == (11, 116)
    # 0.4 tax is dropped, total follows the exact value
    assert service.price_with_tax(5, 8) == (0, 5)
    assert service.price_with_tax(19.5, 10) == (2, 21)


def test_sku_format():
    sku = service.generate_sku("Vegetables", random.Random(1))
    assert re.fullmatch(r"VEG-\d{4}", sku)
    assert service.generate_sku("", random.Random(1)).startswith("GEN-")


def _payload(**overrides):
    data = dict(name=" Basmati ", main_category="Rice & Grains", price=800, sell_price=1000, supplier_id="sup-1")
    data.update(overrides)
    return ProductCreate(**data)


def test_build_product_derives_tax_fields():
    doc = service.build_product(_payload(), "COMP-2025-001", {"uid": "op-1", "email": "op@example.com"})

    assert doc["name"] == "Basmati"
    assert doc["taxRate"] == 8
    assert doc["taxAmount"] == 80
    assert doc["totalPrice"] == 1080
    assert doc["currency"] == "JPY"
    assert doc["isFoodItem"] is True
    assert doc["companyId"] == "COMP-2025-001"
    assert doc["sku"].startswith("RIC-")


def test_explicit_rate_and_sku_are_kept():
    doc = service.build_product(_payload(tax_rate=10, sku="X-1"), "C", {})
    assert doc["taxRate"] == 10
    assert doc["totalPrice"] == 1100
    assert doc["sku"] == "X-1"


def test_required_fields():
    with pytest.raises(ValueError):
        _payload(supplier_id="")
    with pytest.raises(ValueError):
        _payload(sell_price=0)


def test_reprice_on_category_change():
    current = {"mainCategory": "Vegetables", "sellPrice": 1000, "taxRate": 8}
    changes = service.reprice(current, {"mainCategory": "Packaging"})
    assert changes["taxRate"] == 10
    assert changes["isFoodItem"] is False
    assert changes["totalPrice"] == 1100


def test_reprice_ignores_unrelated_changes():
    assert service.reprice({"sellPrice": 100, "taxRate": 8}, {"name": "x"}) == {"name": "x"}
