import json
from unittest.mock import AsyncMock

import pytest
from google.api_core.exceptions import AlreadyExists

from logistics.schemas.company import CompanyCreate, CompanyUpdate
from logistics.services import companies as service
from logistics.services.postal_codes import PostalCodeDirectory


def test_first_id_of_empty_year():
    assert service.next_company_id("2025_2025", None) == "COMP-2025-001"


def test_next_id_increments_highest():
    assert service.next_company_id("2025_2026", "COMP-2025-007") == "COMP-2025-008"
    assert service.next_company_id("2025_2026", "COMP-2025-099") == "COMP-2025-100"


def test_unparseable_latest_starts_over():
    assert service.next_company_id("2025_2026", "legacy") == "COMP-2025-001"


@pytest.fixture
def repo(monkeypatch, tmp_path):
    table = tmp_path / "postal.json"
    table.write_text(json.dumps([
        {"postal_code": "100-0001", "prefecture": "Tokyo", "city": "Chiyoda", "town": "Chiyoda"},
    ]), encoding="utf-8")
    monkeypatch.setattr(service, "get_postal_directory", lambda: PostalCodeDirectory(table))

    fake = {
        "latest_company_id": AsyncMock(return_value="COMP-2025-004"),
        "company_id_exists": AsyncMock(return_value=False),
        "create": AsyncMock(side_effect=lambda fy, cid, data: {**data, "companyId": cid, "id": cid}),
        "merge_update": AsyncMock(side_effect=lambda fy, cid, data: {**data, "companyId": cid, "id": cid}),
    }
    for name, mock in fake.items():
        monkeypatch.setattr(service.repo, name, mock)
    return fake


async def test_generate_uses_fiscal_year_start(repo):
    assert await service.generate_company_id("2025_2026") == "COMP-2025-005"
    repo["latest_company_id"].assert_awaited_once_with("2025_2026", "2025")


async def test_register_fills_address_and_owner(repo):
    payload = CompanyCreate(name="Acme", postal_code="1000001")

    created = await service.register_company("2025_2026", payload, "admin-1", "a@example.com")

    assert created["companyId"] == "COMP-2025-005"
    assert created["prefecture"] == "Tokyo"
    assert created["city"] == "Chiyoda"
    assert created["ownerId"] == "admin-1"
    assert created["financialYear"] == "2025_2026"
    assert created["postalCode"] == "1000001"


async def test_register_skips_id_used_in_another_year(repo):
    repo["company_id_exists"].side_effect = [True, False]

    created = await service.register_company("2025_2026", CompanyCreate(name="Acme", postal_code="1000001"), "a", None)

    assert created["companyId"] == "COMP-2025-006"


async def test_register_retries_on_concurrent_create(repo):
    calls = []

    async def create(fy, cid, data):
        calls.append(cid)
        if len(calls) == 1:
            raise AlreadyExists("taken")
        return {**data, "companyId": cid}

    repo["create"].side_effect = create

    created = await service.register_company("2025_2026", CompanyCreate(name="Acme", postal_code="1000001"), "a", None)

    assert calls == ["COMP-2025-005", "COMP-2025-006"]
    assert created["companyId"] == "COMP-2025-006"


async def test_register_gives_up(repo):
    repo["company_id_exists"].return_value = True

    with pytest.raises(service.CompanyIdConflict):
        await service.register_company("2025_2026", CompanyCreate(name="Acme", postal_code="1000001"), "a", None)
    repo["create"].assert_not_awaited()


def test_blank_bank_rows_dropped_and_mapped():
    payload = CompanyCreate(
        name="Acme",
        postal_code="100-0001",
        bank_accounts=[
            {"bank_name": "MUFG", "branch_name": "Head", "account_number": "1234567", "account_holder": "Acme"},
            {},
        ],
    )
    doc = service.to_document(payload)

    assert doc["postalCode"] == "1000001"
    assert doc["bankAccounts"] == [{
        "bankName": "MUFG",
        "branchName": "Head",
        "accountType": "savings",
        "accountNumber": "1234567",
        "accountHolder": "Acme",
    }]


def test_tax_registration_number_format():
    CompanyCreate(name="Acme", postal_code="1000001", tax_registration_no="T1234567890123")
    with pytest.raises(ValueError):
        CompanyCreate(name="Acme", postal_code="1000001", tax_registration_no="1234567890123")


async def test_update_only_writes_sent_fields(repo):
    updated = await service.update_company("2025_2026", "COMP-2025-001", CompanyUpdate(phone="03-0000-0000"))

    repo["merge_update"].assert_awaited_once_with("2025_2026", "COMP-2025-001", {"phone": "03-0000-0000"})
    assert updated["phone"] == "03-0000-0000"
