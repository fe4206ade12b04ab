"""
# `logistics/schemas/company.py`: Company registration schemas

| Field              | Type              | Required | Notes |
|--------------------|-------------------|----------|-------|
| name               | `str`             | ✔        | Company name |
| name_kana          | `str` / `null`    | ✖        | Reading (kana) |
| postal_code        | `str`             | ✔        | 7 digits, hyphen allowed |
| prefecture / city / address / building | `str` / `null` | ✖ | Filled from the postal table when empty |
| phone / email      | `str` / `null`    | ✖        | |
| tax_registration_no| `str` / `null`    | ✖        | `T` + 13 digits |
| bank_accounts      | `list[BankAccount]` | ✖      | Rows with every field empty are dropped |
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

TAX_ID_PATTERN = r"^T\d{13}$"


class BankAccount(BaseModel):
    bank_name: str = ""
    branch_name: str = ""
    account_type: Literal["savings", "checking"] = "savings"
    account_number: str = ""
    account_holder: str = ""

    def is_blank(self) -> bool:
        return not any([self.bank_name, self.branch_name, self.account_number, self.account_holder])


class CompanyBase(BaseModel):
    name_kana: Optional[str] = None
    prefecture: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    building: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tax_registration_no: Optional[str] = Field(None, pattern=TAX_ID_PATTERN, description="T + 13 digits")
    bank_accounts: List[BankAccount] = Field(default_factory=list)

    @field_validator("bank_accounts")
    @classmethod
    def _drop_blank_rows(cls, rows: Optional[List[BankAccount]]) -> Optional[List[BankAccount]]:
        if rows is None:
            return None
        return [row for row in rows if not row.is_blank()]


class CompanyCreate(CompanyBase):
    name: str = Field(..., min_length=1, description="Company name")
    postal_code: str = Field(..., min_length=7, max_length=8, description="Postal code")


class CompanyUpdate(CompanyBase):
    """Merge-update: only the fields sent are written."""
    name: Optional[str] = Field(None, min_length=1)
    postal_code: Optional[str] = Field(None, min_length=7, max_length=8)
    status: Optional[Literal["active", "inactive"]] = None
    bank_accounts: Optional[List[BankAccount]] = None


class CompanyOut(CompanyBase):
    id: str
    company_id: str
    name: str
    postal_code: str = ""
    owner_id: Optional[str] = None
    owner_email: Optional[str] = None
    financial_year: Optional[str] = None
    status: str = "active"


class NextCompanyId(BaseModel):
    fiscal_year: str
    company_id: str


class PostalAddress(BaseModel):
    postal_code: str
    prefecture: str = ""
    city: str = ""
    town: str = ""
