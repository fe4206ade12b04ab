# logistics/schemas/fiscal_year.py
from datetime import date
from typing import Optional
from fastapi import Form, HTTPException
from pydantic import BaseModel, Field, ValidationError, model_validator


class FiscalYearCreate(BaseModel):
    """Admin ⇒ new fiscal year. The id is derived from the two calendar years."""
    start_date: date = Field(..., description="First day (YYYY-MM-DD)")
    end_date: date = Field(..., description="Last day (YYYY-MM-DD)")

    @model_validator(mode="after")
    def _check_order(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def fiscal_year_id(self) -> str:
        return f"{self.start_date.year}_{self.end_date.year}"

    @classmethod
    def as_form(
        cls,
        start_date: date = Form(...),
        end_date: date = Form(...),
    ):
        try:
            return cls(start_date=start_date, end_date=end_date)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=[err["msg"] for err in exc.errors()])


class FiscalYearOut(BaseModel):
    id: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    created_by: Optional[str] = None
    status: str = "active"


class CurrentFiscalYearIn(BaseModel):
    fiscal_year: str = Field(..., pattern=r"^\d{4}_\d{4}$", description="e.g. 2025_2026")
