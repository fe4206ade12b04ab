# logistics/repositories/directory.py
"""
Directory reads/writes used by the session bootstrap engine.

Layout:
- users/{uid}                                   → UserProfile
- financial_years/{fy}                          → FiscalYear
- financial_years/{fy}/companies/{companyId}    → Company (fiscal-year scoped)
- companies/{id}                                → Company (legacy flat collection)
"""
from typing import Any, Dict, List, Optional

from google.cloud.firestore_v1 import SERVER_TIMESTAMP, FieldFilter

from logistics.config import get_db
from logistics.core import constants as C


class FirestoreDirectory:
    """Async Firestore access for profile, fiscal-year and company lookups."""

    def __init__(self, db=None):
        self._db = db

    @property
    def db(self):
        return self._db if self._db is not None else get_db()

    def _companies(self, fiscal_year: Optional[str]):
        if fiscal_year:
            return self.db.collection(C.FINANCIAL_YEARS).document(fiscal_year).collection(C.COMPANIES)
        return self.db.collection(C.COMPANIES)

    # ---------- profiles ----------
    async def get_profile(self, uid: str) -> Optional[Dict[str, Any]]:
        snap = await self.db.collection(C.USERS).document(uid).get()
        return (snap.to_dict() or {}) if snap.exists else None

    async def create_profile(self, uid: str, data: Dict[str, Any]) -> None:
        await self.db.collection(C.USERS).document(uid).set({**data, "createdAt": SERVER_TIMESTAMP})

    async def merge_profile(self, uid: str, data: Dict[str, Any]) -> None:
        await self.db.collection(C.USERS).document(uid).set(data, merge=True)

    # ---------- fiscal years ----------
    async def list_fiscal_year_ids(self) -> List[str]:
        return [doc.id async for doc in self.db.collection(C.FINANCIAL_YEARS).stream()]

    async def has_fiscal_year(self) -> bool:
        docs = await self.db.collection(C.FINANCIAL_YEARS).limit(1).get()
        return len(docs) > 0

    # ---------- companies ----------
    async def find_company(self, company_id: str, fiscal_year: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """
        Company whose `companyId` matches, in the given fiscal year's subcollection,
        or in the flat `companies` collection when fiscal_year is empty.
        """
        docs = await (
            self._companies(fiscal_year)
            .where(filter=FieldFilter("companyId", "==", company_id))
            .limit(1)
            .get()
        )
        if not docs:
            return None
        return {**(docs[0].to_dict() or {}), "id": docs[0].id}

    async def has_company(self, fiscal_year: Optional[str] = None) -> bool:
        docs = await self._companies(fiscal_year).limit(1).get()
        return len(docs) > 0
