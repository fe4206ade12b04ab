# logistics/services/postal_codes.py
"""
Postal code → address table.

The table is a JSON list of `{"postal_code", "prefecture", "city", "town"}`
entries (codes as "1000001" or "100-0001"). It is read from disk the first
time a lookup needs it and kept for the life of the process.
"""
import json
import logging
import re
import threading
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

from logistics.config import settings

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")


def normalize_postal_code(value) -> Optional[str]:
    """'100-0001' / '〒1000001' → '1000001'; None unless exactly 7 digits remain."""
    if value is None:
        return None
    clean = _NON_DIGITS.sub("", str(value))
    return clean if len(clean) == 7 else None


class PostalCodeDirectory:
    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._table: Optional[Dict[str, dict]] = None

    @property
    def loaded(self) -> bool:
        return self._table is not None

    def _load(self) -> Dict[str, dict]:
        with self._lock:
            if self._table is None:
                with self.path.open(encoding="utf-8") as fh:
                    entries = json.load(fh)
                table: Dict[str, dict] = {}
                for entry in entries:
                    code = normalize_postal_code(entry.get("postal_code"))
                    if code and code not in table:
                        table[code] = entry
                self._table = table
                logger.info("Loaded %d postal codes from %s", len(table), self.path)
        return self._table

    def lookup(self, postal_code) -> Optional[dict]:
        """
        Address for a postal code, or None when the code is malformed or unknown.
        Raises FileNotFoundError / ValueError if the table itself cannot be read.
        """
        code = normalize_postal_code(postal_code)
        if code is None:
            return None
        entry = self._load().get(code)
        if entry is None:
            return None
        return {
            "postal_code": code,
            "prefecture": entry.get("prefecture") or "",
            "city": entry.get("city") or "",
            "town": entry.get("town") or "",
        }


@lru_cache
def get_postal_directory() -> PostalCodeDirectory:
    return PostalCodeDirectory(settings.postal_codes_file)
