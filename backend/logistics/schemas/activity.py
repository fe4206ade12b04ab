# logistics/schemas/activity.py
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class ActivityOut(BaseModel):
    id: str
    action: str
    target_type: str = ""
    company_id: str = ""
    performed_by_id: Optional[str] = None
    performed_by_email: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[datetime] = None
