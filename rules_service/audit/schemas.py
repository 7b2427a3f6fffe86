"""
Pydantic schemas for rule audit log entries.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel


class AuditLogEntryResponse(BaseModel):
    id: str
    rule_id: str
    action: str
    user_id: str
    changes: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    entries: List[AuditLogEntryResponse]
    count: int
