"""Pydantic schemas for document audit entries.

Audit entries are read-only snapshots handed back to callers; the ORM rows
themselves never leave the unit of work that wrote them.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AuditEntry(BaseModel):
    """One applied transition of one document."""
    id: int = Field(..., description="Audit entry identifier, ascending per insert")
    document_id: int = Field(..., description="Document the transition was applied to")
    action_id: int = Field(..., description="Action that triggered the transition")
    actor_user_id: int = Field(..., description="User who invoked the action")
    from_state_id: int = Field(..., description="State before the transition")
    to_state_id: int = Field(..., description="State after the transition")
    created_at: Optional[datetime] = Field(None, description="Timestamp assigned by the database")

    class Config:
        from_attributes = True
        frozen = True
