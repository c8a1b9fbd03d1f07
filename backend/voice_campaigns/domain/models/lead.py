"""
Lead Domain Models
"""
from pydantic import BaseModel, Field
from typing import Optional, ClassVar, Set
from datetime import datetime
from enum import Enum

from voice_campaigns.domain.models.campaign import utc_now


class LeadStatus(str, Enum):
    """Lead status, monotone along pending -> calling -> completed | failed"""
    PENDING = "pending"
    CALLING = "calling"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_LEAD_STATUSES: Set[str] = {LeadStatus.COMPLETED.value, LeadStatus.FAILED.value}


class Lead(BaseModel):
    """Lead/Contact for calling"""
    id: str
    campaign_id: str
    phone_number: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    status: LeadStatus = LeadStatus.PENDING
    call_duration: Optional[int] = Field(default=None, ge=0)  # seconds
    created_at: datetime = Field(default_factory=utc_now)
    last_called_at: Optional[datetime] = None
    version: int = 0

    model_config = {"use_enum_values": True, "validate_assignment": True, "from_attributes": True}

    ENTITY: ClassVar[str] = "Lead"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_LEAD_STATUSES

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
