"""
Call Log Domain Models
One placed call, test or production
"""
from pydantic import BaseModel, Field
from typing import Optional, ClassVar, Dict, Set
from datetime import datetime
from enum import Enum

from voice_campaigns.domain.models.campaign import utc_now


class CallStatus(str, Enum):
    """Call status"""
    INITIATED = "initiated"
    RINGING = "ringing"
    ANSWERED = "answered"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_CALL_STATUSES: Set[str] = {CallStatus.COMPLETED.value, CallStatus.FAILED.value}

# Progress rank; a call never moves to a lower rank
CALL_STATUS_RANK: Dict[str, int] = {
    CallStatus.INITIATED.value: 0,
    CallStatus.RINGING.value: 1,
    CallStatus.ANSWERED.value: 2,
    CallStatus.COMPLETED.value: 3,
    CallStatus.FAILED.value: 3,
}


class CallLog(BaseModel):
    """Call record"""
    id: str
    campaign_id: Optional[str] = None
    lead_id: Optional[str] = None  # None (or unmatched) means a test call
    phone_number: str
    status: CallStatus = CallStatus.INITIATED
    duration: Optional[int] = Field(default=None, ge=0)  # seconds
    provider_call_id: Optional[str] = None  # Telephony call SID
    conversation_id: Optional[str] = None  # Voice session, implies a recording
    created_at: datetime = Field(default_factory=utc_now)
    ended_at: Optional[datetime] = None
    version: int = 0

    model_config = {"use_enum_values": True, "validate_assignment": True, "from_attributes": True}

    ENTITY: ClassVar[str] = "CallLog"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_CALL_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == CallStatus.COMPLETED.value

    @property
    def has_recording(self) -> bool:
        return bool(self.conversation_id)
