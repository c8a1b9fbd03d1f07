"""
Campaign Domain Models
"""
from pydantic import BaseModel, Field
from typing import Optional, ClassVar, Dict, Set
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CampaignStatus(str, Enum):
    """Campaign status"""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


# Allowed status edges: draft -> active -> (paused <-> active) -> completed
CAMPAIGN_TRANSITIONS: Dict[str, Set[str]] = {
    CampaignStatus.DRAFT.value: {CampaignStatus.ACTIVE.value},
    CampaignStatus.ACTIVE.value: {CampaignStatus.PAUSED.value, CampaignStatus.COMPLETED.value},
    CampaignStatus.PAUSED.value: {CampaignStatus.ACTIVE.value, CampaignStatus.COMPLETED.value},
    CampaignStatus.COMPLETED.value: set(),
}

# Campaigns in these states may be (re)started
STARTABLE_STATUSES: Set[str] = {CampaignStatus.DRAFT.value, CampaignStatus.PAUSED.value}

# Prompt, persona and voice can change only while no dialing is under way
EDITABLE_STATUSES: Set[str] = STARTABLE_STATUSES


class Campaign(BaseModel):
    """Campaign for outbound calls"""
    id: str
    name: str
    first_prompt: str  # Opening line spoken by the agent
    system_persona: str  # AI agent instructions
    voice_id: Optional[str] = None  # Selected voice-provider voice
    status: CampaignStatus = CampaignStatus.DRAFT
    total_leads: int = Field(default=0, ge=0)
    completed_calls: int = Field(default=0, ge=0)
    successful_calls: int = Field(default=0, ge=0)
    failed_calls: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utc_now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    version: int = 0

    model_config = {"use_enum_values": True, "validate_assignment": True, "from_attributes": True}

    ENTITY: ClassVar[str] = "Campaign"

    def can_transition_to(self, target: str) -> bool:
        return target in CAMPAIGN_TRANSITIONS.get(self.status, set())
