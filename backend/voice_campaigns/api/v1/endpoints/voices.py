"""
Voice Endpoints
Read-only voice catalogue plus registration of provider voices
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from voice_campaigns.api.v1.dependencies import get_campaign_service
from voice_campaigns.domain.models.voice import Voice
from voice_campaigns.domain.services.campaign_service import CampaignService

router = APIRouter(prefix="/voices", tags=["voices"])


class VoiceCreate(BaseModel):
    id: str = Field(..., min_length=1, description="Voice-provider voice ID")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_cloned: bool = False
    sample_url: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    category: Optional[str] = None


@router.get("/")
def list_voices(service: CampaignService = Depends(get_campaign_service)):
    return {"voices": service.list_voices()}


@router.post("/", status_code=201)
def register_voice(voice_data: VoiceCreate, service: CampaignService = Depends(get_campaign_service)):
    return {"voice": service.register_voice(Voice(**voice_data.model_dump()))}
