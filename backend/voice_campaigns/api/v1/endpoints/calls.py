"""
Call Endpoints
Test calls, campaign dial-outs and call outcomes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, field_validator

from voice_campaigns.api.v1.dependencies import get_campaign_service
from voice_campaigns.domain.models.call_log import CallStatus
from voice_campaigns.domain.services.campaign_service import CampaignService
from voice_campaigns.utils.lead_import import normalize_phone_number

router = APIRouter(prefix="/calls", tags=["calls"])


class OutboundTestCallRequest(BaseModel):
    """Request body for logging a test call"""
    phone_number: str = Field(..., min_length=10)
    campaign_id: Optional[str] = None
    provider_call_id: Optional[str] = None

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone_number(v)


class CampaignCallRequest(BaseModel):
    """Request body for logging a production dial-out"""
    campaign_id: str
    lead_id: str
    phone_number: Optional[str] = None
    provider_call_id: Optional[str] = None


class CallOutcomeRequest(BaseModel):
    """Status update for a placed call"""
    status: CallStatus
    duration: Optional[int] = Field(None, ge=0, description="Call length in seconds")
    conversation_id: Optional[str] = None


class CallCreatedResponse(BaseModel):
    call_log_id: str


@router.get("/")
def list_calls(
    campaign_id: Optional[str] = Query(None, description="Only calls of this campaign"),
    service: CampaignService = Depends(get_campaign_service)
):
    """Call logs, oldest first"""
    return {"call_logs": service.list_call_logs(campaign_id)}


@router.post("/test", response_model=CallCreatedResponse, status_code=201)
def record_test_call(
    request: OutboundTestCallRequest,
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Log a test call.

    The campaign is optional: unattached test calls are legal. Test
    calls count toward campaign call statistics but never advance a lead.
    """
    call_log_id = service.record_test_call(
        request.campaign_id, request.phone_number, request.provider_call_id
    )
    return CallCreatedResponse(call_log_id=call_log_id)


@router.post("/", response_model=CallCreatedResponse, status_code=201)
def record_campaign_call(
    request: CampaignCallRequest,
    service: CampaignService = Depends(get_campaign_service)
):
    """Log a dial-out to one of a campaign's leads"""
    call_log_id = service.record_call_started(
        request.campaign_id, request.lead_id, request.phone_number, request.provider_call_id
    )
    return CallCreatedResponse(call_log_id=call_log_id)


@router.get("/{call_log_id}")
def get_call(call_log_id: str, service: CampaignService = Depends(get_campaign_service)):
    return {"call_log": service.get_call_log(call_log_id)}


@router.post("/{call_log_id}/outcome")
def record_call_outcome(
    call_log_id: str,
    outcome: CallOutcomeRequest,
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Advance a call's status.

    A terminal status (completed/failed) updates the lead and the
    campaign counters exactly once; later outcomes for the same call
    are rejected with 409.
    """
    call_log = service.record_call_outcome(
        call_log_id, outcome.status, outcome.duration, outcome.conversation_id
    )
    return {"call_log": call_log}
