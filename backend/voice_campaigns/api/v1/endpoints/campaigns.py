"""
Campaigns API
Campaign CRUD, lifecycle transitions, lead import and statistics

Endpoints are plain ``def`` so FastAPI runs the blocking core on its
threadpool instead of the event loop.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from pydantic import BaseModel, Field, field_validator

from voice_campaigns.api.v1.dependencies import get_campaign_service
from voice_campaigns.domain.models.campaign import Campaign
from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.models.lead import Lead
from voice_campaigns.domain.models.statistics import CampaignStats
from voice_campaigns.domain.services.campaign_service import CampaignService
from voice_campaigns.utils.lead_import import decode_upload, normalize_phone_number, parse_leads_csv

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


class CampaignCreate(BaseModel):
    """Request body for creating a campaign"""
    name: str = Field(..., min_length=1, max_length=255)
    first_prompt: str = Field(..., min_length=1)
    system_persona: str = Field(..., min_length=1)
    voice_id: Optional[str] = None


class CampaignUpdate(BaseModel):
    """Request body for updating a campaign's agent configuration"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    first_prompt: Optional[str] = Field(None, min_length=1)
    system_persona: Optional[str] = Field(None, min_length=1)
    voice_id: Optional[str] = Field(None, min_length=1)


class LeadCreate(BaseModel):
    """Request body for adding a single lead to a campaign."""
    phone_number: str = Field(..., description="Phone number in any format (will be normalized)")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone_number(v)


class StartCampaignResponse(BaseModel):
    campaign: Campaign
    eligible_leads: List[Lead]


class CampaignDetails(BaseModel):
    campaign: Campaign
    leads: List[Lead]
    call_logs: List[CallLog]
    campaign_calls: List[CallLog]
    test_calls: List[CallLog]
    stats: CampaignStats


class ImportRowError(BaseModel):
    row: int
    error: str


class LeadImportResult(BaseModel):
    leads_count: int
    duplicates_skipped: int
    errors: List[ImportRowError]
    leads: List[Lead]


@router.get("/")
def list_campaigns(service: CampaignService = Depends(get_campaign_service)):
    """List all campaigns, newest first"""
    return {"campaigns": service.list_campaigns()}


@router.post("/", status_code=201)
def create_campaign(
    campaign_data: CampaignCreate,
    service: CampaignService = Depends(get_campaign_service)
):
    """Create a new campaign in draft status"""
    campaign = service.create_campaign(
        name=campaign_data.name,
        first_prompt=campaign_data.first_prompt,
        system_persona=campaign_data.system_persona,
        voice_id=campaign_data.voice_id,
    )
    return {"campaign": campaign}


@router.get("/{campaign_id}", response_model=CampaignDetails)
def get_campaign(
    campaign_id: str,
    tz: Optional[str] = Query(None, description="IANA zone for 'calls today'"),
    service: CampaignService = Depends(get_campaign_service)
):
    """Campaign details with leads, call logs and derived statistics"""
    try:
        return service.get_campaign_details(campaign_id, tz=tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{campaign_id}")
def update_campaign(
    campaign_id: str,
    update: CampaignUpdate,
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Update the agent configuration (prompt, persona, voice).

    Only draft and paused campaigns can be edited.
    """
    campaign = service.update_campaign(campaign_id, **update.model_dump(exclude_none=True))
    return {"campaign": campaign}


@router.delete("/{campaign_id}", status_code=204)
def delete_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service)
):
    """Delete a campaign together with its leads and call logs"""
    service.delete_campaign(campaign_id)


@router.post("/{campaign_id}/start", response_model=StartCampaignResponse)
def start_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Start a campaign.

    Requires draft or paused status, at least one lead and a selected
    voice. Returns the activated campaign and the pending leads to dial.
    """
    return service.start_campaign(campaign_id)


@router.post("/{campaign_id}/pause")
def pause_campaign(campaign_id: str, service: CampaignService = Depends(get_campaign_service)):
    return {"campaign": service.pause_campaign(campaign_id)}


@router.post("/{campaign_id}/resume")
def resume_campaign(campaign_id: str, service: CampaignService = Depends(get_campaign_service)):
    return {"campaign": service.resume_campaign(campaign_id)}


@router.post("/{campaign_id}/complete")
def complete_campaign(campaign_id: str, service: CampaignService = Depends(get_campaign_service)):
    return {"campaign": service.complete_campaign(campaign_id)}


@router.get("/{campaign_id}/stats", response_model=CampaignStats)
def get_campaign_stats(
    campaign_id: str,
    tz: Optional[str] = Query(None, description="IANA zone for 'calls today'"),
    service: CampaignService = Depends(get_campaign_service)
):
    """Dashboard figures for one campaign"""
    try:
        return service.get_campaign_stats(campaign_id, tz=tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{campaign_id}/leads")
def list_leads(campaign_id: str, service: CampaignService = Depends(get_campaign_service)):
    return {"leads": service.list_leads(campaign_id)}


@router.post("/{campaign_id}/leads", status_code=201)
def add_lead(
    campaign_id: str,
    lead_data: LeadCreate,
    service: CampaignService = Depends(get_campaign_service)
):
    """Add a single lead to a campaign"""
    leads = service.add_leads(campaign_id, [lead_data.model_dump()])
    return {"lead": leads[0]}


@router.post("/{campaign_id}/leads/upload", response_model=LeadImportResult)
def upload_leads(
    campaign_id: str,
    file: UploadFile = File(..., description="CSV with first_name, last_name, contact_no"),
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Bulk import leads from a CSV file.

    CSV Format Expected:
        first_name,last_name,contact_no
        John,Doe,+1234567890
    """
    if not file.filename or not file.filename.lower().endswith('.csv'):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")

    try:
        parsed = parse_leads_csv(decode_upload(file.file.read()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not parsed.rows:
        raise HTTPException(
            status_code=400,
            detail="No valid leads found. CSV must contain columns: first_name, last_name, contact_no"
        )

    leads = service.add_leads(
        campaign_id,
        [
            {"first_name": row.first_name, "last_name": row.last_name, "phone_number": row.phone_number}
            for row in parsed.rows
        ],
    )
    logger.info(f"CSV import for campaign {campaign_id}: {len(leads)} leads, {len(parsed.errors)} errors")

    return LeadImportResult(
        leads_count=len(leads),
        duplicates_skipped=parsed.duplicates_skipped,
        errors=[ImportRowError(row=e.row, error=e.error) for e in parsed.errors],
        leads=leads,
    )
