"""
Dashboard Endpoints
Provides aggregated metrics for the dashboard overview
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from voice_campaigns.api.v1.dependencies import get_campaign_service
from voice_campaigns.domain.models.statistics import DashboardSummary
from voice_campaigns.domain.services.campaign_service import CampaignService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=DashboardSummary)
def get_dashboard_summary(
    tz: Optional[str] = Query(None, description="IANA zone for 'calls today'"),
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Get aggregated dashboard metrics.

    Returns:
        - Campaign counts (total / active)
        - Completed, successful and failed call totals with success rate
        - Calls today, total minutes and average call duration
    """
    try:
        return service.get_dashboard_summary(tz=tz)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
