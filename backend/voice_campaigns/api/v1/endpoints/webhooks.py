"""
Webhooks API Endpoints
Handles call status callbacks from the telephony provider (Twilio)
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Response

from voice_campaigns.api.v1.dependencies import get_campaign_service
from voice_campaigns.domain.exceptions import CampaignCoreError
from voice_campaigns.domain.services.campaign_service import CampaignService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/twilio/status")
def twilio_status(
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    CallDuration: Optional[int] = Form(None),
    service: CampaignService = Depends(get_campaign_service)
):
    """
    Handle Twilio call status callbacks.

    Processes call status changes:
    - ringing / in-progress: call advancing
    - completed: call ended normally
    - busy / no-answer / canceled / failed: call failed

    Rejected events (unknown SID, duplicate terminal status) are logged
    and acknowledged so the provider does not keep retrying them.
    """
    logger.info(f"Twilio status webhook: sid={CallSid}, status={CallStatus}, duration={CallDuration}")

    try:
        service.record_provider_status(CallSid, CallStatus, CallDuration)
    except CampaignCoreError as e:
        logger.warning(f"Ignored Twilio status for {CallSid}: {e.message}")

    return Response(content="OK", media_type="text/plain")
