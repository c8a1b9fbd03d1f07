"""
Campaign Service
Operations exposed to the HTTP layer, composed over the call/campaign core
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from voice_campaigns.domain.exceptions import NotFound, PreconditionFailed
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.models.call_log import CallLog, CallStatus
from voice_campaigns.domain.models.campaign import Campaign, CampaignStatus, utc_now
from voice_campaigns.domain.models.lead import Lead
from voice_campaigns.domain.models.statistics import CampaignStats, DashboardSummary
from voice_campaigns.domain.models.voice import Voice
from voice_campaigns.domain.services import statistics_reporter
from voice_campaigns.domain.services.call_record_store import CallRecordStore, partition_calls
from voice_campaigns.domain.services.campaign_aggregator import CampaignAggregator
from voice_campaigns.domain.services.lead_tracker import LeadProgressTracker

logger = logging.getLogger(__name__)


class CampaignService:
    """
    Facade the API layer talks to.

    Wires the Call Record Store, Lead Progress Tracker and Campaign
    Aggregator over one repository, and materializes statistics on
    demand. All operations are synchronous.
    """

    def __init__(
        self,
        repository: CampaignRepository,
        reference_timezone: str = "UTC",
        auto_complete: bool = True,
        status_map: Optional[Dict[str, str]] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.reference_timezone = reference_timezone
        self._status_map = status_map or {}
        self._clock = clock

        self.lead_tracker = LeadProgressTracker(repository, clock=clock)
        self.aggregator = CampaignAggregator(repository, auto_complete=auto_complete, clock=clock)
        self.call_store = CallRecordStore(repository, self.lead_tracker, self.aggregator, clock=clock)

    def _require_campaign(self, campaign_id: str) -> Campaign:
        campaign = self.repository.get_campaign(campaign_id)
        if campaign is None:
            raise NotFound("Campaign", campaign_id)
        return campaign

    # ========================
    # Campaigns
    # ========================

    def create_campaign(
        self,
        name: str,
        first_prompt: str,
        system_persona: str,
        voice_id: Optional[str] = None
    ) -> Campaign:
        if voice_id is not None and self.repository.get_voice(voice_id) is None:
            raise NotFound("Voice", voice_id)

        campaign = Campaign(
            id=str(uuid.uuid4()),
            name=name,
            first_prompt=first_prompt,
            system_persona=system_persona,
            voice_id=voice_id,
            created_at=self._clock(),
        )
        campaign = self.repository.add_campaign(campaign)
        logger.info(f"Created campaign {campaign.id} ({name})")
        return campaign

    def get_campaign(self, campaign_id: str) -> Campaign:
        return self._require_campaign(campaign_id)

    def list_campaigns(self) -> List[Campaign]:
        return self.repository.list_campaigns()

    def update_campaign(
        self,
        campaign_id: str,
        name: Optional[str] = None,
        first_prompt: Optional[str] = None,
        system_persona: Optional[str] = None,
        voice_id: Optional[str] = None
    ) -> Campaign:
        """
        Update a campaign's agent configuration. Fields left as None keep
        their current value.

        Raises:
            NotFound: campaign or voice does not exist
            PreconditionFailed: campaign is active or completed
        """
        if voice_id is not None and self.repository.get_voice(voice_id) is None:
            raise NotFound("Voice", voice_id)

        changes = {
            field: value
            for field, value in (
                ("name", name),
                ("first_prompt", first_prompt),
                ("system_persona", system_persona),
                ("voice_id", voice_id),
            )
            if value is not None
        }
        if not changes:
            return self._require_campaign(campaign_id)
        return self.aggregator.update_settings(campaign_id, changes)

    def delete_campaign(self, campaign_id: str) -> None:
        """Delete a campaign with its leads and call logs."""
        if not self.repository.delete_campaign(campaign_id):
            raise NotFound("Campaign", campaign_id)
        logger.info(f"Deleted campaign {campaign_id}")

    def start_campaign(self, campaign_id: str) -> Dict[str, Any]:
        campaign, eligible = self.aggregator.start(campaign_id)
        return {"campaign": campaign, "eligible_leads": eligible}

    def pause_campaign(self, campaign_id: str) -> Campaign:
        return self.aggregator.transition_status(campaign_id, CampaignStatus.PAUSED)

    def resume_campaign(self, campaign_id: str) -> Campaign:
        return self.aggregator.transition_status(campaign_id, CampaignStatus.ACTIVE)

    def complete_campaign(self, campaign_id: str) -> Campaign:
        return self.aggregator.transition_status(campaign_id, CampaignStatus.COMPLETED)

    # ========================
    # Leads
    # ========================

    def add_leads(self, campaign_id: str, rows: Iterable[Dict[str, Any]]) -> List[Lead]:
        """
        Import leads into a campaign.

        Each row needs phone_number and may carry first_name/last_name.
        """
        campaign = self._require_campaign(campaign_id)
        if campaign.status == CampaignStatus.COMPLETED.value:
            raise PreconditionFailed("Cannot add leads to a completed campaign")

        now = self._clock()
        leads = [
            Lead(
                id=str(uuid.uuid4()),
                campaign_id=campaign_id,
                phone_number=row["phone_number"],
                first_name=row.get("first_name"),
                last_name=row.get("last_name"),
                created_at=now,
            )
            for row in rows
        ]
        if not leads:
            return []

        created = self.repository.add_leads(leads)
        self.aggregator.on_leads_imported(campaign_id, len(created))
        logger.info(f"Imported {len(created)} leads into campaign {campaign_id}")
        return created

    def list_leads(self, campaign_id: str) -> List[Lead]:
        self._require_campaign(campaign_id)
        return self.repository.list_leads(campaign_id)

    # ========================
    # Calls
    # ========================

    def record_test_call(
        self,
        campaign_id: Optional[str],
        phone_number: str,
        provider_call_id: Optional[str] = None
    ) -> str:
        """Log a test call; campaign_id may be None for an unattached call."""
        return self.call_store.record_call_started(campaign_id, None, phone_number, provider_call_id)

    def record_call_started(
        self,
        campaign_id: str,
        lead_id: str,
        phone_number: Optional[str] = None,
        provider_call_id: Optional[str] = None
    ) -> str:
        """Log a production dial-out; the number defaults to the lead's."""
        if phone_number is None:
            lead = self.repository.get_lead(lead_id)
            if lead is None:
                raise NotFound("Lead", lead_id)
            phone_number = lead.phone_number
        return self.call_store.record_call_started(campaign_id, lead_id, phone_number, provider_call_id)

    def record_call_outcome(
        self,
        call_log_id: str,
        status: CallStatus,
        duration: Optional[int] = None,
        conversation_id: Optional[str] = None
    ) -> CallLog:
        return self.call_store.record_call_outcome(call_log_id, status, duration, conversation_id)

    def record_provider_status(
        self,
        provider_call_id: str,
        provider_status: str,
        duration: Optional[int] = None
    ) -> Optional[CallLog]:
        """
        Apply a telephony status callback.

        Returns None when the provider status has no call log equivalent.

        Raises:
            NotFound: no call log carries this provider call id
        """
        call_log = self.call_store.find_by_provider_call_id(provider_call_id)
        if call_log is None:
            raise NotFound("CallLog", provider_call_id)

        status = self._status_map.get(provider_status.lower())
        if status is None:
            logger.debug(f"Ignoring provider status '{provider_status}' for {provider_call_id}")
            return None

        return self.call_store.record_call_outcome(call_log.id, status, duration)

    def get_call_log(self, call_log_id: str) -> CallLog:
        call_log = self.repository.get_call_log(call_log_id)
        if call_log is None:
            raise NotFound("CallLog", call_log_id)
        return call_log

    def list_call_logs(self, campaign_id: Optional[str] = None) -> List[CallLog]:
        if campaign_id is None:
            return self.repository.list_call_logs()
        self._require_campaign(campaign_id)
        return self.call_store.list_by_campaign(campaign_id)

    # ========================
    # Statistics
    # ========================

    def get_campaign_stats(
        self,
        campaign_id: str,
        tz: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> CampaignStats:
        campaign = self._require_campaign(campaign_id)
        return statistics_reporter.build_campaign_stats(
            campaign,
            self.repository.list_leads(campaign_id),
            self.call_store.list_by_campaign(campaign_id),
            now or self._clock(),
            tz or self.reference_timezone,
        )

    def get_campaign_details(self, campaign_id: str, tz: Optional[str] = None) -> Dict[str, Any]:
        """Campaign with its leads, call logs split into campaign/test calls, and stats."""
        campaign = self._require_campaign(campaign_id)
        leads = self.repository.list_leads(campaign_id)
        call_logs = self.call_store.list_by_campaign(campaign_id)
        campaign_calls, test_calls = partition_calls(call_logs, leads)

        return {
            "campaign": campaign,
            "leads": leads,
            "call_logs": call_logs,
            "campaign_calls": campaign_calls,
            "test_calls": test_calls,
            "stats": statistics_reporter.build_campaign_stats(
                campaign, leads, call_logs, self._clock(), tz or self.reference_timezone
            ),
        }

    def get_dashboard_summary(self, tz: Optional[str] = None) -> DashboardSummary:
        return statistics_reporter.build_dashboard_summary(
            self.repository.list_campaigns(),
            self.repository.list_call_logs(),
            self._clock(),
            tz or self.reference_timezone,
        )

    # ========================
    # Voices
    # ========================

    def list_voices(self) -> List[Voice]:
        return self.repository.list_voices()

    def register_voice(self, voice: Voice) -> Voice:
        return self.repository.add_voice(voice)

    def seed_voices(self, voices: Iterable[Dict[str, Any]]) -> int:
        """Load default voices when the catalogue is empty."""
        if self.repository.list_voices():
            return 0
        count = 0
        for data in voices:
            self.repository.add_voice(Voice(**data))
            count += 1
        logger.info(f"Seeded {count} default voices")
        return count
