"""
Call Record Store
Append-only ledger of call attempts, test and production
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set, Tuple

from voice_campaigns.domain.exceptions import InvalidTransition, NotFound
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.models.call_log import CallLog, CallStatus, CALL_STATUS_RANK
from voice_campaigns.domain.models.campaign import utc_now
from voice_campaigns.domain.models.lead import Lead, LeadStatus
from voice_campaigns.domain.services.campaign_aggregator import CampaignAggregator
from voice_campaigns.domain.services.lead_tracker import LeadProgressTracker
from voice_campaigns.utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


def is_test_call(call_log: CallLog, lead_ids: Set[str]) -> bool:
    """A call is a test call unless its lead belongs to the campaign's lead set."""
    return not call_log.lead_id or call_log.lead_id not in lead_ids


def partition_calls(
    call_logs: Iterable[CallLog],
    leads: Iterable[Lead]
) -> Tuple[List[CallLog], List[CallLog]]:
    """
    Split call logs into (campaign_calls, test_calls).

    Derived at read time from the current lead set, never stored.
    """
    lead_ids = {lead.id for lead in leads}
    campaign_calls: List[CallLog] = []
    test_calls: List[CallLog] = []
    for call_log in call_logs:
        (test_calls if is_test_call(call_log, lead_ids) else campaign_calls).append(call_log)
    return campaign_calls, test_calls


class CallRecordStore:
    """
    Records call attempts and their outcomes.

    A call log only moves forward along
    initiated -> ringing -> answered -> completed|failed and is frozen
    once terminal. The transition into a terminal status fans out to
    exactly one lead update (campaign calls only) and exactly one
    campaign aggregation update.
    """

    def __init__(
        self,
        repository: CampaignRepository,
        lead_tracker: LeadProgressTracker,
        aggregator: CampaignAggregator,
        clock: Callable[[], datetime] = utc_now
    ):
        self._repository = repository
        self._lead_tracker = lead_tracker
        self._aggregator = aggregator
        self._clock = clock
        self._locks = KeyedLock()

    def _campaign_lead(self, campaign_id: Optional[str], lead_id: Optional[str]) -> Optional[Lead]:
        """The lead a call targets, or None when the call is a test call."""
        if not campaign_id or not lead_id:
            return None
        lead = self._repository.get_lead(lead_id)
        if lead is None or lead.campaign_id != campaign_id:
            return None
        return lead

    def _finish_lead(self, lead: Lead, success: bool, duration_seconds: Optional[int]) -> bool:
        """Apply the outcome to the lead; False when another call already settled it."""
        try:
            self._lead_tracker.on_call_terminal(lead.id, success, duration_seconds)
        except InvalidTransition:
            logger.info(f"Lead {lead.id} already settled; counting the call for the campaign only")
            return False
        return True

    def record_call_started(
        self,
        campaign_id: Optional[str],
        lead_id: Optional[str],
        phone_number: str,
        provider_call_id: Optional[str] = None
    ) -> str:
        """
        Append a new call log in 'initiated' status.

        Args:
            campaign_id: Owning campaign, or None for an unattached test call
            lead_id: Lead being dialed; None or unmatched makes a test call
            phone_number: Number dialed
            provider_call_id: Telephony call SID, when already known

        Returns:
            The new call log id

        Raises:
            NotFound: campaign_id does not reference an existing campaign
            InvalidTransition: the lead already reached completed or failed
        """
        if campaign_id is not None and self._repository.get_campaign(campaign_id) is None:
            raise NotFound("Campaign", campaign_id)

        lead = self._campaign_lead(campaign_id, lead_id)
        if lead is not None and lead.is_terminal:
            raise InvalidTransition(lead.ENTITY, lead.status, LeadStatus.CALLING.value)

        call_log = CallLog(
            id=str(uuid.uuid4()),
            campaign_id=campaign_id,
            lead_id=lead_id,
            phone_number=phone_number,
            status=CallStatus.INITIATED,
            provider_call_id=provider_call_id,
            created_at=self._clock(),
        )
        self._repository.add_call_log(call_log)

        if lead is not None:
            self._lead_tracker.on_call_started(lead.id)
            logger.info(f"Call {call_log.id} started for lead {lead.id} in campaign {campaign_id}")
        else:
            logger.info(f"Test call {call_log.id} started (campaign={campaign_id})")

        return call_log.id

    def record_call_outcome(
        self,
        call_log_id: str,
        status: CallStatus,
        duration_seconds: Optional[int] = None,
        conversation_id: Optional[str] = None
    ) -> CallLog:
        """
        Advance a call log and, on a terminal status, fan out to the lead
        and campaign.

        Writes go lead, campaign, call log. A lead already settled by an
        earlier call is left as is and the call still counts for the
        campaign. If the campaign update fails the lead is put back and
        the call log stays open, so the outcome can be retried.

        Raises:
            NotFound: call log does not exist
            InvalidTransition: call already terminal or status moving
                backwards
        """
        status = CallStatus(status).value
        with self._locks.hold(call_log_id):
            call_log = self._repository.get_call_log(call_log_id)
            if call_log is None:
                raise NotFound("CallLog", call_log_id)

            if call_log.is_terminal:
                raise InvalidTransition(call_log.ENTITY, call_log.status, status)
            if CALL_STATUS_RANK[status] < CALL_STATUS_RANK[call_log.status]:
                raise InvalidTransition(call_log.ENTITY, call_log.status, status)

            call_log.status = status
            if duration_seconds is not None:
                call_log.duration = duration_seconds
            if conversation_id:
                call_log.conversation_id = conversation_id

            if not call_log.is_terminal:
                return self._repository.save_call_log(call_log)

            success = call_log.succeeded
            lead = self._campaign_lead(call_log.campaign_id, call_log.lead_id)
            lead_finished = lead is not None and self._finish_lead(lead, success, call_log.duration)

            if call_log.campaign_id:
                try:
                    self._aggregator.on_call_terminal(call_log.campaign_id, call_log.lead_id, success)
                except Exception:
                    if lead_finished:
                        self._lead_tracker.restore(lead)
                    raise

            # Call log last: it stays open until lead and campaign are written
            call_log.ended_at = self._clock()
            call_log = self._repository.save_call_log(call_log)

            logger.info(
                f"Call {call_log_id} finished as {call_log.status} "
                f"({'campaign' if lead is not None else 'test'} call, {call_log.duration}s)"
            )
            return call_log

    def find_by_provider_call_id(self, provider_call_id: str) -> Optional[CallLog]:
        return self._repository.find_call_log_by_provider_id(provider_call_id)

    def list_by_campaign(self, campaign_id: str) -> List[CallLog]:
        """Call logs of a campaign, oldest first."""
        return sorted(self._repository.list_call_logs(campaign_id), key=lambda c: c.created_at)
