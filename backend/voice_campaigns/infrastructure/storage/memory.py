"""
In-Memory Repository
Process-local storage used when no DATABASE_URL is configured, and in tests
"""
import logging
import threading
from typing import Dict, Iterable, List, Optional, TypeVar

from pydantic import BaseModel

from voice_campaigns.domain.exceptions import ConflictingUpdate
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.models.campaign import Campaign
from voice_campaigns.domain.models.lead import Lead
from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.models.voice import Voice

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class InMemoryCampaignRepository(CampaignRepository):
    """
    Dict-backed repository.

    Records are copied on the way in and out so callers never share
    state with the store. Dicts keep insertion order, which gives
    oldest-first listings for free.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._campaigns: Dict[str, Campaign] = {}
        self._leads: Dict[str, Lead] = {}
        self._call_logs: Dict[str, CallLog] = {}
        self._voices: Dict[str, Voice] = {}

    def _insert(self, table: Dict[str, RecordT], record: RecordT) -> RecordT:
        stored = record.model_copy(deep=True)
        table[record.id] = stored
        return stored.model_copy(deep=True)

    def _compare_and_swap(self, table: Dict[str, RecordT], record: RecordT) -> RecordT:
        current = table.get(record.id)
        if current is None or current.version != record.version:
            logger.warning(f"Rejected stale write to {record.ENTITY} {record.id}")
            raise ConflictingUpdate(record.ENTITY, record.id)
        stored = record.model_copy(deep=True)
        stored.version = record.version + 1
        table[record.id] = stored
        return stored.model_copy(deep=True)

    @staticmethod
    def _copy(record: Optional[RecordT]) -> Optional[RecordT]:
        return record.model_copy(deep=True) if record is not None else None

    # Campaigns

    def add_campaign(self, campaign: Campaign) -> Campaign:
        with self._lock:
            return self._insert(self._campaigns, campaign)

    def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        with self._lock:
            return self._copy(self._campaigns.get(campaign_id))

    def list_campaigns(self) -> List[Campaign]:
        with self._lock:
            campaigns = [c.model_copy(deep=True) for c in self._campaigns.values()]
        return sorted(campaigns, key=lambda c: c.created_at, reverse=True)

    def save_campaign(self, campaign: Campaign) -> Campaign:
        with self._lock:
            return self._compare_and_swap(self._campaigns, campaign)

    def delete_campaign(self, campaign_id: str) -> bool:
        with self._lock:
            if self._campaigns.pop(campaign_id, None) is None:
                return False
            self._leads = {k: v for k, v in self._leads.items() if v.campaign_id != campaign_id}
            self._call_logs = {
                k: v for k, v in self._call_logs.items() if v.campaign_id != campaign_id
            }
            return True

    # Leads

    def add_leads(self, leads: Iterable[Lead]) -> List[Lead]:
        with self._lock:
            return [self._insert(self._leads, lead) for lead in leads]

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        with self._lock:
            return self._copy(self._leads.get(lead_id))

    def list_leads(self, campaign_id: str) -> List[Lead]:
        with self._lock:
            return [
                lead.model_copy(deep=True)
                for lead in self._leads.values()
                if lead.campaign_id == campaign_id
            ]

    def save_lead(self, lead: Lead) -> Lead:
        with self._lock:
            return self._compare_and_swap(self._leads, lead)

    # Call logs

    def add_call_log(self, call_log: CallLog) -> CallLog:
        with self._lock:
            return self._insert(self._call_logs, call_log)

    def get_call_log(self, call_log_id: str) -> Optional[CallLog]:
        with self._lock:
            return self._copy(self._call_logs.get(call_log_id))

    def find_call_log_by_provider_id(self, provider_call_id: str) -> Optional[CallLog]:
        with self._lock:
            for call_log in self._call_logs.values():
                if call_log.provider_call_id == provider_call_id:
                    return call_log.model_copy(deep=True)
        return None

    def list_call_logs(self, campaign_id: Optional[str] = None) -> List[CallLog]:
        with self._lock:
            return [
                call_log.model_copy(deep=True)
                for call_log in self._call_logs.values()
                if campaign_id is None or call_log.campaign_id == campaign_id
            ]

    def save_call_log(self, call_log: CallLog) -> CallLog:
        with self._lock:
            return self._compare_and_swap(self._call_logs, call_log)

    # Voices

    def add_voice(self, voice: Voice) -> Voice:
        with self._lock:
            self._voices[voice.id] = voice
            return voice

    def get_voice(self, voice_id: str) -> Optional[Voice]:
        with self._lock:
            return self._voices.get(voice_id)

    def list_voices(self) -> List[Voice]:
        with self._lock:
            return list(self._voices.values())
