"""
Campaign Repository Interface
Abstract base class for the persistence collaborator
"""
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from voice_campaigns.domain.models.campaign import Campaign
from voice_campaigns.domain.models.lead import Lead
from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.models.voice import Voice


class CampaignRepository(ABC):
    """
    Durable storage for campaigns, leads, call logs and voices.

    Implementations must offer read-after-write consistency within one
    process. ``save_*`` methods are compare-and-swap on ``version``: they
    raise ConflictingUpdate when the stored version differs from the one
    passed in, and return the stored record with its version bumped.
    """

    # Campaigns

    @abstractmethod
    def add_campaign(self, campaign: Campaign) -> Campaign:
        pass

    @abstractmethod
    def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        pass

    @abstractmethod
    def list_campaigns(self) -> List[Campaign]:
        """All campaigns, newest first."""
        pass

    @abstractmethod
    def save_campaign(self, campaign: Campaign) -> Campaign:
        pass

    @abstractmethod
    def delete_campaign(self, campaign_id: str) -> bool:
        """Delete a campaign together with its leads and call logs."""
        pass

    # Leads

    @abstractmethod
    def add_leads(self, leads: Iterable[Lead]) -> List[Lead]:
        pass

    @abstractmethod
    def get_lead(self, lead_id: str) -> Optional[Lead]:
        pass

    @abstractmethod
    def list_leads(self, campaign_id: str) -> List[Lead]:
        """Leads of a campaign in import order."""
        pass

    @abstractmethod
    def save_lead(self, lead: Lead) -> Lead:
        pass

    # Call logs

    @abstractmethod
    def add_call_log(self, call_log: CallLog) -> CallLog:
        pass

    @abstractmethod
    def get_call_log(self, call_log_id: str) -> Optional[CallLog]:
        pass

    @abstractmethod
    def find_call_log_by_provider_id(self, provider_call_id: str) -> Optional[CallLog]:
        pass

    @abstractmethod
    def list_call_logs(self, campaign_id: Optional[str] = None) -> List[CallLog]:
        """Call logs oldest first; every call log when campaign_id is None."""
        pass

    @abstractmethod
    def save_call_log(self, call_log: CallLog) -> CallLog:
        pass

    # Voices

    @abstractmethod
    def add_voice(self, voice: Voice) -> Voice:
        pass

    @abstractmethod
    def get_voice(self, voice_id: str) -> Optional[Voice]:
        pass

    @abstractmethod
    def list_voices(self) -> List[Voice]:
        pass
