"""
Lead Progress Tracker
Derives each lead's status from the calls made against it
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from voice_campaigns.domain.exceptions import InvalidTransition, NotFound
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.models.campaign import utc_now
from voice_campaigns.domain.models.lead import Lead, LeadStatus
from voice_campaigns.utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


class LeadProgressTracker:
    """
    Sole writer of Lead.status and Lead.call_duration.

    Status only moves forward along pending -> calling -> completed|failed,
    except for `restore`, which undoes an outcome whose campaign update failed.
    Writes for one lead are serialized; different leads never block
    each other.
    """

    def __init__(
        self,
        repository: CampaignRepository,
        clock: Callable[[], datetime] = utc_now
    ):
        self._repository = repository
        self._clock = clock
        self._locks = KeyedLock()

    def _load(self, lead_id: str) -> Lead:
        lead = self._repository.get_lead(lead_id)
        if lead is None:
            raise NotFound("Lead", lead_id)
        return lead

    def on_call_started(self, lead_id: str) -> Lead:
        """
        Mark a lead as being dialed.

        Re-dialing a lead that is already calling is a no-op. Dialing a
        lead that already reached a terminal state is logged and ignored.
        """
        with self._locks.hold(lead_id):
            lead = self._load(lead_id)

            if lead.status == LeadStatus.CALLING.value:
                logger.debug(f"Lead {lead_id} re-dialed while calling")
                return lead

            if lead.is_terminal:
                logger.warning(
                    f"Call started for lead {lead_id} already in terminal status '{lead.status}'"
                )
                return lead

            lead.status = LeadStatus.CALLING
            lead.last_called_at = self._clock()
            lead = self._repository.save_lead(lead)
            logger.info(f"Lead {lead_id} is now calling")
            return lead

    @staticmethod
    def ensure_can_terminate(lead: Lead, success: Optional[bool] = None) -> None:
        """Raise InvalidTransition if the lead cannot take a terminal outcome."""
        if lead.is_terminal:
            target = LeadStatus.COMPLETED.value if success else LeadStatus.FAILED.value
            raise InvalidTransition(lead.ENTITY, lead.status, target)

    def on_call_terminal(self, lead_id: str, success: bool, duration_seconds: Optional[int]) -> Lead:
        """Record the lead's final outcome; a lead reaches a terminal state once."""
        with self._locks.hold(lead_id):
            lead = self._load(lead_id)
            self.ensure_can_terminate(lead, success)

            lead.status = LeadStatus.COMPLETED if success else LeadStatus.FAILED
            lead.call_duration = duration_seconds
            lead = self._repository.save_lead(lead)
            logger.info(f"Lead {lead_id} finished as {lead.status} ({duration_seconds}s)")
            return lead

    def restore(self, previous: Lead) -> Optional[Lead]:
        """
        Put a lead back to a snapshot taken before a terminal outcome whose
        campaign update then failed.

        Returns None when the lead no longer exists.
        """
        with self._locks.hold(previous.id):
            lead = self._repository.get_lead(previous.id)
            if lead is None:
                return None
            lead.status = previous.status
            lead.call_duration = previous.call_duration
            lead.last_called_at = previous.last_called_at
            lead = self._repository.save_lead(lead)
            logger.warning(f"Lead {previous.id} rolled back to '{previous.status}'")
            return lead
