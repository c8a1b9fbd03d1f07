"""
Campaign Aggregator
Single source of truth for campaign status and counters
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from voice_campaigns.domain.exceptions import InvalidTransition, NotFound, PreconditionFailed
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.models.campaign import (
    Campaign,
    CampaignStatus,
    EDITABLE_STATUSES,
    STARTABLE_STATUSES,
    utc_now,
)
from voice_campaigns.domain.models.lead import Lead, LeadStatus
from voice_campaigns.utils.keyed_lock import KeyedLock

logger = logging.getLogger(__name__)


class CampaignAggregator:
    """
    Only writer of Campaign.status and its four counters.

    Every mutation of one campaign runs under that campaign's lock, so
    concurrent terminal-call events cannot lose an increment. Different
    campaigns proceed in parallel.

    Counters only grow, and successful_calls + failed_calls never
    exceeds completed_calls.
    """

    def __init__(
        self,
        repository: CampaignRepository,
        auto_complete: bool = True,
        clock: Callable[[], datetime] = utc_now
    ):
        self._repository = repository
        self._auto_complete = auto_complete
        self._clock = clock
        self._locks = KeyedLock()

    def _load(self, campaign_id: str) -> Campaign:
        campaign = self._repository.get_campaign(campaign_id)
        if campaign is None:
            raise NotFound("Campaign", campaign_id)
        return campaign

    def _apply_status(self, campaign: Campaign, target: str) -> None:
        if not campaign.can_transition_to(target):
            raise InvalidTransition(campaign.ENTITY, campaign.status, target)

        campaign.status = target
        if target == CampaignStatus.ACTIVE.value and campaign.started_at is None:
            campaign.started_at = self._clock()
        elif target == CampaignStatus.COMPLETED.value:
            campaign.completed_at = self._clock()

    def on_call_terminal(
        self,
        campaign_id: str,
        lead_id: Optional[str],
        success: bool
    ) -> Campaign:
        """
        Count one terminal call against the campaign.

        Test calls (no lead, or a lead outside this campaign) count
        toward the campaign's call statistics too.
        """
        with self._locks.hold(campaign_id):
            campaign = self._load(campaign_id)

            campaign.completed_calls += 1
            if success:
                campaign.successful_calls += 1
            else:
                campaign.failed_calls += 1

            if self._auto_complete and lead_id and campaign.status == CampaignStatus.ACTIVE.value:
                leads = self._repository.list_leads(campaign_id)
                if any(lead.id == lead_id for lead in leads) and not any(
                    lead.status in (LeadStatus.PENDING.value, LeadStatus.CALLING.value)
                    for lead in leads
                ):
                    self._apply_status(campaign, CampaignStatus.COMPLETED.value)
                    logger.info(f"Campaign {campaign_id} completed: no leads left to dial")

            campaign = self._repository.save_campaign(campaign)
            logger.debug(
                f"Campaign {campaign_id} counters: completed={campaign.completed_calls} "
                f"successful={campaign.successful_calls} failed={campaign.failed_calls}"
            )
            return campaign

    def on_leads_imported(self, campaign_id: str, count: int) -> Campaign:
        """Grow total_leads after a lead import."""
        with self._locks.hold(campaign_id):
            campaign = self._load(campaign_id)
            campaign.total_leads += count
            return self._repository.save_campaign(campaign)

    def update_settings(self, campaign_id: str, changes: Dict[str, Any]) -> Campaign:
        """
        Change a campaign's name, prompt, persona or voice.

        Raises:
            NotFound: campaign does not exist
            PreconditionFailed: campaign is not draft or paused
        """
        with self._locks.hold(campaign_id):
            campaign = self._load(campaign_id)
            if campaign.status not in EDITABLE_STATUSES:
                raise PreconditionFailed(
                    f"Campaign can only be edited while draft or paused (currently '{campaign.status}')"
                )
            for field, value in changes.items():
                setattr(campaign, field, value)
            campaign = self._repository.save_campaign(campaign)
            logger.info(f"Campaign {campaign_id} updated: {', '.join(sorted(changes))}")
            return campaign

    def transition_status(self, campaign_id: str, target: CampaignStatus) -> Campaign:
        """
        Move a campaign along draft -> active -> (paused <-> active) -> completed.

        Raises:
            NotFound: campaign does not exist
            InvalidTransition: any other edge, e.g. completed -> active
        """
        target = CampaignStatus(target).value
        with self._locks.hold(campaign_id):
            campaign = self._load(campaign_id)
            previous = campaign.status
            self._apply_status(campaign, target)
            campaign = self._repository.save_campaign(campaign)
            logger.info(f"Campaign {campaign_id}: {previous} -> {target}")
            return campaign

    def start(self, campaign_id: str) -> Tuple[Campaign, List[Lead]]:
        """
        Activate a campaign and return the leads eligible for dialing.

        Preconditions, checked in order:
        1. Campaign is in draft or paused status
        2. Campaign has at least one lead
        3. Campaign has a selected voice

        Returns:
            (campaign, pending leads)

        Raises:
            NotFound: campaign does not exist
            PreconditionFailed: names the first unmet condition
        """
        with self._locks.hold(campaign_id):
            campaign = self._load(campaign_id)

            if campaign.status not in STARTABLE_STATUSES:
                raise PreconditionFailed(
                    f"Campaign must be draft or paused to start (currently '{campaign.status}')"
                )

            leads = self._repository.list_leads(campaign_id)
            if not leads:
                raise PreconditionFailed("No leads found for this campaign")

            if not campaign.voice_id:
                raise PreconditionFailed("No voice selected for this campaign")

            self._apply_status(campaign, CampaignStatus.ACTIVE.value)
            campaign = self._repository.save_campaign(campaign)

            eligible = [lead for lead in leads if lead.status == LeadStatus.PENDING.value]
            logger.info(f"Campaign {campaign_id} started with {len(eligible)} eligible leads")
            return campaign, eligible
