"""
Domain services
Call Record Store, Lead Progress Tracker, Campaign Aggregator and Statistics Reporter
"""
from voice_campaigns.domain.services.campaign_aggregator import CampaignAggregator
from voice_campaigns.domain.services.call_record_store import CallRecordStore
from voice_campaigns.domain.services.campaign_service import CampaignService
from voice_campaigns.domain.services.lead_tracker import LeadProgressTracker

__all__ = [
    "CampaignAggregator",
    "CallRecordStore",
    "CampaignService",
    "LeadProgressTracker",
]
