"""Domain models"""

from .campaign import (
    CampaignStatus,
    Campaign,
    CAMPAIGN_TRANSITIONS,
)

from .lead import (
    LeadStatus,
    Lead,
)

from .call_log import (
    CallStatus,
    CallLog,
)

from .voice import Voice

from .statistics import (
    CampaignStats,
    DashboardSummary,
)

__all__ = [
    # Campaigns
    "CampaignStatus",
    "Campaign",
    "CAMPAIGN_TRANSITIONS",
    # Leads
    "LeadStatus",
    "Lead",
    # Call logs
    "CallStatus",
    "CallLog",
    "Voice",
    # Statistics
    "CampaignStats",
    "DashboardSummary",
]
