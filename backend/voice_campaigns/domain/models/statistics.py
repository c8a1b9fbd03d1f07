"""
Statistics Models
Read-only dashboard figures materialized by the statistics reporter
"""
from pydantic import BaseModel


class CampaignStats(BaseModel):
    """Per-campaign dashboard figures"""
    campaign_id: str
    total_leads: int
    completed: int
    failed: int
    pending: int
    calling: int
    success_rate: float  # percentage, 0.0 when no completed calls
    success_rate_label: str  # e.g. "50%", "0%"
    avg_duration: float  # seconds
    calls_today: int
    progress: int  # percentage of leads that reached completed or failed
    campaign_calls: int
    test_calls: int
    conversations_with_audio: int


class DashboardSummary(BaseModel):
    """Totals across every campaign"""
    total_campaigns: int
    active_campaigns: int
    completed_calls: int
    successful_calls: int
    failed_calls: int
    success_rate: float
    success_rate_label: str
    calls_today: int
    total_minutes: int
    avg_call_duration: float  # seconds
