"""
Statistics Reporter
Pure derivations of dashboard figures from a campaign/lead/call-log snapshot
"""
from datetime import datetime, tzinfo
from typing import Iterable, List, Sequence, Union

import pytz

from voice_campaigns.domain.models.campaign import Campaign, CampaignStatus
from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.models.lead import Lead, LeadStatus
from voice_campaigns.domain.models.statistics import CampaignStats, DashboardSummary
from voice_campaigns.domain.services.call_record_store import partition_calls

TimeZone = Union[str, tzinfo]


def resolve_timezone(tz: TimeZone) -> tzinfo:
    """
    Resolve an IANA zone name (or pass a tzinfo through).

    Raises:
        ValueError: unknown zone name
    """
    if isinstance(tz, tzinfo):
        return tz
    try:
        return pytz.timezone(tz)
    except pytz.exceptions.UnknownTimeZoneError:
        raise ValueError(f"Unknown time zone: {tz}")


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps come back from storage in UTC
    if moment.tzinfo is None:
        return pytz.UTC.localize(moment)
    return moment


def success_rate(campaign: Campaign) -> float:
    """Successful / completed calls as a percentage; 0.0 when nothing completed."""
    if campaign.completed_calls <= 0:
        return 0.0
    return round(campaign.successful_calls / campaign.completed_calls * 100, 1)


def format_percentage(value: float) -> str:
    """Display form of a percentage: 50.0 -> "50%", 66.7 -> "66.7%"."""
    return f"{value:g}%"


def average_duration_seconds(call_logs: Iterable[CallLog]) -> float:
    """Mean duration of terminal calls with a known duration; 0.0 when none."""
    durations = [
        call.duration for call in call_logs
        if call.is_terminal and call.duration is not None
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 1)


def calls_today(call_logs: Iterable[CallLog], now: datetime, tz: TimeZone) -> int:
    """
    Count call logs created on the same calendar day as ``now`` in ``tz``.

    The zone is always explicit; there is no ambient local time.
    """
    zone = resolve_timezone(tz)
    today = _as_utc(now).astimezone(zone).date()
    return sum(
        1 for call in call_logs
        if _as_utc(call.created_at).astimezone(zone).date() == today
    )


def progress_percentage(finished_leads: int, total_leads: int) -> int:
    """Share of leads that reached completed or failed; test calls do not count."""
    if total_leads <= 0:
        return 0
    return min(100, round(finished_leads / total_leads * 100))


def build_campaign_stats(
    campaign: Campaign,
    leads: Sequence[Lead],
    call_logs: Sequence[CallLog],
    now: datetime,
    tz: TimeZone
) -> CampaignStats:
    """Materialize the per-campaign figures shown on the dashboard."""
    by_status = {status.value: 0 for status in LeadStatus}
    for lead in leads:
        by_status[lead.status] = by_status.get(lead.status, 0) + 1

    campaign_calls, test_calls = partition_calls(call_logs, leads)
    rate = success_rate(campaign)

    return CampaignStats(
        campaign_id=campaign.id,
        total_leads=campaign.total_leads,
        completed=by_status[LeadStatus.COMPLETED.value],
        failed=by_status[LeadStatus.FAILED.value],
        pending=by_status[LeadStatus.PENDING.value],
        calling=by_status[LeadStatus.CALLING.value],
        success_rate=rate,
        success_rate_label=format_percentage(rate),
        avg_duration=average_duration_seconds(call_logs),
        calls_today=calls_today(call_logs, now, tz),
        progress=progress_percentage(
            by_status[LeadStatus.COMPLETED.value] + by_status[LeadStatus.FAILED.value],
            campaign.total_leads,
        ),
        campaign_calls=len(campaign_calls),
        test_calls=len(test_calls),
        conversations_with_audio=sum(1 for call in call_logs if call.has_recording),
    )


def build_dashboard_summary(
    campaigns: Sequence[Campaign],
    call_logs: Sequence[CallLog],
    now: datetime,
    tz: TimeZone
) -> DashboardSummary:
    """Totals across every campaign, including unattached test calls."""
    completed = sum(c.completed_calls for c in campaigns)
    successful = sum(c.successful_calls for c in campaigns)
    failed = sum(c.failed_calls for c in campaigns)

    terminal_durations: List[int] = [
        call.duration for call in call_logs
        if call.is_terminal and call.duration is not None
    ]

    rate = round(successful / completed * 100, 1) if completed > 0 else 0.0

    return DashboardSummary(
        total_campaigns=len(campaigns),
        active_campaigns=sum(1 for c in campaigns if c.status == CampaignStatus.ACTIVE.value),
        completed_calls=completed,
        successful_calls=successful,
        failed_calls=failed,
        success_rate=rate,
        success_rate_label=format_percentage(rate),
        calls_today=calls_today(call_logs, now, tz),
        total_minutes=sum(terminal_durations) // 60,
        avg_call_duration=average_duration_seconds(call_logs),
    )
