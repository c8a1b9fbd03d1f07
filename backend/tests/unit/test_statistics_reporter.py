"""
Unit tests for the Statistics Reporter
Pure functions over a campaign / lead / call-log snapshot
"""
from datetime import datetime, timezone

import pytest

from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.models.campaign import Campaign
from voice_campaigns.domain.models.lead import Lead
from voice_campaigns.domain.services import statistics_reporter as reporter


def make_campaign(**counters) -> Campaign:
    return Campaign(id="c1", name="C", first_prompt="Hi", system_persona="P", **counters)


def make_call(call_id, status="completed", duration=None, created_at=None, lead_id=None, conversation_id=None):
    return CallLog(
        id=call_id,
        campaign_id="c1",
        lead_id=lead_id,
        phone_number="+15550000000",
        status=status,
        duration=duration,
        conversation_id=conversation_id,
        created_at=created_at or datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc),
    )


class TestSuccessRate:

    def test_zero_completed_is_zero_percent(self):
        """No completed calls reports 0%, not an error or NaN"""
        rate = reporter.success_rate(make_campaign())

        assert rate == 0.0
        assert reporter.format_percentage(rate) == "0%"

    def test_half(self):
        rate = reporter.success_rate(make_campaign(completed_calls=2, successful_calls=1, failed_calls=1))

        assert rate == 50.0
        assert reporter.format_percentage(rate) == "50%"

    def test_rounded_to_one_decimal(self):
        rate = reporter.success_rate(make_campaign(completed_calls=3, successful_calls=1))

        assert rate == 33.3


class TestAverageDuration:

    def test_no_terminal_calls(self):
        assert reporter.average_duration_seconds([]) == 0.0
        assert reporter.average_duration_seconds([make_call("a", status="answered", duration=30)]) == 0.0

    def test_mean_of_known_durations(self):
        calls = [
            make_call("a", duration=40),
            make_call("b", status="failed", duration=20),
            make_call("c", status="failed", duration=None),
            make_call("d", status="ringing", duration=500),
        ]

        assert reporter.average_duration_seconds(calls) == 30.0


class TestCallsToday:

    def test_bucketing_follows_reference_zone(self):
        """23:30 UTC on the 14th is already the 15th in Tokyo"""
        now = datetime(2024, 3, 15, 1, 0, tzinfo=timezone.utc)
        calls = [
            make_call("late", created_at=datetime(2024, 3, 14, 23, 30, tzinfo=timezone.utc)),
            make_call("early", created_at=datetime(2024, 3, 15, 0, 30, tzinfo=timezone.utc)),
            make_call("old", created_at=datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)),
        ]

        assert reporter.calls_today(calls, now, "UTC") == 1
        assert reporter.calls_today(calls, now, "Asia/Tokyo") == 2
        # Still the 14th in New York
        assert reporter.calls_today(calls, now, "America/New_York") == 2

    def test_naive_timestamps_are_utc(self):
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)
        calls = [make_call("naive", created_at=datetime(2024, 3, 15, 8, 0))]

        assert reporter.calls_today(calls, now, "UTC") == 1

    def test_accepts_tzinfo(self):
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

        assert reporter.calls_today([make_call("a")], now, timezone.utc) == 1

    def test_unknown_zone(self):
        with pytest.raises(ValueError):
            reporter.calls_today([], datetime.now(timezone.utc), "Mars/Olympus_Mons")


class TestCampaignStats:

    def test_build_campaign_stats(self):
        campaign = make_campaign(total_leads=4, completed_calls=3, successful_calls=2, failed_calls=1)
        leads = [
            Lead(id="l1", campaign_id="c1", phone_number="+1", status="completed"),
            Lead(id="l2", campaign_id="c1", phone_number="+2", status="failed"),
            Lead(id="l3", campaign_id="c1", phone_number="+3", status="calling"),
            Lead(id="l4", campaign_id="c1", phone_number="+4"),
        ]
        calls = [
            make_call("a", duration=60, lead_id="l1", conversation_id="conv_1"),
            make_call("b", status="failed", duration=0, lead_id="l2"),
            make_call("c", duration=30),
        ]

        stats = reporter.build_campaign_stats(
            campaign, leads, calls, datetime(2024, 3, 15, 18, 0, tzinfo=timezone.utc), "UTC"
        )

        assert stats.total_leads == 4
        assert (stats.completed, stats.failed, stats.calling, stats.pending) == (1, 1, 1, 1)
        assert stats.success_rate == 66.7
        assert stats.avg_duration == 30.0
        assert stats.calls_today == 3
        assert stats.progress == 50
        assert stats.success_rate_label == "66.7%"
        assert stats.campaign_calls == 2
        assert stats.test_calls == 1
        assert stats.conversations_with_audio == 1

    def test_progress_without_leads(self):
        assert reporter.progress_percentage(0, 0) == 0

    def test_progress_ignores_test_calls(self):
        """Test calls bump completed_calls but not lead progress"""
        campaign = make_campaign(total_leads=2, completed_calls=5, successful_calls=5)
        leads = [
            Lead(id="l1", campaign_id="c1", phone_number="+1", status="completed"),
            Lead(id="l2", campaign_id="c1", phone_number="+2"),
        ]

        stats = reporter.build_campaign_stats(
            campaign, leads, [], datetime(2024, 3, 15, 18, 0, tzinfo=timezone.utc), "UTC"
        )

        assert stats.progress == 50


class TestDashboardSummary:

    def test_totals_across_campaigns(self):
        campaigns = [
            make_campaign(status="active", completed_calls=4, successful_calls=3, failed_calls=1),
            Campaign(id="c2", name="D", first_prompt="Hi", system_persona="P", status="completed",
                     completed_calls=1, failed_calls=1),
        ]
        calls = [make_call("a", duration=90), make_call("b", duration=90)]

        summary = reporter.build_dashboard_summary(
            campaigns, calls, datetime(2024, 3, 15, 20, 0, tzinfo=timezone.utc), "UTC"
        )

        assert summary.total_campaigns == 2
        assert summary.active_campaigns == 1
        assert summary.completed_calls == 5
        assert summary.successful_calls == 3
        assert summary.failed_calls == 2
        assert summary.success_rate == 60.0
        assert summary.success_rate_label == "60%"
        assert summary.calls_today == 2
        assert summary.total_minutes == 3
        assert summary.avg_call_duration == 90.0

    def test_empty(self):
        summary = reporter.build_dashboard_summary([], [], datetime.now(timezone.utc), "UTC")

        assert summary.success_rate == 0.0
        assert summary.total_minutes == 0
