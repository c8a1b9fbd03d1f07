"""
Unit tests for the Lead Progress Tracker
Lead status only moves forward: pending -> calling -> completed | failed
"""
import logging

import pytest

from voice_campaigns.domain.exceptions import InvalidTransition, NotFound
from voice_campaigns.domain.models.lead import LeadStatus


@pytest.fixture
def tracker(service):
    return service.lead_tracker


class TestOnCallStarted:
    """pending -> calling"""

    def test_pending_lead_becomes_calling(self, tracker, repository, leads, clock):
        """Dialing a pending lead marks it calling and stamps last_called_at"""
        lead = tracker.on_call_started(leads[0].id)

        assert lead.status == LeadStatus.CALLING
        assert repository.get_lead(leads[0].id).status == "calling"
        assert lead.last_called_at == clock.now

    def test_redial_while_calling_is_noop(self, tracker, repository, leads):
        """Re-dial of a calling lead changes nothing"""
        tracker.on_call_started(leads[0].id)
        version = repository.get_lead(leads[0].id).version

        lead = tracker.on_call_started(leads[0].id)

        assert lead.status == "calling"
        assert repository.get_lead(leads[0].id).version == version

    def test_terminal_lead_is_left_alone(self, tracker, repository, leads, caplog):
        """Dialing a finished lead is logged as an anomaly, not raised"""
        tracker.on_call_started(leads[0].id)
        tracker.on_call_terminal(leads[0].id, success=True, duration_seconds=30)

        with caplog.at_level(logging.WARNING):
            lead = tracker.on_call_started(leads[0].id)

        assert lead.status == "completed"
        assert "terminal" in caplog.text

    def test_unknown_lead(self, tracker):
        with pytest.raises(NotFound):
            tracker.on_call_started("missing")


class TestOnCallTerminal:
    """calling -> completed | failed"""

    def test_success_completes_lead(self, tracker, repository, leads):
        tracker.on_call_started(leads[0].id)

        lead = tracker.on_call_terminal(leads[0].id, success=True, duration_seconds=42)

        assert lead.status == "completed"
        assert lead.call_duration == 42
        assert repository.get_lead(leads[0].id).call_duration == 42

    def test_failure_fails_lead(self, tracker, leads):
        tracker.on_call_started(leads[1].id)

        lead = tracker.on_call_terminal(leads[1].id, success=False, duration_seconds=None)

        assert lead.status == "failed"
        assert lead.call_duration is None

    def test_second_terminal_outcome_rejected(self, tracker, repository, leads):
        """A lead reaches a terminal state at most once"""
        tracker.on_call_started(leads[0].id)
        tracker.on_call_terminal(leads[0].id, success=True, duration_seconds=10)

        with pytest.raises(InvalidTransition) as exc_info:
            tracker.on_call_terminal(leads[0].id, success=False, duration_seconds=5)

        assert exc_info.value.current == "completed"
        stored = repository.get_lead(leads[0].id)
        assert stored.status == "completed"
        assert stored.call_duration == 10

    def test_ensure_can_terminate(self, tracker, leads):
        tracker.ensure_can_terminate(leads[0])

        tracker.on_call_started(leads[0].id)
        finished = tracker.on_call_terminal(leads[0].id, success=False, duration_seconds=0)

        with pytest.raises(InvalidTransition):
            tracker.ensure_can_terminate(finished, success=True)


class TestRestore:

    def test_restore_puts_lead_back(self, tracker, repository, leads):
        """Undo a terminal outcome whose campaign update failed"""
        snapshot = tracker.on_call_started(leads[0].id)
        tracker.on_call_terminal(leads[0].id, success=True, duration_seconds=42)

        lead = tracker.restore(snapshot)

        assert lead.status == "calling"
        assert lead.call_duration is None
        assert repository.get_lead(leads[0].id).status == "calling"

    def test_restore_deleted_lead(self, tracker, repository, campaign, leads):
        snapshot = repository.get_lead(leads[0].id)
        repository.delete_campaign(campaign.id)

        assert tracker.restore(snapshot) is None
