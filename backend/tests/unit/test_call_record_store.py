"""
Unit tests for the Call Record Store
Call lifecycle, terminal fan-out and test-call classification
"""
import pytest

from voice_campaigns.domain.exceptions import ConflictingUpdate, InvalidTransition, NotFound
from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.services.call_record_store import is_test_call, partition_calls


@pytest.fixture
def store(service):
    return service.call_store


class TestRecordCallStarted:

    def test_campaign_call_marks_lead_calling(self, store, repository, campaign, leads):
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number, "CA123")

        call_log = repository.get_call_log(call_id)
        assert call_log.status == "initiated"
        assert call_log.provider_call_id == "CA123"
        assert repository.get_lead(leads[0].id).status == "calling"

    def test_unknown_campaign(self, store):
        with pytest.raises(NotFound) as exc_info:
            store.record_call_started("missing", None, "+15550001111")
        assert exc_info.value.entity == "Campaign"

    def test_settled_lead_cannot_be_dialed(self, store, repository, campaign, leads):
        """completed -> calling is rejected before a call log is written"""
        first = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)
        store.record_call_outcome(first, "completed", 42)

        with pytest.raises(InvalidTransition) as exc_info:
            store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)

        assert exc_info.value.current == "completed"
        assert exc_info.value.target == "calling"
        assert [c.id for c in repository.list_call_logs(campaign.id)] == [first]
        assert repository.get_lead(leads[0].id).status == "completed"

    def test_unattached_test_call(self, store, repository):
        call_id = store.record_call_started(None, None, "+15550001111")

        assert repository.get_call_log(call_id).campaign_id is None

    def test_lead_from_other_campaign_is_not_advanced(self, service, store, repository, campaign, leads):
        """A lead outside the campaign makes the call a test call"""
        other = service.create_campaign("Other", "Hi", "Persona", "voice_1")

        store.record_call_started(other.id, leads[0].id, leads[0].phone_number)

        assert repository.get_lead(leads[0].id).status == "pending"


class TestRecordCallOutcome:

    def test_progress_then_complete(self, store, repository, campaign, leads, clock):
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)

        store.record_call_outcome(call_id, "ringing")
        store.record_call_outcome(call_id, "answered")
        clock.advance(seconds=42)
        call_log = store.record_call_outcome(call_id, "completed", 42, "conv_abc")

        assert call_log.status == "completed"
        assert call_log.duration == 42
        assert call_log.has_recording
        assert call_log.ended_at == clock.now

        lead = repository.get_lead(leads[0].id)
        assert lead.status == "completed"
        assert lead.call_duration == 42

        stored = repository.get_campaign(campaign.id)
        assert stored.completed_calls == 1
        assert stored.successful_calls == 1

    def test_non_terminal_outcome_does_not_aggregate(self, store, repository, campaign, leads):
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)

        store.record_call_outcome(call_id, "answered")

        assert repository.get_campaign(campaign.id).completed_calls == 0
        assert repository.get_lead(leads[0].id).status == "calling"

    def test_backwards_status_rejected(self, store, campaign, leads):
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)
        store.record_call_outcome(call_id, "answered")

        with pytest.raises(InvalidTransition):
            store.record_call_outcome(call_id, "ringing")

    def test_second_terminal_outcome_rejected_once_counted(self, store, repository, campaign, leads):
        """Idempotence: the second terminal outcome fails and counters move once"""
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)
        store.record_call_outcome(call_id, "completed", 30)

        with pytest.raises(InvalidTransition):
            store.record_call_outcome(call_id, "completed", 30)
        with pytest.raises(InvalidTransition):
            store.record_call_outcome(call_id, "failed")

        stored = repository.get_campaign(campaign.id)
        assert stored.completed_calls == 1
        assert stored.successful_calls == 1
        assert stored.failed_calls == 0

    def test_rejected_outcome_mutates_nothing(self, store, repository, campaign, leads):
        """A backwards status is rejected without side effects"""
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)
        store.record_call_outcome(call_id, "answered")

        before_campaign = repository.get_campaign(campaign.id)
        before_call = repository.get_call_log(call_id)
        before_lead = repository.get_lead(leads[0].id)

        with pytest.raises(InvalidTransition):
            store.record_call_outcome(call_id, "initiated")

        assert repository.get_campaign(campaign.id) == before_campaign
        assert repository.get_call_log(call_id) == before_call
        assert repository.get_lead(leads[0].id) == before_lead

    def test_redial_while_calling_closes_every_call(self, store, repository, campaign, leads):
        """Two calls to one lead: the second still finishes and is counted"""
        first = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)
        second = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)

        store.record_call_outcome(first, "failed", 3)
        call_log = store.record_call_outcome(second, "completed", 25)

        assert call_log.status == "completed"
        lead = repository.get_lead(leads[0].id)
        assert lead.status == "failed"
        assert lead.call_duration == 3

        stored = repository.get_campaign(campaign.id)
        assert stored.completed_calls == 2
        assert stored.successful_calls == 1
        assert stored.failed_calls == 1

    def test_campaign_failure_leaves_call_open(self, store, repository, campaign, leads, monkeypatch):
        """A failed campaign update rolls the lead back and the outcome can be retried"""
        call_id = store.record_call_started(campaign.id, leads[0].id, leads[0].phone_number)

        def refuse(updated):
            raise ConflictingUpdate("Campaign", updated.id)

        with monkeypatch.context() as patched:
            patched.setattr(repository, "save_campaign", refuse)
            with pytest.raises(ConflictingUpdate):
                store.record_call_outcome(call_id, "completed", 42)

        assert repository.get_call_log(call_id).status == "initiated"
        lead = repository.get_lead(leads[0].id)
        assert lead.status == "calling"
        assert lead.call_duration is None
        assert repository.get_campaign(campaign.id).completed_calls == 0

        call_log = store.record_call_outcome(call_id, "completed", 42)

        assert call_log.status == "completed"
        assert repository.get_lead(leads[0].id).status == "completed"
        assert repository.get_campaign(campaign.id).completed_calls == 1

    def test_test_call_counts_but_leaves_leads(self, store, repository, campaign, leads):
        """A test call on a campaign increments counters without touching leads"""
        call_id = store.record_call_started(campaign.id, None, "+15559990000")

        store.record_call_outcome(call_id, "completed", 15)

        stored = repository.get_campaign(campaign.id)
        assert stored.completed_calls == 1
        assert stored.successful_calls == 1
        assert all(lead.status == "pending" for lead in repository.list_leads(campaign.id))

    def test_unattached_test_call_finishes(self, store, repository):
        call_id = store.record_call_started(None, None, "+15559990000")

        call_log = store.record_call_outcome(call_id, "failed")

        assert call_log.status == "failed"

    def test_unknown_call(self, store):
        with pytest.raises(NotFound):
            store.record_call_outcome("missing", "completed")

    def test_invalid_status(self, store, campaign):
        call_id = store.record_call_started(campaign.id, None, "+15559990000")
        with pytest.raises(ValueError):
            store.record_call_outcome(call_id, "busy")


class TestListing:

    def test_list_by_campaign_oldest_first(self, store, campaign, leads, clock):
        ids = []
        for lead in leads:
            ids.append(store.record_call_started(campaign.id, lead.id, lead.phone_number))
            clock.advance(minutes=1)
        store.record_call_started(None, None, "+15559990000")

        assert [c.id for c in store.list_by_campaign(campaign.id)] == ids

    def test_find_by_provider_call_id(self, store, campaign):
        call_id = store.record_call_started(campaign.id, None, "+15559990000", "CA999")

        assert store.find_by_provider_call_id("CA999").id == call_id
        assert store.find_by_provider_call_id("CA000") is None


class TestClassification:
    """Test calls are derived from the lead set at read time"""

    def _call(self, lead_id):
        return CallLog(id=f"call-{lead_id}", campaign_id="c1", lead_id=lead_id, phone_number="+15550000000")

    def test_is_test_call(self):
        lead_ids = {"lead-1"}

        assert is_test_call(self._call(None), lead_ids)
        assert is_test_call(self._call("lead-9"), lead_ids)
        assert not is_test_call(self._call("lead-1"), lead_ids)

    def test_partition_calls(self, leads):
        calls = [self._call(leads[0].id), self._call(None), self._call("gone")]

        campaign_calls, test_calls = partition_calls(calls, leads)

        assert [c.lead_id for c in campaign_calls] == [leads[0].id]
        assert [c.lead_id for c in test_calls] == [None, "gone"]
