"""
Shared fixtures: a controllable clock, an in-memory repository and a
campaign service wired over it
"""
from datetime import datetime, timedelta, timezone

import pytest

from voice_campaigns.domain.models.voice import Voice
from voice_campaigns.domain.services.campaign_service import CampaignService
from voice_campaigns.infrastructure.storage.memory import InMemoryCampaignRepository

STATUS_MAP = {
    "ringing": "ringing",
    "in-progress": "answered",
    "completed": "completed",
    "busy": "failed",
    "no-answer": "failed",
    "failed": "failed",
}


class FakeClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def repository():
    return InMemoryCampaignRepository()


@pytest.fixture
def service(repository, clock):
    service = CampaignService(
        repository,
        reference_timezone="UTC",
        auto_complete=True,
        status_map=STATUS_MAP,
        clock=clock,
    )
    service.register_voice(Voice(id="voice_1", name="Sarah", description="Professional Female"))
    return service


@pytest.fixture
def campaign(service):
    """Draft campaign with a voice and no leads"""
    return service.create_campaign(
        name="Spring Outreach",
        first_prompt="Hi, this is Sarah from Bright Smile Dental.",
        system_persona="You are a friendly appointment assistant.",
        voice_id="voice_1",
    )


@pytest.fixture
def leads(service, campaign):
    """Three pending leads on the campaign"""
    return service.add_leads(
        campaign.id,
        [
            {"phone_number": "+15551230001", "first_name": "Ada", "last_name": "Lovelace"},
            {"phone_number": "+15551230002", "first_name": "Alan", "last_name": "Turing"},
            {"phone_number": "+15551230003", "first_name": "Grace", "last_name": "Hopper"},
        ],
    )
