"""
API Dependencies
Shared dependencies for service construction
"""
import logging
import threading
from typing import Optional

from voice_campaigns.core.config import ConfigManager, Settings, get_settings
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.services.campaign_service import CampaignService

logger = logging.getLogger(__name__)

_service: Optional[CampaignService] = None
_service_lock = threading.Lock()


def build_repository(settings: Settings) -> CampaignRepository:
    """
    Pick the storage backend.

    DATABASE_URL selects the SQL repository; without it the service
    runs on the in-memory store.
    """
    if settings.database_url:
        from voice_campaigns.infrastructure.storage.database import (
            create_db_engine,
            create_session_factory,
        )
        from voice_campaigns.infrastructure.storage.sql_repository import SqlCampaignRepository

        engine = create_db_engine(settings.database_url, echo=settings.debug and settings.log_level == "DEBUG")
        logger.info("Using SQL campaign repository")
        return SqlCampaignRepository(create_session_factory(engine))

    from voice_campaigns.infrastructure.storage.memory import InMemoryCampaignRepository

    logger.warning("DATABASE_URL not set - campaign data is kept in memory only")
    return InMemoryCampaignRepository()


def build_campaign_service(
    settings: Settings,
    config: Optional[ConfigManager] = None,
    repository: Optional[CampaignRepository] = None
) -> CampaignService:
    config = config or ConfigManager(env=settings.environment)
    service = CampaignService(
        repository or build_repository(settings),
        reference_timezone=settings.reference_timezone,
        auto_complete=settings.auto_complete_campaigns,
        status_map=config.get("telephony.status_map", {}),
    )
    service.seed_voices(config.get("voices", []) or [])
    return service


def get_campaign_service() -> CampaignService:
    """
    Get the process-wide CampaignService for FastAPI dependency injection.

    Usage:
        @router.get("/campaigns")
        def list_campaigns(service: CampaignService = Depends(get_campaign_service)):
            return service.list_campaigns()
    """
    global _service
    if _service is None:
        with _service_lock:
            if _service is None:
                _service = build_campaign_service(get_settings())
    return _service


def reset_campaign_service() -> None:
    """Drop the cached service (used on shutdown and in tests)."""
    global _service
    _service = None
