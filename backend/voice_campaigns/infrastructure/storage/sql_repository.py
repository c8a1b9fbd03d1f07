"""
SQL Repository
SQLAlchemy-backed CampaignRepository
"""
import logging
from typing import Iterable, List, Optional, Type

from pydantic import BaseModel
from sqlalchemy.orm import sessionmaker

from voice_campaigns.domain.exceptions import ConflictingUpdate
from voice_campaigns.domain.interfaces.repository import CampaignRepository
from voice_campaigns.domain.models.campaign import Campaign
from voice_campaigns.domain.models.lead import Lead
from voice_campaigns.domain.models.call_log import CallLog
from voice_campaigns.domain.models.voice import Voice
from voice_campaigns.infrastructure.storage.database import get_db
from voice_campaigns.infrastructure.storage.models import (
    CampaignRow,
    LeadRow,
    CallLogRow,
    VoiceRow,
)

logger = logging.getLogger(__name__)


class SqlCampaignRepository(CampaignRepository):
    """
    Repository over the relational tables.

    Each call runs in its own session. Saves are compare-and-swap
    updates guarded by the ``version`` column, so two processes writing
    the same row cannot silently overwrite each other.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _get(self, row_type: Type, model_type: Type[BaseModel], record_id: str):
        with get_db(self._session_factory) as db:
            row = db.get(row_type, record_id)
            return model_type.model_validate(row) if row is not None else None

    def _add(self, row_type: Type, record: BaseModel) -> None:
        with get_db(self._session_factory) as db:
            db.add(row_type(**record.model_dump()))

    def _compare_and_swap(self, row_type: Type, record: BaseModel):
        values = record.model_dump(exclude={"id"})
        values["version"] = record.version + 1
        with get_db(self._session_factory) as db:
            updated = (
                db.query(row_type)
                .filter(row_type.id == record.id, row_type.version == record.version)
                .update(values, synchronize_session=False)
            )
            if updated == 0:
                logger.warning(f"Rejected stale write to {record.ENTITY} {record.id}")
                raise ConflictingUpdate(record.ENTITY, record.id)
        return record.model_copy(update={"version": values["version"]})

    # Campaigns

    def add_campaign(self, campaign: Campaign) -> Campaign:
        self._add(CampaignRow, campaign)
        return campaign.model_copy(deep=True)

    def get_campaign(self, campaign_id: str) -> Optional[Campaign]:
        return self._get(CampaignRow, Campaign, campaign_id)

    def list_campaigns(self) -> List[Campaign]:
        with get_db(self._session_factory) as db:
            rows = db.query(CampaignRow).order_by(CampaignRow.created_at.desc()).all()
            return [Campaign.model_validate(row) for row in rows]

    def save_campaign(self, campaign: Campaign) -> Campaign:
        return self._compare_and_swap(CampaignRow, campaign)

    def delete_campaign(self, campaign_id: str) -> bool:
        with get_db(self._session_factory) as db:
            row = db.get(CampaignRow, campaign_id)
            if row is None:
                return False
            # ORM cascade removes the campaign's leads and call logs
            db.delete(row)
            return True

    # Leads

    def add_leads(self, leads: Iterable[Lead]) -> List[Lead]:
        leads = list(leads)
        with get_db(self._session_factory) as db:
            db.add_all([LeadRow(**lead.model_dump()) for lead in leads])
        return [lead.model_copy(deep=True) for lead in leads]

    def get_lead(self, lead_id: str) -> Optional[Lead]:
        return self._get(LeadRow, Lead, lead_id)

    def list_leads(self, campaign_id: str) -> List[Lead]:
        with get_db(self._session_factory) as db:
            rows = (
                db.query(LeadRow)
                .filter(LeadRow.campaign_id == campaign_id)
                .order_by(LeadRow.created_at)
                .all()
            )
            return [Lead.model_validate(row) for row in rows]

    def save_lead(self, lead: Lead) -> Lead:
        return self._compare_and_swap(LeadRow, lead)

    # Call logs

    def add_call_log(self, call_log: CallLog) -> CallLog:
        self._add(CallLogRow, call_log)
        return call_log.model_copy(deep=True)

    def get_call_log(self, call_log_id: str) -> Optional[CallLog]:
        return self._get(CallLogRow, CallLog, call_log_id)

    def find_call_log_by_provider_id(self, provider_call_id: str) -> Optional[CallLog]:
        with get_db(self._session_factory) as db:
            row = (
                db.query(CallLogRow)
                .filter(CallLogRow.provider_call_id == provider_call_id)
                .first()
            )
            return CallLog.model_validate(row) if row is not None else None

    def list_call_logs(self, campaign_id: Optional[str] = None) -> List[CallLog]:
        with get_db(self._session_factory) as db:
            query = db.query(CallLogRow)
            if campaign_id is not None:
                query = query.filter(CallLogRow.campaign_id == campaign_id)
            rows = query.order_by(CallLogRow.created_at).all()
            return [CallLog.model_validate(row) for row in rows]

    def save_call_log(self, call_log: CallLog) -> CallLog:
        return self._compare_and_swap(CallLogRow, call_log)

    # Voices

    def add_voice(self, voice: Voice) -> Voice:
        with get_db(self._session_factory) as db:
            db.merge(VoiceRow(**voice.model_dump()))
        return voice

    def get_voice(self, voice_id: str) -> Optional[Voice]:
        return self._get(VoiceRow, Voice, voice_id)

    def list_voices(self) -> List[Voice]:
        with get_db(self._session_factory) as db:
            return [Voice.model_validate(row) for row in db.query(VoiceRow).order_by(VoiceRow.name).all()]
