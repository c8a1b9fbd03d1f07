"""
SQLAlchemy Database Models
Maps to the campaigns, leads, call_logs and voices tables
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON, ForeignKey
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime, timezone

Base = declarative_base()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CampaignRow(Base):
    """Campaign model - maps to campaigns table"""
    __tablename__ = "campaigns"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    first_prompt = Column(Text, nullable=False)
    system_persona = Column(Text, nullable=False)
    voice_id = Column(String(100))
    status = Column(String(50), nullable=False, default="draft")
    total_leads = Column(Integer, nullable=False, default=0)
    completed_calls = Column(Integer, nullable=False, default=0)
    successful_calls = Column(Integer, nullable=False, default=0)
    failed_calls = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utc_now)
    started_at = Column(DateTime(timezone=True))
    completed_at = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=0)

    # Relationships
    leads = relationship("LeadRow", back_populates="campaign", cascade="all, delete-orphan")
    call_logs = relationship("CallLogRow", back_populates="campaign", cascade="all, delete-orphan")


class LeadRow(Base):
    """Lead model - maps to leads table"""
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True)
    phone_number = Column(String(20), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    status = Column(String(50), nullable=False, default="pending")
    call_duration = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=_utc_now)
    last_called_at = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=0)

    # Relationships
    campaign = relationship("CampaignRow", back_populates="leads")


class CallLogRow(Base):
    """Call log model - maps to call_logs table"""
    __tablename__ = "call_logs"

    id = Column(String(36), primary_key=True)
    campaign_id = Column(String(36), ForeignKey("campaigns.id", ondelete="CASCADE"), index=True)
    # Not a foreign key: unmatched lead ids are legal and mark a test call
    lead_id = Column(String(36))
    phone_number = Column(String(20), nullable=False)
    status = Column(String(50), nullable=False, default="initiated")
    duration = Column(Integer)
    provider_call_id = Column(String(64), index=True)
    conversation_id = Column(String(128))
    created_at = Column(DateTime(timezone=True), default=_utc_now)
    ended_at = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=0)

    # Relationships
    campaign = relationship("CampaignRow", back_populates="call_logs")


class VoiceRow(Base):
    """Voice model - maps to voices table"""
    __tablename__ = "voices"

    id = Column(String(100), primary_key=True)  # Provider voice ID
    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_cloned = Column(Boolean, default=False)
    sample_url = Column(Text)
    settings = Column(JSON)
    category = Column(String(50))
