# crm_campaigns/models/campaign.py
"""
Campaign model - one email blast drafted by a marketing operator.

Lifecycle: DRAFT -> SCHEDULED | SENDING -> SENT, or CANCELLED.
See crm_campaigns.constants.status for the transition table.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Text, func
from sqlalchemy.orm import relationship
from crm_campaigns.db.base_class import Base
from crm_campaigns.constants.status import CampaignStatus


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(String, primary_key=True, default=lambda: f"cmpn_{uuid.uuid4().hex[:12]}")

    # Campaign Details
    name = Column(String(200), nullable=False)  # Internal name for tracking
    subject = Column(String(500), nullable=False)
    from_email = Column(String(255), nullable=False)
    from_name = Column(String(200), nullable=True)

    # Canonical bodies; never rewritten per recipient
    body_html = Column(Text, nullable=False)
    body_text = Column(Text, nullable=False)

    # Status Tracking
    status = Column(String(20), nullable=False, default=CampaignStatus.DRAFT.value, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    jobs = relationship("EmailJob", back_populates="campaign", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Campaign {self.id} {self.status}>"
