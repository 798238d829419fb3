# crm_campaigns/models/email_job.py
"""
EmailJob model - one delivery of a campaign to one recipient.

Each job carries three independent, unguessable tokens minted when the job
is created:
- open_token: embedded in the tracking pixel
- click_token: embedded in every rewritten link
- unsub_token: embedded in the unsubscribe footer

Tokens are unique across all jobs and never regenerated.
"""

import secrets
import uuid
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from crm_campaigns.db.base_class import Base
from crm_campaigns.constants.status import JobStatus


def mint_token() -> str:
    """256 bits from the OS CSPRNG, URL-safe."""
    return secrets.token_urlsafe(32)


class EmailJob(Base):
    __tablename__ = "email_jobs"

    id = Column(String, primary_key=True, default=lambda: f"job_{uuid.uuid4().hex[:12]}")
    campaign_id = Column(
        String, ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Address snapshot taken when the audience was resolved
    to_email = Column(String(255), nullable=False)

    # Delivery Status
    status = Column(String(20), nullable=False, default=JobStatus.PENDING.value, index=True)
    error = Column(Text, nullable=True)

    # Tracking tokens (write-once)
    open_token = Column(String(64), nullable=False, unique=True, default=mint_token)
    click_token = Column(String(64), nullable=False, unique=True, default=mint_token)
    unsub_token = Column(String(64), nullable=False, unique=True, default=mint_token)

    # Timestamps
    scheduled_at = Column(DateTime(timezone=True), nullable=True)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    opened_at = Column(DateTime(timezone=True), nullable=True)
    clicked_at = Column(DateTime(timezone=True), nullable=True)
    unsub_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    campaign = relationship("Campaign", back_populates="jobs")
    client = relationship("Client")

    __table_args__ = (
        UniqueConstraint("campaign_id", "client_id", name="uq_email_job_campaign_client"),
    )

    def __repr__(self) -> str:
        return f"<EmailJob {self.id} {self.status} to={self.to_email}>"
