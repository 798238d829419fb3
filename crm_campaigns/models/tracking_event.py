# crm_campaigns/models/tracking_event.py
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, func
from crm_campaigns.db.base_class import Base


class TrackingEvent(Base):
    """Append-only log of open/click/unsubscribe hits. Rows are never updated."""

    __tablename__ = "events"

    id = Column(String, primary_key=True, default=lambda: f"ev_{uuid.uuid4().hex[:12]}")
    type = Column(String(20), nullable=False, index=True)  # open, click, unsubscribe
    client_id = Column(
        String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    job_id = Column(
        String, ForeignKey("email_jobs.id", ondelete="CASCADE"), nullable=True, index=True
    )
    meta = Column(JSON, nullable=True)  # e.g. {"url": "..."} for clicks
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
