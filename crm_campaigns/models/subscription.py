# crm_campaigns/models/subscription.py
"""Per-channel subscription status for a client.

This table is the single source of truth for suppression: the send
executor reads it live for every job instead of trusting anything cached
on the job itself.
"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from crm_campaigns.db.base_class import Base
from crm_campaigns.constants.status import EMAIL_CHANNEL, SubscriptionStatus


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(String, primary_key=True, default=lambda: f"sub_{uuid.uuid4().hex[:12]}")
    client_id = Column(
        String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    channel = Column(String(20), nullable=False, default=EMAIL_CHANNEL)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.SUBSCRIBED.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    client = relationship("Client", back_populates="subscriptions")

    __table_args__ = (
        # One subscription row per client per channel
        UniqueConstraint("client_id", "channel", name="uq_subscription_client_channel"),
    )

    def __repr__(self) -> str:
        return f"<Subscription {self.client_id} {self.channel}={self.status}>"
