# crm_campaigns/crud/crud_subscription.py
"""
CRUD operations for client subscriptions.

Suppression is always decided from these rows at the moment of sending.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from crm_campaigns.constants.status import EMAIL_CHANNEL, SubscriptionStatus
from crm_campaigns.models.subscription import Subscription

logger = logging.getLogger(__name__)


class CRUDSubscription:

    def get_for_client(
        self, db: Session, *, client_id: str, channel: str = EMAIL_CHANNEL
    ) -> Optional[Subscription]:
        return (
            db.query(Subscription)
            .filter(Subscription.client_id == client_id, Subscription.channel == channel)
            .first()
        )

    def is_subscribed(self, db: Session, *, client_id: str, channel: str = EMAIL_CHANNEL) -> bool:
        """A missing row counts as not subscribed."""
        sub = self.get_for_client(db, client_id=client_id, channel=channel)
        return sub is not None and sub.status == SubscriptionStatus.SUBSCRIBED.value

    def set_status(
        self,
        db: Session,
        *,
        client_id: str,
        status: SubscriptionStatus,
        channel: str = EMAIL_CHANNEL,
    ) -> Subscription:
        """Create or update the subscription for (client, channel)."""
        sub = self.get_for_client(db, client_id=client_id, channel=channel)
        if sub is None:
            sub = Subscription(client_id=client_id, channel=channel, status=status.value)
            db.add(sub)
        else:
            sub.status = status.value
            sub.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(sub)
        logger.info(f"Subscription for client {client_id} on {channel} set to {status.value}")
        return sub

    def unsubscribe_channel(self, db: Session, *, client_id: str, channel: str = EMAIL_CHANNEL) -> int:
        """
        Flip every subscription the client has on the channel to unsubscribed.

        Returns:
            int: number of rows updated
        """
        updated = (
            db.query(Subscription)
            .filter(Subscription.client_id == client_id, Subscription.channel == channel)
            .update(
                {
                    Subscription.status: SubscriptionStatus.UNSUBSCRIBED.value,
                    Subscription.updated_at: datetime.now(timezone.utc),
                },
                synchronize_session="fetch",
            )
        )
        db.commit()
        return updated


subscription = CRUDSubscription()
