# crm_campaigns/crud/crud_client.py
"""
CRUD operations for CRM clients.

Includes the tag-based segment lookup used when a campaign targets tags
instead of an explicit recipient list.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy.orm import Session, selectinload

from .base import CRUDBase
from .crud_tag import tag as crud_tag
from crm_campaigns.constants.status import EMAIL_CHANNEL, SubscriptionStatus
from crm_campaigns.core.exceptions import DuplicateClientError
from crm_campaigns.models.client import Client
from crm_campaigns.models.subscription import Subscription
from crm_campaigns.models.tag import Tag
from crm_campaigns.schemas.client import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


class CRUDClient(CRUDBase[Client, ClientCreate, ClientUpdate]):

    def get_by_email(self, db: Session, *, email: str) -> Optional[Client]:
        return db.query(self.model).filter(self.model.email == email.lower()).first()

    def create_with_tags(self, db: Session, *, obj_in: ClientCreate) -> Client:
        """
        Create a client, attach (and create if needed) its tags, and open its
        email subscription.

        Raises:
            DuplicateClientError: if the email address is already taken.
        """
        if self.get_by_email(db, email=obj_in.email):
            raise DuplicateClientError(obj_in.email)

        data = obj_in.model_dump(exclude={"tags", "subscribed"})
        db_obj = self.model(**data)
        db_obj.tags = crud_tag.get_or_create_many(db, names=obj_in.tags)
        status = (
            SubscriptionStatus.SUBSCRIBED if obj_in.subscribed else SubscriptionStatus.UNSUBSCRIBED
        )
        db_obj.subscriptions = [Subscription(channel=EMAIL_CHANNEL, status=status.value)]

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        logger.info(f"Created client {db_obj.id} with {len(obj_in.tags)} tag(s)")
        return db_obj

    def update(
        self, db: Session, *, db_obj: Client, obj_in: Union[ClientUpdate, Dict[str, Any]]
    ) -> Client:
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        new_email = update_data.get("email")
        if new_email and new_email != db_obj.email:
            existing = self.get_by_email(db, email=new_email)
            if existing and existing.id != db_obj.id:
                raise DuplicateClientError(new_email)
        return super().update(db, db_obj=db_obj, obj_in=update_data)

    def get_multi_filtered(
        self,
        db: Session,
        *,
        tag: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Client]:
        query = db.query(self.model).options(
            selectinload(self.model.tags), selectinload(self.model.subscriptions)
        )
        if tag:
            query = query.filter(self.model.tags.any(Tag.name == tag.strip().lower()))
        return query.order_by(self.model.created_at.desc()).offset(skip).limit(limit).all()

    def get_ids_by_tags(self, db: Session, *, tags: Sequence[str]) -> List[str]:
        """Ids of every client carrying at least one of the given tags."""
        names = [t.strip().lower() for t in tags if t and t.strip()]
        if not names:
            return []
        rows = (
            db.query(self.model.id)
            .filter(self.model.tags.any(Tag.name.in_(names)))
            .all()
        )
        return [row.id for row in rows]

    def get_subscribed_by_ids(self, db: Session, *, client_ids: Sequence[str]) -> List[Client]:
        """Clients from the list that currently hold an active email subscription."""
        if not client_ids:
            return []
        return (
            db.query(self.model)
            .filter(
                self.model.id.in_(list(client_ids)),
                self.model.subscriptions.any(
                    (Subscription.channel == EMAIL_CHANNEL)
                    & (Subscription.status == SubscriptionStatus.SUBSCRIBED.value)
                ),
            )
            .all()
        )


client = CRUDClient(Client)
