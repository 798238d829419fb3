from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from crm_campaigns import crud
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.models.client import Client
from crm_campaigns.schemas.campaign import CampaignCreate
from crm_campaigns.schemas.client import ClientCreate


def create_client(
    db: Session,
    email: str,
    *,
    subscribed: bool = True,
    tags: Sequence[str] = (),
    first_name: Optional[str] = None,
) -> Client:
    """
    Creates a client with an email subscription for testing purposes.
    """
    client_in = ClientCreate(
        email=email, subscribed=subscribed, tags=list(tags), first_name=first_name
    )
    return crud.client.create_with_tags(db, obj_in=client_in)


def create_campaign(
    db: Session,
    *,
    name: str = "Spring Promo",
    subject: str = "Spring savings",
    body_html: str = '<html><body><p>Hi!</p><a href="https://example.com/offer">Offer</a></body></html>',
    body_text: str = "Hi! See https://example.com/offer",
) -> Campaign:
    campaign_in = CampaignCreate(
        name=name, subject=subject, from_email="marketing@example.com", from_name="Acme"
    )
    return crud.campaign.create_draft(
        db, obj_in=campaign_in, subject=subject, body_html=body_html, body_text=body_text
    )


def create_clients(db: Session, count: int, *, prefix: str = "lead") -> List[Client]:
    return [create_client(db, f"{prefix}{i}@example.com") for i in range(count)]
