# crm_campaigns/api/v1/endpoints/clients.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from crm_campaigns import crud
from crm_campaigns.constants.status import EMAIL_CHANNEL
from crm_campaigns.core.exceptions import DuplicateClientError
from crm_campaigns.db.session import get_db
from crm_campaigns.models.client import Client
from crm_campaigns.schemas.client import (
    ClientCreate,
    ClientResponse,
    ClientUpdate,
    SubscriptionResponse,
    SubscriptionUpdate,
)

router = APIRouter()


def _to_response(client: Client) -> ClientResponse:
    email_sub = next((s for s in client.subscriptions if s.channel == EMAIL_CHANNEL), None)
    return ClientResponse(
        id=client.id,
        email=client.email,
        first_name=client.first_name,
        last_name=client.last_name,
        company=client.company,
        phone=client.phone,
        city=client.city,
        state=client.state,
        postal_code=client.postal_code,
        country=client.country,
        custom_fields=client.custom_fields or {},
        tags=sorted(t.name for t in client.tags),
        email_subscription=email_sub.status if email_sub else None,
        created_at=client.created_at,
    )


def _get_client_or_404(db: Session, client_id: str) -> Client:
    client = crud.client.get(db, client_id)
    if not client:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Client not found"
        )
    return client


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(client_in: ClientCreate, db: Session = Depends(get_db)):
    """Creates a client with its tags and email subscription."""
    try:
        client = crud.client.create_with_tags(db, obj_in=client_in)
    except DuplicateClientError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return _to_response(client)


@router.get("", response_model=List[ClientResponse])
def list_clients(
    tag: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    clients = crud.client.get_multi_filtered(db, tag=tag, skip=skip, limit=limit)
    return [_to_response(c) for c in clients]


@router.get("/{client_id}", response_model=ClientResponse)
def get_client(client_id: str, db: Session = Depends(get_db)):
    return _to_response(_get_client_or_404(db, client_id))


@router.patch("/{client_id}", response_model=ClientResponse)
def update_client(client_id: str, client_in: ClientUpdate, db: Session = Depends(get_db)):
    """Partial profile update. Jobs already created keep the old address."""
    client = _get_client_or_404(db, client_id)
    try:
        client = crud.client.update(db, db_obj=client, obj_in=client_in)
    except DuplicateClientError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return _to_response(client)


@router.put("/{client_id}/subscription", response_model=SubscriptionResponse)
def set_subscription(
    client_id: str, sub_in: SubscriptionUpdate, db: Session = Depends(get_db)
):
    """Operator-side subscribe/unsubscribe for the email channel."""
    _get_client_or_404(db, client_id)
    return crud.subscription.set_status(db, client_id=client_id, status=sub_in.status)
