# crm_campaigns/api/v1/endpoints/campaigns.py
"""
Campaign lifecycle endpoints.

- Create a campaign and resolve its audience (explicit ids or tags)
- Send a batch now, or schedule for later
- Read, cancel and report on campaigns
"""

import logging
from dataclasses import asdict
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from crm_campaigns import crud
from crm_campaigns.api import deps
from crm_campaigns.constants.status import CampaignStatus, JobStatus
from crm_campaigns.core.exceptions import CampaignNotFoundError, InvalidTransitionError
from crm_campaigns.core.limiter import limiter
from crm_campaigns.db.session import get_db
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.schemas.campaign import (
    CampaignCreate,
    CampaignCreateResponse,
    CampaignResponse,
    CampaignSendRequest,
    CampaignStats,
    EmailJobResponse,
    ScheduleResultResponse,
    SendResultResponse,
)
from crm_campaigns.services.audience import resolve_audience, resolve_tag_audience
from crm_campaigns.services.content import DEFAULT_SUBJECT, default_bodies
from crm_campaigns.services.send_executor import ScheduleResult, SendExecutor

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_campaign_or_404(db: Session, campaign_id: str) -> Campaign:
    campaign = crud.campaign.get(db, campaign_id)
    if not campaign:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Campaign not found"
        )
    return campaign


@router.post("", response_model=CampaignCreateResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def create_campaign(
    request: Request,
    campaign_in: CampaignCreate,
    db: Session = Depends(get_db),
):
    """
    Create a DRAFT campaign and one PENDING job per subscribed recipient.

    Recipients come from `client_ids`, or from every client carrying any of
    `tags`. Unsubscribed and unknown clients are skipped.
    """
    subject = campaign_in.subject or DEFAULT_SUBJECT
    body_html, body_text = default_bodies(campaign_in.body_html, campaign_in.body_text, subject)

    campaign = crud.campaign.create_draft(
        db,
        obj_in=campaign_in,
        subject=subject,
        body_html=body_html,
        body_text=body_text,
    )

    if campaign_in.tags:
        jobs = resolve_tag_audience(db, campaign.id, campaign_in.tags)
    else:
        jobs = resolve_audience(db, campaign.id, campaign_in.client_ids or [])

    logger.info(f"Created campaign {campaign.id} '{campaign.name}' with {len(jobs)} job(s)")
    return CampaignCreateResponse(
        campaign=CampaignResponse.model_validate(campaign),
        jobs_created=len(jobs),
    )


@router.get("", response_model=List[CampaignResponse])
def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    return crud.campaign.get_multi_by_status(db, status=status_filter, skip=skip, limit=limit)


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(campaign_id: str, db: Session = Depends(get_db)):
    return _get_campaign_or_404(db, campaign_id)


@router.post(
    "/{campaign_id}/send",
    response_model=Union[SendResultResponse, ScheduleResultResponse],
)
@limiter.limit("30/minute")
def send_campaign(
    request: Request,
    campaign_id: str,
    send_in: Optional[CampaignSendRequest] = None,
    db: Session = Depends(get_db),
    executor: SendExecutor = Depends(deps.get_send_executor),
):
    """
    Send the next batch of pending jobs, or schedule the campaign.

    `{"when": "now"}` (the default) sends up to one batch synchronously and
    reports per-outcome counts. An ISO-8601 timestamp only marks the
    campaign SCHEDULED; dispatching it later is left to the caller.
    """
    when = send_in.when if send_in else "now"
    try:
        result = executor.send(db, campaign_id, when)
    except CampaignNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    if isinstance(result, ScheduleResult):
        return ScheduleResultResponse(
            campaign_id=result.campaign_id, scheduled_at=result.scheduled_at
        )
    return SendResultResponse(**asdict(result))


@router.post("/{campaign_id}/cancel", response_model=CampaignResponse)
def cancel_campaign(campaign_id: str, db: Session = Depends(get_db)):
    """Cancel a DRAFT or SCHEDULED campaign. Its pending jobs are never sent."""
    campaign = _get_campaign_or_404(db, campaign_id)
    try:
        return crud.campaign.set_status(db, campaign=campaign, target=CampaignStatus.CANCELLED)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.get("/{campaign_id}/stats", response_model=CampaignStats)
def get_campaign_stats(campaign_id: str, db: Session = Depends(get_db)):
    campaign = _get_campaign_or_404(db, campaign_id)
    return CampaignStats(**crud.campaign.get_stats(db, campaign=campaign))


@router.get("/{campaign_id}/jobs", response_model=List[EmailJobResponse])
def get_campaign_jobs(
    campaign_id: str,
    status_filter: Optional[JobStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Per-recipient delivery status. Useful for debugging failed sends."""
    _get_campaign_or_404(db, campaign_id)
    return crud.email_job.get_by_campaign(
        db, campaign_id, skip=skip, limit=limit, status=status_filter
    )
