# crm_campaigns/crud/crud_campaign.py
"""
CRUD operations for campaigns.

All status writes go through the campaign state machine; the final
SENDING -> SENT flip is a conditional update so two overlapping send
triggers cannot both complete the campaign.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from .base import CRUDBase
from crm_campaigns.constants.status import CampaignStatus, JobStatus, transition
from crm_campaigns.crud.crud_email_job import email_job as crud_email_job
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.schemas.campaign import CampaignCreate

logger = logging.getLogger(__name__)


class CRUDCampaign(CRUDBase[Campaign, CampaignCreate, CampaignCreate]):

    def create_draft(
        self,
        db: Session,
        *,
        obj_in: CampaignCreate,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> Campaign:
        """Create a campaign in DRAFT status with already-defaulted bodies."""
        campaign = self.model(
            name=obj_in.name,
            subject=subject,
            from_email=obj_in.from_email,
            from_name=obj_in.from_name,
            body_html=body_html,
            body_text=body_text,
            status=CampaignStatus.DRAFT.value,
        )
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
        return campaign

    def get_multi_by_status(
        self,
        db: Session,
        *,
        status: Optional[CampaignStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Campaign]:
        query = db.query(self.model)
        if status:
            query = query.filter(self.model.status == status.value)
        return query.order_by(self.model.created_at.desc()).offset(skip).limit(limit).all()

    def set_status(
        self,
        db: Session,
        *,
        campaign: Campaign,
        target: CampaignStatus,
        scheduled_at: Optional[datetime] = None,
    ) -> Campaign:
        """
        Move the campaign to `target` and commit.

        Raises:
            InvalidTransitionError: if the state machine forbids the move.
        """
        previous = campaign.status
        campaign.status = transition(previous, target, CampaignStatus).value
        if scheduled_at is not None:
            campaign.scheduled_at = scheduled_at
        campaign.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(campaign)
        logger.info(f"Campaign {campaign.id}: {previous} -> {campaign.status}")
        return campaign

    def mark_sent_if_sending(self, db: Session, *, campaign_id: str) -> bool:
        """
        Atomically flip SENDING -> SENT.

        Returns:
            bool: True if this call performed the flip.
        """
        transition(CampaignStatus.SENDING, CampaignStatus.SENT, CampaignStatus)
        updated = (
            db.query(self.model)
            .filter(
                self.model.id == campaign_id,
                self.model.status == CampaignStatus.SENDING.value,
            )
            .update(
                {
                    self.model.status: CampaignStatus.SENT.value,
                    self.model.updated_at: datetime.now(timezone.utc),
                },
                synchronize_session="fetch",
            )
        )
        db.commit()
        if updated:
            logger.info(f"Campaign {campaign_id}: SENDING -> SENT")
        return updated == 1

    def get_stats(self, db: Session, *, campaign: Campaign) -> Dict[str, Any]:
        """Job counts per status plus engagement, with rates over sent jobs."""
        counts = crud_email_job.status_counts(db, campaign_id=campaign.id)
        engagement = crud_email_job.engagement_counts(db, campaign_id=campaign.id)
        sent = counts[JobStatus.SENT.value]

        def rate(n: int) -> Optional[float]:
            return round(n / sent * 100, 2) if sent else None

        return {
            "campaign_id": campaign.id,
            "status": campaign.status,
            "total_jobs": sum(counts.values()),
            "pending": counts[JobStatus.PENDING.value],
            "sending": counts[JobStatus.SENDING.value],
            "sent": sent,
            "failed": counts[JobStatus.FAILED.value],
            "suppressed": counts[JobStatus.SUPPRESSED.value],
            **engagement,
            "open_rate": rate(engagement["opened"]),
            "click_rate": rate(engagement["clicked"]),
        }


campaign = CRUDCampaign(Campaign)
