# crm_campaigns/services/send_executor.py
"""
Send executor.

Drains up to `batch_size` PENDING jobs of a campaign, one at a time:

    PENDING -> SUPPRESSED               client no longer subscribed
    PENDING -> SENDING -> SENT          transport accepted the message
    PENDING -> SENDING -> FAILED        transport raised; error kept on the job

A failed job is terminal and never retried, and it never aborts the rest of
the batch. When no PENDING jobs are left the campaign is flipped to SENT.
A `when` in the future only schedules the campaign; nothing is sent.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from sqlalchemy.orm import Session

from crm_campaigns import crud
from crm_campaigns.constants.status import CampaignStatus, JobStatus
from crm_campaigns.core.config import settings
from crm_campaigns.core.email import MailTransport, OutboundEmail
from crm_campaigns.core.exceptions import CampaignNotFoundError
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.models.email_job import EmailJob
from crm_campaigns.services.content import TrackingTokens, build_tracking

logger = logging.getLogger(__name__)

SEND_NOW = "now"


@dataclass(frozen=True)
class SendResult:
    campaign_id: str
    sent: int
    failed: int
    suppressed: int
    remaining_jobs: int


@dataclass(frozen=True)
class ScheduleResult:
    campaign_id: str
    scheduled_at: datetime
    status: str = "scheduled"


class SendExecutor:
    """Runs one bounded send batch for a campaign."""

    def __init__(
        self,
        mail_transport: MailTransport,
        batch_size: int = 50,
        base_url: Optional[str] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.mail_transport = mail_transport
        self.batch_size = batch_size
        self.base_url = base_url or settings.APP_URL

    def send(
        self, db: Session, campaign_id: str, when: Union[str, datetime] = SEND_NOW
    ) -> Union[SendResult, ScheduleResult]:
        """
        Send a batch now, or schedule the campaign for `when`.

        Raises:
            CampaignNotFoundError: if the campaign does not exist.
            InvalidTransitionError: if the campaign is SENT or CANCELLED.
        """
        campaign = crud.campaign.get(db, campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(campaign_id)

        if isinstance(when, datetime):
            return self._schedule(db, campaign, when)
        if when != SEND_NOW:
            raise ValueError(f"when must be '{SEND_NOW}' or a datetime, got {when!r}")
        return self._send_batch(db, campaign)

    def _schedule(self, db: Session, campaign: Campaign, when: datetime) -> ScheduleResult:
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        crud.campaign.set_status(
            db, campaign=campaign, target=CampaignStatus.SCHEDULED, scheduled_at=when
        )
        jobs = crud.email_job.schedule_all(db, campaign_id=campaign.id, scheduled_at=when)
        logger.info(f"Campaign {campaign.id} scheduled for {when.isoformat()} ({jobs} job(s))")
        return ScheduleResult(campaign_id=campaign.id, scheduled_at=when)

    def _send_batch(self, db: Session, campaign: Campaign) -> SendResult:
        # The campaign is visibly SENDING before any job is touched.
        crud.campaign.set_status(db, campaign=campaign, target=CampaignStatus.SENDING)

        jobs = crud.email_job.get_pending_batch(db, campaign_id=campaign.id, limit=self.batch_size)
        logger.info(f"Campaign {campaign.id}: processing batch of {len(jobs)} job(s)")

        counts = {JobStatus.SENT: 0, JobStatus.FAILED: 0, JobStatus.SUPPRESSED: 0}
        for job in jobs:
            outcome = self._process_job(db, campaign, job)
            if outcome is not None:
                counts[outcome] += 1

        remaining = crud.email_job.count_by_status(
            db, campaign_id=campaign.id, status=JobStatus.PENDING
        )
        if remaining == 0:
            crud.campaign.mark_sent_if_sending(db, campaign_id=campaign.id)

        result = SendResult(
            campaign_id=campaign.id,
            sent=counts[JobStatus.SENT],
            failed=counts[JobStatus.FAILED],
            suppressed=counts[JobStatus.SUPPRESSED],
            remaining_jobs=remaining,
        )
        logger.info(
            f"Campaign {campaign.id}: sent={result.sent} failed={result.failed} "
            f"suppressed={result.suppressed} remaining={result.remaining_jobs}"
        )
        return result

    def _process_job(self, db: Session, campaign: Campaign, job: EmailJob) -> Optional[JobStatus]:
        """
        Deliver one job. Returns its terminal status, or None if another
        send trigger claimed the job first.
        """
        # Live check; an unsubscribe after audience resolution must win.
        if not crud.subscription.is_subscribed(db, client_id=job.client_id):
            if not crud.email_job.mark_suppressed(db, job=job):
                return None
            logger.info(f"Job {job.id}: client {job.client_id} unsubscribed, suppressed")
            return JobStatus.SUPPRESSED

        if not crud.email_job.claim_for_sending(db, job=job):
            logger.debug(f"Job {job.id} already claimed, skipping")
            return None

        try:
            content = build_tracking(
                campaign.body_html,
                campaign.body_text,
                TrackingTokens.from_job(job),
                self.base_url,
            )
            self.mail_transport.send(
                OutboundEmail(
                    to=job.to_email,
                    from_email=campaign.from_email,
                    from_name=campaign.from_name,
                    subject=campaign.subject,
                    html=content.html,
                    text=content.text,
                )
            )
        except Exception as e:
            logger.error(f"Job {job.id}: send to {job.to_email} failed: {e}")
            crud.email_job.mark_failed(db, job=job, error=str(e) or e.__class__.__name__)
            return JobStatus.FAILED

        crud.email_job.mark_sent(db, job=job)
        logger.debug(f"Job {job.id}: sent to {job.to_email}")
        return JobStatus.SENT
