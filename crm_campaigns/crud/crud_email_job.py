# crm_campaigns/crud/crud_email_job.py
"""
CRUD operations for email jobs.

This tracks individual email sends per client in a campaign. Status
changes are conditional updates (`UPDATE ... WHERE status = <expected>`),
so a job claimed by one send trigger is skipped by any other trigger
running at the same time.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from crm_campaigns.constants.status import JobStatus, transition
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.models.client import Client
from crm_campaigns.models.email_job import EmailJob


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CRUDEmailJob:
    """CRUD operations for email jobs."""

    def create_many(
        self, db: Session, *, campaign: Campaign, clients: Iterable[Client]
    ) -> List[EmailJob]:
        """
        Create one PENDING job per client, snapshotting the client's current
        address. Tokens are minted by the model defaults.
        """
        jobs = [
            EmailJob(
                campaign_id=campaign.id,
                client_id=c.id,
                to_email=c.email,
                status=JobStatus.PENDING.value,
                scheduled_at=campaign.scheduled_at,
            )
            for c in clients
        ]
        if not jobs:
            return []
        db.add_all(jobs)
        db.commit()
        for job in jobs:
            db.refresh(job)
        return jobs

    def get_by_open_token(self, db: Session, token: str) -> Optional[EmailJob]:
        return db.query(EmailJob).filter(EmailJob.open_token == token).first()

    def get_by_click_token(self, db: Session, token: str) -> Optional[EmailJob]:
        return db.query(EmailJob).filter(EmailJob.click_token == token).first()

    def get_by_unsub_token(self, db: Session, token: str) -> Optional[EmailJob]:
        return db.query(EmailJob).filter(EmailJob.unsub_token == token).first()

    def get_client_ids_for_campaign(self, db: Session, campaign_id: str) -> Set[str]:
        rows = db.query(EmailJob.client_id).filter(EmailJob.campaign_id == campaign_id).all()
        return {row.client_id for row in rows}

    def get_by_campaign(
        self,
        db: Session,
        campaign_id: str,
        *,
        skip: int = 0,
        limit: int = 100,
        status: Optional[JobStatus] = None,
    ) -> List[EmailJob]:
        """Get jobs for a campaign."""
        query = db.query(EmailJob).filter(EmailJob.campaign_id == campaign_id)
        if status:
            query = query.filter(EmailJob.status == status.value)
        return query.order_by(EmailJob.created_at.asc(), EmailJob.id.asc()).offset(skip).limit(limit).all()

    def get_pending_batch(self, db: Session, *, campaign_id: str, limit: int) -> List[EmailJob]:
        return self.get_by_campaign(db, campaign_id, limit=limit, status=JobStatus.PENDING)

    def count_by_status(self, db: Session, *, campaign_id: str, status: JobStatus) -> int:
        return (
            db.query(func.count(EmailJob.id))
            .filter(EmailJob.campaign_id == campaign_id, EmailJob.status == status.value)
            .scalar()
        )

    def status_counts(self, db: Session, *, campaign_id: str) -> Dict[str, int]:
        rows = (
            db.query(EmailJob.status, func.count(EmailJob.id))
            .filter(EmailJob.campaign_id == campaign_id)
            .group_by(EmailJob.status)
            .all()
        )
        counts = {s.value: 0 for s in JobStatus}
        counts.update({status: count for status, count in rows})
        return counts

    def engagement_counts(self, db: Session, *, campaign_id: str) -> Dict[str, int]:
        opened, clicked, unsubscribed = (
            db.query(
                func.count(EmailJob.opened_at),
                func.count(EmailJob.clicked_at),
                func.count(EmailJob.unsub_at),
            )
            .filter(EmailJob.campaign_id == campaign_id)
            .one()
        )
        return {"opened": opened, "clicked": clicked, "unsubscribed": unsubscribed}

    # ------------------------------------------------------------------ #
    # Status transitions
    # ------------------------------------------------------------------ #

    def _move(
        self,
        db: Session,
        job: EmailJob,
        *,
        source: JobStatus,
        target: JobStatus,
        values: Optional[dict] = None,
    ) -> bool:
        """
        Conditionally move `job` from `source` to `target`.

        Returns:
            bool: False if the job was no longer in `source` (claimed elsewhere).
        """
        transition(source, target, JobStatus)
        values = dict(values or {}, status=target.value)
        updated = (
            db.query(EmailJob)
            .filter(EmailJob.id == job.id, EmailJob.status == source.value)
            .update(values, synchronize_session="fetch")
        )
        db.commit()
        db.refresh(job)
        return updated == 1

    def claim_for_sending(self, db: Session, *, job: EmailJob) -> bool:
        return self._move(db, job, source=JobStatus.PENDING, target=JobStatus.SENDING)

    def mark_suppressed(self, db: Session, *, job: EmailJob) -> bool:
        return self._move(db, job, source=JobStatus.PENDING, target=JobStatus.SUPPRESSED)

    def mark_sent(self, db: Session, *, job: EmailJob) -> bool:
        return self._move(
            db, job, source=JobStatus.SENDING, target=JobStatus.SENT, values={"sent_at": _now()}
        )

    def mark_failed(self, db: Session, *, job: EmailJob, error: str) -> bool:
        return self._move(
            db, job, source=JobStatus.SENDING, target=JobStatus.FAILED, values={"error": error}
        )

    def schedule_all(self, db: Session, *, campaign_id: str, scheduled_at: datetime) -> int:
        """Stamp every job of the campaign with the target send time."""
        updated = (
            db.query(EmailJob)
            .filter(EmailJob.campaign_id == campaign_id)
            .update({EmailJob.scheduled_at: scheduled_at}, synchronize_session="fetch")
        )
        db.commit()
        return updated

    # ------------------------------------------------------------------ #
    # Engagement tracking
    # ------------------------------------------------------------------ #

    def _stamp_once(self, db: Session, job: EmailJob, column) -> bool:
        """Set a timestamp column only if it is still NULL. Returns True on first write."""
        updated = (
            db.query(EmailJob)
            .filter(EmailJob.id == job.id, column.is_(None))
            .update({column: _now()}, synchronize_session="fetch")
        )
        db.commit()
        db.refresh(job)
        return updated == 1

    def mark_opened(self, db: Session, *, job: EmailJob) -> bool:
        return self._stamp_once(db, job, EmailJob.opened_at)

    def mark_clicked(self, db: Session, *, job: EmailJob) -> bool:
        return self._stamp_once(db, job, EmailJob.clicked_at)

    def mark_unsubscribed(self, db: Session, *, job: EmailJob) -> bool:
        return self._stamp_once(db, job, EmailJob.unsub_at)


# Create singleton instance
email_job = CRUDEmailJob()
