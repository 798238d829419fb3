# crm_campaigns/services/event_recorder.py
"""
Inbound engagement tracking.

Each public tracking hit carries one token. The recorder resolves it to a
job, stamps the job and appends to the event log. Unknown tokens are
reported back to the caller, never raised.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from crm_campaigns import crud
from crm_campaigns.constants.status import EventType

logger = logging.getLogger(__name__)


class EventRecorder:

    def record_open(self, db: Session, token: str) -> bool:
        """
        Record the first open of a job.

        Returns:
            bool: True only when this call recorded the open. Repeat opens
            and unknown tokens return False and write nothing.
        """
        job = crud.email_job.get_by_open_token(db, token)
        if job is None:
            logger.warning("Open pixel hit with unknown token")
            return False
        if job.opened_at is not None or not crud.email_job.mark_opened(db, job=job):
            return False

        crud.tracking_event.create_log(
            db, event_type=EventType.OPEN, client_id=job.client_id, job_id=job.id
        )
        logger.info(f"Job {job.id} opened")
        return True

    def record_click(self, db: Session, token: str, url: str) -> bool:
        """
        Record a click. `clicked_at` keeps the first click; every click is
        logged with its destination.

        Returns:
            bool: False if the token matches no job.
        """
        job = crud.email_job.get_by_click_token(db, token)
        if job is None:
            logger.warning("Click redirect hit with unknown token")
            return False

        crud.email_job.mark_clicked(db, job=job)
        crud.tracking_event.create_log(
            db,
            event_type=EventType.CLICK,
            client_id=job.client_id,
            job_id=job.id,
            meta={"url": url},
        )
        logger.info(f"Job {job.id} clicked -> {url}")
        return True

    def record_unsubscribe(self, db: Session, token: str) -> Optional[str]:
        """
        Unsubscribe the job's client from email, across every campaign.

        Returns:
            The client id, or None if the token matches no job.
        """
        job = crud.email_job.get_by_unsub_token(db, token)
        if job is None:
            logger.warning("Unsubscribe hit with unknown token")
            return None

        crud.email_job.mark_unsubscribed(db, job=job)
        rows = crud.subscription.unsubscribe_channel(db, client_id=job.client_id)
        crud.tracking_event.create_log(
            db, event_type=EventType.UNSUBSCRIBE, client_id=job.client_id, job_id=job.id
        )
        logger.info(f"Client {job.client_id} unsubscribed via job {job.id} ({rows} subscription(s))")
        return job.client_id
