# crm_campaigns/crud/crud_tracking_event.py
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from crm_campaigns.constants.status import EventType
from crm_campaigns.models.tracking_event import TrackingEvent


class CRUDTrackingEvent:
    """Append-only access to the tracking event log."""

    def create_log(
        self,
        db: Session,
        *,
        event_type: EventType,
        client_id: str,
        job_id: Optional[str],
        meta: Optional[Dict[str, Any]] = None,
    ) -> TrackingEvent:
        db_obj = TrackingEvent(
            type=event_type.value,
            client_id=client_id,
            job_id=job_id,
            meta=meta,
        )
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get_by_job(self, db: Session, *, job_id: str) -> List[TrackingEvent]:
        return (
            db.query(TrackingEvent)
            .filter(TrackingEvent.job_id == job_id)
            .order_by(TrackingEvent.created_at.asc(), TrackingEvent.id.asc())
            .all()
        )


tracking_event = CRUDTrackingEvent()
