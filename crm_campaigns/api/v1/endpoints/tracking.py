# crm_campaigns/api/v1/endpoints/tracking.py
"""
Public tracking endpoints, hit from inside delivered emails.

These are mounted without the /api/v1 prefix so the URLs embedded in
messages stay short and stable.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from sqlalchemy.orm import Session

from crm_campaigns.api import deps
from crm_campaigns.core.templates import render_template
from crm_campaigns.db.session import get_db
from crm_campaigns.services.event_recorder import EventRecorder

logger = logging.getLogger(__name__)
router = APIRouter(tags=["tracking"])

# 1x1 transparent PNG
TRANSPARENT_PIXEL = bytes.fromhex(
    "89504e470d0a1a0a0000000d49484452000000010000000108060000001f15c489"
    "0000000a49444154789c6300010000050001ad7a0ac00000000049454e44ae426082"
)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get("/tracking/open/{open_token}")
def track_open(
    open_token: str,
    db: Session = Depends(get_db),
    recorder: EventRecorder = Depends(deps.get_event_recorder),
):
    """
    Track an email open via the 1x1 tracking pixel.

    Always returns the pixel, even for unknown tokens or tracking errors.
    """
    try:
        recorder.record_open(db, open_token)
    except Exception as e:
        logger.exception(f"Error recording open: {e}")

    return Response(content=TRANSPARENT_PIXEL, media_type="image/png", headers=NO_CACHE_HEADERS)


@router.get("/tracking/click/{click_token}")
def track_click(
    click_token: str,
    u: Optional[str] = None,
    db: Session = Depends(get_db),
    recorder: EventRecorder = Depends(deps.get_event_recorder),
):
    """
    Record a link click and redirect to the original destination `u`.

    Unknown tokens get a 404 instead of a redirect. A known token redirects
    to whatever `u` carries; destinations are not stored per token.
    """
    if not u:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Missing URL parameter"
        )

    if not recorder.record_click(db, click_token, u):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link not found")

    return RedirectResponse(url=u, status_code=status.HTTP_302_FOUND)


@router.get("/unsubscribe/{unsub_token}", response_class=HTMLResponse)
def unsubscribe(
    unsub_token: str,
    db: Session = Depends(get_db),
    recorder: EventRecorder = Depends(deps.get_event_recorder),
):
    client_id = recorder.record_unsubscribe(db, unsub_token)
    if client_id is None:
        return HTMLResponse(
            render_template("unsubscribe_invalid.html"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return HTMLResponse(render_template("unsubscribe_confirmed.html"))
