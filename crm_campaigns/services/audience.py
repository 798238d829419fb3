# crm_campaigns/services/audience.py
"""
Audience resolution: turns a campaign plus a list of client ids into one
PENDING email job per reachable recipient.
"""

import logging
from typing import List, Sequence

from sqlalchemy.orm import Session

from crm_campaigns import crud
from crm_campaigns.core.exceptions import CampaignNotFoundError
from crm_campaigns.models.email_job import EmailJob

logger = logging.getLogger(__name__)


def resolve_audience(db: Session, campaign_id: str, client_ids: Sequence[str]) -> List[EmailJob]:
    """
    Create email jobs for the subscribed clients among `client_ids`.

    Clients without an active email subscription, ids that match no client,
    repeated ids and clients that already have a job for this campaign are
    skipped without error.

    Raises:
        CampaignNotFoundError: if the campaign does not exist.
    """
    campaign = crud.campaign.get(db, campaign_id)
    if campaign is None:
        raise CampaignNotFoundError(campaign_id)

    requested = list(dict.fromkeys(client_ids))
    already_queued = crud.email_job.get_client_ids_for_campaign(db, campaign_id)
    candidates = [cid for cid in requested if cid not in already_queued]

    clients = crud.client.get_subscribed_by_ids(db, client_ids=candidates)
    jobs = crud.email_job.create_many(db, campaign=campaign, clients=clients)

    logger.info(
        f"Campaign {campaign_id}: {len(jobs)} job(s) created "
        f"from {len(requested)} requested recipient(s)"
    )
    return jobs


def resolve_tag_audience(db: Session, campaign_id: str, tags: Sequence[str]) -> List[EmailJob]:
    """Resolve every client carrying any of `tags`."""
    client_ids = crud.client.get_ids_by_tags(db, tags=tags)
    return resolve_audience(db, campaign_id, client_ids)
