from crm_campaigns import crud
from crm_campaigns.constants.status import JobStatus
from crm_campaigns.services.audience import resolve_audience
from tests.utils.factories import create_campaign, create_clients


def _jobs(db, count=2):
    campaign = create_campaign(db)
    clients = create_clients(db, count)
    return campaign, resolve_audience(db, campaign.id, [c.id for c in clients])


def test_claim_succeeds_once(db_session):
    _, jobs = _jobs(db_session, 1)
    job = jobs[0]

    assert crud.email_job.claim_for_sending(db_session, job=job) is True
    assert crud.email_job.claim_for_sending(db_session, job=job) is False
    assert job.status == JobStatus.SENDING.value


def test_suppress_only_from_pending(db_session):
    _, jobs = _jobs(db_session, 1)
    job = jobs[0]
    crud.email_job.claim_for_sending(db_session, job=job)

    assert crud.email_job.mark_suppressed(db_session, job=job) is False
    assert job.status == JobStatus.SENDING.value


def test_mark_failed_keeps_error(db_session):
    _, jobs = _jobs(db_session, 1)
    job = jobs[0]
    crud.email_job.claim_for_sending(db_session, job=job)

    assert crud.email_job.mark_failed(db_session, job=job, error="550 rejected") is True
    assert job.status == JobStatus.FAILED.value
    assert job.error == "550 rejected"
    # Terminal: a late success report cannot overwrite the failure
    assert crud.email_job.mark_sent(db_session, job=job) is False
    assert job.status == JobStatus.FAILED.value


def test_status_and_engagement_counts(db_session):
    campaign, jobs = _jobs(db_session, 3)
    crud.email_job.claim_for_sending(db_session, job=jobs[0])
    crud.email_job.mark_sent(db_session, job=jobs[0])
    crud.email_job.mark_suppressed(db_session, job=jobs[1])
    crud.email_job.mark_opened(db_session, job=jobs[0])

    counts = crud.email_job.status_counts(db_session, campaign_id=campaign.id)
    engagement = crud.email_job.engagement_counts(db_session, campaign_id=campaign.id)

    assert counts == {"PENDING": 1, "SENDING": 0, "SENT": 1, "FAILED": 0, "SUPPRESSED": 1}
    assert engagement == {"opened": 1, "clicked": 0, "unsubscribed": 0}
    assert crud.email_job.count_by_status(
        db_session, campaign_id=campaign.id, status=JobStatus.PENDING
    ) == 1
