from crm_campaigns import crud
from crm_campaigns.constants.status import EventType, SubscriptionStatus
from crm_campaigns.models.tracking_event import TrackingEvent
from crm_campaigns.services.audience import resolve_audience
from crm_campaigns.services.event_recorder import EventRecorder
from tests.utils.factories import create_campaign, create_client

recorder = EventRecorder()


def _job_for(db, client, campaign=None):
    campaign = campaign or create_campaign(db)
    return resolve_audience(db, campaign.id, [client.id])[0]


def _events(db, event_type=None):
    query = db.query(TrackingEvent)
    if event_type:
        query = query.filter(TrackingEvent.type == event_type.value)
    return query.all()


class TestOpen:

    def test_first_open_sets_opened_at_and_logs_once(self, db_session):
        job = _job_for(db_session, create_client(db_session, "alice@example.com"))

        assert recorder.record_open(db_session, job.open_token) is True
        db_session.refresh(job)
        first_opened_at = job.opened_at
        assert first_opened_at is not None

        assert recorder.record_open(db_session, job.open_token) is False
        assert recorder.record_open(db_session, job.open_token) is False

        db_session.refresh(job)
        assert job.opened_at == first_opened_at
        assert len(_events(db_session, EventType.OPEN)) == 1

    def test_unknown_token_is_a_no_op(self, db_session):
        assert recorder.record_open(db_session, "not-a-token") is False
        assert _events(db_session) == []

    def test_other_tokens_do_not_resolve_on_the_open_path(self, db_session):
        job = _job_for(db_session, create_client(db_session, "alice@example.com"))

        assert recorder.record_open(db_session, job.click_token) is False
        db_session.refresh(job)
        assert job.opened_at is None


class TestClick:

    def test_every_click_logged_first_click_kept(self, db_session):
        job = _job_for(db_session, create_client(db_session, "alice@example.com"))

        assert recorder.record_click(db_session, job.click_token, "https://example.com/a")
        db_session.refresh(job)
        first_clicked_at = job.clicked_at
        assert recorder.record_click(db_session, job.click_token, "https://example.com/b")

        db_session.refresh(job)
        assert job.clicked_at == first_clicked_at
        clicks = crud.tracking_event.get_by_job(db_session, job_id=job.id)
        assert sorted(e.meta["url"] for e in clicks) == [
            "https://example.com/a",
            "https://example.com/b",
        ]
        assert all(e.client_id == job.client_id for e in clicks)

    def test_unknown_token(self, db_session):
        assert recorder.record_click(db_session, "nope", "https://example.com") is False
        assert _events(db_session) == []


class TestUnsubscribe:

    def test_unsubscribe_is_account_wide(self, db_session):
        alice = create_client(db_session, "alice@example.com")
        job_a = _job_for(db_session, alice)
        job_b = _job_for(db_session, alice)

        assert recorder.record_unsubscribe(db_session, job_a.unsub_token) == alice.id

        assert not crud.subscription.is_subscribed(db_session, client_id=alice.id)
        db_session.refresh(job_a)
        db_session.refresh(job_b)
        assert job_a.unsub_at is not None
        # The other campaign's job is still pending, and will be suppressed at send time
        assert job_b.unsub_at is None
        events = _events(db_session, EventType.UNSUBSCRIBE)
        assert [(e.client_id, e.job_id) for e in events] == [(alice.id, job_a.id)]

    def test_later_campaigns_exclude_the_client(self, db_session):
        alice = create_client(db_session, "alice@example.com")
        job = _job_for(db_session, alice)
        recorder.record_unsubscribe(db_session, job.unsub_token)

        later = create_campaign(db_session, name="Later")
        assert resolve_audience(db_session, later.id, [alice.id]) == []

    def test_unknown_token(self, db_session):
        assert recorder.record_unsubscribe(db_session, "nope") is None
        assert _events(db_session) == []

    def test_resubscribe_by_operator(self, db_session):
        alice = create_client(db_session, "alice@example.com")
        job = _job_for(db_session, alice)
        recorder.record_unsubscribe(db_session, job.unsub_token)

        crud.subscription.set_status(
            db_session, client_id=alice.id, status=SubscriptionStatus.SUBSCRIBED
        )

        assert crud.subscription.is_subscribed(db_session, client_id=alice.id)
