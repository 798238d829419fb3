from urllib.parse import quote

from fastapi.testclient import TestClient

from crm_campaigns import crud
from crm_campaigns.models.tracking_event import TrackingEvent
from crm_campaigns.services.audience import resolve_audience
from tests.utils.factories import create_campaign, create_client

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def _job(db, email="alice@example.com"):
    alice = create_client(db, email)
    campaign = create_campaign(db)
    return resolve_audience(db, campaign.id, [alice.id])[0]


def test_open_pixel_records_first_open(client: TestClient, db_session):
    job = _job(db_session)

    response = client.get(f"/tracking/open/{job.open_token}")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(PNG_SIGNATURE)
    assert "no-store" in response.headers["cache-control"]
    db_session.refresh(job)
    assert job.opened_at is not None


def test_open_pixel_with_garbage_token(client: TestClient, db_session):
    response = client.get("/tracking/open/garbage-token")

    assert response.status_code == 200
    assert response.content.startswith(PNG_SIGNATURE)
    assert db_session.query(TrackingEvent).count() == 0


def test_repeated_opens_log_one_event(client: TestClient, db_session):
    job = _job(db_session)

    for _ in range(3):
        assert client.get(f"/tracking/open/{job.open_token}").status_code == 200

    assert db_session.query(TrackingEvent).filter(TrackingEvent.type == "open").count() == 1


def test_click_redirects_and_logs(client: TestClient, db_session):
    job = _job(db_session)
    destination = "https://example.com/offer?x=1&y=2"

    response = client.get(
        f"/tracking/click/{job.click_token}?u={quote(destination, safe='')}",
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == destination
    events = crud.tracking_event.get_by_job(db_session, job_id=job.id)
    assert [(e.type, e.meta) for e in events] == [("click", {"url": destination})]


def test_click_redirects_to_any_destination_for_a_known_token(client: TestClient, db_session):
    job = _job(db_session)
    destination = "https://elsewhere.example.org/landing"

    response = client.get(
        f"/tracking/click/{job.click_token}?u={quote(destination, safe='')}",
        follow_redirects=False,
    )

    assert response.status_code == 302
    assert response.headers["location"] == destination


def test_click_without_destination_is_400(client: TestClient, db_session):
    job = _job(db_session)

    response = client.get(f"/tracking/click/{job.click_token}", follow_redirects=False)

    assert response.status_code == 400


def test_click_with_unknown_token_is_404(client: TestClient, db_session):
    response = client.get(
        "/tracking/click/unknown?u=https%3A%2F%2Fevil.example.com", follow_redirects=False
    )

    assert response.status_code == 404
    assert "location" not in response.headers
    assert db_session.query(TrackingEvent).count() == 0


def test_unsubscribe_confirms_and_suppresses(client: TestClient, db_session):
    job = _job(db_session)

    response = client.get(f"/unsubscribe/{job.unsub_token}")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Unsubscribed" in response.text
    assert not crud.subscription.is_subscribed(db_session, client_id=job.client_id)


def test_unsubscribe_with_invalid_token(client: TestClient):
    response = client.get("/unsubscribe/not-a-token")

    assert response.status_code == 400
    assert "Invalid Link" in response.text


def test_unsubscribe_link_from_sent_email(client: TestClient, db_session, transport):
    """The unsubscribe URL in the delivered text body works end to end."""
    job = _job(db_session)
    client.post(f"/api/v1/campaigns/{job.campaign_id}/send")

    unsubscribe_line = transport.sent[0].text.splitlines()[-1]
    url = unsubscribe_line.split("Unsubscribe: ", 1)[1]
    path = url.split("://", 1)[1].split("/", 1)[1]

    response = client.get(f"/{path}")

    assert response.status_code == 200
    assert not crud.subscription.is_subscribed(db_session, client_id=job.client_id)
