from unittest.mock import MagicMock

import pytest

from crm_campaigns.constants.status import CampaignStatus
from crm_campaigns.core.exceptions import InvalidTransitionError
from crm_campaigns.crud.crud_campaign import CRUDCampaign
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.schemas.campaign import CampaignCreate

campaign_crud = CRUDCampaign(Campaign)


def test_create_draft_uses_given_bodies():
    """
    Tests that create_draft stores the defaulted subject and bodies, not the raw input.
    """
    db_session = MagicMock()
    obj_in = CampaignCreate(name="Promo", from_email="team@example.com")

    created = campaign_crud.create_draft(
        db_session, obj_in=obj_in, subject="Untitled Campaign", body_html="<p>x</p>", body_text="x"
    )

    assert created.status == CampaignStatus.DRAFT.value
    assert created.subject == "Untitled Campaign"
    assert created.body_html == "<p>x</p>"
    db_session.add.assert_called_once_with(created)
    db_session.commit.assert_called_once()


def test_set_status_commits_allowed_move():
    db_session = MagicMock()
    db_obj = Campaign(id="cmpn_1", name="Promo", status=CampaignStatus.DRAFT.value)

    updated = campaign_crud.set_status(db_session, campaign=db_obj, target=CampaignStatus.SENDING)

    assert updated.status == "SENDING"
    db_session.commit.assert_called_once()


def test_set_status_rejects_illegal_move_without_writing():
    db_session = MagicMock()
    db_obj = Campaign(id="cmpn_1", name="Promo", status=CampaignStatus.CANCELLED.value)

    with pytest.raises(InvalidTransitionError):
        campaign_crud.set_status(db_session, campaign=db_obj, target=CampaignStatus.SENDING)

    assert db_obj.status == "CANCELLED"
    db_session.commit.assert_not_called()


def test_mark_sent_if_sending_reports_whether_it_flipped():
    db_session = MagicMock()
    db_session.query.return_value.filter.return_value.update.return_value = 0

    assert campaign_crud.mark_sent_if_sending(db_session, campaign_id="cmpn_1") is False

    db_session.query.return_value.filter.return_value.update.return_value = 1
    assert campaign_crud.mark_sent_if_sending(db_session, campaign_id="cmpn_1") is True
