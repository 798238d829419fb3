# crm_campaigns/schemas/campaign.py
"""
Pydantic schemas for campaigns and their send lifecycle.
"""

import re
from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from crm_campaigns.constants.status import CampaignStatus


class CampaignCreate(BaseModel):
    """Schema for creating a campaign and resolving its audience."""

    name: str = Field(..., min_length=1, max_length=200, description="Internal campaign name")
    subject: Optional[str] = Field(None, max_length=500, description="Email subject line")
    from_email: EmailStr
    from_name: Optional[str] = Field(None, max_length=200)
    body_html: Optional[str] = None
    body_text: Optional[str] = None
    client_ids: Optional[List[str]] = Field(None, description="Explicit recipient ids")
    tags: Optional[List[str]] = Field(
        None, description="Send to every client carrying any of these tags"
    )

    @field_validator("subject")
    @classmethod
    def validate_subject(cls, v: Optional[str]) -> Optional[str]:
        """Subjects are single-line."""
        if v is None:
            return v
        v = v.replace("\n", " ").replace("\r", " ")
        v = re.sub(r"\s{2,}", " ", v)
        return v.strip() or None

    @model_validator(mode="after")
    def check_audience(self) -> "CampaignCreate":
        if self.client_ids and self.tags:
            raise ValueError("Provide either client_ids or tags, not both")
        return self


class CampaignResponse(BaseModel):
    id: str
    name: str
    subject: str
    from_email: str
    from_name: Optional[str] = None
    body_html: str
    body_text: str
    status: CampaignStatus
    scheduled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CampaignCreateResponse(BaseModel):
    campaign: CampaignResponse
    jobs_created: int


class CampaignSendRequest(BaseModel):
    """`when` is either the literal "now" or an ISO-8601 timestamp."""

    when: Union[Literal["now"], datetime] = "now"


class SendResultResponse(BaseModel):
    campaign_id: str
    sent: int
    failed: int
    suppressed: int
    remaining_jobs: int


class ScheduleResultResponse(BaseModel):
    campaign_id: str
    status: Literal["scheduled"] = "scheduled"
    scheduled_at: datetime


class CampaignStats(BaseModel):
    """Job counts and engagement for one campaign."""

    campaign_id: str
    status: CampaignStatus
    total_jobs: int
    pending: int
    sending: int
    sent: int
    failed: int
    suppressed: int
    opened: int
    clicked: int
    unsubscribed: int
    open_rate: Optional[float] = Field(None, description="Percentage of sent emails opened")
    click_rate: Optional[float] = Field(None, description="Percentage of sent emails clicked")


class EmailJobResponse(BaseModel):
    """Job status view. Tracking tokens are deliberately not exposed."""

    id: str
    campaign_id: str
    client_id: str
    to_email: str
    status: str
    error: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    opened_at: Optional[datetime] = None
    clicked_at: Optional[datetime] = None
    unsub_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}
