# crm_campaigns/constants/status.py
"""
Status values and allowed transitions for campaigns, email jobs and
subscriptions.

Every status write goes through `transition()` so an illegal move (for
example re-sending a cancelled campaign) fails loudly instead of silently
overwriting the column.
"""

from enum import Enum
from typing import Dict, FrozenSet, Type, TypeVar, Union

from crm_campaigns.core.exceptions import InvalidTransitionError


class CampaignStatus(str, Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    SENDING = "SENDING"
    SENT = "SENT"
    CANCELLED = "CANCELLED"


class JobStatus(str, Enum):
    PENDING = "PENDING"
    SENDING = "SENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    SUPPRESSED = "SUPPRESSED"


class SubscriptionStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class EventType(str, Enum):
    OPEN = "open"
    CLICK = "click"
    UNSUBSCRIBE = "unsubscribe"


EMAIL_CHANNEL = "email"


CAMPAIGN_TRANSITIONS: Dict[CampaignStatus, FrozenSet[CampaignStatus]] = {
    CampaignStatus.DRAFT: frozenset(
        {CampaignStatus.SCHEDULED, CampaignStatus.SENDING, CampaignStatus.CANCELLED}
    ),
    # Rescheduling keeps the campaign SCHEDULED with a new timestamp.
    CampaignStatus.SCHEDULED: frozenset(
        {CampaignStatus.SCHEDULED, CampaignStatus.SENDING, CampaignStatus.CANCELLED}
    ),
    # A partially drained campaign stays SENDING across send triggers.
    CampaignStatus.SENDING: frozenset({CampaignStatus.SENDING, CampaignStatus.SENT}),
    CampaignStatus.SENT: frozenset(),
    CampaignStatus.CANCELLED: frozenset(),
}

JOB_TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.SENDING, JobStatus.SUPPRESSED}),
    JobStatus.SENDING: frozenset({JobStatus.SENT, JobStatus.FAILED}),
    JobStatus.SENT: frozenset(),
    JobStatus.FAILED: frozenset(),
    JobStatus.SUPPRESSED: frozenset(),
}

TERMINAL_JOB_STATUSES = frozenset(
    status for status, targets in JOB_TRANSITIONS.items() if not targets
)

S = TypeVar("S", CampaignStatus, JobStatus)


def _coerce(enum_cls: Type[S], value: Union[S, str]) -> S:
    return value if isinstance(value, enum_cls) else enum_cls(value)


def can_transition(current: Union[S, str], target: Union[S, str], enum_cls: Type[S]) -> bool:
    table = CAMPAIGN_TRANSITIONS if enum_cls is CampaignStatus else JOB_TRANSITIONS
    return _coerce(enum_cls, target) in table[_coerce(enum_cls, current)]


def transition(current: Union[S, str], target: Union[S, str], enum_cls: Type[S]) -> S:
    """
    Validate a status change and return the target as an enum member.

    Raises:
        InvalidTransitionError: if the move is not in the transition table.
    """
    current_status = _coerce(enum_cls, current)
    target_status = _coerce(enum_cls, target)
    if not can_transition(current_status, target_status, enum_cls):
        entity = "campaign" if enum_cls is CampaignStatus else "email job"
        raise InvalidTransitionError(entity, current_status.value, target_status.value)
    return target_status
