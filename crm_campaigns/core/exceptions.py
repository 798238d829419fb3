# crm_campaigns/core/exceptions.py
"""
Custom exception hierarchy for the campaign service.
All exceptions inherit from CampaignServiceError for consistent handling.
"""

from typing import Optional


class CampaignServiceError(Exception):
    """Base exception for all campaign service errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "CAMPAIGN_SERVICE_ERROR",
        details: Optional[dict] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ===========================================
# Lookup Exceptions
# ===========================================


class CampaignNotFoundError(CampaignServiceError):
    """No campaign exists with the given id."""

    def __init__(self, campaign_id: str):
        super().__init__(
            message=f"Campaign {campaign_id} not found",
            error_code="CAMPAIGN_NOT_FOUND",
            details={"campaign_id": campaign_id},
        )


class DuplicateClientError(CampaignServiceError):
    """A client with this email address already exists."""

    def __init__(self, email: str):
        super().__init__(
            message=f"A client with email {email} already exists",
            error_code="DUPLICATE_CLIENT",
            details={"email": email},
        )


# ===========================================
# State Machine Exceptions
# ===========================================


class InvalidTransitionError(CampaignServiceError):
    """A status change that the entity's state machine does not allow."""

    def __init__(self, entity: str, current: str, target: str):
        self.entity = entity
        self.current = current
        self.target = target
        super().__init__(
            message=f"Cannot move {entity} from {current} to {target}",
            error_code="INVALID_TRANSITION",
            details={"entity": entity, "current": current, "target": target},
        )


# ===========================================
# Delivery Exceptions
# ===========================================


class MailTransportError(CampaignServiceError):
    """The outbound mail provider rejected or failed a send."""

    def __init__(self, message: str, recipient: Optional[str] = None):
        self.recipient = recipient
        super().__init__(
            message=message,
            error_code="MAIL_TRANSPORT_ERROR",
            details={"recipient": recipient} if recipient else {},
        )
