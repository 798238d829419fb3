# crm_campaigns/core/email.py
"""
Outbound mail transport.

The send pipeline only depends on the `MailTransport` interface, so any
provider that can deliver one message per call (Resend, an SMTP relay, a
test double) can be plugged in through `get_mail_transport`.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

import resend

from crm_campaigns.core.config import settings
from crm_campaigns.core.exceptions import MailTransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundEmail:
    """One fully rendered message addressed to a single recipient."""
    to: str
    from_email: str
    subject: str
    html: str
    text: str
    from_name: Optional[str] = None

    @property
    def from_header(self) -> str:
        if self.from_name:
            return f"{self.from_name} <{self.from_email}>"
        return self.from_email


class MailTransport(ABC):
    """Delivers a single message or raises MailTransportError."""

    @abstractmethod
    def send(self, message: OutboundEmail) -> Optional[str]:
        """Send the message and return the provider's message id, if any."""


class ResendTransport(MailTransport):
    """Mail transport backed by the Resend API."""

    def __init__(self, api_key: str):
        if not api_key:
            raise MailTransportError("RESEND_API_KEY not configured")
        self.api_key = api_key

    def send(self, message: OutboundEmail) -> Optional[str]:
        resend.api_key = self.api_key
        params = {
            "from": message.from_header,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"Resend API error for {message.to}: {e}")
            raise MailTransportError(str(e), recipient=message.to) from e

        message_id = response.get("id") if isinstance(response, dict) else None
        logger.debug(f"Resend accepted message for {message.to}: id={message_id}")
        return message_id


@lru_cache
def get_mail_transport() -> MailTransport:
    """Dependency provider for the configured mail transport."""
    return ResendTransport(api_key=settings.RESEND_API_KEY)
