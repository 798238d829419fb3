# crm_campaigns/api/deps.py
from fastapi import Depends

from crm_campaigns.core.config import settings
from crm_campaigns.core.email import MailTransport, get_mail_transport
from crm_campaigns.services.event_recorder import EventRecorder
from crm_campaigns.services.send_executor import SendExecutor


def get_send_executor(
    mail_transport: MailTransport = Depends(get_mail_transport),
) -> SendExecutor:
    """Dependency that builds a send executor around the configured transport."""
    return SendExecutor(
        mail_transport=mail_transport,
        batch_size=settings.SEND_BATCH_SIZE,
        base_url=settings.APP_URL,
    )


def get_event_recorder() -> EventRecorder:
    return EventRecorder()
