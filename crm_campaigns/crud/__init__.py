# crm_campaigns/crud/__init__.py

from .crud_campaign import campaign
from .crud_client import client
from .crud_email_job import email_job
from .crud_subscription import subscription
from .crud_tag import tag
from .crud_tracking_event import tracking_event
