# crm_campaigns/models/__init__.py
# Import all models to ensure SQLAlchemy can resolve relationships
# Order matters for dependencies - import base models first

from crm_campaigns.db.base_class import Base
from crm_campaigns.models.client_tag import client_tag_association
from crm_campaigns.models.tag import Tag
from crm_campaigns.models.client import Client
from crm_campaigns.models.subscription import Subscription
from crm_campaigns.models.campaign import Campaign
from crm_campaigns.models.email_job import EmailJob
from crm_campaigns.models.tracking_event import TrackingEvent
