# crm_campaigns/models/client_tag.py
from sqlalchemy import Table, Column, String, ForeignKey
from crm_campaigns.db.base_class import Base

# Association table between clients and tags.
client_tag_association = Table(
    "client_tags",
    Base.metadata,
    Column("client_id", String, ForeignKey("clients.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)
