# crm_campaigns/models/tag.py
import uuid
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship
from crm_campaigns.db.base_class import Base
from crm_campaigns.models.client_tag import client_tag_association


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String, primary_key=True, default=lambda: f"tag_{uuid.uuid4().hex[:12]}")
    name = Column(String(100), nullable=False, unique=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    clients = relationship(
        "Client", secondary=client_tag_association, back_populates="tags"
    )
