# crm_campaigns/models/client.py
"""
Client model - a CRM contact that campaigns are sent to.

Clients are referenced by email jobs but never owned by them: a job keeps
its own snapshot of the address it was sent to.
"""

import uuid
from sqlalchemy import Column, String, DateTime, JSON, func
from sqlalchemy.orm import relationship
from crm_campaigns.db.base_class import Base
from crm_campaigns.models.client_tag import client_tag_association


class Client(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=lambda: f"cli_{uuid.uuid4().hex[:12]}")
    email = Column(String(255), nullable=False, unique=True, index=True)

    # Profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    company = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=True)

    # Arbitrary key/value pairs carried over from imports
    custom_fields = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    tags = relationship("Tag", secondary=client_tag_association, back_populates="clients")
    subscriptions = relationship(
        "Subscription", back_populates="client", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Client {self.id} {self.email}>"
