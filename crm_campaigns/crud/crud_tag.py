# crm_campaigns/crud/crud_tag.py
from typing import List

from sqlalchemy.orm import Session

from crm_campaigns.models.tag import Tag


class CRUDTag:
    """Tags are created on first use and shared between clients."""

    def get_by_name(self, db: Session, name: str):
        return db.query(Tag).filter(Tag.name == name).first()

    def get_or_create(self, db: Session, *, name: str) -> Tag:
        """Return the tag, adding it to the session if new. Does not commit."""
        tag = self.get_by_name(db, name)
        if tag is None:
            tag = Tag(name=name)
            db.add(tag)
            db.flush()
        return tag

    def get_or_create_many(self, db: Session, *, names: List[str]) -> List[Tag]:
        return [self.get_or_create(db, name=name) for name in names]


tag = CRUDTag()
