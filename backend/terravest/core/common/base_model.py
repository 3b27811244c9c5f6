"""
Declarative base shared by every TerraVest table
"""

import uuid

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.sql import func

from terravest.infrastructure.database import Base
from terravest.utils.money import utcnow


class BaseModel(Base):
    """
    Abstract base: UUID primary key plus created_at / updated_at.

    Timestamps are set in Python so rows created within the same second
    still order correctly; the server default covers raw SQL inserts.
    """
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=utcnow, nullable=True)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"
