"""
Audit trail for administrative actions

One row per admin decision that moves money or changes the state of an
order, deposit, withdrawal, investment or commission. Rows are written in
the same transaction as the change they describe.
"""

from sqlalchemy import Column, ForeignKey, Index, JSON, String, Text, Uuid, Enum as SQLEnum

from terravest.core.common.base_model import BaseModel
from terravest.core.users.models import Role


class AuditLog(BaseModel):
    """Who did what to which entity, with before/after snapshots"""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )

    actor_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", name="fk_audit_logs_actor_user_id"), nullable=True, index=True)
    actor_role = Column(SQLEnum(Role, name="actor_role", create_constraint=True), nullable=False)
    action = Column(String(100), nullable=False, index=True)  # e.g. DEPOSIT_APPROVED
    entity_type = Column(String(50), nullable=False)  # e.g. wallet_transaction
    entity_id = Column(Uuid(as_uuid=True), nullable=True)
    before = Column(JSON, nullable=True)
    after = Column(JSON, nullable=True)
    reason = Column(Text, nullable=True)
