"""
Audit trail helper for admin actions
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from terravest.core.audit.models import AuditLog
from terravest.core.users.models import Role


def record_audit(
    db: Session,
    *,
    actor_user_id: Optional[UUID],
    action: str,
    entity_type: str,
    entity_id: Optional[UUID],
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
    actor_role: Role = Role.ADMIN,
) -> AuditLog:
    """Add an AuditLog row to the current transaction (no commit)"""
    audit_log = AuditLog(
        actor_user_id=actor_user_id,
        actor_role=actor_role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        before=before,
        after=after,
        reason=reason,
    )
    db.add(audit_log)
    return audit_log
