# services/audit_service.py
"""
Audit trail - append-only rows recording who changed which entity.

The row is added to the caller's session, so it commits or rolls back
together with the change it describes.
"""
import enum
from typing import Optional

from sqlalchemy.orm import Session

from models import AuditLog


def _jsonable(value):
     if value is None or isinstance(value, (str, int, float, bool)):
          return value
     if isinstance(value, enum.Enum):
          return value.value
     if isinstance(value, (list, tuple)):
          return [_jsonable(v) for v in value]
     return str(value)


def log_audit(
     db: Session,
     entity_type: str,
     entity_id: str,
     action: str,
     user_id: Optional[str] = None,
     changes: Optional[dict] = None,
) -> AuditLog:
     """Record an action in the same transaction as the change it describes."""
     entry = AuditLog(
          entity_type=entity_type,
          entity_id=entity_id,
          action=action,
          user_id=user_id,
          changes={k: _jsonable(v) for k, v in changes.items()} if changes else None,
     )
     db.add(entry)
     return entry
