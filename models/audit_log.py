# models/audit_log.py
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, func

from utils.clock import utc_now
from .base import Base, generate_uuid


class AuditLog(Base):
     """AuditLog model - append-only record of workflow actions."""
     __tablename__ = "audit_logs"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     entity_type = Column(String(50), nullable=False, index=True)
     entity_id = Column(String(36), nullable=False, index=True)
     action = Column(String(50), nullable=False)
     user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
     changes = Column(JSON, nullable=True)
     created_at = Column(DateTime, default=utc_now, server_default=func.now(), nullable=False)

     def __repr__(self):
          return f"<AuditLog(entity={self.entity_type}:{self.entity_id}, action='{self.action}')>"
