# models/notification.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship

from utils.clock import utc_now
from .base import Base, generate_uuid
from .enums import NotificationType


class Notification(Base):
     """Notification model - in-app message for a single user."""
     __tablename__ = "notifications"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     type = Column(
          Enum(NotificationType, name="notification_type", create_constraint=True),
          nullable=False
     )
     title = Column(String(255), nullable=False)
     message = Column(Text, nullable=False)
     entity_type = Column(String(50), nullable=True)
     entity_id = Column(String(36), nullable=True)
     is_read = Column(Boolean, default=False, nullable=False)
     read_at = Column(DateTime, nullable=True)
     created_at = Column(DateTime, default=utc_now, server_default=func.now(), nullable=False)

     # Relationships
     user = relationship("User", back_populates="notifications")

     def mark_as_read(self, now) -> None:
          self.is_read = True
          self.read_at = now

     def __repr__(self):
          return f"<Notification(id={self.id}, user_id={self.user_id}, type='{self.type.value}')>"
