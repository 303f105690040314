# models/property_owner.py
"""
PropertyOwner model - links users with role OWNER to the properties they own.
Used for role-based access: owners approve estimates and recommendations.
"""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid


class PropertyOwner(Base):
     __tablename__ = "property_owners"
     __table_args__ = (
          UniqueConstraint("property_id", "owner_id", name="uq_property_owner"),
     )

     id = Column(String(36), primary_key=True, default=generate_uuid)
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     ownership_percentage = Column(Numeric(5, 2), default=100, nullable=False)
     start_date = Column(DateTime, nullable=True)
     end_date = Column(DateTime, nullable=True)

     # Relationships
     property = relationship("Property", back_populates="owners")
     owner = relationship("User")

     def is_active_at(self, now) -> bool:
          return self.end_date is None or self.end_date > now

     def __repr__(self):
          return f"<PropertyOwner(property_id={self.property_id}, owner_id={self.owner_id})>"
