# models/property.py
from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid


class Property(Base):
     """
     Property model - a building or complex administered by one property manager.
     """
     __tablename__ = "properties"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     name = Column(String(255), nullable=False)
     manager_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
     status = Column(String(50), default="ACTIVE", nullable=False)

     # Address
     address = Column(String(255), nullable=True)
     city = Column(String(100), nullable=True)
     state = Column(String(100), nullable=True)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)
     updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

     # Relationships
     manager = relationship("User", back_populates="managed_properties")
     owners = relationship("PropertyOwner", back_populates="property", cascade="all, delete-orphan")
     units = relationship("Unit", back_populates="property", cascade="all, delete-orphan")

     def active_owners(self, now):
          """Ownership rows whose end date is unset or still in the future."""
          return [o for o in self.owners if o.is_active_at(now)]

     def __repr__(self):
          return f"<Property(id={self.id}, name='{self.name}')>"
