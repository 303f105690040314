# models/unit.py
from sqlalchemy import Column, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid


class Unit(Base):
     """
     Unit model - an individual unit inside a property.
     """
     __tablename__ = "units"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     unit_number = Column(String(50), nullable=False)
     status = Column(String(50), default="VACANT", nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     property = relationship("Property", back_populates="units")
     tenants = relationship("UnitTenant", back_populates="unit", cascade="all, delete-orphan")

     def __repr__(self):
          return f"<Unit(id={self.id}, unit_number='{self.unit_number}')>"
