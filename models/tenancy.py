# models/tenancy.py
"""
Tenancy links - a tenant either rents a specific unit (UnitTenant) or is
attached to a whole property (PropertyTenant). Only active rows grant access.
"""
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid


class UnitTenant(Base):
     __tablename__ = "unit_tenants"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     unit_id = Column(String(36), ForeignKey("units.id", ondelete="CASCADE"), nullable=False, index=True)
     tenant_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     is_active = Column(Boolean, default=True, nullable=False)
     lease_start = Column(DateTime, nullable=True)
     lease_end = Column(DateTime, nullable=True)
     rent_amount = Column(Numeric(12, 2), nullable=True)

     # Relationships
     unit = relationship("Unit", back_populates="tenants")
     tenant = relationship("User")

     def __repr__(self):
          return f"<UnitTenant(unit_id={self.unit_id}, tenant_id={self.tenant_id}, active={self.is_active})>"


class PropertyTenant(Base):
     __tablename__ = "property_tenants"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     property_id = Column(String(36), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
     tenant_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
     is_active = Column(Boolean, default=True, nullable=False)
     lease_start = Column(DateTime, nullable=True)
     lease_end = Column(DateTime, nullable=True)

     # Relationships
     property = relationship("Property")
     tenant = relationship("User")

     def __repr__(self):
          return f"<PropertyTenant(property_id={self.property_id}, tenant_id={self.tenant_id}, active={self.is_active})>"
