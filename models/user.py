# models/user.py
from sqlalchemy import Column, String, Boolean, DateTime, Enum, func
from sqlalchemy.orm import relationship

from .base import Base, generate_uuid
from .enums import UserRole, SubscriptionStatus


class User(Base):
     """
     User model - every actor in the system (managers, owners, tenants, technicians).

     Subscription fields only matter for property managers: workflow actions on a
     property are blocked while its manager's subscription is inactive.
     """
     __tablename__ = "users"

     id = Column(String(36), primary_key=True, default=generate_uuid)
     email = Column(String(255), unique=True, nullable=False, index=True)
     first_name = Column(String(100), nullable=False)
     last_name = Column(String(100), nullable=False)
     phone = Column(String(50), nullable=True)
     role = Column(
          Enum(UserRole, name="user_role", create_constraint=True),
          nullable=False,
          index=True
     )
     is_active = Column(Boolean, default=True, nullable=False)

     # Subscription
     subscription_status = Column(
          Enum(SubscriptionStatus, name="subscription_status", create_constraint=True),
          default=SubscriptionStatus.TRIAL,
          nullable=False
     )
     trial_end_date = Column(DateTime, nullable=True)

     # Timestamps
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     managed_properties = relationship("Property", back_populates="manager")
     notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

     @property
     def full_name(self) -> str:
          return f"{self.first_name} {self.last_name}".strip()

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role.value}')>"
