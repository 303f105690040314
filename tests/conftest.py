# tests/conftest.py
import os

os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ["DISABLE_MAINTENANCE_PLAN_CRON"] = "true"
os.environ.pop("BREVO_API_KEY", None)

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import config
from database import get_session
from main import app
from models import (
     Base,
     Property,
     PropertyOwner,
     SubscriptionStatus,
     Unit,
     UnitTenant,
     User,
     UserRole,
)
from utils.clock import utc_now

engine = create_engine(
     "sqlite://",
     connect_args={"check_same_thread": False},
     poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def override_get_session():
     session = TestingSessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


app.dependency_overrides[get_session] = override_get_session


@pytest.fixture(autouse=True)
def _schema():
     Base.metadata.create_all(bind=engine)
     yield
     Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def session_factory():
     return TestingSessionLocal


@pytest.fixture()
def db():
     session = TestingSessionLocal()
     try:
          yield session
     finally:
          session.close()


@pytest.fixture()
def client():
     # No context manager: the lifespan (and with it the scheduler) stays off
     return TestClient(app)


def auth_headers(user: User) -> dict:
     token = jwt.encode({"id": user.id}, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
     return {"Authorization": f"Bearer {token}"}


def make_user(db, role: UserRole, email: str, **kwargs) -> User:
     user = User(
          email=email,
          first_name=kwargs.pop("first_name", role.value.title()),
          last_name=kwargs.pop("last_name", "Test"),
          role=role,
          **kwargs,
     )
     db.add(user)
     db.commit()
     return user


@pytest.fixture()
def manager(db):
     return make_user(
          db,
          UserRole.PROPERTY_MANAGER,
          "manager@example.com",
          subscription_status=SubscriptionStatus.ACTIVE,
     )


@pytest.fixture()
def owner(db):
     return make_user(db, UserRole.OWNER, "owner@example.com")


@pytest.fixture()
def tenant(db):
     return make_user(db, UserRole.TENANT, "tenant@example.com")


@pytest.fixture()
def technician(db):
     return make_user(db, UserRole.TECHNICIAN, "tech@example.com")


@pytest.fixture()
def property_(db, manager, owner):
     prop = Property(name="Harbour View", manager_id=manager.id, address="1 Quay St")
     db.add(prop)
     db.flush()
     db.add(PropertyOwner(property_id=prop.id, owner_id=owner.id, start_date=utc_now() - timedelta(days=365)))
     db.commit()
     return prop


@pytest.fixture()
def unit(db, property_, tenant):
     unit = Unit(property_id=property_.id, unit_number="4B")
     db.add(unit)
     db.flush()
     db.add(UnitTenant(unit_id=unit.id, tenant_id=tenant.id, is_active=True))
     db.commit()
     return unit


@pytest.fixture()
def auth():
     return auth_headers


@pytest.fixture()
def user_factory(db):
     def _make(role: UserRole, email: str, **kwargs) -> User:
          return make_user(db, role, email, **kwargs)
     return _make
