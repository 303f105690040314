# tests/test_archiving.py
from datetime import datetime, timedelta

from models import (
     Recommendation,
     RecommendationStatus as RS,
     ServiceRequest,
     ServiceRequestCategory,
     ServiceRequestStatus as SR,
)
from services.archiving_service import (
     archive_rejected_recommendations,
     archive_service_requests,
     run_archiving,
)

NOW = datetime(2026, 10, 18, 12, 0, 0)


def add_request(db, property_, tenant, status, **kwargs):
     request = ServiceRequest(
          property_id=property_.id,
          requested_by_id=tenant.id,
          title="Request",
          description="Details",
          category=ServiceRequestCategory.GENERAL,
          status=status,
          **kwargs,
     )
     db.add(request)
     db.commit()
     return request


def status_of(db, request):
     db.expire_all()
     return db.query(ServiceRequest).filter(ServiceRequest.id == request.id).one().status


def test_grace_periods(db, property_, tenant):
     approved_old = add_request(db, property_, tenant, SR.APPROVED_BY_OWNER, approved_at=NOW - timedelta(hours=25))
     approved_new = add_request(db, property_, tenant, SR.APPROVED, approved_at=NOW - timedelta(hours=23))
     rejected_24h = add_request(db, property_, tenant, SR.REJECTED, rejected_at=NOW - timedelta(hours=24, minutes=30))
     rejected_old = add_request(db, property_, tenant, SR.REJECTED_BY_OWNER, rejected_at=NOW - timedelta(hours=26))
     submitted = add_request(db, property_, tenant, SR.SUBMITTED)

     result = archive_service_requests(db, NOW)
     assert result == {"approved": 1, "rejected": 1, "total": 2}

     assert status_of(db, approved_old) == SR.ARCHIVED
     assert status_of(db, approved_new) == SR.APPROVED
     assert status_of(db, rejected_24h) == SR.REJECTED
     assert status_of(db, rejected_old) == SR.ARCHIVED
     assert status_of(db, submitted) == SR.SUBMITTED


def test_archived_at_is_stamped(db, property_, tenant):
     request = add_request(db, property_, tenant, SR.APPROVED, approved_at=NOW - timedelta(days=3))
     archive_service_requests(db, NOW)
     db.expire_all()
     assert db.query(ServiceRequest).filter(ServiceRequest.id == request.id).one().archived_at == NOW


def test_rejected_recommendations(db, property_, manager):
     old = Recommendation(
          property_id=property_.id,
          created_by_id=manager.id,
          title="Old",
          description="d",
          status=RS.REJECTED,
          rejected_at=NOW - timedelta(hours=30),
     )
     recent = Recommendation(
          property_id=property_.id,
          created_by_id=manager.id,
          title="Recent",
          description="d",
          status=RS.REJECTED,
          rejected_at=NOW - timedelta(hours=2),
     )
     db.add_all([old, recent])
     db.commit()

     assert archive_rejected_recommendations(db, NOW) == 1
     db.expire_all()
     assert db.query(Recommendation).filter(Recommendation.id == old.id).one().status == RS.ARCHIVED
     assert db.query(Recommendation).filter(Recommendation.id == recent.id).one().status == RS.REJECTED


def test_run_archiving(db, session_factory, property_, tenant):
     add_request(db, property_, tenant, SR.REJECTED, rejected_at=NOW - timedelta(days=2))
     assert run_archiving(session_factory, NOW) == {"recommendations": 0, "service_requests": 1}


def test_run_archiving_swallows_errors():
     def broken_factory():
          raise RuntimeError("database unavailable")

     assert run_archiving(broken_factory, NOW) == {"recommendations": 0, "service_requests": 0}
