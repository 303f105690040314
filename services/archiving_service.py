# services/archiving_service.py
"""
Archiving jobs - move settled service requests and rejected recommendations
to ARCHIVED once they have been visible for a grace period.

- Recommendations REJECTED more than 24h ago.
- Service requests APPROVED / APPROVED_BY_OWNER more than 24h ago.
- Service requests REJECTED / REJECTED_BY_OWNER more than 25h ago.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from database import SessionLocal, get_session_context
from models import Recommendation, RecommendationStatus, ServiceRequest, ServiceRequestStatus
from utils.clock import utc_now

logger = logging.getLogger(__name__)

RECOMMENDATION_REJECTED_GRACE = timedelta(hours=24)
REQUEST_APPROVED_GRACE = timedelta(hours=24)
REQUEST_REJECTED_GRACE = timedelta(hours=25)


def archive_rejected_recommendations(db: Session, now: Optional[datetime] = None) -> int:
     now = now or utc_now()
     count = (
          db.query(Recommendation)
          .filter(
               Recommendation.status == RecommendationStatus.REJECTED,
               Recommendation.rejected_at.isnot(None),
               Recommendation.rejected_at <= now - RECOMMENDATION_REJECTED_GRACE,
          )
          .update({Recommendation.status: RecommendationStatus.ARCHIVED}, synchronize_session=False)
     )
     db.commit()
     if count:
          logger.info("Archived %d rejected recommendation(s)", count)
     return count


def archive_service_requests(db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
     """
     Returns:
          {"approved": n, "rejected": m, "total": n + m}
     """
     now = now or utc_now()
     approved = (
          db.query(ServiceRequest)
          .filter(
               ServiceRequest.status.in_([ServiceRequestStatus.APPROVED, ServiceRequestStatus.APPROVED_BY_OWNER]),
               ServiceRequest.approved_at.isnot(None),
               ServiceRequest.approved_at <= now - REQUEST_APPROVED_GRACE,
          )
          .update(
               {ServiceRequest.status: ServiceRequestStatus.ARCHIVED, ServiceRequest.archived_at: now},
               synchronize_session=False,
          )
     )
     rejected = (
          db.query(ServiceRequest)
          .filter(
               ServiceRequest.status.in_([ServiceRequestStatus.REJECTED, ServiceRequestStatus.REJECTED_BY_OWNER]),
               ServiceRequest.rejected_at.isnot(None),
               ServiceRequest.rejected_at <= now - REQUEST_REJECTED_GRACE,
          )
          .update(
               {ServiceRequest.status: ServiceRequestStatus.ARCHIVED, ServiceRequest.archived_at: now},
               synchronize_session=False,
          )
     )
     db.commit()
     result = {"approved": approved, "rejected": rejected, "total": approved + rejected}
     if result["total"]:
          logger.info("Archived service requests: %s", result)
     return result


def run_archiving(session_factory: Optional[Callable[[], Session]] = None, now: Optional[datetime] = None) -> Dict[str, int]:
     """Hourly tick; failures are logged, never raised."""
     factory = session_factory or SessionLocal
     result = {"recommendations": 0, "service_requests": 0}
     try:
          with get_session_context(factory) as db:
               result["recommendations"] = archive_rejected_recommendations(db, now)
               result["service_requests"] = archive_service_requests(db, now)["total"]
     except Exception:
          logger.exception("Archiving run failed")
     return result
