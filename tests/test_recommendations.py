# tests/test_recommendations.py
from datetime import timedelta
from decimal import Decimal

from models import (
     Inspection,
     Job,
     Notification,
     PropertyOwner,
     Recommendation,
     RecommendationStatus as RS,
     Report,
     UserRole,
)
from utils.clock import utc_now


def make_recommendation(db, property_, manager, status=RS.SUBMITTED, **kwargs) -> Recommendation:
     recommendation = Recommendation(
          property_id=property_.id,
          created_by_id=manager.id,
          title=kwargs.pop("title", "Replace boiler"),
          description=kwargs.pop("description", "Boiler is past service life"),
          status=status,
          **kwargs,
     )
     db.add(recommendation)
     db.commit()
     return recommendation


def test_create_without_report(client, auth, db, manager, owner, property_):
     response = client.post(
          "/api/recommendations",
          json={
               "property_id": property_.id,
               "title": "Seal car park",
               "description": "Surface is cracking",
               "estimated_cost": 4200,
          },
          headers=auth(manager),
     )
     assert response.status_code == 201
     body = response.json()
     assert body["report_id"] is None
     assert body["status"] == "SUBMITTED"
     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == owner.id).count() == 1


def test_create_links_latest_report(client, auth, db, manager, property_):
     inspection = Inspection(title="Annual", property_id=property_.id)
     db.add(inspection)
     db.flush()
     older = Report(title="2025", inspection_id=inspection.id, created_at=utc_now() - timedelta(days=300))
     newer = Report(title="2026", inspection_id=inspection.id, created_at=utc_now())
     db.add_all([older, newer])
     db.commit()

     response = client.post(
          "/api/recommendations",
          json={"property_id": property_.id, "title": "Repoint brickwork", "description": "Mortar loss"},
          headers=auth(manager),
     )
     assert response.status_code == 201
     assert response.json()["report_id"] == newer.id


def test_create_requires_title_and_description(client, auth, manager, property_):
     response = client.post(
          "/api/recommendations",
          json={"property_id": property_.id, "title": "  "},
          headers=auth(manager),
     )
     assert response.status_code == 400
     assert response.json()["code"] == "VAL_MISSING_FIELD"


def test_only_managers_create(client, auth, owner, property_):
     response = client.post(
          "/api/recommendations",
          json={"property_id": property_.id, "title": "x", "description": "y"},
          headers=auth(owner),
     )
     assert response.status_code == 403


def test_owner_approves(client, auth, db, manager, owner, property_):
     recommendation = make_recommendation(db, property_, manager)
     response = client.post(f"/api/recommendations/{recommendation.id}/approve", headers=auth(owner))
     assert response.status_code == 200
     assert response.json()["status"] == "APPROVED"
     assert response.json()["approved_by_id"] == owner.id
     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == manager.id).count() == 1


def test_manager_cannot_approve_when_owners_exist(client, auth, db, manager, property_):
     recommendation = make_recommendation(db, property_, manager)
     response = client.post(f"/api/recommendations/{recommendation.id}/approve", headers=auth(manager))
     assert response.status_code == 403


def test_manager_approves_when_no_active_owner(client, auth, db, manager, owner, property_):
     ownership = db.query(PropertyOwner).filter(PropertyOwner.owner_id == owner.id).one()
     ownership.end_date = utc_now() - timedelta(days=1)
     db.commit()
     recommendation = make_recommendation(db, property_, manager)

     response = client.post(f"/api/recommendations/{recommendation.id}/approve", headers=auth(manager))
     assert response.status_code == 200
     assert response.json()["status"] == "APPROVED"


def test_approve_twice_is_invalid_transition(client, auth, db, manager, owner, property_):
     recommendation = make_recommendation(db, property_, manager, status=RS.APPROVED)
     response = client.post(f"/api/recommendations/{recommendation.id}/approve", headers=auth(owner))
     assert response.status_code == 400
     assert response.json()["code"] == "BIZ_INVALID_STATUS_TRANSITION"


def test_reject_then_respond_reopens(client, auth, db, manager, owner, property_):
     recommendation = make_recommendation(db, property_, manager)

     response = client.post(
          f"/api/recommendations/{recommendation.id}/reject",
          json={"reason": "Not this year"},
          headers=auth(owner),
     )
     assert response.status_code == 200
     assert response.json()["status"] == "REJECTED"
     assert response.json()["rejection_reason"] == "Not this year"

     response = client.post(
          f"/api/recommendations/{recommendation.id}/respond",
          json={"response": "Insurance requires it before renewal"},
          headers=auth(manager),
     )
     assert response.status_code == 200
     body = response.json()
     assert body["status"] == "SUBMITTED"
     assert body["manager_response"] == "Insurance requires it before renewal"
     assert body["rejected_at"] is None


def test_respond_requires_rejected(client, auth, db, manager, property_):
     recommendation = make_recommendation(db, property_, manager)
     response = client.post(
          f"/api/recommendations/{recommendation.id}/respond",
          json={"response": "Please reconsider"},
          headers=auth(manager),
     )
     assert response.status_code == 400


def test_reject_requires_reason(client, auth, db, manager, owner, property_):
     recommendation = make_recommendation(db, property_, manager)
     response = client.post(f"/api/recommendations/{recommendation.id}/reject", json={}, headers=auth(owner))
     assert response.status_code == 400
     assert response.json()["code"] == "VAL_MISSING_FIELD"


def test_convert_approved_to_job(client, auth, db, manager, technician, property_):
     recommendation = make_recommendation(db, property_, manager, status=RS.APPROVED)
     response = client.post(
          f"/api/recommendations/{recommendation.id}/convert",
          json={"assigned_to_id": technician.id},
          headers=auth(manager),
     )
     assert response.status_code == 200
     body = response.json()
     assert body["recommendation"]["status"] == "IMPLEMENTED"
     assert body["job"]["status"] == "ASSIGNED"
     db.expire_all()
     assert db.query(Job).count() == 1


def test_convert_uses_supplied_estimated_cost(client, auth, db, manager, property_):
     recommendation = make_recommendation(db, property_, manager, status=RS.APPROVED, estimated_cost=Decimal("900.00"))
     response = client.post(
          f"/api/recommendations/{recommendation.id}/convert",
          json={"estimated_cost": 1250.5},
          headers=auth(manager),
     )
     assert response.status_code == 200
     assert Decimal(str(response.json()["job"]["estimated_cost"])) == Decimal("1250.50")


def test_convert_falls_back_to_recommendation_cost(client, auth, db, manager, property_):
     recommendation = make_recommendation(db, property_, manager, status=RS.APPROVED, estimated_cost=Decimal("900.00"))
     response = client.post(f"/api/recommendations/{recommendation.id}/convert", json={}, headers=auth(manager))
     assert response.status_code == 200
     assert Decimal(str(response.json()["job"]["estimated_cost"])) == Decimal("900.00")


def test_convert_requires_approved(client, auth, db, manager, property_):
     recommendation = make_recommendation(db, property_, manager)
     response = client.post(f"/api/recommendations/{recommendation.id}/convert", headers=auth(manager))
     assert response.status_code == 400
     db.expire_all()
     assert db.query(Job).count() == 0


def test_archived_recommendation_is_read_only(client, auth, db, manager, owner, property_):
     recommendation = make_recommendation(db, property_, manager, status=RS.ARCHIVED)
     response = client.post(f"/api/recommendations/{recommendation.id}/approve", headers=auth(owner))
     assert response.status_code == 403


def test_get_scoping(client, auth, db, manager, property_, user_factory):
     recommendation = make_recommendation(db, property_, manager)
     outsider = user_factory(UserRole.OWNER, "outsider@example.com")

     assert client.get(f"/api/recommendations/{recommendation.id}", headers=auth(manager)).status_code == 200
     assert client.get(f"/api/recommendations/{recommendation.id}", headers=auth(outsider)).status_code == 403
     assert client.get("/api/recommendations/missing", headers=auth(manager)).status_code == 404


def test_technician_sees_recommendations_for_assigned_inspection(client, auth, db, manager, technician, property_):
     inspection = Inspection(title="Fire safety", property_id=property_.id, assigned_to_id=technician.id)
     db.add(inspection)
     db.flush()
     report = Report(title="Fire safety report", inspection_id=inspection.id)
     db.add(report)
     db.commit()
     make_recommendation(db, property_, manager, report_id=report.id)

     body = client.get("/api/recommendations", headers=auth(technician)).json()
     assert body["total"] == 1
