# tests/test_service_requests.py
from datetime import timedelta
from decimal import Decimal

import pytest

from models import (
     AuditLog,
     Job,
     JobStatus,
     Notification,
     PropertyOwner,
     ServiceRequest,
     ServiceRequestCategory,
     ServiceRequestStatus as SR,
     SubscriptionStatus,
     UserRole,
)
from services import notification_service
from services.status_transitions import SERVICE_REQUEST_TRANSITIONS
from utils.clock import utc_now


def make_request(db, property_, requester, status=SR.SUBMITTED, **kwargs) -> ServiceRequest:
     request = ServiceRequest(
          property_id=property_.id,
          requested_by_id=requester.id,
          title=kwargs.pop("title", "Leaking tap"),
          description=kwargs.pop("description", "Kitchen tap drips constantly"),
          category=kwargs.pop("category", ServiceRequestCategory.PLUMBING),
          status=status,
          **kwargs,
     )
     db.add(request)
     db.commit()
     return request


def reload(db, request_id) -> ServiceRequest:
     db.expire_all()
     return db.query(ServiceRequest).filter(ServiceRequest.id == request_id).one()


INVALID_PAIRS = [
     (current, target)
     for current in SR
     if current != SR.ARCHIVED
     for target in SR
     if target != current and target not in SERVICE_REQUEST_TRANSITIONS.get(current, frozenset())
]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def test_tenant_creates_request_and_manager_is_notified(client, auth, db, tenant, manager, property_, unit):
     response = client.post(
          "/api/service-requests",
          json={
               "property_id": property_.id,
               "unit_id": unit.id,
               "title": "No hot water",
               "description": "Boiler shows error E4",
               "category": "PLUMBING",
          },
          headers=auth(tenant),
     )
     assert response.status_code == 201
     body = response.json()
     assert body["success"] is True
     assert body["request"]["status"] == "SUBMITTED"
     assert body["request"]["requested_by_id"] == tenant.id

     db.expire_all()
     notes = db.query(Notification).filter(Notification.user_id == manager.id).all()
     assert len(notes) == 1
     assert notes[0].entity_id == body["request"]["id"]
     assert db.query(AuditLog).filter(AuditLog.entity_id == body["request"]["id"]).count() == 1


def test_owner_with_budget_goes_to_manager_review(client, auth, owner, property_):
     response = client.post(
          "/api/service-requests",
          json={
               "property_id": property_.id,
               "title": "Repaint stairwell",
               "description": "Walls are scuffed",
               "category": "GENERAL",
               "owner_estimated_budget": 800,
          },
          headers=auth(owner),
     )
     assert response.status_code == 201
     assert response.json()["request"]["status"] == "PENDING_MANAGER_REVIEW"


def test_tenant_without_tenancy_cannot_create(client, auth, user_factory, property_):
     stranger = user_factory(UserRole.TENANT, "stranger@example.com")
     response = client.post(
          "/api/service-requests",
          json={
               "property_id": property_.id,
               "title": "Noise",
               "description": "Neighbours",
               "category": "OTHER",
          },
          headers=auth(stranger),
     )
     assert response.status_code == 403
     assert response.json()["code"] == "ACC_PROPERTY_ACCESS_DENIED"


def test_manager_cannot_create(client, auth, manager, property_):
     response = client.post(
          "/api/service-requests",
          json={"property_id": property_.id, "title": "x", "description": "y", "category": "OTHER"},
          headers=auth(manager),
     )
     assert response.status_code == 403
     assert response.json()["code"] == "ACC_ROLE_REQUIRED"


def test_create_fails_when_manager_subscription_expired(client, auth, db, tenant, manager, property_, unit):
     manager.subscription_status = SubscriptionStatus.TRIAL
     manager.trial_end_date = utc_now() - timedelta(days=1)
     db.commit()

     response = client.post(
          "/api/service-requests",
          json={
               "property_id": property_.id,
               "unit_id": unit.id,
               "title": "Broken window",
               "description": "Cracked pane",
               "category": "STRUCTURAL",
          },
          headers=auth(tenant),
     )
     assert response.status_code == 403
     assert response.json()["code"] == "SUB_MANAGER_SUBSCRIPTION_REQUIRED"
     db.expire_all()
     assert db.query(ServiceRequest).count() == 0


def test_notification_failure_does_not_undo_create(client, auth, db, tenant, property_, unit, monkeypatch):
     def boom(*args, **kwargs):
          raise RuntimeError("mail relay down")

     monkeypatch.setattr(notification_service, "send_notification", boom)

     response = client.post(
          "/api/service-requests",
          json={
               "property_id": property_.id,
               "unit_id": unit.id,
               "title": "Door sticks",
               "description": "Front door",
               "category": "GENERAL",
          },
          headers=auth(tenant),
     )
     assert response.status_code == 201
     db.expire_all()
     assert db.query(ServiceRequest).count() == 1
     assert db.query(Notification).count() == 0


def test_missing_token_is_401(client, property_):
     response = client.get("/api/service-requests")
     assert response.status_code == 401
     assert response.json()["code"] == "AUTH_NO_TOKEN"


def test_validation_errors_use_envelope(client, auth, tenant):
     response = client.post("/api/service-requests", json={"title": "x"}, headers=auth(tenant))
     assert response.status_code == 400
     body = response.json()
     assert body["code"] == "VAL_VALIDATION_ERROR"
     assert body["details"]


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

def test_list_is_scoped_and_hides_archived(client, auth, db, tenant, owner, manager, property_):
     make_request(db, property_, tenant)
     make_request(db, property_, owner, title="Gutter")
     make_request(db, property_, tenant, status=SR.ARCHIVED, title="Old")

     tenant_view = client.get("/api/service-requests", headers=auth(tenant)).json()
     assert tenant_view["total"] == 1

     manager_view = client.get("/api/service-requests", headers=auth(manager)).json()
     assert manager_view["total"] == 2
     assert all(item["status"] != "ARCHIVED" for item in manager_view["items"])

     archived = client.get("/api/service-requests/archived", headers=auth(manager)).json()
     assert archived["total"] == 1


def test_list_limit_is_clamped(client, auth, db, tenant, manager, property_):
     for i in range(3):
          make_request(db, property_, tenant, title=f"Request {i}")
     body = client.get("/api/service-requests?limit=0", headers=auth(manager)).json()
     assert len(body["items"]) == 1
     assert body["has_more"] is True


def test_technician_cannot_list(client, auth, technician):
     response = client.get("/api/service-requests", headers=auth(technician))
     assert response.status_code == 403


# ---------------------------------------------------------------------------
# PATCH
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("current,target", INVALID_PAIRS)
def test_invalid_transitions_are_rejected(client, auth, db, tenant, manager, property_, current, target):
     request = make_request(db, property_, tenant, status=current)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"status": target.value},
          headers=auth(manager),
     )
     assert response.status_code == 400
     assert response.json()["code"] == "BIZ_INVALID_STATUS_TRANSITION"
     assert reload(db, request.id).status == current


def test_manager_moves_to_under_review_and_tenant_is_notified(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"status": "UNDER_REVIEW", "review_notes": "Booking a plumber"},
          headers=auth(manager),
     )
     assert response.status_code == 200
     assert response.json()["request"]["status"] == "UNDER_REVIEW"
     assert response.json()["request"]["last_reviewed_by_id"] == manager.id

     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == tenant.id).count() == 1


def test_manager_cannot_approve_through_patch(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant, status=SR.UNDER_REVIEW)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"status": "APPROVED"},
          headers=auth(manager),
     )
     assert response.status_code == 403
     assert response.json()["code"] == "BIZ_OPERATION_NOT_ALLOWED"
     assert reload(db, request.id).status == SR.UNDER_REVIEW


def test_same_status_is_a_no_op(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant, status=SR.REJECTED)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"status": "REJECTED"},
          headers=auth(manager),
     )
     assert response.status_code == 200
     assert reload(db, request.id).status == SR.REJECTED


def test_tenant_can_edit_own_submitted_request(client, auth, db, tenant, property_):
     request = make_request(db, property_, tenant)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"title": "Leaking tap in bathroom", "photos": ["https://cdn.example.com/a.jpg"]},
          headers=auth(tenant),
     )
     assert response.status_code == 200
     assert response.json()["request"]["title"] == "Leaking tap in bathroom"
     assert response.json()["request"]["photos"] == ["https://cdn.example.com/a.jpg"]


def test_tenant_cannot_change_status(client, auth, db, tenant, property_):
     request = make_request(db, property_, tenant)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"status": "UNDER_REVIEW"},
          headers=auth(tenant),
     )
     assert response.status_code == 403
     assert "status" in response.json()["message"]


def test_tenant_cannot_edit_after_review_started(client, auth, db, tenant, property_):
     request = make_request(db, property_, tenant, status=SR.UNDER_REVIEW)
     response = client.patch(
          f"/api/service-requests/{request.id}",
          json={"title": "Changed"},
          headers=auth(tenant),
     )
     assert response.status_code == 403
     assert response.json()["code"] == "BIZ_OPERATION_NOT_ALLOWED"


def test_other_tenant_cannot_read(client, auth, db, tenant, user_factory, property_):
     request = make_request(db, property_, tenant)
     other = user_factory(UserRole.TENANT, "other@example.com")
     response = client.get(f"/api/service-requests/{request.id}", headers=auth(other))
     assert response.status_code == 403


def test_unknown_request_is_404(client, auth, manager):
     response = client.get("/api/service-requests/does-not-exist", headers=auth(manager))
     assert response.status_code == 404
     assert response.json()["code"] == "RES_SERVICE_REQUEST_NOT_FOUND"


# ---------------------------------------------------------------------------
# Archived requests are read-only
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("method,suffix,payload,role", [
     ("patch", "", {"priority": "HIGH"}, "manager"),
     ("post", "/estimate", {"manager_estimated_cost": 100}, "manager"),
     ("post", "/approve", {}, "owner"),
     ("post", "/reject", {"reason": "Too expensive"}, "owner"),
     ("post", "/manager-reject", {"reason": "Duplicate"}, "manager"),
     ("post", "/convert-to-job", {}, "manager"),
     ("delete", "", None, "manager"),
])
def test_archived_request_is_read_only(client, auth, db, tenant, manager, owner, property_, method, suffix, payload, role):
     request = make_request(db, property_, tenant, status=SR.ARCHIVED, archived_at=utc_now())
     actor = {"manager": manager, "owner": owner}[role]
     kwargs = {"headers": auth(actor)}
     if payload is not None:
          kwargs["json"] = payload
     response = getattr(client, method)(f"/api/service-requests/{request.id}{suffix}", **kwargs)
     assert response.status_code == 403
     assert reload(db, request.id).status == SR.ARCHIVED


# ---------------------------------------------------------------------------
# Estimate and owner approval
# ---------------------------------------------------------------------------

def test_estimate_then_owner_approve(client, auth, db, tenant, manager, owner, property_):
     request = make_request(db, property_, tenant, status=SR.UNDER_REVIEW)

     response = client.post(
          f"/api/service-requests/{request.id}/estimate",
          json={"manager_estimated_cost": 250, "cost_breakdown_notes": "Parts and labour"},
          headers=auth(manager),
     )
     assert response.status_code == 200
     assert response.json()["request"]["status"] == "PENDING_OWNER_APPROVAL"
     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == owner.id).count() == 1

     response = client.post(f"/api/service-requests/{request.id}/approve", json={}, headers=auth(owner))
     assert response.status_code == 200
     body = response.json()["request"]
     assert body["status"] == "APPROVED_BY_OWNER"
     assert Decimal(str(body["approved_budget"])) == Decimal("250")
     assert body["approved_by_id"] == owner.id
     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == manager.id).count() == 1


def test_estimate_notifies_every_active_owner(client, auth, db, tenant, manager, property_, user_factory):
     second = user_factory(UserRole.OWNER, "second-owner@example.com")
     former = user_factory(UserRole.OWNER, "former-owner@example.com")
     db.add(PropertyOwner(property_id=property_.id, owner_id=second.id))
     db.add(PropertyOwner(property_id=property_.id, owner_id=former.id, end_date=utc_now() - timedelta(days=1)))
     db.commit()
     request = make_request(db, property_, tenant, status=SR.SUBMITTED)

     response = client.post(
          f"/api/service-requests/{request.id}/estimate",
          json={"manager_estimated_cost": 90},
          headers=auth(manager),
     )
     assert response.status_code == 200
     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == second.id).count() == 1
     assert db.query(Notification).filter(Notification.user_id == former.id).count() == 0


def test_estimate_must_be_positive(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant)
     response = client.post(
          f"/api/service-requests/{request.id}/estimate",
          json={"manager_estimated_cost": 0},
          headers=auth(manager),
     )
     assert response.status_code == 400


def test_owner_approve_requires_pending_owner_approval(client, auth, db, tenant, owner, property_):
     request = make_request(db, property_, tenant, status=SR.UNDER_REVIEW)
     response = client.post(f"/api/service-requests/{request.id}/approve", json={}, headers=auth(owner))
     assert response.status_code == 400
     assert response.json()["code"] == "BIZ_INVALID_STATUS_TRANSITION"


def test_former_owner_cannot_approve(client, auth, db, tenant, owner, property_):
     ownership = db.query(PropertyOwner).filter(PropertyOwner.owner_id == owner.id).one()
     ownership.end_date = utc_now() - timedelta(days=1)
     db.commit()
     request = make_request(db, property_, tenant, status=SR.PENDING_OWNER_APPROVAL)
     response = client.post(f"/api/service-requests/{request.id}/approve", json={}, headers=auth(owner))
     assert response.status_code == 403


def test_owner_reject_requires_reason(client, auth, db, tenant, owner, property_):
     request = make_request(db, property_, tenant, status=SR.PENDING_OWNER_APPROVAL)
     response = client.post(f"/api/service-requests/{request.id}/reject", json={}, headers=auth(owner))
     assert response.status_code == 400
     assert response.json()["code"] == "VAL_MISSING_FIELD"

     response = client.post(
          f"/api/service-requests/{request.id}/reject",
          json={"reason": "Get a second quote"},
          headers=auth(owner),
     )
     assert response.status_code == 200
     assert response.json()["request"]["status"] == "REJECTED_BY_OWNER"
     assert response.json()["request"]["rejection_reason"] == "Get a second quote"


def test_manager_approve_is_disabled(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant, status=SR.UNDER_REVIEW)
     response = client.post(f"/api/service-requests/{request.id}/manager-approve", headers=auth(manager))
     assert response.status_code == 403
     assert response.json()["code"] == "BIZ_OPERATION_NOT_ALLOWED"
     assert reload(db, request.id).status == SR.UNDER_REVIEW


def test_manager_reject(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant)
     response = client.post(
          f"/api/service-requests/{request.id}/manager-reject",
          json={"reason": "Tenant responsibility"},
          headers=auth(manager),
     )
     assert response.status_code == 200
     assert response.json()["request"]["status"] == "REJECTED"
     assert response.json()["request"]["rejected_by_id"] == manager.id


# ---------------------------------------------------------------------------
# Convert and delete
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("status", [s for s in SR if s not in (SR.APPROVED_BY_OWNER, SR.ARCHIVED)])
def test_convert_only_from_owner_approved(client, auth, db, tenant, manager, property_, status):
     request = make_request(db, property_, tenant, status=status)
     response = client.post(f"/api/service-requests/{request.id}/convert-to-job", json={}, headers=auth(manager))
     assert response.status_code == 400
     assert response.json()["code"] == "BIZ_INVALID_STATUS_TRANSITION"
     db.expire_all()
     assert db.query(Job).count() == 0


def test_convert_creates_assigned_job(client, auth, db, tenant, manager, technician, property_):
     request = make_request(
          db,
          property_,
          tenant,
          status=SR.APPROVED_BY_OWNER,
          approved_budget=Decimal("300.00"),
          approved_at=utc_now(),
     )
     response = client.post(
          f"/api/service-requests/{request.id}/convert-to-job",
          json={"assigned_to_id": technician.id},
          headers=auth(manager),
     )
     assert response.status_code == 200
     body = response.json()
     assert body["service_request"]["status"] == "CONVERTED_TO_JOB"
     assert body["job"]["status"] == "ASSIGNED"
     assert body["job"]["service_request_id"] == request.id
     assert Decimal(str(body["job"]["estimated_cost"])) == Decimal("300")

     db.expire_all()
     job = db.query(Job).one()
     assert job.assigned_to_id == technician.id
     assert db.query(Notification).filter(Notification.user_id == technician.id).count() == 1


def test_convert_without_assignee_is_open(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant, status=SR.APPROVED_BY_OWNER)
     response = client.post(f"/api/service-requests/{request.id}/convert-to-job", headers=auth(manager))
     assert response.status_code == 200
     assert response.json()["job"]["status"] == JobStatus.OPEN.value


def test_delete_request(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant)
     response = client.delete(f"/api/service-requests/{request.id}", headers=auth(manager))
     assert response.status_code == 204
     db.expire_all()
     assert db.query(ServiceRequest).count() == 0


def test_converted_request_cannot_be_deleted(client, auth, db, tenant, manager, property_):
     request = make_request(db, property_, tenant, status=SR.CONVERTED_TO_JOB)
     response = client.delete(f"/api/service-requests/{request.id}", headers=auth(manager))
     assert response.status_code == 400
