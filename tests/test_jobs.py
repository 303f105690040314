# tests/test_jobs.py
from decimal import Decimal

import pytest

from models import (
     Job,
     JobStatus,
     Notification,
     ServiceRequest,
     ServiceRequestCategory,
     ServiceRequestStatus,
     UserRole,
)


def make_job(db, property_, status=JobStatus.OPEN, **kwargs) -> Job:
     job = Job(title=kwargs.pop("title", "Clear drains"), property_id=property_.id, status=status, **kwargs)
     db.add(job)
     db.commit()
     return job


def test_manager_creates_job(client, auth, manager, technician, property_):
     response = client.post(
          "/api/jobs",
          json={"property_id": property_.id, "title": "Service lift", "assigned_to_id": technician.id},
          headers=auth(manager),
     )
     assert response.status_code == 201
     assert response.json()["status"] == "ASSIGNED"
     assert response.json()["created_by_id"] == manager.id


def test_technician_cannot_create_job(client, auth, technician, property_):
     response = client.post("/api/jobs", json={"property_id": property_.id, "title": "x"}, headers=auth(technician))
     assert response.status_code == 403
     assert response.json()["code"] == "ACC_ROLE_REQUIRED"


def test_full_lifecycle(client, auth, db, manager, technician, property_):
     job = make_job(db, property_)

     response = client.patch(
          f"/api/jobs/{job.id}/status",
          json={"status": "ASSIGNED", "assigned_to_id": technician.id},
          headers=auth(manager),
     )
     assert response.status_code == 200
     assert response.json()["assigned_to_id"] == technician.id

     response = client.patch(f"/api/jobs/{job.id}/status", json={"status": "IN_PROGRESS"}, headers=auth(technician))
     assert response.status_code == 200

     response = client.patch(
          f"/api/jobs/{job.id}/status",
          json={"status": "COMPLETED", "actual_cost": 175.5},
          headers=auth(technician),
     )
     assert response.status_code == 200
     body = response.json()
     assert body["status"] == "COMPLETED"
     assert body["completed_date"] is not None
     assert Decimal(str(body["actual_cost"])) == Decimal("175.50")

     db.expire_all()
     assert db.query(Notification).filter(Notification.user_id == technician.id).count() == 1
     assert db.query(Notification).filter(Notification.user_id == manager.id).count() == 2


@pytest.mark.parametrize("current,target", [
     (JobStatus.OPEN, JobStatus.COMPLETED),
     (JobStatus.OPEN, JobStatus.IN_PROGRESS),
     (JobStatus.COMPLETED, JobStatus.OPEN),
     (JobStatus.CANCELLED, JobStatus.ASSIGNED),
])
def test_invalid_job_transition(client, auth, db, manager, property_, current, target):
     job = make_job(db, property_, status=current)
     response = client.patch(f"/api/jobs/{job.id}/status", json={"status": target.value}, headers=auth(manager))
     assert response.status_code == 400
     assert response.json()["code"] == "BIZ_INVALID_STATUS_TRANSITION"


def test_assigned_requires_assignee(client, auth, db, manager, property_):
     job = make_job(db, property_)
     response = client.patch(f"/api/jobs/{job.id}/status", json={"status": "ASSIGNED"}, headers=auth(manager))
     assert response.status_code == 400


def test_unassigned_technician_cannot_update(client, auth, db, technician, property_):
     job = make_job(db, property_, status=JobStatus.ASSIGNED)
     response = client.patch(f"/api/jobs/{job.id}/status", json={"status": "IN_PROGRESS"}, headers=auth(technician))
     assert response.status_code == 403


def test_owner_reads_but_cannot_update(client, auth, db, owner, property_):
     job = make_job(db, property_)
     assert client.get(f"/api/jobs/{job.id}", headers=auth(owner)).status_code == 200
     response = client.patch(f"/api/jobs/{job.id}/status", json={"status": "CANCELLED"}, headers=auth(owner))
     assert response.status_code == 403


def test_completing_job_completes_service_request(client, auth, db, manager, tenant, property_):
     request = ServiceRequest(
          property_id=property_.id,
          requested_by_id=tenant.id,
          title="Fix heater",
          description="No heat",
          category=ServiceRequestCategory.HVAC,
          status=ServiceRequestStatus.CONVERTED_TO_JOB,
     )
     db.add(request)
     db.commit()
     job = make_job(db, property_, status=JobStatus.IN_PROGRESS, service_request_id=request.id)

     response = client.patch(f"/api/jobs/{job.id}/status", json={"status": "COMPLETED"}, headers=auth(manager))
     assert response.status_code == 200
     db.expire_all()
     assert db.query(ServiceRequest).filter(ServiceRequest.id == request.id).one().status == ServiceRequestStatus.COMPLETED


def test_list_scoping(client, auth, db, manager, technician, property_, user_factory):
     make_job(db, property_, assigned_to_id=technician.id, status=JobStatus.ASSIGNED)
     make_job(db, property_, title="Other")
     other_manager = user_factory(UserRole.PROPERTY_MANAGER, "pm2@example.com")

     assert client.get("/api/jobs", headers=auth(manager)).json()["total"] == 2
     assert client.get("/api/jobs", headers=auth(technician)).json()["total"] == 1
     assert client.get("/api/jobs", headers=auth(other_manager)).json()["total"] == 0
