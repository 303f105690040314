# tests/test_notifications.py
from models import Notification, NotificationType
from services import notification_service
from services.notification_service import notify_safely, send_notification
from utils import email as email_utils


def add_notification(db, user, title="Hello"):
     notification = Notification(
          user_id=user.id,
          type=NotificationType.SYSTEM,
          title=title,
          message="Body",
     )
     db.add(notification)
     db.commit()
     return notification


def test_list_and_mark_read(client, auth, db, tenant, manager):
     first = add_notification(db, tenant, "One")
     add_notification(db, tenant, "Two")
     add_notification(db, manager, "Not yours")

     body = client.get("/api/notifications", headers=auth(tenant)).json()
     assert len(body["items"]) == 2
     assert body["unread"] == 2

     response = client.patch(f"/api/notifications/{first.id}/read", headers=auth(tenant))
     assert response.status_code == 200
     assert response.json()["is_read"] is True

     body = client.get("/api/notifications?unread_only=true", headers=auth(tenant)).json()
     assert [n["title"] for n in body["items"]] == ["Two"]


def test_cannot_read_someone_elses_notification(client, auth, db, tenant, manager):
     other = add_notification(db, manager)
     response = client.patch(f"/api/notifications/{other.id}/read", headers=auth(tenant))
     assert response.status_code == 404


def test_mark_all_read(client, auth, db, tenant):
     add_notification(db, tenant)
     add_notification(db, tenant)
     response = client.patch("/api/notifications/read-all", headers=auth(tenant))
     assert response.json() == {"success": True, "updated": 2}


def test_email_failure_keeps_in_app_notification(db, tenant, monkeypatch):
     monkeypatch.setattr(email_utils, "email_enabled", lambda: True)

     def refuse(*args, **kwargs):
          raise Exception("Brevo error: 401")

     monkeypatch.setattr(email_utils, "send_email", refuse)
     notification = send_notification(db, tenant.id, NotificationType.SYSTEM, "Title", "Message")
     db.commit()
     assert notification.id is not None
     db.expire_all()
     assert db.query(Notification).count() == 1


def test_notify_safely_rolls_back_and_reports(db, tenant):
     def failing(session, user_id):
          send_notification(session, user_id, NotificationType.SYSTEM, "Title", "Message")
          raise RuntimeError("downstream failure")

     assert notify_safely(db, failing, tenant.id) is False
     db.expire_all()
     assert db.query(Notification).count() == 0
     assert notify_safely(db, notification_service.send_notification, tenant.id, NotificationType.SYSTEM, "T", "M") is True
     assert db.query(Notification).count() == 1
