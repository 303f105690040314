# schemas/notification.py
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from models.enums import NotificationType


class NotificationResponse(BaseModel):
     id: str
     type: NotificationType
     title: str
     message: str
     entity_type: Optional[str] = None
     entity_id: Optional[str] = None
     is_read: bool
     read_at: Optional[datetime] = None
     created_at: datetime

     model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
     items: List[NotificationResponse]
     unread: int
