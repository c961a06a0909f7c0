# pixelshelf/schemas/notification.py
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field

from pixelshelf.models.notification import NotificationType
from pixelshelf.schemas.common import CamelModel, Pagination, SuccessOut
from pixelshelf.schemas.user import UserSummary


class NotificationOut(CamelModel):
    id: str
    type: NotificationType
    content: str
    link_url: Optional[str] = None
    read: bool
    archived: bool = False
    receiver_id: str
    sender_id: Optional[str] = None
    created_at: datetime
    sender: Optional[UserSummary] = None


class NotificationsPage(CamelModel):
    notifications: List[NotificationOut]
    unread_count: int
    pagination: Pagination


class MarkReadIn(CamelModel):
    ids: Optional[List[str]] = None
    all: bool = False


class NotificationIdsIn(CamelModel):
    ids: List[str] = Field(..., min_length=1)


class UpdatedOut(SuccessOut):
    count: int


class NotificationStats(CamelModel):
    total: int
    unread: int
    by_type: Dict[str, int]


# ─────────────────────────────── preferences ───────────────────────────────
class TypeToggles(CamelModel):
    follow: bool = True
    like: bool = True
    comment: bool = True
    message: bool = True
    system: bool = True


class EmailPreferences(CamelModel):
    enabled: bool = True
    frequency: Literal["instant", "daily", "weekly"] = "instant"
    types: TypeToggles = Field(default_factory=TypeToggles)


class PushPreferences(CamelModel):
    enabled: bool = True
    types: TypeToggles = Field(default_factory=TypeToggles)


class InAppPreferences(CamelModel):
    enabled: bool = True
    sound: bool = False
    desktop: bool = True


class NotificationPreferencesIn(CamelModel):
    email: EmailPreferences
    push: PushPreferences
    in_app: InAppPreferences


class NotificationPreferencesOut(CamelModel):
    email: EmailPreferences = Field(default_factory=EmailPreferences)
    push: PushPreferences = Field(default_factory=PushPreferences)
    in_app: InAppPreferences = Field(default_factory=InAppPreferences)
