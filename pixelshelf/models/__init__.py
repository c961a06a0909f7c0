"""ORM models; importing this package registers every table on ``Base.metadata``."""

from pixelshelf.models.user import SubscriptionTier, Subscription, User
from pixelshelf.models.follow import Follow
from pixelshelf.models.content import Asset, Comment, FileType, Like, Project
from pixelshelf.models.notification import Notification, NotificationPreferences, NotificationType
from pixelshelf.models.chat import Chat, Message, UserChat

__all__ = [
    "Asset",
    "Chat",
    "Comment",
    "FileType",
    "Follow",
    "Like",
    "Message",
    "Notification",
    "NotificationPreferences",
    "NotificationType",
    "Project",
    "Subscription",
    "SubscriptionTier",
    "User",
    "UserChat",
]
