"""Models package — import all models so metadata.create_all can discover them."""

from gclub.models.role import Role, Permission, role_permissions
from gclub.models.user import UserProfile
from gclub.models.game_post import (
    GamePost, GameParticipant, WaitingParticipant, GamePostStatus, WaitingStatus,
)
from gclub.models.comment import GameComment
from gclub.models.channel import Channel
from gclub.models.notification import Notification, NotificationReceipt
from gclub.models.push_subscription import PushSubscription
from gclub.models.notice import Notice
from gclub.models.audit_log import AuditLog

__all__ = [
    "Role", "Permission", "role_permissions", "UserProfile",
    "GamePost", "GameParticipant", "WaitingParticipant",
    "GamePostStatus", "WaitingStatus", "GameComment", "Channel",
    "Notification", "NotificationReceipt", "PushSubscription",
    "Notice", "AuditLog",
]
