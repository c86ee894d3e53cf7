"""
FittedIn Backend — ORM Models
==============================

Importing this package registers every table with `Base.metadata`.
"""

from fittedin.models.user import User
from fittedin.models.profile import Profile, FitnessLevel
from fittedin.models.connection import Connection, ConnectionStatus
from fittedin.models.notification import Notification, NotificationType
from fittedin.models.goal import Goal, GoalCategory, GoalPriority, GoalStatus
from fittedin.models.post import Post, PostComment, PostLike
from fittedin.models.activity import Activity, ActivityEntity, ActivityType

__all__ = [
    "User",
    "Profile",
    "FitnessLevel",
    "Connection",
    "ConnectionStatus",
    "Notification",
    "NotificationType",
    "Goal",
    "GoalCategory",
    "GoalPriority",
    "GoalStatus",
    "Post",
    "PostComment",
    "PostLike",
    "Activity",
    "ActivityEntity",
    "ActivityType",
]
