"""User account moderation: actions, credits, warnings and user views."""

from curator.moderation.credits import CreditLedger
from curator.moderation.identity import FirebaseIdentityProvider, IdentityProvider, MemoryIdentityProvider
from curator.moderation.models import Role, UserNotFound, UserRecord
from curator.moderation.moderator import UserModerator
from curator.moderation.user_warnings import WarningService
from curator.moderation.users import UserDirectory

__all__ = [
    "CreditLedger",
    "FirebaseIdentityProvider",
    "IdentityProvider",
    "MemoryIdentityProvider",
    "Role",
    "UserDirectory",
    "UserModerator",
    "UserNotFound",
    "UserRecord",
    "WarningService",
]
