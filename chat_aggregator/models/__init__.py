# Chat Aggregator Models
from chat_aggregator.models.revoked_token import RevokedToken
from chat_aggregator.models.session import Session
from chat_aggregator.models.user import USER_ROLES, User

__all__ = [
    "RevokedToken",
    "Session",
    "User",
    "USER_ROLES",
]
