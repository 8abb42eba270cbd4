# Chat Aggregator Services
from chat_aggregator.services.auth import AuthService, JWTLogin, PublicUser, SessionLogin, TokenPair
from chat_aggregator.services.errors import (
    AuthCoreError,
    AuthError,
    ConflictError,
    InvalidTokenError,
    ValidationError,
)
from chat_aggregator.services.passwords import PasswordHasher, get_password_hasher
from chat_aggregator.services.sessions import SessionHandle, SessionManager
from chat_aggregator.services.sources import ChatSource, SourceRegistry, SyncResult
from chat_aggregator.services.store import CredentialStore
from chat_aggregator.services.sweeper import CredentialSweeper
from chat_aggregator.services.tokens import JWTService

__all__ = [
    "AuthCoreError",
    "AuthError",
    "AuthService",
    "ChatSource",
    "ConflictError",
    "CredentialStore",
    "CredentialSweeper",
    "InvalidTokenError",
    "JWTLogin",
    "JWTService",
    "PasswordHasher",
    "PublicUser",
    "SessionHandle",
    "SessionLogin",
    "SessionManager",
    "SourceRegistry",
    "SyncResult",
    "TokenPair",
    "ValidationError",
    "get_password_hasher",
]
