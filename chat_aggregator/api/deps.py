"""FastAPI dependency providers shared by the route families."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from chat_aggregator.core import get_db
from chat_aggregator.services.auth import AuthService
from chat_aggregator.services.passwords import get_password_hasher
from chat_aggregator.services.sessions import build_session_manager
from chat_aggregator.services.sources import SourceRegistry
from chat_aggregator.services.store import CredentialStore
from chat_aggregator.services.tokens import build_jwt_service


def get_credential_store(db: AsyncSession = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_auth_service(store: CredentialStore = Depends(get_credential_store)) -> AuthService:
    """Dependency to get the auth service for the current request's DB session."""
    return AuthService(
        store=store,
        sessions=build_session_manager(store),
        tokens=build_jwt_service(store),
        hasher=get_password_hasher(),
    )


def get_source_registry(request: Request) -> SourceRegistry:
    return request.app.state.sources
