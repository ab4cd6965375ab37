"""User feature dependencies for FastAPI."""

from fastapi import Depends

from streamify.database.credential_store import CredentialStore
from streamify.features.auth.dependencies import get_credential_store, get_session_manager
from streamify.features.auth.sessions import SessionManager

from .service import UserService


def get_user_service(
    store: CredentialStore = Depends(get_credential_store),
    sessions: SessionManager = Depends(get_session_manager),
) -> UserService:
    return UserService(store, sessions)
