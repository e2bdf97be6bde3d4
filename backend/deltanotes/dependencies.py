from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from deltanotes.config import settings
from deltanotes.core.cache import ReadViewCache
from deltanotes.core.repositories.implementations.supabase.note_repository import (
    SupabaseNoteRepository,
)
from deltanotes.core.repositories.implementations.supabase.tag_repository import (
    SupabaseTagRepository,
)
from deltanotes.core.schemas.auth import AuthUser
from deltanotes.core.services.document_converter import DocumentConverter
from deltanotes.core.services.language_detection_service import LanguageDetectionService
from deltanotes.core.services.note_service import NoteService
from deltanotes.core.services.tag_service import TagService
from deltanotes.db.base import create_request_supabase_client
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)

# Use auto_error=False to handle missing tokens gracefully
http_bearer = HTTPBearer(auto_error=False)

if TYPE_CHECKING:
    from supabase import Client

    from deltanotes.core.repositories.note_repository import NoteRepository
    from deltanotes.core.repositories.tag_repository import TagRepository


async def _run_blocking(func):
    """Run blocking functions in a thread pool."""
    import asyncio
    return await asyncio.to_thread(func)


def get_request_supabase_client(request: Request) -> Client:
    """Create a request-scoped Supabase client and set PostgREST bearer.

    Extracts the Authorization: Bearer <jwt> header if present and configures
    PostgREST to enforce RLS for the user.
    """
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    jwt: str | None = None
    if auth_header and auth_header.lower().startswith("bearer "):
        jwt = auth_header.split(" ", 1)[1].strip()
    return create_request_supabase_client(jwt)


@lru_cache(maxsize=1)
def get_language_detection_service() -> LanguageDetectionService:
    """Process-wide detector; profiles are loaded once."""
    return LanguageDetectionService()


@lru_cache(maxsize=1)
def get_document_converter() -> DocumentConverter:
    return DocumentConverter()


def get_note_repository(client: Client = Depends(get_request_supabase_client)) -> NoteRepository:
    """Get a request-scoped note repository instance using request client."""
    return SupabaseNoteRepository(client)


def get_tag_repository(client: Client = Depends(get_request_supabase_client)) -> TagRepository:
    """Get a request-scoped tag repository instance using request client."""
    return SupabaseTagRepository(client)


def get_note_service(
    repo: NoteRepository = Depends(get_note_repository),
    language_detection: LanguageDetectionService = Depends(get_language_detection_service),
    converter: DocumentConverter = Depends(get_document_converter),
) -> NoteService:
    """Get a request-scoped note service instance."""
    return NoteService(repo, language_detection, converter)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
    client: Client = Depends(get_request_supabase_client),
) -> AuthUser:
    """Validate JWT via Supabase and return authenticated user."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    jwt = credentials.credentials
    if not jwt or len(jwt.split(".")) != 3:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token format",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        resp = await _run_blocking(lambda: client.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
            }
        )
        detail = "Token is invalid or expired" if ("invalid" in error_msg or "expired" in error_msg) else "Authentication failed"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        ) from err
    user = getattr(resp, "user", None)
    user_id = getattr(user, "id", None)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user data",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthUser(
        id=str(user_id),
        email=getattr(user, "email", None) or "",
        role=getattr(user, "role", None),
    )


def get_tag_service(
    repo: TagRepository = Depends(get_tag_repository),
    current_user: AuthUser = Depends(get_current_user),
) -> TagService:
    """Get a tag service scoped to the authenticated user."""
    return TagService(repo, user_id=current_user.id)


@lru_cache(maxsize=settings.read_view_cache_users)
def read_view_cache_for_user(user_id: str) -> ReadViewCache:
    """Per-user read-view cache; least recently seen users are dropped first."""
    return ReadViewCache(max_entries=settings.read_view_cache_max_entries)


def get_read_view_cache(current_user: AuthUser = Depends(get_current_user)) -> ReadViewCache:
    """Return the authenticated user's read-view cache."""
    return read_view_cache_for_user(current_user.id)
