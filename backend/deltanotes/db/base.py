from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from deltanotes.config import settings
from deltanotes.utils.logging import get_logger

logger = get_logger(__name__)


def _client_options() -> ClientOptions:
    # Server-side clients never hold a refreshable session of their own
    return ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
        postgrest_client_timeout=settings.supabase_timeout_seconds,
    )


def _require(**values: str) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise RuntimeError(f"Supabase is not configured: missing {', '.join(missing)}")


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Cached service-role client.

    Only the readiness probe uses it; note and tag traffic goes through a
    request-scoped client so that row-level security applies.
    """
    logger.debug("Initializing Supabase admin client")
    _require(supabase_url=settings.supabase_url, supabase_service_role_key=settings.supabase_service_role_key)
    return create_client(settings.supabase_url, settings.supabase_service_role_key, options=_client_options())


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Create a request-scoped client on the anon key.

    With a user JWT the PostgREST bearer is replaced so every table and RPC
    call in the request runs under that user's RLS policies.
    """
    logger.debug("Creating request-scoped Supabase client")
    _require(supabase_url=settings.supabase_url, supabase_anon_key=settings.supabase_anon_key)
    client = create_client(settings.supabase_url, settings.supabase_anon_key, options=_client_options())
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client
