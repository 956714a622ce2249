"""Service-role Supabase client, used when track records live in Supabase."""

import logging

from supabase import create_client, Client
from app.config import settings

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_supabase() -> Client:
    """Get or create the shared service-role client."""
    global _client
    if _client is None:
        if not settings.supabase_url or not settings.supabase_service_role_key:
            raise RuntimeError(
                "TRACK_STORE=supabase requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
            )
        logger.info("Connecting to Supabase at %s", settings.supabase_url)
        _client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )
    return _client
