"""
Mise - Supabase Client.

Low-level database access. The stores in this package take a client
explicitly; get_client() provides the process-wide default.
"""

from supabase import Client, create_client

from mise.config import settings

_client: Client | None = None


def get_client() -> Client:
    """
    Get the Supabase client.

    Uses the service role key: the planner reads the shared corpus and
    writes usage records for any requester.
    """
    global _client

    if _client is None:
        if not settings.has_supabase:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
        _client = create_client(
            settings.supabase_url,
            settings.supabase_service_role_key,
        )

    return _client


def reset_client() -> None:
    """Drop the cached client (for tests and process shutdown)."""
    global _client
    _client = None
