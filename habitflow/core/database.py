"""
Database Configuration

Supabase client for REST API access (already pooled via PostgREST).

The service-role key bypasses row level security. The client is never read
from module globals inside the insight core: it is created here and passed
explicitly to the data-access and persistence collaborators
(SupabaseHabitRepository, SupabaseInsightStore), which are the trusted
context allowed to use it.
"""

from typing import Optional

from supabase import create_client, Client
from habitflow.core.config import settings

_service_client: Optional[Client] = None


def get_service_client() -> Client:
    """
    Get the service-role Supabase client, creating it on first use.

    Callers must already have authenticated the user they act for.
    """
    global _service_client
    if _service_client is None:
        _service_client = create_client(
            settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY
        )
    return _service_client
