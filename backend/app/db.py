"""
Storage client configuration.
Uses Supabase Storage as the object store for form submissions.
"""

import os
from functools import lru_cache

from supabase import create_client, Client
from dotenv import load_dotenv

load_dotenv()


@lru_cache(maxsize=1)
def get_supabase_admin() -> Client:
    """
    Return the process-wide Supabase admin client.

    Created on first use and cached, so credentials are loaded once per process.
    The service key is required: submissions are written with service-level
    access (bypasses RLS).

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SERVICE_KEY is not set
    """
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_service_key = os.getenv("SUPABASE_SERVICE_KEY")

    if not supabase_url or not supabase_service_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment variables")

    return create_client(supabase_url, supabase_service_key)
