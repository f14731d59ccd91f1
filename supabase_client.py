from supabase import Client, create_client

from config import SUPABASE_KEY, SUPABASE_URL


def get_supabase(url: str = SUPABASE_URL, key: str = SUPABASE_KEY) -> Client:
    """Create the hosted-backend client from the SUPABASE_* settings."""
    if not url or not key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set for the supabase backend")

    # Ensure storage endpoint has trailing slash to satisfy SDK expectations
    if not url.endswith("/"):
        url = f"{url}/"

    return create_client(url, key)
