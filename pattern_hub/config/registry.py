"""
Storage Configuration

Supabase credentials for the pattern registry.
"""

import os


def get_supabase_url() -> str:
    """Get the Supabase URL from environment.

    Raises ValueError if not set.
    """
    url = os.environ.get("SUPABASE_URL")
    if not url:
        raise ValueError(
            "SUPABASE_URL environment variable is required. "
            "Please set it to your Supabase project URL (e.g., https://your-project.supabase.co)"
        )
    return url


def get_supabase_key() -> str:
    """Get the Supabase service key.

    The API writes items, votes and sessions, so the secret key is required.
    """
    key = os.environ.get("SUPABASE_SECRET_KEY")
    if not key:
        raise ValueError(
            "SUPABASE_SECRET_KEY environment variable is required. "
            "You can find this in your Supabase project settings."
        )
    return key
