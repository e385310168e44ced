"""
Supabase client construction.
"""

from typing import Union

from supabase import Client, create_client

from sneakin.config import ImportConfig, PriceUpdateConfig


def create_supabase_client(config: Union[ImportConfig, PriceUpdateConfig]) -> Client:
    """
    Create a service-role Supabase client.

    Raises:
        ValueError: If the config has no URL or key
    """
    if not config.supabase_url or not config.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment")

    return create_client(config.supabase_url, config.supabase_key)
