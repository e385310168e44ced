"""
Bearer token verification against Supabase Auth.
"""

from typing import Optional

from supabase import Client


class SessionVerifier:
    """Resolves a session token to a stable user id."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def verify(self, token: str) -> Optional[str]:
        """Return the user id for a valid token, None for a missing or invalid one."""
        if not token:
            return None

        try:
            response = self.supabase.auth.get_user(token)
        except Exception:
            # supabase-auth raises on expired or forged tokens
            return None

        user = getattr(response, 'user', None)
        return getattr(user, 'id', None) if user else None
