"""
Supabase collaborators: relational store, image bucket and session verifier.
"""

from .errors import StoreError, DuplicateListing
from .listings import ListingStore
from .storage import ImageBucket
from .auth import SessionVerifier
from .client import create_supabase_client

__all__ = [
    'StoreError',
    'DuplicateListing',
    'ListingStore',
    'ImageBucket',
    'SessionVerifier',
    'create_supabase_client',
]
