"""
Supabase Storage bucket for listing images.
"""

from supabase import Client

from sneakin.database.errors import StoreError


class ImageBucket:
    """Upload-by-path with overwrite, plus public URL resolution."""

    def __init__(self, supabase: Client, bucket_name: str = 'product-images'):
        self.supabase = supabase
        self.bucket_name = bucket_name

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """
        Upload bytes to `path` (overwriting any existing object) and return its public URL.

        Raises:
            StoreError: If the upload is rejected
        """
        bucket = self.supabase.storage.from_(self.bucket_name)
        try:
            bucket.upload(path, content, {"content-type": content_type, "upsert": "true"})
        except Exception as e:
            raise StoreError(f"Upload failed for {path}: {e}") from e

        return bucket.get_public_url(path)
