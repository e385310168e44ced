"""
Marketplace tables: admin allow-list, listings, size variants and images.
The importer inserts; the daily price updater reads active listings and
rewrites their prices.
"""

from typing import Dict, List, Optional

from supabase import Client

from sneakin.database.errors import DuplicateListing, StoreError, is_unique_violation

ADMIN_TABLE = 'admin_users'
LISTINGS_TABLE = 'product_listings'
SIZES_TABLE = 'product_listing_sizes'
IMAGES_TABLE = 'product_images'


class ListingStore:
    """Thin wrapper over the Supabase tables the importer reads and writes."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def is_admin(self, user_id: str) -> bool:
        """Check the admin allow-list for a caller identity."""
        try:
            result = self.supabase.table(ADMIN_TABLE)\
                .select('user_id')\
                .eq('user_id', user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise StoreError(f"Admin lookup failed: {e}") from e

        return bool(result.data)

    def find_duplicate(self, title: str, size_value: Optional[str] = None) -> Optional[str]:
        """
        Find an unsold listing with the same title (and size, when given).

        Args:
            title: Listing title
            size_value: Size label; None matches on title alone

        Returns:
            Id of the existing listing, or None
        """
        query = self.supabase.table(LISTINGS_TABLE)\
            .select('id')\
            .eq('title', title)\
            .neq('status', 'sold')

        if size_value:
            query = query.eq('size_value', size_value)

        try:
            result = query.limit(1).execute()
        except Exception as e:
            raise StoreError(f"Duplicate lookup failed: {e}") from e

        if result.data:
            return result.data[0]['id']
        return None

    def insert_listing(self, listing: Dict) -> str:
        """
        Insert one listing row and return its generated id.

        Raises:
            DuplicateListing: If the dedup unique index rejected the row
            StoreError: For any other failure
        """
        try:
            result = self.supabase.table(LISTINGS_TABLE).insert(listing).execute()
        except Exception as e:
            if is_unique_violation(e):
                raise DuplicateListing(str(e)) from e
            raise StoreError(getattr(e, 'message', None) or str(e)) from e

        if not result.data:
            raise StoreError("Insert failed")
        return result.data[0]['id']

    def insert_sizes(self, sizes: List[Dict]) -> int:
        """Bulk-insert size variants. Returns the number of rows written."""
        return self._bulk_insert(SIZES_TABLE, sizes)

    def insert_images(self, images: List[Dict]) -> int:
        """Bulk-insert product image records. Returns the number of rows written."""
        return self._bulk_insert(IMAGES_TABLE, images)

    def _bulk_insert(self, table: str, rows: List[Dict]) -> int:
        if not rows:
            return 0
        try:
            self.supabase.table(table).insert(rows).execute()
        except Exception as e:
            raise StoreError(f"{table} insert failed: {getattr(e, 'message', None) or e}") from e
        return len(rows)

    def fetch_active_listings(self) -> List[Dict]:
        """Active listings with their size variants, for price refreshes."""
        try:
            result = self.supabase.table(LISTINGS_TABLE)\
                .select(f'id, title, brand, price, retail_price, {SIZES_TABLE}(id, size_value, price)')\
                .eq('status', 'active')\
                .execute()
        except Exception as e:
            raise StoreError(f"Active listings fetch failed: {getattr(e, 'message', None) or e}") from e

        return result.data or []

    def update_listing_prices(self, listing_id: str, fields: Dict) -> None:
        """Write changed price fields (and updated_at) onto one listing."""
        self._update(LISTINGS_TABLE, listing_id, fields)

    def update_size_price(self, size_id: str, price: float) -> None:
        self._update(SIZES_TABLE, size_id, {'price': price})

    def _update(self, table: str, row_id: str, fields: Dict) -> None:
        try:
            self.supabase.table(table).update(fields).eq('id', row_id).execute()
        except Exception as e:
            raise StoreError(f"{table} update failed: {getattr(e, 'message', None) or e}") from e
