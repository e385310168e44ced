"""
Import Coordinator

The only write path from a catalog row into product_listings,
product_listing_sizes and product_images. One call imports one row:

    authorize -> validate -> duplicate check -> listing insert
      -> size variants (multi-size, best effort)
      -> resolve image URLs (pre-fetched, else live GOAT fetch)
      -> download + upload images (best effort) -> image records (best effort)

Store and bucket clients are synchronous (supabase-py); their calls run in
worker threads so image materialization can overlap.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple

from sneakin.config import ImportConfig
from sneakin.database import (
    DuplicateListing,
    ImageBucket,
    ListingStore,
    SessionVerifier,
    StoreError,
    create_supabase_client,
)
from sneakin.importer.errors import Forbidden, Unauthorized
from sneakin.importer.images import DownloadedImage, ImageDownloader
from sneakin.importer.models import NO_IMAGES_WARNING, ImportResult, ImportRow, MultiSize
from sneakin.scrapers.goat.extractor import ExtractionError, extract_images
from sneakin.scrapers.goat.sources import HttpPageSource, PageSource
from sneakin.utils.logging import get_logger

logger = get_logger('sneakin.importer')


def storage_path_for(listing_id: str, index: int, extension: str) -> str:
    return f"listings/{listing_id}/{listing_id}_{index}.{extension}"


class ImportCoordinator:
    """
    Imports catalog rows for admin callers.

    Collaborators are injected so the coordinator can run against Supabase in
    production and in-memory fakes in tests.
    """

    def __init__(
        self,
        store: ListingStore,
        bucket: ImageBucket,
        verifier: SessionVerifier,
        config: Optional[ImportConfig] = None,
        downloader: Optional[ImageDownloader] = None,
        page_source_factory: Callable[[ImportConfig], PageSource] = HttpPageSource,
    ):
        self.store = store
        self.bucket = bucket
        self.verifier = verifier
        self.config = config or ImportConfig()
        self.downloader = downloader or ImageDownloader(self.config)
        self.page_source_factory = page_source_factory

    async def authorize(self, token: Optional[str]) -> str:
        """
        Resolve a bearer token to an admin user id.

        Raises:
            Unauthorized: If the token is missing or invalid
            Forbidden: If the caller is not on the admin allow-list
        """
        if not token:
            raise Unauthorized()

        user_id = await asyncio.to_thread(self.verifier.verify, token)
        if not user_id:
            raise Unauthorized()
        logger.info("Auth OK", extra={'data': {'user_id': user_id}})

        if not await asyncio.to_thread(self.store.is_admin, user_id):
            raise Forbidden()
        return user_id

    async def import_row(self, payload: Any, token: Optional[str]) -> ImportResult:
        """Authorize, validate and import one raw row."""
        user_id = await self.authorize(token)
        row = ImportRow.from_payload(payload)
        return await self.import_validated(row, user_id)

    async def import_validated(self, row: ImportRow, user_id: str) -> ImportResult:
        """
        Import a validated row for an authorized caller.

        Duplicates and listing insert failures come back as `skipped` and
        `error` results; only unexpected failures raise.
        """
        sizing = row.sizing
        logger.info("Processing row", extra={'data': {
            'title': row.title,
            'format': 'multi-size' if row.is_multi_size else 'single-size',
            'sizes': len(sizing.entries) if isinstance(sizing, MultiSize) else 1,
        }})

        existing = await asyncio.to_thread(self.store.find_duplicate, row.title, sizing.dedup_size_value)
        if existing:
            logger.info("Duplicate found, skipping", extra={'data': {'title': row.title, 'existing_id': existing}})
            return ImportResult.skipped(row)

        listing = self._listing_record(row, user_id)
        logger.info("Inserting listing", extra={'data': {'price': listing['price'], 'multi_size': row.is_multi_size}})
        try:
            listing_id = await asyncio.to_thread(self.store.insert_listing, listing)
        except DuplicateListing:
            # Lost the race against a concurrent import of the same row
            logger.info("Duplicate rejected by unique index, skipping", extra={'data': {'title': row.title}})
            return ImportResult.skipped(row)
        except StoreError as e:
            logger.error("Failed to insert listing", extra={'data': {'error': str(e)}})
            return ImportResult.error(row, str(e) or "Insert failed")
        logger.info("Listing inserted", extra={'data': {'listing_id': listing_id}})

        sizes_imported = None
        if isinstance(sizing, MultiSize):
            await self._insert_sizes(listing_id, sizing)
            sizes_imported = len(sizing.entries)

        image_urls, source = await self.resolve_image_urls(row)
        logger.info("Images to upload", extra={'data': {'count': len(image_urls), 'source': source}})

        image_records = await self.materialize_images(listing_id, image_urls)
        await self._insert_images(image_records)

        logger.info("Row complete", extra={'data': {'status': 'imported', 'listing_id': listing_id}})
        return ImportResult(
            status='imported',
            title=row.title,
            listing_id=listing_id,
            size_value=sizing.listing_size_value,
            sizes_imported=sizes_imported,
            images_uploaded=len(image_records),
            warning=NO_IMAGES_WARNING if not image_urls else None,
        )

    def _listing_record(self, row: ImportRow, user_id: str) -> Dict[str, Any]:
        return {
            'user_id': user_id,
            'title': row.title,
            'category': self.config.category,
            'brand': row.brand,
            'model': row.model,
            # Multi-size listings keep their sizes in product_listing_sizes
            'size_value': row.sizing.listing_size_value,
            'condition': self.config.condition,
            'price': row.sizing.listing_price,
            'retail_price': row.retail_price,
            'description': None,
            'status': self.config.listing_status,
            'shipping_charges': self.config.shipping_charges,
            'delivery_days': self.config.delivery_days,
        }

    async def _insert_sizes(self, listing_id: str, sizing: MultiSize) -> None:
        size_rows = [
            {'listing_id': listing_id, 'size_value': entry.size_value, 'price': entry.price}
            for entry in sizing.entries
        ]
        try:
            count = await asyncio.to_thread(self.store.insert_sizes, size_rows)
        except StoreError as e:
            # Listing already exists; the row still counts as imported
            logger.error("Failed to insert sizes", extra={'data': {'error': str(e)}})
            return
        logger.info("Sizes inserted", extra={'data': {'count': count}})

    async def resolve_image_urls(self, row: ImportRow) -> Tuple[List[str], str]:
        """Return (image URLs, source label), capped at config.max_images."""
        if row.image_urls:
            return list(row.image_urls[:self.config.max_images]), 'pre-fetched'
        return await self.fetch_live_images(row.goat_url), 'live-fetch'

    async def fetch_live_images(self, goat_url: str) -> List[str]:
        """Fetch a GOAT page over plain HTTP and extract images; [] on any failure."""
        logger.warning("Attempting live GOAT fetch (may be Cloudflare-blocked)", extra={'data': {'url': goat_url}})
        try:
            async with self.page_source_factory(self.config) as source:
                html = await source.fetch_html(goat_url)
                source_name = source.source_name
            urls = extract_images(html, max_images=self.config.max_images)
        except ExtractionError as e:
            logger.warning("Live GOAT fetch failed", extra={'data': {
                'error_type': type(e).__name__, 'error': str(e)}})
            return []
        except Exception as e:
            logger.warning("Live GOAT fetch raised", extra={'data': {'error': str(e)[:100]}})
            return []

        logger.info("GOAT images found", extra={'data': {'count': len(urls), 'source': source_name}})
        return urls

    async def materialize_images(self, listing_id: str, image_urls: List[str]) -> List[Dict[str, Any]]:
        """
        Download and upload images, returning product_images records in
        resolved order. Failed images are dropped; the first image that
        survives is the poster.
        """
        if not image_urls:
            return []

        downloads = await self.downloader.download_all(image_urls)
        uploaded = await asyncio.gather(*(
            self._upload(listing_id, index, image)
            for index, image in enumerate(downloads)
        ))

        records = []
        for public_url, storage_path in (u for u in uploaded if u):
            records.append({
                'product_id': listing_id,
                'image_url': public_url,
                'storage_path': storage_path,
                'is_poster_image': not records,
            })
        return records

    async def _upload(self, listing_id: str, index: int, image: Optional[DownloadedImage]) -> Optional[Tuple[str, str]]:
        if image is None:
            return None

        path = storage_path_for(listing_id, index, image.extension)
        try:
            public_url = await asyncio.to_thread(self.bucket.upload, path, image.content, image.content_type)
        except StoreError as e:
            logger.error("Upload failed", extra={'data': {'index': index, 'error': str(e)}})
            return None

        logger.info("Image uploaded", extra={'data': {'index': index, 'public_url': public_url}})
        return public_url, path

    async def _insert_images(self, records: List[Dict[str, Any]]) -> None:
        if not records:
            return
        try:
            count = await asyncio.to_thread(self.store.insert_images, records)
        except StoreError as e:
            logger.error("product_images insert failed", extra={'data': {'error': str(e)}})
            return
        logger.info("Images inserted", extra={'data': {'count': count}})


def build_coordinator(config: Optional[ImportConfig] = None) -> ImportCoordinator:
    """Wire a coordinator against Supabase using `config` (default: from the environment)."""
    config = config or ImportConfig.from_env()
    supabase = create_supabase_client(config)
    return ImportCoordinator(
        store=ListingStore(supabase),
        bucket=ImageBucket(supabase, config.storage_bucket),
        verifier=SessionVerifier(supabase),
        config=config,
    )
