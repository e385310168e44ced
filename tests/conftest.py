"""
Shared fixtures: in-memory stand-ins for Supabase, GOAT pages and the image CDN.
"""

import json
from collections import Counter

import pytest

from sneakin.config import ImportConfig
from sneakin.database.errors import DuplicateListing, StoreError
from sneakin.importer.coordinator import ImportCoordinator
from sneakin.importer.images import DownloadedImage
from sneakin.scrapers.goat.sources import PageSource

ADMIN_ID = 'admin-user'
ADMIN_TOKEN = 'admin-token'
USER_ID = 'regular-user'
USER_TOKEN = 'user-token'


def next_data_page(main=None, gallery=(), main_field='pictureUrl'):
    """Build a GOAT-like product page with a __NEXT_DATA__ block."""
    template = {'name': 'Test Sneaker'}
    if main is not None:
        template[main_field] = main
    template['productTemplateExternalPictures'] = [{'mainPictureUrl': url} for url in gallery]
    payload = {'props': {'pageProps': {'productTemplate': template}}}
    return (
        '<html><head><title>GOAT</title></head><body><div id="__next"></div>'
        f'<script id="__NEXT_DATA__" type="application/json">{json.dumps(payload)}</script>'
        '</body></html>'
    )


BLOCK_PAGE = (
    '<html><head><title>Just a moment...</title></head>'
    '<body><div id="challenge-running">Checking your browser</div></body></html>'
)


class FakePageSource(PageSource):
    """Serves canned HTML per URL; an Exception value is raised instead."""

    def __init__(self, pages=None):
        self.pages = pages if pages is not None else {}
        self.visits = Counter()

    @property
    def source_name(self):
        return 'fake'

    async def fetch_html(self, url):
        self.visits[url] += 1
        page = self.pages.get(url, BLOCK_PAGE)
        if isinstance(page, Exception):
            raise page
        return page


class FakeStore:
    """ListingStore double backed by lists."""

    def __init__(self, admins=(ADMIN_ID,)):
        self.admins = set(admins)
        self.listings = []
        self.sizes = []
        self.images = []
        self.fail_listing = None
        self.race_duplicate = False
        self.fail_sizes = False
        self.fail_images = False
        self.lookup_error = None
        self.active_listings = []
        self.listing_updates = []
        self.size_updates = []
        self.fail_listing_update = None
        self.fail_size_ids = set()

    @property
    def write_count(self):
        return len(self.listings) + len(self.sizes) + len(self.images)

    def is_admin(self, user_id):
        return user_id in self.admins

    def find_duplicate(self, title, size_value=None):
        if self.lookup_error:
            raise self.lookup_error
        for listing in self.listings:
            if listing['title'] != title or listing['status'] == 'sold':
                continue
            if size_value and listing['size_value'] != size_value:
                continue
            return listing['id']
        return None

    def insert_listing(self, listing):
        if self.race_duplicate:
            raise DuplicateListing('duplicate key value violates unique constraint')
        if self.fail_listing:
            raise StoreError(self.fail_listing)
        listing_id = f"listing-{len(self.listings) + 1}"
        self.listings.append({**listing, 'id': listing_id})
        return listing_id

    def insert_sizes(self, rows):
        if self.fail_sizes:
            raise StoreError('product_listing_sizes insert failed')
        self.sizes.extend(rows)
        return len(rows)

    def insert_images(self, rows):
        if self.fail_images:
            raise StoreError('product_images insert failed')
        self.images.extend(rows)
        return len(rows)

    def fetch_active_listings(self):
        if self.lookup_error:
            raise self.lookup_error
        return list(self.active_listings)

    def update_listing_prices(self, listing_id, fields):
        if self.fail_listing_update:
            raise StoreError(self.fail_listing_update)
        self.listing_updates.append((listing_id, fields))

    def update_size_price(self, size_id, price):
        if size_id in self.fail_size_ids:
            raise StoreError(f"product_listing_sizes update failed for {size_id}")
        self.size_updates.append((size_id, price))


class FakeBucket:
    """ImageBucket double; uploads for indices in `fail_indices` raise."""

    def __init__(self):
        self.objects = {}
        self.fail_indices = set()

    def upload(self, path, content, content_type):
        index = int(path.rsplit('_', 1)[1].split('.')[0])
        if index in self.fail_indices:
            raise StoreError(f"Upload failed for {path}")
        self.objects[path] = (content, content_type)
        return f"https://cdn.test/storage/v1/object/public/product-images/{path}"


class FakeVerifier:
    def __init__(self, tokens=None):
        self.tokens = tokens if tokens is not None else {ADMIN_TOKEN: ADMIN_ID, USER_TOKEN: USER_ID}

    def verify(self, token):
        return self.tokens.get(token)


class FakeDownloader:
    """ImageDownloader double. URLs in `failing` download as None."""

    def __init__(self):
        self.failing = set()
        self.requested = []

    async def download_all(self, urls):
        self.requested.append(list(urls))
        return [
            None if url in self.failing
            else DownloadedImage(
                content=f"bytes:{url}".encode(),
                content_type='image/png' if url.endswith('.png') else 'image/jpeg',
            )
            for url in urls
        ]


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def live_pages():
    """URL -> HTML served to the coordinator's live-fetch fallback."""
    return {}


@pytest.fixture
def coordinator(store, bucket, verifier, downloader, live_pages):
    return ImportCoordinator(
        store=store,
        bucket=bucket,
        verifier=verifier,
        config=ImportConfig(),
        downloader=downloader,
        page_source_factory=lambda config: FakePageSource(live_pages),
    )
