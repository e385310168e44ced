"""
Tests for the Supabase table and Storage wrappers over a recording fake of
the supabase-py query builder.
"""

import pytest
from postgrest.exceptions import APIError

from sneakin.database.errors import DuplicateListing, StoreError
from sneakin.database.listings import ListingStore
from sneakin.database.storage import ImageBucket


class FakeResult:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Records chained builder calls; execute() returns `data` or raises `error`."""

    def __init__(self, table, data=None, error=None):
        self.table = table
        self.data = data if data is not None else []
        self.error = error
        self.calls = []

    def __getattr__(self, name):
        if name not in ('select', 'eq', 'neq', 'limit', 'insert', 'update'):
            raise AttributeError(name)

        def call(*args):
            self.calls.append((name,) + args)
            return self
        return call

    def execute(self):
        self.calls.append(('execute',))
        if self.error:
            raise self.error
        return FakeResult(self.data)


class FakeStorageBucket:
    def __init__(self, name, error=None):
        self.name = name
        self.error = error
        self.uploads = []

    def upload(self, path, content, options):
        if self.error:
            raise self.error
        self.uploads.append((path, content, options))

    def get_public_url(self, path):
        return f"https://project.supabase.test/storage/v1/object/public/{self.name}/{path}"


class FakeStorage:
    def __init__(self, bucket_error=None):
        self.bucket_error = bucket_error
        self.buckets = {}

    def from_(self, name):
        return self.buckets.setdefault(name, FakeStorageBucket(name, self.bucket_error))


class FakeSupabase:
    """table(name) hands out a fresh FakeQuery per call, configured per table."""

    def __init__(self, data=None, errors=None, bucket_error=None):
        self.data = data or {}
        self.errors = errors or {}
        self.queries = []
        self.storage = FakeStorage(bucket_error)

    def table(self, name):
        query = FakeQuery(name, self.data.get(name), self.errors.get(name))
        self.queries.append(query)
        return query


def unique_violation():
    return APIError({
        'code': '23505',
        'message': 'duplicate key value violates unique constraint "product_listings_title_size_active_key"',
    })


def test_is_admin():
    supabase = FakeSupabase(data={'admin_users': [{'user_id': 'u-1'}]})

    assert ListingStore(supabase).is_admin('u-1') is True
    assert supabase.queries[0].calls[:3] == [('select', 'user_id'), ('eq', 'user_id', 'u-1'), ('limit', 1)]
    assert ListingStore(FakeSupabase()).is_admin('u-2') is False


def test_find_duplicate_with_size():
    supabase = FakeSupabase(data={'product_listings': [{'id': 'l-9'}]})

    assert ListingStore(supabase).find_duplicate('Dunk Low', 'uk 8') == 'l-9'
    calls = supabase.queries[0].calls
    assert ('eq', 'title', 'Dunk Low') in calls
    assert ('neq', 'status', 'sold') in calls
    assert ('eq', 'size_value', 'uk 8') in calls
    assert ('limit', 1) in calls


def test_find_duplicate_without_size_filters_title_only():
    supabase = FakeSupabase()

    assert ListingStore(supabase).find_duplicate('Dunk Low') is None
    eq_columns = [call[1] for call in supabase.queries[0].calls if call[0] == 'eq']
    assert eq_columns == ['title']


def test_find_duplicate_lookup_error():
    supabase = FakeSupabase(errors={'product_listings': APIError({'message': 'timeout'})})

    with pytest.raises(StoreError):
        ListingStore(supabase).find_duplicate('Dunk Low', 'uk 8')


def test_insert_listing_returns_id():
    supabase = FakeSupabase(data={'product_listings': [{'id': 'l-1'}]})

    assert ListingStore(supabase).insert_listing({'title': 'Dunk'}) == 'l-1'
    assert supabase.queries[0].calls[0] == ('insert', {'title': 'Dunk'})


def test_insert_listing_unique_violation_is_duplicate():
    supabase = FakeSupabase(errors={'product_listings': unique_violation()})

    with pytest.raises(DuplicateListing):
        ListingStore(supabase).insert_listing({'title': 'Dunk'})


def test_insert_listing_other_error_uses_message():
    supabase = FakeSupabase(errors={'product_listings': APIError({'code': '23502', 'message': 'null value in column "price"'})})

    with pytest.raises(StoreError) as excinfo:
        ListingStore(supabase).insert_listing({'title': 'Dunk'})

    assert not isinstance(excinfo.value, DuplicateListing)
    assert str(excinfo.value) == 'null value in column "price"'


def test_insert_listing_without_rows():
    with pytest.raises(StoreError, match='Insert failed'):
        ListingStore(FakeSupabase()).insert_listing({'title': 'Dunk'})


def test_bulk_inserts():
    supabase = FakeSupabase()
    store = ListingStore(supabase)

    assert store.insert_sizes([{'size_value': 'uk 8'}, {'size_value': 'uk 9'}]) == 2
    assert store.insert_images([]) == 0
    assert [q.table for q in supabase.queries] == ['product_listing_sizes']


def test_bulk_insert_error():
    supabase = FakeSupabase(errors={'product_images': APIError({'message': 'rls violation'})})

    with pytest.raises(StoreError, match='product_images insert failed: rls violation'):
        ListingStore(supabase).insert_images([{'image_url': 'x'}])


def test_fetch_active_listings():
    rows = [{'id': 'l-1', 'title': 'Dunk', 'product_listing_sizes': []}]
    supabase = FakeSupabase(data={'product_listings': rows})

    assert ListingStore(supabase).fetch_active_listings() == rows
    calls = supabase.queries[0].calls
    assert 'product_listing_sizes(id, size_value, price)' in calls[0][1]
    assert ('eq', 'status', 'active') in calls


def test_price_updates():
    supabase = FakeSupabase()
    store = ListingStore(supabase)

    store.update_listing_prices('l-1', {'price': 13830.0})
    store.update_size_price('s-1', 16560.0)

    listing_query, size_query = supabase.queries
    assert listing_query.table == 'product_listings'
    assert listing_query.calls[:2] == [('update', {'price': 13830.0}), ('eq', 'id', 'l-1')]
    assert size_query.table == 'product_listing_sizes'
    assert size_query.calls[:2] == [('update', {'price': 16560.0}), ('eq', 'id', 's-1')]


def test_price_update_error():
    supabase = FakeSupabase(errors={'product_listing_sizes': APIError({'message': 'permission denied'})})

    with pytest.raises(StoreError, match='permission denied'):
        ListingStore(supabase).update_size_price('s-1', 100)


def test_bucket_upload_upserts_and_returns_public_url():
    supabase = FakeSupabase()
    bucket = ImageBucket(supabase, 'product-images')

    url = bucket.upload('listings/l-1/l-1_0.png', b'png', 'image/png')

    assert url == 'https://project.supabase.test/storage/v1/object/public/product-images/listings/l-1/l-1_0.png'
    [(path, content, options)] = supabase.storage.buckets['product-images'].uploads
    assert path == 'listings/l-1/l-1_0.png'
    assert content == b'png'
    assert options == {'content-type': 'image/png', 'upsert': 'true'}


def test_bucket_upload_error():
    bucket = ImageBucket(FakeSupabase(bucket_error=RuntimeError('payload too large')))

    with pytest.raises(StoreError, match='payload too large'):
        bucket.upload('listings/l-1/l-1_0.jpg', b'jpg', 'image/jpeg')
