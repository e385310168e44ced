"""
Tests for the daily price updater: matching, USD to INR conversion, size
matching and store updates, driven against an in-memory catalog.
"""

import asyncio

import pytest

from conftest import FakeStore
from sneakin.config import PriceUpdateConfig
from sneakin.database.errors import StoreError
from sneakin.scrapers.goat.extractor import PageLoadFailed
from sneakin.scrapers.goat.prices import (
    BUY_BAR_PATH,
    SEARCH_PATH,
    GoatApiClient,
    GoatProduct,
    PriceUpdater,
    SizePrice,
    main,
    normalise_title,
    parse_search_results,
    parse_size_prices,
    pick_best_match,
    usd_to_inr,
)

CONFIG = PriceUpdateConfig(delay_jitter_seconds=0)

PANDA = GoatProduct(id=1072277, title='Dunk Low Panda', retail_price_cents=11000)


def panda_listing(**overrides):
    listing = {
        'id': 'l-1',
        'title': 'Dunk Low "Panda"',
        'brand': 'Nike',
        'price': 12000,
        'retail_price': 10000,
        'product_listing_sizes': [
            {'id': 's-1', 'size_value': 'uk 8.5', 'price': 15000},
            {'id': 's-2', 'size_value': 'UK 9', 'price': 1},
            {'id': 's-3', 'size_value': 'EU 42', 'price': 1},
            {'id': 's-4', 'size_value': 'us 11', 'price': 1},
        ],
    }
    listing.update(overrides)
    return listing


class FakeCatalog:
    """Answers search and buy bar lookups from dicts; Exception values are raised."""

    def __init__(self, products=None, sizes=None):
        self.products = products if products is not None else {}
        self.sizes = sizes if sizes is not None else {}
        self.searches = []
        self.size_lookups = []
        self.config = None

    async def search(self, title):
        self.searches.append(title)
        result = self.products.get(title, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def size_prices(self, template_id):
        self.size_lookups.append(template_id)
        result = self.sizes.get(template_id, [])
        if isinstance(result, Exception):
            raise result
        return result

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return None


def panda_catalog():
    return FakeCatalog(
        products={'Dunk Low "Panda"': [GoatProduct(id=1, title='Dunk Low Panda Kids'), PANDA]},
        sizes={PANDA.id: [SizePrice(size=9.5, price_usd=120), SizePrice(size=10, price_usd=150)]},
    )


def make_updater(store, catalog, config=CONFIG):
    pauses = []

    async def sleep(seconds):
        pauses.append(seconds)

    updater = PriceUpdater(store, catalog, config, sleep=sleep)
    updater.pauses = pauses
    return updater


def test_usd_to_inr():
    assert usd_to_inr(100, CONFIG) == 12010.0
    assert usd_to_inr(120, PriceUpdateConfig(usd_to_inr=85)) == 13050.0
    assert usd_to_inr(None, CONFIG) is None
    assert usd_to_inr(float('nan'), CONFIG) is None


def test_normalise_title():
    assert normalise_title('  Air Jordan 1 "Chicago"  (2015) ') == 'air jordan 1 chicago 2015'


def test_pick_best_match_prefers_exact_title():
    products = [GoatProduct(id=1, title='Dunk Low Panda Kids'), PANDA]

    assert pick_best_match('dunk low - panda', products) is PANDA
    assert pick_best_match('Something else', products).id == 1
    assert pick_best_match('Dunk', []) is None


def test_parse_search_results():
    payload = {'data': {'productsList': [
        {
            'id': 1072277,
            'title': 'Dunk Low Panda',
            'slug': 'dunk-low-panda',
            'variantsList': [{'localizedLowestPriceCents': {'amountCents': 9900}}],
            'localizedRetailPriceCents': {'amountCents': 11000},
        },
        {'id': 5, 'title': 'No variants'},
    ]}}

    products = parse_search_results(payload)

    assert products[0] == GoatProduct(id=1072277, title='Dunk Low Panda', slug='dunk-low-panda',
                                      lowest_price_cents=9900, retail_price_cents=11000)
    assert products[1].lowest_price_cents is None
    assert parse_search_results({'data': None}) == []
    assert parse_search_results([]) == []


def test_parse_size_prices_keeps_new_in_stock():
    variants = [
        {'shoeCondition': 'new_no_defects', 'stockStatus': 'multiple_in_stock',
         'sizeOption': {'value': 9.5}, 'lowestPriceCents': {'amount': 12000}},
        {'shoeCondition': 'used', 'stockStatus': 'single_in_stock',
         'sizeOption': {'value': 10}, 'lowestPriceCents': {'amount': 5000}},
        {'shoeCondition': 'new_no_defects', 'stockStatus': 'not_in_stock',
         'sizeOption': {'value': 11}, 'lowestPriceCents': {'amount': 9000}},
        {'shoeCondition': 'new_no_defects', 'stockStatus': 'single_in_stock',
         'sizeOption': {'value': 12}},
    ]

    assert parse_size_prices(variants) == [SizePrice(size=9.5, price_usd=120.0)]
    assert parse_size_prices({'error': 'nope'}) == []


def test_listing_and_sizes_updated():
    store = FakeStore()
    catalog = panda_catalog()
    updater = make_updater(store, catalog)

    outcome = asyncio.run(updater.update_listing(panda_listing()))

    assert outcome.status == 'updated'
    assert outcome.size_updates == 2
    assert catalog.size_lookups == [PANDA.id]

    listing_id, fields = store.listing_updates[0]
    assert listing_id == 'l-1'
    assert fields['price'] == 13830.0
    assert fields['retail_price'] == 12920.0
    assert 'updated_at' in fields

    # uk 8.5 -> US 9.5 and uk 9 -> US 10 with the Nike offset; EU and unquoted sizes untouched
    assert sorted(store.size_updates) == [('s-1', 13830.0), ('s-2', 16560.0)]
    assert updater.pauses == [0.4, 0.4]


def test_uk_sizes_use_brand_offset():
    store = FakeStore()
    catalog = FakeCatalog(
        products={'Samba OG': [GoatProduct(id=7, title='Samba OG')]},
        sizes={7: [SizePrice(size=9, price_usd=100), SizePrice(size=9.5, price_usd=110)]},
    )
    listing = {
        'id': 'l-2', 'title': 'Samba OG', 'brand': 'adidas', 'price': 12010, 'retail_price': None,
        'product_listing_sizes': [{'id': 's-9', 'size_value': 'uk 8.5', 'price': 9000}],
    }

    outcome = asyncio.run(make_updater(store, catalog).update_listing(listing))

    assert store.size_updates == [('s-9', 12010.0)]
    assert outcome.status == 'noChange'
    assert outcome.size_updates == 1
    assert store.listing_updates == []


def test_only_changed_fields_are_written():
    store = FakeStore()
    listing = panda_listing(price=13830.0, retail_price=10000, product_listing_sizes=[])

    outcome = asyncio.run(make_updater(store, panda_catalog()).update_listing(listing))

    assert outcome.status == 'updated'
    _, fields = store.listing_updates[0]
    assert 'price' not in fields
    assert fields['retail_price'] == 12920.0


def test_unchanged_prices_are_not_written():
    store = FakeStore()
    listing = panda_listing(price=13830, retail_price='12920.00', product_listing_sizes=[
        {'id': 's-1', 'size_value': 'uk 8.5', 'price': 13830},
    ])

    outcome = asyncio.run(make_updater(store, panda_catalog()).update_listing(listing))

    assert outcome.status == 'noChange'
    assert store.listing_updates == []
    assert store.size_updates == []


def test_not_found_on_goat():
    store = FakeStore()
    catalog = FakeCatalog()

    outcome = asyncio.run(make_updater(store, catalog).update_listing(panda_listing()))

    assert outcome.status == 'notFound'
    assert outcome.title == 'Dunk Low "Panda"'
    assert catalog.size_lookups == []
    assert store.listing_updates == []


def test_failed_search_counts_as_not_found():
    catalog = FakeCatalog(products={'Dunk Low "Panda"': PageLoadFailed('HTTP 403')})

    outcome = asyncio.run(make_updater(FakeStore(), catalog).update_listing(panda_listing()))

    assert outcome.status == 'notFound'


def test_no_size_data_is_no_change():
    store = FakeStore()
    catalog = FakeCatalog(
        products={'Dunk Low "Panda"': [PANDA]},
        sizes={PANDA.id: PageLoadFailed('HTTP 500')},
    )

    outcome = asyncio.run(make_updater(store, catalog).update_listing(panda_listing()))

    assert outcome.status == 'noChange'
    assert store.listing_updates == []


def test_listing_update_failure_is_error():
    store = FakeStore()
    store.fail_listing_update = 'permission denied'

    outcome = asyncio.run(make_updater(store, panda_catalog()).update_listing(panda_listing()))

    assert outcome.status == 'error'
    assert outcome.size_updates == 2


def test_failed_size_update_is_not_counted():
    store = FakeStore()
    store.fail_size_ids = {'s-1'}

    outcome = asyncio.run(make_updater(store, panda_catalog()).update_listing(panda_listing()))

    assert outcome.size_updates == 1
    assert store.size_updates == [('s-2', 16560.0)]


def test_run_collects_stats():
    store = FakeStore()
    listings = [
        panda_listing(),
        panda_listing(id='l-2', title='Unknown Shoe'),
        panda_listing(id='l-3', price=13830, retail_price=12920, product_listing_sizes=[]),
    ]

    stats = asyncio.run(make_updater(store, panda_catalog()).run(listings))

    assert stats.total == 3
    assert stats.matched == 2
    assert stats.updated == 1
    assert stats.no_change == 1
    assert stats.not_found == 1
    assert stats.not_found_titles == ['Unknown Shoe']
    assert stats.sizes_updated == 2


def test_run_absorbs_unexpected_errors():
    catalog = FakeCatalog(products={'Dunk Low "Panda"': RuntimeError('page crashed')})

    stats = asyncio.run(make_updater(FakeStore(), catalog).run([panda_listing()]))

    assert stats.errors == 1
    assert stats.matched == 0


class FakeApiPage:
    def __init__(self, result):
        self.result = result
        self.urls = []

    async def evaluate(self, script, url):
        self.urls.append(url)
        return self.result


def test_api_client_search_request():
    client = GoatApiClient(CONFIG)
    client._page = FakeApiPage({'ok': True, 'status': 200, 'data': {'data': {'productsList': [
        {'id': 9, 'title': 'Samba OG'},
    ]}}})

    products = asyncio.run(client.search('Samba OG "White"'))

    assert [p.id for p in products] == [9]
    url = client._page.urls[0]
    assert url.startswith(SEARCH_PATH + '?')
    assert 'queryString=Samba%20OG%20%22White%22' in url
    assert 'pageLimit=3' in url
    assert 'includeAggregations=false' in url


def test_api_client_buy_bar_request():
    client = GoatApiClient(CONFIG)
    client._page = FakeApiPage({'ok': True, 'status': 200, 'data': []})

    assert asyncio.run(client.size_prices(1072277)) == []
    assert client._page.urls == [BUY_BAR_PATH + '?productTemplateId=1072277&countryCode=HK']


def test_api_client_non_ok_raises():
    client = GoatApiClient(CONFIG)
    client._page = FakeApiPage({'ok': False, 'status': 403})

    with pytest.raises(PageLoadFailed, match='403'):
        asyncio.run(client.search('Dunk'))


def test_api_client_outside_context():
    with pytest.raises(RuntimeError):
        asyncio.run(GoatApiClient(CONFIG).search('Dunk'))


@pytest.fixture
def supabase_env(monkeypatch):
    monkeypatch.setenv('SUPABASE_URL', 'https://project.supabase.test')
    monkeypatch.setenv('SUPABASE_SERVICE_ROLE_KEY', 'service-key')
    monkeypatch.delenv('USD_TO_INR', raising=False)


def test_main_updates_and_summarizes(supabase_env, capsys):
    store = FakeStore()
    store.active_listings = [panda_listing(), panda_listing(id='l-2', title='Unknown Shoe')]
    catalog = panda_catalog()

    def catalog_factory(config):
        catalog.config = config
        return catalog

    code = main(['--rate', '91', '--delay', '0'], catalog_factory=catalog_factory,
                store_factory=lambda config: store)

    assert code == 0
    assert catalog.config.usd_to_inr == 91
    assert catalog.config.delay_between_seconds == 0
    assert len(store.listing_updates) == 1

    out = capsys.readouterr().out
    assert 'Listing prices updated : 1' in out
    assert 'Size prices updated    : 2' in out
    assert '- Unknown Shoe' in out


def test_main_limit(supabase_env):
    store = FakeStore()
    store.active_listings = [panda_listing(), panda_listing(id='l-2')]
    catalog = panda_catalog()

    assert main(['--limit', '1', '--delay', '0'], catalog_factory=lambda config: catalog,
                store_factory=lambda config: store) == 0
    assert len(catalog.searches) == 1


def test_main_rate_from_environment(supabase_env, monkeypatch):
    monkeypatch.setenv('USD_TO_INR', '85.5')
    catalog = FakeCatalog()

    def catalog_factory(config):
        catalog.config = config
        return catalog

    assert main(['--delay', '0'], catalog_factory=catalog_factory, store_factory=lambda config: FakeStore()) == 0
    assert catalog.config.usd_to_inr == 85.5


def test_main_fetch_failure_exits_1(supabase_env):
    store = FakeStore()
    store.lookup_error = StoreError('relation does not exist')

    assert main([], catalog_factory=lambda config: FakeCatalog(), store_factory=lambda config: store) == 1


def test_main_missing_credentials_exits_1(monkeypatch):
    for name in ('SUPABASE_URL', 'VITE_SUPABASE_URL', 'SUPABASE_SERVICE_ROLE_KEY', 'SUPABASE_KEY'):
        monkeypatch.delenv(name, raising=False)

    assert main([], catalog_factory=lambda config: FakeCatalog(), store_factory=lambda config: FakeStore()) == 1
