#!/usr/bin/env python3
"""
GOAT daily price updater

Refreshes the INR prices of every active listing from GOAT's lowest asks:

    1. Fetch active listings (with their size variants) from Supabase
    2. Search GOAT by title and pick the best match
    3. Read per-size lowest asks (USD) from the buy bar endpoint
    4. Convert to INR: ((usd + 10) * USD_TO_INR) + 2000 margin
    5. Update product_listings.price (min across sizes), retail_price and
       every product_listing_sizes.price that changed

GOAT's web API only answers requests made from inside a warmed-up browser
session, so both endpoints are called with fetch() from a stealth page.

Usage:
    sneakin-update-prices [--rate 91] [--limit N]
    python -m sneakin.scrapers.goat.prices
"""

import argparse
import asyncio
import math
import random
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from playwright.async_api import Error as PlaywrightError

from sneakin.config import PriceUpdateConfig
from sneakin.database import ListingStore, StoreError, create_supabase_client
from sneakin.scrapers.goat.extractor import ExtractionError, PageLoadFailed
from sneakin.scrapers.goat.sources import BrowserPageSource
from sneakin.sizing.conversion import to_us_size

SEARCH_PATH = '/web-api/consumer-search/get-product-search-results'
BUY_BAR_PATH = '/web-api/v1/product_variants/buy_bar_data'

NEW_CONDITION = 'new_no_defects'
OUT_OF_STOCK = 'not_in_stock'

# Longer not-found lists are reported as a count only
NOT_FOUND_LIST_LIMIT = 15

FETCH_JSON_SCRIPT = """
async (url) => {
    try {
        const res = await fetch(url, { headers: { Accept: 'application/json' } });
        if (!res.ok) return { ok: false, status: res.status };
        return { ok: true, status: res.status, data: await res.json() };
    } catch (e) {
        return { ok: false, status: -1, error: String(e) };
    }
}
"""


@dataclass
class GoatProduct:
    """One search hit. Cent amounts are USD."""
    id: Any
    title: str
    slug: str = ''
    lowest_price_cents: Optional[int] = None
    retail_price_cents: Optional[int] = None


@dataclass
class SizePrice:
    """Lowest new, in-stock ask for one US size."""
    size: float
    price_usd: float


@dataclass
class ListingOutcome:
    status: str  # updated | noChange | notFound | error
    title: str
    size_updates: int = 0


@dataclass
class PriceUpdateStats:
    total: int = 0
    matched: int = 0
    updated: int = 0
    sizes_updated: int = 0
    no_change: int = 0
    not_found: int = 0
    errors: int = 0
    not_found_titles: List[str] = field(default_factory=list)

    def record(self, outcome: ListingOutcome) -> None:
        self.sizes_updated += outcome.size_updates
        if outcome.status == 'notFound':
            self.not_found += 1
            self.not_found_titles.append(outcome.title)
        elif outcome.status == 'error':
            self.errors += 1
        else:
            self.matched += 1
            if outcome.status == 'updated':
                self.updated += 1
            else:
                self.no_change += 1


def usd_to_inr(usd: Optional[float], config: PriceUpdateConfig) -> Optional[float]:
    """
    Convert a USD ask to a listing price in INR, rounded to paise.

    Example:
        >>> usd_to_inr(100, PriceUpdateConfig())
        12010.0
    """
    if usd is None:
        return None
    try:
        value = float(usd)
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    return round(((value + config.shipping_usd) * config.usd_to_inr) + config.margin_inr, 2)


def normalise_title(title: str) -> str:
    """Lowercase, punctuation to spaces, whitespace collapsed."""
    text = re.sub(r'[^a-z0-9 ]', ' ', (title or '').lower())
    return re.sub(r'\s+', ' ', text).strip()


def pick_best_match(title: str, products: List[GoatProduct]) -> Optional[GoatProduct]:
    """Exact normalised title match first, else the top search hit."""
    wanted = normalise_title(title)
    for product in products:
        if normalise_title(product.title) == wanted:
            return product
    return products[0] if products else None


def _amount(value: Any, key: str) -> Optional[int]:
    if isinstance(value, dict):
        return value.get(key)
    return None


def parse_search_results(payload: Any) -> List[GoatProduct]:
    """Map a consumer-search response to GoatProducts (data.productsList)."""
    data = payload.get('data') if isinstance(payload, dict) else None
    products = data.get('productsList') if isinstance(data, dict) else None

    results = []
    for product in products or []:
        if not isinstance(product, dict):
            continue
        variants = product.get('variantsList') or []
        first_variant = variants[0] if variants and isinstance(variants[0], dict) else {}
        results.append(GoatProduct(
            id=product.get('id'),
            title=product.get('title') or '',
            slug=product.get('slug') or '',
            lowest_price_cents=_amount(first_variant.get('localizedLowestPriceCents'), 'amountCents'),
            retail_price_cents=_amount(product.get('localizedRetailPriceCents'), 'amountCents'),
        ))
    return results


def parse_size_prices(variants: Any) -> List[SizePrice]:
    """
    Keep new, in-stock buy bar variants as (US size, USD price).

    Variants without a numeric size or a price are dropped.
    """
    prices = []
    for variant in variants if isinstance(variants, list) else []:
        if not isinstance(variant, dict):
            continue
        if variant.get('shoeCondition') != NEW_CONDITION or variant.get('stockStatus') == OUT_OF_STOCK:
            continue

        amount = _amount(variant.get('lowestPriceCents'), 'amount')
        size = _amount(variant.get('sizeOption'), 'value')
        if amount is None or size is None:
            continue
        try:
            prices.append(SizePrice(size=float(size), price_usd=amount / 100))
        except (TypeError, ValueError):
            continue
    return prices


def _same_price(new: Optional[float], current: Any) -> bool:
    try:
        return float(current) == new
    except (TypeError, ValueError):
        return False


class GoatApiClient(BrowserPageSource):
    """
    Calls GOAT's web API from inside a stealth page.

    The page visits goat.com once on entry so requests carry a real session
    and region cookies.
    """

    def __init__(self, config: Optional[PriceUpdateConfig] = None):
        self.price_config = config or PriceUpdateConfig()
        super().__init__(self.price_config.browser)

    @property
    def source_name(self) -> str:
        return 'goat-api'

    async def _after_launch(self) -> None:
        print(f"   Warming up GOAT session ({self.price_config.country_code} region)...")
        await self._page.goto(
            self.price_config.warmup_url,
            wait_until='domcontentloaded',
            timeout=self.price_config.warmup_timeout_ms,
        )
        await self._page.wait_for_timeout(self.price_config.warmup_settle_ms)

    async def fetch_json(self, path: str, params: Dict[str, Any]) -> Any:
        """
        GET a same-origin JSON endpoint through the page.

        Raises:
            PageLoadFailed: If the request failed or answered non-2xx
        """
        if self._page is None:
            raise RuntimeError("GoatApiClient used outside 'async with'")

        url = f"{path}?{urlencode(params, quote_via=quote)}"
        try:
            result = await self._page.evaluate(FETCH_JSON_SCRIPT, url)
        except PlaywrightError as e:
            raise PageLoadFailed(f"{path} failed: {str(e)[:100]}") from e

        if not result or not result.get('ok'):
            status = (result or {}).get('status')
            detail = (result or {}).get('error') or 'non-OK response'
            raise PageLoadFailed(f"{path} returned HTTP {status}: {detail}")
        return result.get('data')

    async def search(self, title: str) -> List[GoatProduct]:
        payload = await self.fetch_json(SEARCH_PATH, {
            'salesChannelId': 1,
            'queryString': title,
            'sortType': 1,
            'pageLimit': self.price_config.search_limit,
            'pageNumber': 1,
            'includeAggregations': 'false',
        })
        return parse_search_results(payload)

    async def size_prices(self, template_id: Any) -> List[SizePrice]:
        variants = await self.fetch_json(BUY_BAR_PATH, {
            'productTemplateId': template_id,
            'countryCode': self.price_config.country_code,
        })
        return parse_size_prices(variants)


class PriceUpdater:
    """
    Refreshes listing and size prices one listing at a time.

    `catalog` is anything with async search(title) and size_prices(template_id)
    (a GoatApiClient in production). Lookup failures are treated as "no data";
    only a failed listing update marks the listing as an error.
    """

    def __init__(
        self,
        store: ListingStore,
        catalog,
        config: Optional[PriceUpdateConfig] = None,
        sleep: Callable[[float], object] = asyncio.sleep,
    ):
        self.store = store
        self.catalog = catalog
        self.config = config or PriceUpdateConfig()
        self._sleep = sleep

    async def _pause(self) -> None:
        await self._sleep(self.config.delay_between_seconds + random.uniform(0, self.config.delay_jitter_seconds))

    async def update_listing(self, listing: Dict, idx: int = 0, total: int = 1) -> ListingOutcome:
        title = listing.get('title') or ''
        print(f"\n[{idx + 1}/{total}][db={listing.get('id')}] {title[:60]}")
        print(f"  ├─ DB price=₹{listing.get('price')} | retail=₹{listing.get('retail_price')}")

        try:
            results = await self.catalog.search(title)
        except ExtractionError as e:
            print(f"  ├─ ⚠️  Search failed: {e}")
            results = []
        await self._pause()

        match = pick_best_match(title, results)
        if not match:
            print("  └─ ❌ Not found on GOAT")
            return ListingOutcome('notFound', title)
        print(f"  ├─ ✓ Matched goat={match.id} \"{match.title}\"")

        try:
            size_prices = await self.catalog.size_prices(match.id)
        except ExtractionError as e:
            print(f"  ├─ ⚠️  Buy bar fetch failed: {e}")
            size_prices = []
        await self._pause()

        if not size_prices:
            print("  └─ ⚠️  No size data returned")
            return ListingOutcome('noChange', title)

        new_price = usd_to_inr(min(sp.price_usd for sp in size_prices), self.config)
        new_retail = None
        if match.retail_price_cents:
            new_retail = usd_to_inr(match.retail_price_cents / 100, self.config)

        price_changed = new_price is not None and not _same_price(new_price, listing.get('price'))
        retail_changed = new_retail is not None and not _same_price(new_retail, listing.get('retail_price'))

        size_updates = await self.update_sizes(listing, size_prices)

        if not (price_changed or retail_changed):
            print(f"  └─ — No listing-level change (₹{new_price})")
            return ListingOutcome('noChange', title, size_updates)

        fields = {'updated_at': datetime.now(timezone.utc).isoformat()}
        if price_changed:
            fields['price'] = new_price
        if retail_changed:
            fields['retail_price'] = new_retail

        try:
            await asyncio.to_thread(self.store.update_listing_prices, listing['id'], fields)
        except StoreError as e:
            print(f"  └─ ❌ Listing update failed: {e}")
            return ListingOutcome('error', title, size_updates)

        sizes_note = f" | {size_updates} size(s) updated" if size_updates else ''
        print(f"  └─ ✅ ₹{listing.get('price')} → ₹{new_price}{sizes_note}")
        return ListingOutcome('updated', title, size_updates)

    async def update_sizes(self, listing: Dict, size_prices: List[SizePrice]) -> int:
        """
        Reprice stored size variants whose US size GOAT quotes.

        UK labels are converted with the listing brand's offset. Returns the
        number of sizes written.
        """
        goat_prices = {sp.size: usd_to_inr(sp.price_usd, self.config) for sp in size_prices}

        updates = []
        for size in listing.get('product_listing_sizes') or []:
            label = size.get('size_value') or ''
            us_size = to_us_size(label, listing.get('brand'))
            if us_size is None:
                print(f"  ├─ Size \"{label}\" has no US equivalent, skipping")
                continue

            new_price = goat_prices.get(us_size)
            if not new_price or _same_price(new_price, size.get('price')):
                continue
            updates.append(self._update_size(size['id'], label, new_price))

        results = await asyncio.gather(*updates)
        return sum(1 for ok in results if ok)

    async def _update_size(self, size_id: str, label: str, price: float) -> bool:
        try:
            await asyncio.to_thread(self.store.update_size_price, size_id, price)
        except StoreError as e:
            print(f"  ├─ ⚠️  Size \"{label}\" update failed: {e}")
            return False
        return True

    async def run(self, listings: List[Dict]) -> PriceUpdateStats:
        stats = PriceUpdateStats(total=len(listings))
        for idx, listing in enumerate(listings):
            try:
                outcome = await self.update_listing(listing, idx, len(listings))
            except Exception as e:
                print(f"  └─ ❌ Unexpected error: {str(e)[:100]}")
                outcome = ListingOutcome('error', listing.get('title') or '')
            stats.record(outcome)
        return stats


async def update_prices(
    store: ListingStore,
    config: PriceUpdateConfig,
    limit: Optional[int] = None,
    catalog_factory: Callable[[PriceUpdateConfig], GoatApiClient] = GoatApiClient,
) -> PriceUpdateStats:
    """
    Refresh every active listing.

    Raises:
        StoreError: If the active listings could not be fetched
    """
    print("📡 Fetching active listings from DB...")
    listings = await asyncio.to_thread(store.fetch_active_listings)
    print(f"   Found {len(listings)} active listings")
    if limit:
        listings = listings[:limit]

    print("\n🚀 Launching Chromium...")
    async with catalog_factory(config) as catalog:
        updater = PriceUpdater(store, catalog, config)
        stats = await updater.run(listings)
    print("\n✅ Browser closed")
    return stats


def print_summary(stats: PriceUpdateStats) -> None:
    print("\n" + "=" * 60)
    print("📊 PRICE UPDATE SUMMARY")
    print("=" * 60)
    print(f"  Total listings checked : {stats.total}")
    print(f"  Matched on GOAT        : {stats.matched}")
    print(f"  Listing prices updated : {stats.updated}")
    print(f"  Size prices updated    : {stats.sizes_updated}")
    print(f"  No change              : {stats.no_change}")
    print(f"  Not found on GOAT      : {stats.not_found}")
    print(f"  Errors                 : {stats.errors}")
    print("=" * 60)

    if stats.not_found_titles and len(stats.not_found_titles) <= NOT_FOUND_LIST_LIMIT:
        print("\n⚠️  Not found on GOAT:")
        for title in stats.not_found_titles:
            print(f"   - {title}")
    elif stats.not_found_titles:
        print(f"\n⚠️  {len(stats.not_found_titles)} listings not found on GOAT")


def main(
    argv: Optional[List[str]] = None,
    catalog_factory=GoatApiClient,
    store_factory: Optional[Callable[[PriceUpdateConfig], ListingStore]] = None,
) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        prog='sneakin-update-prices',
        description='Refresh active listing prices from GOAT lowest asks',
    )
    parser.add_argument('--rate', type=float, default=None,
                        help='USD to INR rate (default: $USD_TO_INR or 91)')
    parser.add_argument('--limit', type=int, default=None,
                        help='Only process the first N active listings')
    parser.add_argument('--delay', type=float, default=None,
                        help='Seconds between GOAT requests (default: 0.4)')
    args = parser.parse_args(argv)

    overrides = {}
    if args.rate is not None:
        overrides['usd_to_inr'] = args.rate
    if args.delay is not None:
        overrides['delay_between_seconds'] = args.delay

    try:
        config = PriceUpdateConfig.from_env(**overrides)
        store = store_factory(config) if store_factory else ListingStore(create_supabase_client(config))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    print("🏃 Sneakin daily price updater")
    print(f"   USD → INR rate : {config.usd_to_inr}")
    print(f"   Margin (INR)   : ₹{config.margin_inr:g}")
    print(f"   Formula        : ((usd + {config.shipping_usd:g}) × {config.usd_to_inr}) + {config.margin_inr:g}")
    print(f"   Country code   : {config.country_code}\n")

    try:
        stats = asyncio.run(update_prices(store, config, args.limit, catalog_factory))
    except StoreError as e:
        print(f"❌ DB fetch failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        return 1

    print_summary(stats)
    print(f"\n✅ Done! {stats.updated} listing price(s) + {stats.sizes_updated} size price(s) updated.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
