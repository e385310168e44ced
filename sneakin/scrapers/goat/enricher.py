#!/usr/bin/env python3
"""
GOAT image enricher

Reads a GOAT catalog export (CSV with a "URL" column), renders each distinct
product page once in a stealth Chromium, pulls image URLs out of __NEXT_DATA__
and writes the export back with an "image_urls" column (pipe-separated, up to
8 URLs, main picture first).

Usage:
    sneakin-enrich <input.csv> [output.csv]
    python -m sneakin.scrapers.goat.enricher <input.csv> [output.csv]

Without output.csv the result is written next to the input as
<input_name>_enriched.csv.
"""

import argparse
import asyncio
import re
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from sneakin.config import CollectorConfig
from sneakin.scrapers.goat.extractor import ExtractionError, extract_images
from sneakin.scrapers.goat.sources import BrowserPageSource, PageSource
from sneakin.utils.csv_table import CsvTable, read_table, write_table

IMAGE_COLUMN = 'image_urls'
IMAGE_SEPARATOR = '|'
URL_COLUMN = 'URL'


def derive_output_path(input_path: Path) -> Path:
    """
    Derive <name>_enriched.csv from <name>.csv.

    Raises:
        ValueError: If the input has no .csv suffix (an explicit output path is required)
    """
    if not re.search(r'\.csv$', input_path.name, re.IGNORECASE):
        raise ValueError(
            f"Cannot derive an output name for '{input_path.name}' (no .csv suffix); "
            "pass an output path explicitly"
        )
    return input_path.with_name(re.sub(r'\.csv$', '_enriched.csv', input_path.name, flags=re.IGNORECASE))


class ImageEnricher:
    """
    Visits each distinct product URL once and caches its image list.

    Failures never escape: a URL whose page cannot be loaded or parsed maps to
    an empty string, and the reason is kept in `failures` for inspection.
    """

    def __init__(
        self,
        source: PageSource,
        config: Optional[CollectorConfig] = None,
        sleep: Callable[[float], object] = asyncio.sleep,
    ):
        self.source = source
        self.config = config or CollectorConfig()
        self._sleep = sleep
        self.image_cache: Dict[str, str] = {}
        self.failures: Dict[str, Exception] = {}

    async def fetch_images(self, url: str) -> str:
        """Return pipe-joined image URLs for one product page, or '' on any failure."""
        try:
            html = await self.source.fetch_html(url)
            urls = extract_images(html, max_images=self.config.max_images)
        except ExtractionError as e:
            print(f"  ├─ ⚠️  {type(e).__name__}: {e}")
            self.failures[url] = e
            return ''
        except Exception as e:
            print(f"  ├─ ❌ Unexpected error: {str(e)[:100]}")
            self.failures[url] = e
            return ''

        print(f"  ├─ ✓ Found {len(urls)} image(s) via {self.source.source_name}")
        return IMAGE_SEPARATOR.join(urls)

    async def enrich_urls(self, urls: List[str]) -> Dict[str, str]:
        """
        Fetch images for every distinct, non-empty URL in first-seen order.

        A polite delay separates consecutive page visits; there is none after the last.
        """
        unique_urls = list(dict.fromkeys(u for u in urls if u))
        total = len(unique_urls)

        for done, url in enumerate(unique_urls, 1):
            print(f"[{done}/{total}] {url}")
            self.image_cache[url] = await self.fetch_images(url)

            if not self.image_cache[url]:
                print("  └─ No images cached for this URL")

            if done < total:
                await self._sleep(self.config.delay_between_seconds)

        return self.image_cache

    async def enrich_table(self, table: CsvTable, url_header: str) -> CsvTable:
        """Add (or overwrite) the image_urls column; rows sharing a URL get the same value."""
        urls = [row.get(url_header, '') for row in table.rows]
        unique_count = len(set(u for u in urls if u))
        print(f"\n🔗 {unique_count} unique GOAT URLs to process ({len(table.rows)} total rows)\n")

        cache = await self.enrich_urls(urls)

        headers = list(table.headers)
        if IMAGE_COLUMN not in headers:
            headers.append(IMAGE_COLUMN)

        rows = [
            {**row, IMAGE_COLUMN: cache.get(row.get(url_header, ''), '')}
            for row in table.rows
        ]
        return CsvTable(headers=headers, rows=rows)


def summarize(table: CsvTable) -> Dict[str, int]:
    with_images = sum(1 for row in table.rows if row.get(IMAGE_COLUMN))
    return {
        'with_images': with_images,
        'without_images': len(table.rows) - with_images,
    }


async def enrich_file(
    input_path: Path,
    output_path: Path,
    config: Optional[CollectorConfig] = None,
    source_factory: Callable[[CollectorConfig], PageSource] = BrowserPageSource,
) -> Dict[str, int]:
    """
    Enrich one export file end to end.

    Raises:
        ValueError: If the CSV is empty or has no URL column
        OSError: If the input cannot be read or the output cannot be written
    """
    config = config or CollectorConfig()
    table = read_table(input_path)

    url_header = table.find_column(URL_COLUMN)
    if not url_header:
        raise ValueError('CSV must have a "URL" column')

    print("\n🚀 Launching Chromium...")
    async with source_factory(config) as source:
        enricher = ImageEnricher(source, config)
        enriched = await enricher.enrich_table(table, url_header)
    print("\n✅ Browser closed")

    write_table(output_path, enriched)
    return summarize(enriched)


def main(argv: Optional[List[str]] = None, source_factory=BrowserPageSource) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = argparse.ArgumentParser(
        prog='sneakin-enrich',
        description='Add GOAT image URLs to a catalog export CSV',
    )
    parser.add_argument('input', nargs='?', help='GOAT export CSV with a URL column')
    parser.add_argument('output', nargs='?', help='Output CSV (default: <input>_enriched.csv)')
    parser.add_argument('--delay', type=float, default=None,
                        help='Seconds between page visits (default: 1.5)')
    args = parser.parse_args(argv)

    if not args.input:
        print("Usage: sneakin-enrich <input.csv> [output.csv]", file=sys.stderr)
        return 1

    input_path = Path(args.input).resolve()
    try:
        output_path = Path(args.output).resolve() if args.output else derive_output_path(input_path)
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    config = CollectorConfig()
    if args.delay is not None:
        config = CollectorConfig(delay_between_seconds=args.delay)

    print(f"📂 Input : {input_path}")
    print(f"📂 Output: {output_path}")

    try:
        summary = asyncio.run(enrich_file(input_path, output_path, config, source_factory))
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        return 1

    print("\n📊 Summary:")
    print(f"   Rows with images   : {summary['with_images']}")
    print(f"   Rows without images: {summary['without_images']}")
    print(f"\n✅ Enriched CSV written to:\n   {output_path}")
    print("\nNext step: run sneakin-bulk-import on the enriched CSV.\n")
    return 0


if __name__ == '__main__':
    sys.exit(main())
