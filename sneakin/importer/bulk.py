#!/usr/bin/env python3
"""
Bulk import driver

Parses a GOAT export (ideally one already run through sneakin-enrich) and
posts each selected row to the import endpoint, one request at a time.
Per-row failures are recorded and the batch continues.

Usage:
    sneakin-bulk-import <export.csv> --token <session token>
    sneakin-bulk-import <export.csv> --endpoint http://localhost:8000/bulk-import-products

The endpoint defaults to SNEAKIN_IMPORT_URL, else the Supabase function at
$SUPABASE_URL/functions/v1/bulk-import-products. The token defaults to
SNEAKIN_ACCESS_TOKEN.
"""

import argparse
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

import requests
from dotenv import load_dotenv

from sneakin.catalog.goat_export import DEFAULT_USD_TO_INR, parse_export
from sneakin.importer.models import ImportRow, MultiSize
from sneakin.utils.csv_table import read_table

REQUEST_TIMEOUT = 120


def default_endpoint() -> Optional[str]:
    endpoint = os.getenv('SNEAKIN_IMPORT_URL')
    if endpoint:
        return endpoint
    supabase_url = os.getenv('SUPABASE_URL')
    if supabase_url:
        return f"{supabase_url.rstrip('/')}/functions/v1/bulk-import-products"
    return None


def describe(row: ImportRow) -> str:
    if isinstance(row.sizing, MultiSize):
        return f"{row.title} ({len(row.sizing.entries)} sizes)"
    return f"{row.title} ({row.sizing.size_value})"


def post_row(session: requests.Session, endpoint: str, token: str, row: ImportRow) -> Dict:
    """
    POST one row and return its outcome.

    Transport failures and non-2xx responses come back as status 'error'
    instead of raising.
    """
    fallback = {'title': row.title, 'size_value': row.sizing.listing_size_value}
    try:
        response = session.post(
            endpoint,
            json={'row': row.to_payload()},
            headers={'Authorization': f'Bearer {token}'},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        return {**fallback, 'status': 'error', 'reason': str(e) or 'Network error'}

    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if not response.ok:
        return {**fallback, 'status': 'error', 'reason': data.get('error') or f"HTTP {response.status_code}"}

    return {
        'title': data.get('title') or row.title,
        'size_value': data.get('size_value') or fallback['size_value'],
        'status': data.get('status', 'error'),
        'reason': data.get('reason'),
        'listing_id': data.get('listing_id'),
        'sizes_imported': data.get('sizes_imported'),
        'images_uploaded': data.get('images_uploaded'),
        'warning': data.get('warning'),
    }


def run_import(
    rows: List[ImportRow],
    endpoint: str,
    token: str,
    session: Optional[requests.Session] = None,
) -> List[Dict]:
    """Import rows sequentially, printing one progress line per row."""
    session = session or requests.Session()
    results = []
    total = len(rows)

    for i, row in enumerate(rows, 1):
        print(f"[{i}/{total}] {describe(row)}")
        result = post_row(session, endpoint, token, row)
        results.append(result)

        status = result['status']
        if status == 'imported':
            print(f"  ├─ ✓ Imported {result.get('listing_id')} ({result.get('images_uploaded') or 0} image(s))")
        elif status == 'skipped':
            print(f"  ├─ ⏭️  Skipped: {result.get('reason')}")
        else:
            print(f"  ├─ ✗ Error: {result.get('reason')}")

        if result.get('warning'):
            print(f"  └─ ⚠️  {result['warning']}")

    return results


def summarize(results: List[Dict]) -> Dict[str, int]:
    return {
        'imported': sum(1 for r in results if r['status'] == 'imported'),
        'skipped': sum(1 for r in results if r['status'] == 'skipped'),
        'errors': sum(1 for r in results if r['status'] == 'error'),
    }


def main(argv: Optional[List[str]] = None, session: Optional[requests.Session] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog='sneakin-bulk-import',
        description='Import a GOAT catalog export through the bulk import endpoint',
    )
    parser.add_argument('input', help='GOAT export CSV (enriched or raw)')
    parser.add_argument('--endpoint', default=None, help='Import endpoint URL')
    parser.add_argument('--token', default=None, help='Admin session token')
    parser.add_argument('--usd-to-inr', type=float, default=DEFAULT_USD_TO_INR,
                        help=f'Rate for converting Retail $ (default: {DEFAULT_USD_TO_INR})')
    parser.add_argument('--limit', type=int, default=None, help='Import at most N rows')
    args = parser.parse_args(argv)

    endpoint = args.endpoint or default_endpoint()
    token = args.token or os.getenv('SNEAKIN_ACCESS_TOKEN')
    if not endpoint or not token:
        print("❌ An endpoint (--endpoint or SNEAKIN_IMPORT_URL) and a token "
              "(--token or SNEAKIN_ACCESS_TOKEN) are required", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    try:
        table = read_table(input_path)
    except (OSError, ValueError) as e:
        print(f"❌ Cannot read {input_path}: {e}", file=sys.stderr)
        return 1

    parsed = parse_export(table, usd_to_inr=args.usd_to_inr)
    rows = [p.row for p in parsed if p.selected]
    if args.limit:
        rows = rows[:args.limit]

    print(f"📂 {input_path.name}: {len(parsed)} parsed, {len(rows)} selected")
    if not rows:
        print("❌ No importable rows", file=sys.stderr)
        return 1

    results = run_import(rows, endpoint, token, session=session)
    summary = summarize(results)

    print("\n📊 Summary:")
    print(f"   Imported: {summary['imported']}")
    print(f"   Skipped : {summary['skipped']}")
    print(f"   Errors  : {summary['errors']}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
