"""
GOAT catalog export parsing.

Two generations of the export are in circulation:

    single-size   Sneaker, Brand, Silhouette, Landed INR, Size US, URL
                  one row per (sneaker, size)
    all-sizes     Sneaker, Brand, Silhouette, Retail $, UK6 $, UK6 INR, ... URL
                  one row per sneaker, a price column per UK size

Either may carry an `image_urls` column (added by sneakin-enrich) or the raw
export's `image` column, both pipe-separated.
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional

from sneakin.importer.models import ImportRow, MultiSize, SingleSize, SizeEntry
from sneakin.sizing.conversion import map_us_to_uk_label
from sneakin.utils.csv_table import CsvTable

DEFAULT_USD_TO_INR = 84

# Column stem -> stored size label. There is no UK18 column in the export.
UK_SIZE_COLUMNS = [
    ('UK6', 'uk 6'),
    ('UK6.5', 'uk 6.5'),
    ('UK7', 'uk 7'),
    ('UK7.5', 'uk 7.5'),
    ('UK8', 'uk 8'),
    ('UK8.5', 'uk 8.5'),
    ('UK9', 'uk 9'),
    ('UK9.5', 'uk 9.5'),
    ('UK10', 'uk 10'),
    ('UK10.5', 'uk 10.5'),
    ('UK11', 'uk 11'),
    ('UK11.5', 'uk 11.5'),
    ('UK12', 'uk 12'),
    ('UK12.5', 'uk 12.5'),
    ('UK13', 'uk 13'),
    ('UK13.5', 'uk 13.5'),
    ('UK14', 'uk 14'),
    ('UK15', 'uk 15'),
    ('UK16', 'uk 16'),
    ('UK17', 'uk 17'),
    ('UK19', 'uk 19'),
]

ALL_SIZES_HEADER = re.compile(r'^UK\d')


@dataclass
class ExportRow:
    """A parsed export row and whether it should be imported."""
    row: ImportRow
    selected: bool = True


def _number(value: str) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def is_all_sizes_export(table: CsvTable) -> bool:
    return any(ALL_SIZES_HEADER.match(h) for h in table.headers)


def parse_export(table: CsvTable, usd_to_inr: float = DEFAULT_USD_TO_INR) -> List[ExportRow]:
    """
    Parse a GOAT export into import rows.

    Rows without a title or URL are dropped, as are all-sizes rows with no
    priced size. Single-size rows whose US size has no UK mapping, or whose
    price is 0, are kept but not selected.

    Args:
        table: Parsed CSV
        usd_to_inr: Rate used to convert the `Retail $` column

    Returns:
        List of ExportRow in file order
    """
    col = table.find_column
    title_col = col('Sneaker')
    brand_col = col('Brand')
    model_col = col('Silhouette')
    url_col = col('URL')
    retail_col = col('Retail $')
    image_col = col('image_urls') or col('image')
    landed_col = col('Landed INR')
    size_us_col = col('Size US')

    all_sizes = is_all_sizes_export(table)
    size_columns = []
    if all_sizes:
        for stem, size_value in UK_SIZE_COLUMNS:
            inr_col = col(f"{stem} INR")
            if inr_col:
                size_columns.append((inr_col, size_value))

    parsed = []
    for record in table.rows:
        def raw(header):
            return (record.get(header) or '').strip() if header else ''

        title = raw(title_col)
        goat_url = raw(url_col)
        if not title or not goat_url:
            continue

        image_urls = [u.strip() for u in raw(image_col).split('|') if u.strip()]

        retail_usd = _number(raw(retail_col))
        retail_price = math.floor(retail_usd * usd_to_inr + 0.5) if retail_usd and retail_usd > 0 else None

        common = dict(
            title=title,
            goat_url=goat_url,
            brand=raw(brand_col).lower(),
            model=raw(model_col),
            image_urls=image_urls,
            retail_price=retail_price,
        )

        if all_sizes:
            entries = []
            for inr_col, size_value in size_columns:
                price = _number(raw(inr_col))
                if price and price > 0:
                    entries.append(SizeEntry(size_value=size_value, price=price))
            if not entries:
                continue
            parsed.append(ExportRow(row=ImportRow(sizing=MultiSize(entries=entries), **common)))
        else:
            size_us = raw(size_us_col)
            price = _number(raw(landed_col)) or 0
            mapped = map_us_to_uk_label(size_us)
            sizing = SingleSize(size_value=mapped or size_us or None, price=price)
            parsed.append(ExportRow(
                row=ImportRow(sizing=sizing, **common),
                selected=mapped is not None and price > 0,
            ))

    return parsed
