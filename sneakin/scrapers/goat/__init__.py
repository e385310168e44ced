"""
GOAT scraping: image extraction from __NEXT_DATA__, the CSV image enricher
and the daily price updater.
"""

from .extractor import (
    ExtractionError,
    PageLoadTimeout,
    PageLoadFailed,
    MissingDataBlock,
    MalformedPayload,
    MissingFields,
    extract_images,
)

__all__ = [
    'ExtractionError',
    'PageLoadTimeout',
    'PageLoadFailed',
    'MissingDataBlock',
    'MalformedPayload',
    'MissingFields',
    'extract_images',
]
