"""
GOAT product image extraction.

GOAT product pages are server-rendered by Next.js and embed the page state in
<script id="__NEXT_DATA__" type="application/json">. The product template
under props.pageProps.productTemplate carries the main picture and the gallery.

This module only parses markup. How the markup is obtained (full browser or a
plain HTTP fetch) is the page source's concern.
"""

import json
import re
from typing import List

DEFAULT_MAX_IMAGES = 8  # 1 main + up to 7 gallery

NEXT_DATA_PATTERN = re.compile(
    r'<script[^>]*\bid=["\']__NEXT_DATA__["\'][^>]*>(.*?)</script>',
    re.DOTALL | re.IGNORECASE,
)


class ExtractionError(Exception):
    """Base class for everything that can go wrong getting images off a page."""


class PageLoadTimeout(ExtractionError):
    """Navigation or fetch exceeded its timeout."""


class PageLoadFailed(ExtractionError):
    """Navigation failed or the server answered with a non-2xx status."""


class MissingDataBlock(ExtractionError):
    """No __NEXT_DATA__ element on the page (usually a bot-check page)."""


class MalformedPayload(ExtractionError):
    """The __NEXT_DATA__ element does not hold valid JSON."""


class MissingFields(ExtractionError):
    """Payload parsed but the product template or its image fields are absent."""


def find_next_data(html: str) -> str:
    """
    Return the raw JSON text of the __NEXT_DATA__ element.

    Raises:
        MissingDataBlock: If the element is absent or empty
    """
    match = NEXT_DATA_PATTERN.search(html or '')
    if not match or not match.group(1).strip():
        raise MissingDataBlock("__NEXT_DATA__ not found on page")
    return match.group(1)


def images_from_next_data(next_data_text: str, max_images: int = DEFAULT_MAX_IMAGES) -> List[str]:
    """
    Pull image URLs out of the __NEXT_DATA__ JSON text.

    Order: main picture first (pictureUrl, else mainPictureUrl), then gallery
    pictures from productTemplateExternalPictures. Empty entries are dropped
    and the list is truncated to max_images.

    Raises:
        MalformedPayload: If the text is not JSON
        MissingFields: If there is no productTemplate or no image URL at all
    """
    try:
        next_data = json.loads(next_data_text)
    except (TypeError, ValueError) as e:
        raise MalformedPayload(f"__NEXT_DATA__ is not valid JSON: {e}") from e

    template = None
    if isinstance(next_data, dict):
        props = next_data.get('props')
        page_props = props.get('pageProps') if isinstance(props, dict) else None
        if isinstance(page_props, dict):
            template = page_props.get('productTemplate')

    if not isinstance(template, dict):
        raise MissingFields("productTemplate not found in __NEXT_DATA__")

    main_url = template.get('pictureUrl') or template.get('mainPictureUrl') or ''

    gallery = template.get('productTemplateExternalPictures') or []
    gallery_urls = [
        picture.get('mainPictureUrl') or ''
        for picture in gallery
        if isinstance(picture, dict)
    ]

    urls = [url for url in [main_url, *gallery_urls] if url][:max_images]
    if not urls:
        raise MissingFields("No image URLs found in productTemplate")

    return urls


def extract_images(html: str, max_images: int = DEFAULT_MAX_IMAGES) -> List[str]:
    """
    Extract up to max_images product image URLs from a GOAT product page.

    Args:
        html: Full page markup
        max_images: Cap on the number of URLs returned

    Returns:
        Non-empty ordered list of image URLs, main picture first

    Raises:
        MissingDataBlock, MalformedPayload, MissingFields
    """
    return images_from_next_data(find_next_data(html), max_images=max_images)
