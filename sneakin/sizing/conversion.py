"""
Size label conversion between regional conventions.
"""

import re
from typing import Dict, Optional, Tuple, Union

# Single-size catalog exports list "Size US"; listings store plain UK labels
US_TO_UK_LABEL: Dict[float, str] = {
    6: 'uk 5',
    6.5: 'uk 5.5',
    7: 'uk 6',
    7.5: 'uk 6.5',
    8: 'uk 7',
    8.5: 'uk 7.5',
    9: 'uk 8',
    9.5: 'uk 8.5',
    10: 'uk 9',
    10.5: 'uk 9.5',
    11: 'uk 10',
    11.5: 'uk 10.5',
    12: 'uk 11',
    13: 'uk 12',
    14: 'uk 13',
    15: 'uk 14',
}

# US = UK + offset
BRAND_SIZE_OFFSET: Dict[str, float] = {
    'nike': 1,
    'jordan': 1,
    'asics': 1,
    'adidas': 0.5,
    'new balance': 0.5,
    'on cloud': 0.5,
    'yeezy': 0.5,
    'converse': 0,
}
DEFAULT_SIZE_OFFSET = 1

SIZE_LABEL_PATTERN = re.compile(r'^\s*(uk|us|eu)\s*([0-9]+(?:\.[0-9]+)?)\s*$', re.IGNORECASE)


def map_us_to_uk_label(size_us: Union[str, float, None]) -> Optional[str]:
    """
    Map a US size to the stored UK label.

    Example:
        >>> map_us_to_uk_label("9.5")
        'uk 8.5'
    """
    if size_us is None:
        return None
    try:
        value = float(size_us)
    except (TypeError, ValueError):
        return None
    return US_TO_UK_LABEL.get(value)


def brand_size_offset(brand: Optional[str]) -> float:
    """Return the UK->US offset for a brand; substring matches count ("nike sb")."""
    if not brand:
        return DEFAULT_SIZE_OFFSET
    key = brand.lower().strip()
    for name, offset in BRAND_SIZE_OFFSET.items():
        if key == name or name in key:
            return offset
    return DEFAULT_SIZE_OFFSET


def parse_size_label(label: str) -> Optional[Tuple[str, float]]:
    """Split a label like "uk 8.5" into ('uk', 8.5). Returns None if unparseable."""
    match = SIZE_LABEL_PATTERN.match(label or '')
    if not match:
        return None
    return match.group(1).lower(), float(match.group(2))


def to_us_size(label: str, brand: Optional[str] = None) -> Optional[float]:
    """
    Convert a stored size label to a numeric US size.

    US labels pass through; UK labels are shifted by the brand offset.
    EU labels and anything unparseable return None.
    """
    parsed = parse_size_label(label)
    if not parsed:
        return None
    region, value = parsed
    if region == 'us':
        return value
    if region == 'uk':
        return value + brand_size_offset(brand)
    return None
