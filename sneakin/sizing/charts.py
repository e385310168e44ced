"""
Brand size charts.

Footwear rows map one size across UK / US / EU / cm. Apparel rows map a size
letter to body measurements in cm. Brands without their own chart fall back to
the Nike chart (footwear) or the generic streetwear chart (apparel), so a size
guide can always be rendered.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class SizeRow:
    uk: str
    us: str
    eu: str
    cm: str


@dataclass(frozen=True)
class BrandSizeChart:
    men: Tuple[SizeRow, ...]
    women: Optional[Tuple[SizeRow, ...]] = None
    kids: Optional[Tuple[SizeRow, ...]] = None


@dataclass(frozen=True)
class ApparelSizeRow:
    size: str
    length: str
    shoulder: str
    chest: str
    sleeve: str
    hem: str


@dataclass(frozen=True)
class ApparelBrandSizeChart:
    rows: Tuple[ApparelSizeRow, ...]


def _shoe(rows: Iterable[Tuple[str, str, str, str]]) -> Tuple[SizeRow, ...]:
    return tuple(SizeRow(uk, us, eu, cm) for uk, us, eu, cm in rows)


def _apparel(rows: Iterable[Tuple[str, str, str, str, str, str]]) -> ApparelBrandSizeChart:
    return ApparelBrandSizeChart(rows=tuple(ApparelSizeRow(*row) for row in rows))


# ============= Apparel =============
# (size, length, shoulder, chest, sleeve, hem)

GENERIC_APPAREL_CHART = _apparel([
    ("XS", "68", "46", "106", "20", "106"),
    ("S", "70", "48", "110", "21", "110"),
    ("M", "72", "50", "114", "22", "114"),
    ("L", "74", "52", "118", "23", "118"),
    ("XL", "76", "54", "122", "24", "122"),
    ("XXL", "78", "56", "126", "25", "126"),
    ("XXXL", "80", "58", "130", "26", "130"),
])

CLOT_APPAREL_CHART = _apparel([
    ("S", "72", "50", "114", "22.5", "114"),
    ("M", "74", "52", "118", "23.5", "118"),
    ("L", "76", "54", "122", "24.5", "122"),
    ("XL", "78", "56", "126", "25.5", "126"),
    ("XXL", "80", "58", "130", "26.5", "130"),
])

SUPREME_APPAREL_CHART = _apparel([
    ("S", "70", "47", "108", "21", "108"),
    ("M", "72", "49", "112", "22", "112"),
    ("L", "74", "51", "116", "23", "116"),
    ("XL", "76", "53", "120", "24", "120"),
    ("XXL", "78", "55", "124", "25", "124"),
])

# Fear of God / Essentials relaxed fit
FOG_APPAREL_CHART = _apparel([
    ("XS", "69", "46", "108", "20", "108"),
    ("S", "71", "48", "112", "21", "112"),
    ("M", "73", "50", "116", "22", "116"),
    ("L", "75", "52", "120", "23", "120"),
    ("XL", "77", "54", "124", "24", "124"),
    ("XXL", "79", "56", "128", "25", "128"),
])

APPAREL_BRAND_CHART_MAP: Dict[str, ApparelBrandSizeChart] = {
    'clot': CLOT_APPAREL_CHART,
    'supreme': SUPREME_APPAREL_CHART,
    'fear of god': FOG_APPAREL_CHART,
    'essentials': FOG_APPAREL_CHART,
    'kith': GENERIC_APPAREL_CHART,
    'off-white': GENERIC_APPAREL_CHART,
    'stone island': GENERIC_APPAREL_CHART,
    'nike': GENERIC_APPAREL_CHART,
    'adidas': GENERIC_APPAREL_CHART,
}


# ============= Footwear =============
# (uk, us, eu, cm)

NIKE_CHART = BrandSizeChart(
    men=_shoe([
        ("6", "7", "40", "25"),
        ("7", "8", "41", "26"),
        ("7.5", "8.5", "42", "26.5"),
        ("8", "9", "42.5", "27"),
        ("8.5", "9.5", "43", "27.5"),
        ("9", "10", "44", "28"),
        ("9.5", "10.5", "44.5", "28.5"),
        ("10", "11", "45", "29"),
        ("10.5", "11.5", "45.5", "29.5"),
        ("11", "12", "46", "30"),
        ("12", "13", "47", "31"),
    ]),
    women=_shoe([
        ("2.5", "5", "35.5", "22"),
        ("3", "5.5", "36", "22.5"),
        ("3.5", "6", "36.5", "23"),
        ("4", "6.5", "37.5", "23.5"),
        ("4.5", "7", "38", "24"),
        ("5", "7.5", "38.5", "24.5"),
        ("5.5", "8", "39", "25"),
        ("6", "8.5", "40", "25.5"),
        ("6.5", "9", "40.5", "26"),
        ("7", "9.5", "41", "26.5"),
        ("7.5", "10", "42", "27"),
    ]),
    kids=_shoe([
        ("7.5", "8C", "25", "15"),
        ("8.5", "9C", "26", "16"),
        ("9.5", "10C", "27", "17"),
        ("10.5", "11C", "28", "18"),
        ("11.5", "12C", "29", "19"),
        ("12.5", "13C", "30", "20"),
        ("13.5", "1Y", "31", "21"),
        ("1.5", "2Y", "33.5", "22"),
        ("2.5", "3Y", "35", "23"),
    ]),
)

# Adidas and New Balance publish the same half-size ladder
_THREE_STRIPE_MEN = _shoe([
    ("3.5", "4", "36", "22"),
    ("4", "4.5", "37", "22.5"),
    ("4.5", "5", "37.5", "23"),
    ("5", "5.5", "38", "23.5"),
    ("5.5", "6", "38.5", "24"),
    ("6", "6.5", "39.5", "24.5"),
    ("6.5", "7", "40", "25"),
    ("7", "7.5", "40.5", "25.5"),
    ("7.5", "8", "41.5", "26"),
    ("8", "8.5", "42", "26.5"),
    ("8.5", "9", "42.5", "27"),
    ("9", "9.5", "43", "27.5"),
    ("9.5", "10", "44", "28"),
    ("10", "10.5", "44.5", "28.5"),
    ("10.5", "11", "45", "29"),
    ("11", "11.5", "45.5", "29.5"),
    ("11.5", "12", "46.5", "30"),
    ("12", "12.5", "47", "30.5"),
    ("12.5", "13", "47.5", "31"),
    ("13.5", "14", "49", "32"),
    ("14.5", "15", "50", "33"),
    ("15.5", "16", "51", "34"),
    ("16.5", "17", "52", "35"),
    ("17.5", "18", "53", "36"),
])

_THREE_STRIPE_WOMEN = _shoe([
    ("2.5", "4", "35", "21.5"),
    ("3", "4.5", "35.5", "22"),
    ("3.5", "5", "36", "22.5"),
    ("4", "5.5", "36.5", "23"),
    ("4.5", "6", "37.5", "23.5"),
    ("5", "6.5", "38", "24"),
    ("5.5", "7", "38.5", "24.5"),
    ("6", "7.5", "39.5", "25"),
    ("6.5", "8", "40", "25.5"),
    ("7", "8.5", "40.5", "26"),
    ("7.5", "9", "41.5", "26.5"),
    ("8", "9.5", "42", "27"),
    ("8.5", "10", "42.5", "27.5"),
])

ADIDAS_CHART = BrandSizeChart(men=_THREE_STRIPE_MEN, women=_THREE_STRIPE_WOMEN)

NEW_BALANCE_CHART = BrandSizeChart(men=_THREE_STRIPE_MEN, women=_THREE_STRIPE_WOMEN)

ON_CHART = BrandSizeChart(
    men=_shoe([
        ("6.5", "7", "40", "25"),
        ("7", "7.5", "40.5", "25.5"),
        ("7.5", "8", "41", "26"),
        ("8", "8.5", "42", "26.5"),
        ("8.5", "9", "42.5", "27"),
        ("9", "9.5", "43", "27.5"),
        ("9.5", "10", "44", "28"),
        ("10", "10.5", "44.5", "28.5"),
        ("10.5", "11", "45", "29"),
        ("11", "11.5", "46", "29.5"),
        ("11.5", "12", "47", "30"),
        ("12.5", "13", "48", "31"),
        ("13.5", "14", "49", "31.5"),
    ]),
    women=_shoe([
        ("3", "5", "36", "22"),
        ("3.5", "5.5", "36.5", "22.5"),
        ("4", "6", "37", "23"),
        ("4.5", "6.5", "37.5", "23.5"),
        ("5", "7", "38", "24"),
        ("5.5", "7.5", "38.5", "24.5"),
        ("6", "8", "39", "25"),
        ("6.5", "8.5", "40", "25.5"),
        ("7", "9", "40.5", "26"),
        ("7.5", "9.5", "41", "26.5"),
        ("8", "10", "42", "27"),
        ("8.5", "10.5", "42.5", "27.5"),
        ("9", "11", "43", "28"),
    ]),
)

# Jordan, Converse, Vans, Puma and Reebok run on Nike sizing
BRAND_CHART_MAP: Dict[str, BrandSizeChart] = {
    'nike': NIKE_CHART,
    'jordan': NIKE_CHART,
    'converse': NIKE_CHART,
    'vans': NIKE_CHART,
    'puma': NIKE_CHART,
    'reebok': NIKE_CHART,
    'adidas': ADIDAS_CHART,
    'new balance': NEW_BALANCE_CHART,
    'on': ON_CHART,
}


def _brand_key(brand: Optional[str]) -> str:
    return (brand or '').lower().strip()


def get_size_chart(brand: Optional[str]) -> BrandSizeChart:
    """
    Look up the footwear size chart for a brand.

    Args:
        brand: Brand name in any case, surrounding whitespace ignored

    Returns:
        BrandSizeChart for the brand, or the Nike chart when the brand is unknown
    """
    return BRAND_CHART_MAP.get(_brand_key(brand), NIKE_CHART)


def get_apparel_size_chart(brand: Optional[str]) -> ApparelBrandSizeChart:
    """Look up the apparel chart for a brand, defaulting to the generic chart."""
    return APPAREL_BRAND_CHART_MAP.get(_brand_key(brand), GENERIC_APPAREL_CHART)
