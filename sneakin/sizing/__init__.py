"""
Brand-specific size charts and size-label conversion.
"""

from .charts import (
    SizeRow,
    BrandSizeChart,
    ApparelSizeRow,
    ApparelBrandSizeChart,
    get_size_chart,
    get_apparel_size_chart,
)
from .conversion import map_us_to_uk_label, brand_size_offset, parse_size_label, to_us_size

__all__ = [
    'SizeRow',
    'BrandSizeChart',
    'ApparelSizeRow',
    'ApparelBrandSizeChart',
    'get_size_chart',
    'get_apparel_size_chart',
    'map_us_to_uk_label',
    'brand_size_offset',
    'parse_size_label',
    'to_us_size',
]
