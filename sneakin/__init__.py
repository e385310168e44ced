"""
SneakIn catalog pipeline.

Scrape -> enrich -> deduplicate -> import -> store for the sneaker marketplace
listings, plus the brand size-conversion tables used to render size guides.
"""

__version__ = "0.3.0"
