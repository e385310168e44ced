"""Catalog export parsing."""

from .goat_export import ExportRow, parse_export

__all__ = ['ExportRow', 'parse_export']
