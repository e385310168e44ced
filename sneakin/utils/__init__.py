"""Shared helpers: CSV tables and logging."""
