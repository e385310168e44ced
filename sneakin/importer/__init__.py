"""
Import Coordinator: the write path from catalog rows into listings.
"""

from .errors import ImportRejected, Unauthorized, Forbidden, BadRequest
from .models import ImportRow, ImportResult, SingleSize, MultiSize, SizeEntry
from .coordinator import ImportCoordinator, build_coordinator

__all__ = [
    'ImportRejected',
    'Unauthorized',
    'Forbidden',
    'BadRequest',
    'ImportRow',
    'ImportResult',
    'SingleSize',
    'MultiSize',
    'SizeEntry',
    'ImportCoordinator',
    'build_coordinator',
]
