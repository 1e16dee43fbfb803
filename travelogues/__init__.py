"""
Travelogues Catalog Package
Search and browsing API over the Travelogues database of historical travel publications
"""

from .database import DatabaseManager

__all__ = [
    'DatabaseManager'
]

__version__ = "1.0.0"
__description__ = "Catalog and search API for the Travelogues archive of travel publications"
