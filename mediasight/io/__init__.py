"""
Catalog and image file input.
"""

from .catalog import CatalogEntry, load_catalog, parse_catalog
from .images import descriptor_from_file

__all__ = ['CatalogEntry', 'load_catalog', 'parse_catalog', 'descriptor_from_file']
