"""
Structured-data (JSON-LD) emission.
"""

from .emitter import Document, DocumentKind, REQUIRED_FIELDS, StructuredDataEmitter

__all__ = ['Document', 'DocumentKind', 'REQUIRED_FIELDS', 'StructuredDataEmitter']
