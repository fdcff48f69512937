"""Library service contract and the local JSON implementation."""

from .base import LibraryService
from .local import LocalLibraryService
from .store import LibraryDocument, LibraryStore, StoreError

__all__ = [
    "LibraryDocument",
    "LibraryService",
    "LibraryStore",
    "LocalLibraryService",
    "StoreError",
]
