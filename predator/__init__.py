"""Predator public API."""

from .config import load_config, resolve_config
from .core import errors, shapes  # noqa: F401
from .core.shapes import Deferred, columns_of, max_of
from .resolver import ByHandle, ByName, Implicit, as_reference, unpack
from .session import MODEL_FALLBACK_NAME, Predator
from .storage import DirectoryBlobStore, MemoryBlobStore

__version__ = "1.0.1"

__all__ = [
    "ByHandle",
    "ByName",
    "Deferred",
    "DirectoryBlobStore",
    "Implicit",
    "MODEL_FALLBACK_NAME",
    "MemoryBlobStore",
    "Predator",
    "as_reference",
    "columns_of",
    "errors",
    "load_config",
    "max_of",
    "resolve_config",
    "shapes",
    "unpack",
]
