"""Blob stores and snapshot persistence."""

from .blob import BlobStore, DirectoryBlobStore, MemoryBlobStore
from .snapshots import get_config, load_points, save_snapshot, saved_models

__all__ = [
    "BlobStore",
    "DirectoryBlobStore",
    "MemoryBlobStore",
    "get_config",
    "load_points",
    "save_snapshot",
    "saved_models",
]
