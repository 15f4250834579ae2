from assetlib.stores.base import TABLES, ChangeBus, ChangeEvent, Store
from assetlib.stores.local import STORAGE_KEY, BlobStore, FileBlobStore, MemoryBlobStore

__all__ = [
    "TABLES",
    "ChangeBus",
    "ChangeEvent",
    "Store",
    "STORAGE_KEY",
    "BlobStore",
    "FileBlobStore",
    "MemoryBlobStore",
]
