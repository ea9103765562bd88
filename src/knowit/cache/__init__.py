from .answers import (
    MAX_ITEMS,
    STORAGE_KEY,
    AnswerCache,
    CachedAnswer,
    hash_string,
    identity_key,
)
from .storage import (
    JsonFileStorage,
    MemoryStorage,
    StoragePort,
    StorageResult,
    StorageUnavailable,
)

__all__ = [
    "MAX_ITEMS",
    "STORAGE_KEY",
    "AnswerCache",
    "CachedAnswer",
    "hash_string",
    "identity_key",
    "JsonFileStorage",
    "MemoryStorage",
    "StoragePort",
    "StorageResult",
    "StorageUnavailable",
]
