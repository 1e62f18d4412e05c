from .expiring_cache import CacheEntry, ExpiringCache
from .keys import document_key, encode_key, listing_key, session_key

__all__ = [
    "CacheEntry",
    "ExpiringCache",
    "encode_key",
    "session_key",
    "document_key",
    "listing_key",
]
