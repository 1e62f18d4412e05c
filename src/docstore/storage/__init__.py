from .base import InMemoryStorage, StorageAdapter
from .redis_adapter import RedisStorage

__all__ = ["StorageAdapter", "InMemoryStorage", "RedisStorage"]
