from __future__ import annotations

import logging
import threading
import typing as t

from docstore.cache import ExpiringCache, document_key, listing_key
from docstore.monitoring import metrics

from .models import Document, ListingResult

_logger = logging.getLogger(__name__)

# prune index entries whose cache entry is already gone once an owner has this many
_INDEX_PRUNE_THRESHOLD = 64
# owners share generation slots by id; a collision only drops a cache write
_GENERATION_SLOTS = 4096


class DocumentCache:
    """Read-through cache for single documents and per-owner listings.

    Invalidation is coarse: any create or delete for an owner
    evicts every listing cached for that owner, whatever its filter or limit.
    Listings of other owners and single-document entries are left alone,
    except for the deleted document itself.

    Loads that started before an invalidation must not repopulate the cache
    with pre-invalidation data, so ``put_*`` accept the generation observed
    before the store was consulted and drop the write if it has moved on.
    """

    def __init__(self, cache: ExpiringCache, ttl_seconds: t.Optional[float] = None) -> None:
        self._cache = cache
        self._ttl = ttl_seconds
        self._lock = threading.Lock()
        self._listing_index: t.Dict[int, t.Set[str]] = {}
        self._owner_generations: t.List[int] = [0] * _GENERATION_SLOTS
        self._document_generation = 0
        cache.add_sweep_hook(self.prune_index)

    # Single documents

    def document_generation(self) -> int:
        with self._lock:
            return self._document_generation

    def get_document(self, document_id: str) -> t.Tuple[t.Optional[Document], bool]:
        value, found = self._cache.get(document_key(document_id))
        if not found:
            return None, False
        return value, True

    def put_document(self, document: Document, generation: t.Optional[int] = None) -> bool:
        with self._lock:
            if generation is not None and generation != self._document_generation:
                _logger.debug("DocumentCache: stale document load dropped id=%s", document.id)
                return False
            self._cache.set(document_key(document.id), document, self._ttl)
        return True

    def invalidate_document(self, document_id: str) -> None:
        with self._lock:
            self._document_generation += 1
            self._cache.delete(document_key(document_id))
        metrics.cache_evictions_total.inc(reason="invalidated")

    # Listings

    def listing_generation(self, owner_id: int) -> int:
        with self._lock:
            return self._owner_generations[owner_id % _GENERATION_SLOTS]

    def get_listing(
        self,
        owner_id: int,
        filter_key: t.Optional[str],
        filter_value: t.Optional[str],
        limit: int,
    ) -> t.Tuple[t.Optional[ListingResult], bool]:
        value, found = self._cache.get(listing_key(owner_id, filter_key, filter_value, limit))
        if not found:
            return None, False
        return value, True

    def put_listing(self, listing: ListingResult, generation: t.Optional[int] = None) -> bool:
        key = listing_key(listing.owner_id, listing.filter_key, listing.filter_value, listing.limit)
        with self._lock:
            current = self._owner_generations[listing.owner_id % _GENERATION_SLOTS]
            if generation is not None and generation != current:
                _logger.debug("DocumentCache: stale listing load dropped owner_id=%s", listing.owner_id)
                return False
            keys = self._listing_index.setdefault(listing.owner_id, set())
            if len(keys) >= _INDEX_PRUNE_THRESHOLD:
                keys.difference_update([k for k in keys if k not in self._cache])
            keys.add(key)
            self._cache.set(key, listing, self._ttl)
        return True

    def invalidate_owner(self, owner_id: int) -> int:
        """Evict every cached listing for ``owner_id``; returns how many keys were dropped."""
        with self._lock:
            self._owner_generations[owner_id % _GENERATION_SLOTS] += 1
            keys = self._listing_index.pop(owner_id, set())
            for key in keys:
                self._cache.delete(key)
        if keys:
            metrics.cache_evictions_total.inc(len(keys), reason="invalidated")
        _logger.debug("DocumentCache: invalidated %d listings owner_id=%s", len(keys), owner_id)
        return len(keys)

    def prune_index(self) -> int:
        """Forget index keys whose listing has expired; owners left with none are dropped."""
        dropped = 0
        with self._lock:
            for owner_id, keys in list(self._listing_index.items()):
                gone = [k for k in keys if k not in self._cache]
                keys.difference_update(gone)
                dropped += len(gone)
                if not keys:
                    del self._listing_index[owner_id]
        return dropped

    def indexed_owners(self) -> int:
        with self._lock:
            return len(self._listing_index)

    # Mutation hooks

    def on_document_created(self, owner_id: int) -> None:
        self.invalidate_owner(owner_id)

    def on_document_deleted(self, owner_id: int, document_id: str) -> None:
        self.invalidate_document(document_id)
        self.invalidate_owner(owner_id)
