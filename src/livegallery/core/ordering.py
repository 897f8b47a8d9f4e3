"""Display-order bookkeeping for gallery assets.

The asset store has no notion of ordering: a listing comes back in whatever
order the store chooses.  :class:`OrderReconciler` keeps an in-memory list of
asset identifiers that defines the display sequence and merges it with the
live listing on every read.

The order list is process memory only.  A restart recreates it empty, after
which the first read seeds it from the store's own return order.

Reconciliation rules
--------------------
- identifiers in the order list that appear in the listing are emitted in
  order-list order
- listed assets that the order list has never seen are appended in the
  store's return order, and their identifiers are written back into the order
  list so later moves can address them
- identifiers in the order list that are missing from the listing are skipped
  but kept; only an explicit :meth:`OrderReconciler.record_remove` drops them

The write-back during a read is what picks up uploads made directly in the
store's console.  Keep it.

Reads racing removals
---------------------
The store listing is fetched without holding the lock.  A delete that
finishes while that fetch is outstanding must not be undone by the stale
listing, so every :meth:`~OrderReconciler.record_remove` bumps a generation
counter and, while reads are in flight, remembers the removed identifier
with its generation.  A read drops any identifier removed after the read
started instead of adopting it back.
"""

from __future__ import annotations

import asyncio
import logging

from livegallery.core.asset_store import Asset, AssetStore
from livegallery.core.errors import OrderIndexError

logger = logging.getLogger(__name__)


class OrderReconciler:
    """Owns the order list and reconciles it against the asset store.

    Attributes:
        _store (AssetStore):
            Source of the live, unordered listing.
        _max_results (int):
            Cap passed to every listing call.
        _order (list[str]):
            Asset identifiers in display order, unique.
        _lock (asyncio.Lock):
            Serialises read-modify-write sequences on ``_order``.
        _generation (int):
            Incremented by every removal.
        _removed (dict[str, int]):
            Identifiers removed while a read was in flight, mapped to the
            generation of their removal.  Emptied once no read is in flight.
        _reads_in_flight (int):
            Number of ``list_ordered`` calls awaiting the store.
    """

    def __init__(self, store: AssetStore, max_results: int) -> None:
        self._store = store
        self._max_results = max_results
        self._order: list[str] = []
        self._lock = asyncio.Lock()
        self._generation = 0
        self._removed: dict[str, int] = {}
        self._reads_in_flight = 0

    def __len__(self) -> int:
        return len(self._order)

    @property
    def order(self) -> list[str]:
        """Snapshot of the order list."""
        return list(self._order)

    async def list_ordered(self) -> list[Asset]:
        """Return the live listing sorted by the order list.

        The store listing is fetched before the lock is taken so that a slow
        store call does not hold up moves and deletes that only touch the
        order list.  Identifiers removed while the fetch was outstanding are
        left out of the result and are not written back.

        Returns:
            Assets currently in the store, in display order.

        Raises:
            AssetStoreError: If the listing call fails.  The order list is
                left untouched in that case.
        """
        started = self._generation
        self._reads_in_flight += 1
        try:
            assets = await self._store.list_assets(self._max_results)
            by_id: dict[str, Asset] = {}
            for asset in assets:
                by_id.setdefault(asset.public_id, asset)

            async with self._lock:
                ordered: list[Asset] = []
                for public_id in self._order:
                    asset = by_id.pop(public_id, None)
                    if asset is not None:
                        ordered.append(asset)

                # Whatever is left was never seen before.  Dict insertion
                # order preserves the store's return order.
                unseen = [
                    asset
                    for asset in by_id.values()
                    if self._removed.get(asset.public_id, started) <= started
                ]
                if len(unseen) < len(by_id):
                    logger.info(
                        f"Dropped {len(by_id) - len(unseen)} asset(s) deleted during the listing"
                    )
                if unseen:
                    self._order.extend(asset.public_id for asset in unseen)
                    logger.info(f"Adopted {len(unseen)} asset(s) into the order list")
                ordered.extend(unseen)
        finally:
            self._reads_in_flight -= 1
            if not self._reads_in_flight:
                self._removed.clear()

        return ordered

    async def record_append(self, public_id: str) -> None:
        """Add *public_id* to the end of the order list unless already present."""
        async with self._lock:
            self._removed.pop(public_id, None)
            if public_id not in self._order:
                self._order.append(public_id)

    async def record_remove(self, public_id: str) -> bool:
        """Drop *public_id* from the order list.

        Reads already waiting on the store will not adopt *public_id* back,
        whether or not it was in the order list.

        Returns:
            ``True`` if the identifier was present.  Absence is not an error.
        """
        async with self._lock:
            self._generation += 1
            if self._reads_in_flight:
                self._removed[public_id] = self._generation
            try:
                self._order.remove(public_id)
            except ValueError:
                return False
            return True

    async def move(self, from_index: int, to_index: int) -> None:
        """Move the identifier at *from_index* so it ends up at *to_index*.

        This is a splice, not a swap: the element is removed first and then
        inserted into the shortened list, so everything in between shifts by
        one position.

        Raises:
            OrderIndexError: If either index is not an integer or falls
                outside ``0 <= index < len(order)``.  The order list is left
                unchanged.
        """
        async with self._lock:
            size = len(self._order)
            for name, value in (("fromIndex", from_index), ("toIndex", to_index)):
                if isinstance(value, bool) or not isinstance(value, int):
                    raise OrderIndexError(f"{name} must be an integer")
                if not 0 <= value < size:
                    raise OrderIndexError(f"{name} {value} is out of range for {size} image(s)")

            if from_index == to_index:
                return
            public_id = self._order.pop(from_index)
            self._order.insert(to_index, public_id)
            logger.info(f"Moved {public_id} from {from_index} to {to_index}")
