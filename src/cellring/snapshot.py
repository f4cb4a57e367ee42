"""Refresh-and-swap holder for the current hash ring.

A single writer builds a fresh ``HashRing`` from a registry scan and swaps
the reference in one assignment.  Readers grab ``current()`` and keep using
that ring for their whole routing decision; a ring instance is never mutated
once published.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Callable

from cellring.registry import CellRegistry
from cellring.ring import DEFAULT_VIRTUAL_NODES, HashRing

logger = logging.getLogger("cellring.snapshot")


class RingSnapshot:
    """Holds the most recently built ring for a registry.

    Parameters
    ----------
    registry : CellRegistry
        Source of cell snapshots.
    virtual_nodes : int
        Virtual nodes per unit weight for every ring built.
    refresh_interval : float
        Seconds after which ``current()`` rebuilds the ring.
    clock : Callable[[], float]
        Monotonic clock, injectable for tests.

    Examples
    --------
    >>> snapshot = RingSnapshot(InMemoryCellRegistry([Cell("cell-1")]))
    >>> snapshot.current().get_cell("client-1").cell_id
    'cell-1'
    """

    def __init__(
        self,
        registry: CellRegistry,
        *,
        virtual_nodes: int = DEFAULT_VIRTUAL_NODES,
        refresh_interval: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if refresh_interval <= 0:
            msg = f"refresh_interval must be positive, got {refresh_interval}"
            raise ValueError(msg)

        self._registry = registry
        self._virtual_nodes = virtual_nodes
        self._refresh_interval = refresh_interval
        self._clock = clock
        self._write_lock = threading.Lock()
        self._ring: HashRing | None = None
        self._built_at: float | None = None

    @property
    def refresh_interval(self) -> float:
        return self._refresh_interval

    @property
    def built_at(self) -> float | None:
        return self._built_at

    def is_stale(self) -> bool:
        if self._built_at is None:
            return True
        return self._clock() - self._built_at >= self._refresh_interval

    def refresh(self) -> HashRing:
        """Rebuild the ring from a fresh registry scan and publish it."""
        with self._write_lock:
            return self._publish()

    def current(self) -> HashRing:
        """Return the published ring, rebuilding first if it is stale.

        Concurrent callers that all see a stale ring trigger one rebuild.
        """
        ring = self._ring
        if ring is not None and not self.is_stale():
            return ring

        with self._write_lock:
            ring = self._ring
            if ring is not None and not self.is_stale():
                return ring
            return self._publish()

    def _publish(self) -> HashRing:
        cells = self._registry.scan()
        ring = HashRing.from_cells(cells, self._virtual_nodes)
        self._ring = ring
        self._built_at = self._clock()

        logger.debug("Published %r from %d registry records", ring, len(cells))
        return ring

    async def run(self) -> None:
        """Refresh every ``refresh_interval`` seconds until cancelled.

        A failed scan keeps the previously published ring.
        """
        while True:
            try:
                self.refresh()
            except Exception:
                logger.exception("Ring refresh failed; keeping previous ring")
            await asyncio.sleep(self._refresh_interval)
