"""Consistent hash ring placing client keys onto weighted cells.

Each active cell is replicated onto the ring as ``floor(virtual_nodes * weight)``
virtual nodes, so heavier cells own proportionally more of the hash space.
A client key is owned by the first virtual node at or clockwise after the
key's own position.

This is a pure data structure: it does no I/O and takes no locks.  Build a
ring once from a cell snapshot and share it read-only; see
``cellring.snapshot`` for the refresh-and-swap holder.

Example:
    ring = HashRing.from_cells([
        Cell("cell-a", region="us-east-1"),
        Cell("cell-b", region="us-west-2", weight=2.0),
    ])

    cell = ring.get_cell("client-123")
    failover = ring.get_preference_list("client-123", n=2)
"""

from __future__ import annotations

import bisect
import hashlib
import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from cellring.cell import Cell

logger = logging.getLogger("cellring.ring")

DEFAULT_VIRTUAL_NODES = 150


def hash_key(key: str) -> int:
    """Hash *key* to a position in ``[0, 2**32)``.

    Uses the first 4 bytes of MD5, big-endian.  MD5 is chosen for
    determinism across processes and platforms, not for security.
    """
    digest = hashlib.md5(key.encode("utf-8"), usedforsecurity=False).digest()
    return int.from_bytes(digest[:4], "big")


@dataclass(frozen=True, slots=True)
class VirtualNode:
    """One replica of a cell on the ring."""

    cell_id: str
    index: int  # 0 to virtual_node_count-1
    position: int  # 0 to 2^32-1

    @property
    def key(self) -> str:
        return virtual_node_key(self.cell_id, self.index)


def virtual_node_key(cell_id: str, index: int) -> str:
    return f"{cell_id}:{index}"


@dataclass(frozen=True, slots=True)
class RingPosition:
    """An occupied ring position with its owner's metadata."""

    position: int
    cell_id: str
    region: str
    az: str


@dataclass(frozen=True, slots=True)
class CellShare:
    """Share of the ring owned by one cell."""

    cell_id: str
    virtual_nodes: int
    percentage: float


class RingVisualization:
    """Ascending view over a ring's occupied positions.

    Iterating reads the ring's current state each time, so the view can be
    traversed any number of times and never goes stale.
    """

    __slots__ = ("_ring",)

    def __init__(self, ring: HashRing) -> None:
        self._ring = ring

    def __iter__(self) -> Iterator[RingPosition]:
        owners = self._ring._owners
        for position in self._ring._positions:
            cell = owners[position]
            yield RingPosition(
                position=position,
                cell_id=cell.cell_id,
                region=cell.region,
                az=cell.availability_zone,
            )

    def __len__(self) -> int:
        return len(self._ring._positions)

    def __repr__(self) -> str:
        return f"RingVisualization(positions={len(self)})"


class HashRing:
    """Consistent hash ring with weighted virtual nodes.

    Features:
    - O(log n) placement via binary search over sorted positions
    - Weight realized as virtual node count per cell
    - Inactive cells are excluded, not present-but-unroutable
    - ~1/n keys move when a cell joins or leaves

    Two virtual nodes that hash to the same position are resolved by
    last-write-wins: the cell processed later owns the position.  This only
    matters on an MD5 prefix collision and depends on input order.
    """

    RING_SIZE = 2**32  # 32-bit hash space

    def __init__(self, virtual_nodes: int = DEFAULT_VIRTUAL_NODES) -> None:
        """Initialize an empty hash ring.

        Args:
            virtual_nodes: Virtual nodes per unit of cell weight.
                          150 is a good default for most deployments.
        """
        if virtual_nodes < 1:
            msg = f"virtual_nodes must be at least 1, got {virtual_nodes}"
            raise ValueError(msg)

        self._virtual_nodes = virtual_nodes
        self._owners: dict[int, Cell] = {}  # position -> owning cell
        self._positions: list[int] = []  # sorted keys of _owners

    @classmethod
    def from_cells(
        cls,
        cells: Iterable[Cell],
        virtual_nodes: int = DEFAULT_VIRTUAL_NODES,
    ) -> HashRing:
        """Build a fresh ring from a cell snapshot."""
        ring = cls(virtual_nodes)
        ring.rebuild_from_cells(cells)
        return ring

    @staticmethod
    def hash(key: str) -> int:
        return hash_key(key)

    @property
    def virtual_nodes(self) -> int:
        return self._virtual_nodes

    def virtual_nodes_for(self, cell: Cell) -> list[VirtualNode]:
        """Virtual nodes *cell* would occupy, regardless of ``active``."""
        return [
            VirtualNode(cell.cell_id, i, hash_key(virtual_node_key(cell.cell_id, i)))
            for i in range(cell.virtual_node_count(self._virtual_nodes))
        ]

    def add_cell(self, cell: Cell) -> None:
        """Place all virtual nodes of an active cell.

        Inactive cells and cells with no virtual nodes are ignored.
        """
        if self._place(cell):
            self._refresh_positions()

    def remove_cell(self, cell_id: str) -> None:
        """Remove every position owned by *cell_id*."""
        owned = [pos for pos, cell in self._owners.items() if cell.cell_id == cell_id]
        if not owned:
            return

        for pos in owned:
            del self._owners[pos]
        self._refresh_positions()

    def rebuild_from_cells(self, cells: Iterable[Cell]) -> None:
        """Replace the ring contents with exactly the given cell snapshot."""
        self._owners.clear()
        seen: set[str] = set()
        placed = 0

        for cell in cells:
            if cell.cell_id in seen:
                logger.warning(
                    "Duplicate cell id %s in snapshot; later record wins", cell.cell_id
                )
            seen.add(cell.cell_id)
            if self._place(cell):
                placed += 1

        self._refresh_positions()
        logger.debug(
            "Rebuilt ring: %d of %d cells placed, %d positions",
            placed,
            len(seen),
            len(self._positions),
        )

    def get_cell(self, client_key: str) -> Cell | None:
        """Get the cell owning *client_key*.

        Returns:
            The owning cell, or None if no active cell is on the ring.
        """
        idx = self._owner_index(client_key)
        if idx is None:
            return None
        return self._owners[self._positions[idx]]

    def get_preference_list(self, client_key: str, n: int = 3) -> list[Cell]:
        """Get up to *n* distinct cells for a key in failover order.

        Walks the ring clockwise from the key's position.  The first entry is
        always ``get_cell(client_key)``.
        """
        idx = self._owner_index(client_key)
        if idx is None:
            return []

        result: list[Cell] = []
        seen: set[str] = set()
        total = len(self._positions)

        for i in range(total):
            cell = self._owners[self._positions[(idx + i) % total]]
            if cell.cell_id not in seen:
                seen.add(cell.cell_id)
                result.append(cell)
                if len(result) >= n:
                    break

        return result

    def get_cell_distribution(self) -> dict[str, int]:
        """Count ring positions per cell id.  Diagnostic only."""
        return dict(Counter(cell.cell_id for cell in self._owners.values()))

    def distribution_report(self) -> list[CellShare]:
        """Per-cell share of the ring, sorted by cell id."""
        total = len(self._positions)
        return [
            CellShare(
                cell_id=cell_id,
                virtual_nodes=count,
                percentage=count / total * 100,
            )
            for cell_id, count in sorted(self.get_cell_distribution().items())
        ]

    def get_ring_visualization(self) -> RingVisualization:
        return RingVisualization(self)

    @property
    def cells(self) -> frozenset[str]:
        """Ids of the cells that own at least one position."""
        return frozenset(cell.cell_id for cell in self._owners.values())

    @property
    def vnode_count(self) -> int:
        return len(self._positions)

    def _place(self, cell: Cell) -> bool:
        if not cell.active:
            return False

        vnodes = self.virtual_nodes_for(cell)
        if not vnodes:
            logger.warning(
                "Cell %s has weight %s and gets no virtual nodes",
                cell.cell_id,
                cell.weight,
            )
            return False

        for vnode in vnodes:
            self._owners[vnode.position] = cell
        return True

    def _refresh_positions(self) -> None:
        self._positions = sorted(self._owners)

    def _owner_index(self, client_key: str) -> int | None:
        if not self._positions:
            return None

        idx = bisect.bisect_left(self._positions, hash_key(client_key))

        # Wrap around to the first position if past the end
        if idx >= len(self._positions):
            idx = 0
        return idx

    def __len__(self) -> int:
        """Number of cells on the ring."""
        return len(self.cells)

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self.cells

    def __repr__(self) -> str:
        return f"HashRing(cells={len(self)}, vnodes={len(self._positions)})"
