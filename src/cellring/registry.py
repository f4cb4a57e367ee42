"""Cell registry seam.

The ring consumes a snapshot of cell records.  ``CellRegistry`` is the
protocol a snapshot source implements; ``InMemoryCellRegistry`` is a
process-local implementation used for tests, demos and single-node setups.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Protocol, runtime_checkable

from cellring.cell import Cell

logger = logging.getLogger("cellring.registry")


@runtime_checkable
class CellRegistry(Protocol):
    def scan(self) -> list[Cell]: ...


class InMemoryCellRegistry:
    """Thread-safe in-memory cell registry keyed by ``cell_id``.

    Examples
    --------
    >>> registry = InMemoryCellRegistry()
    >>> registry.register(Cell("cell-1", region="us-east-1"))
    >>> [c.cell_id for c in registry.scan()]
    ['cell-1']
    """

    def __init__(self, cells: list[Cell] | None = None) -> None:
        self._lock = threading.Lock()
        self._cells: dict[str, Cell] = {}
        for cell in cells or []:
            self._cells[cell.cell_id] = cell

    def register(self, cell: Cell) -> None:
        """Insert or replace a cell record."""
        with self._lock:
            replaced = cell.cell_id in self._cells
            self._cells[cell.cell_id] = cell
        logger.info(
            "%s cell %s", "Re-registered" if replaced else "Registered", cell.cell_id
        )

    def deregister(self, cell_id: str) -> None:
        with self._lock:
            self._cells.pop(cell_id, None)

    def get(self, cell_id: str) -> Cell:
        with self._lock:
            try:
                return self._cells[cell_id]
            except KeyError:
                msg = f"Unknown cell: {cell_id}"
                raise KeyError(msg) from None

    def update_cell(
        self,
        cell_id: str,
        *,
        active: bool | None = None,
        weight: float | None = None,
    ) -> Cell:
        """Change a cell's active flag and/or weight.

        Raises
        ------
        KeyError
            If *cell_id* is not registered.
        ValueError
            If *weight* is negative or not finite.
        """
        changes: dict[str, object] = {}
        if active is not None:
            changes["active"] = active
        if weight is not None:
            if not math.isfinite(weight) or weight < 0:
                msg = f"Cell {cell_id}: weight must be finite and non-negative, got {weight!r}"
                raise ValueError(msg)
            changes["weight"] = weight

        with self._lock:
            if cell_id not in self._cells:
                msg = f"Unknown cell: {cell_id}"
                raise KeyError(msg)
            updated = self._cells[cell_id].with_changes(**changes)
            self._cells[cell_id] = updated

        logger.info("Updated cell %s: %s", cell_id, changes)
        return updated

    def set_region_active(self, region: str, active: bool) -> list[str]:
        """Toggle every cell in *region*; returns the affected cell ids.

        Raises
        ------
        KeyError
            If no cell is registered in *region*.
        """
        with self._lock:
            in_region = sorted(
                cell_id for cell_id, cell in self._cells.items() if cell.region == region
            )
            if not in_region:
                msg = f"No cells found in region {region}"
                raise KeyError(msg)
            for cell_id in in_region:
                self._cells[cell_id] = self._cells[cell_id].with_changes(active=active)

        logger.info(
            "Set %d cells in region %s to active=%s", len(in_region), region, active
        )
        return in_region

    def scan(self) -> list[Cell]:
        """All registered cells, sorted by id."""
        with self._lock:
            return sorted(self._cells.values(), key=lambda c: c.cell_id)

    def active_cells(self) -> list[Cell]:
        return [cell for cell in self.scan() if cell.active]

    def __len__(self) -> int:
        with self._lock:
            return len(self._cells)

    def __contains__(self, cell_id: object) -> bool:
        with self._lock:
            return cell_id in self._cells
