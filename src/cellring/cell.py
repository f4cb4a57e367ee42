"""Cell records routed to by the hash ring.

A ``Cell`` is an independently deployable service partition.  The ring only
looks at ``cell_id``, ``weight`` and ``active``; location metadata is carried
through for callers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True, slots=True)
class Cell:
    """A routable partition.

    Parameters
    ----------
    cell_id : str
        Unique, stable identifier.
    region : str
        Region the cell is deployed in.
    availability_zone : str
        Availability zone within ``region``.
    weight : float
        Relative share of hash space.  Zero or negative means no virtual nodes.
    active : bool
        Inactive cells are left out of the ring entirely.

    Examples
    --------
    >>> Cell("cell-1", region="us-east-1", weight=2.0).virtual_node_count(150)
    300
    """

    cell_id: str
    region: str = ""
    availability_zone: str = ""
    weight: float = 1.0
    active: bool = True

    def virtual_node_count(self, base: int) -> int:
        """Number of ring positions this cell gets for *base* nodes per unit weight."""
        scaled = base * self.weight
        if math.isnan(scaled) or scaled <= 0:
            return 0
        if math.isinf(scaled):
            msg = f"Cell {self.cell_id!r} has an unbounded weight: {self.weight}"
            raise ValueError(msg)
        return math.floor(scaled)

    def with_changes(self, **changes: Any) -> Cell:
        return replace(self, **changes)
