"""Turn a placement into a routing decision.

The router sits between a request-handling layer and the ring.  It owns no
HTTP types: each decision carries the status code and target a web handler
would use for a redirect or an error response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cellring.cell import Cell
from cellring.config import CellRingConfig
from cellring.registry import CellRegistry
from cellring.ring import hash_key
from cellring.snapshot import RingSnapshot

logger = logging.getLogger("cellring.router")


@dataclass(frozen=True)
class Routed:
    """The client was placed on a cell."""

    client_id: str
    cell: Cell
    target_url: str
    status_code: int = 302


@dataclass(frozen=True)
class NoActiveCells:
    """No active cell exists, so no placement is possible."""

    client_id: str
    status_code: int = 503


@dataclass(frozen=True)
class InvalidClientId:
    """The request carried no usable client id."""

    client_id: str
    status_code: int = 400


type RoutingDecision = Routed | NoActiveCells | InvalidClientId


@dataclass(frozen=True)
class RouteExplanation:
    """Where a client key lands on the ring and who owns it."""

    client_id: str
    hash_value: int
    cell: Cell | None


class Router:
    """Route client ids to cells using the snapshot's current ring.

    Parameters
    ----------
    snapshot : RingSnapshot
        Holder of the current ring.
    custom_domain : str
        Domain used to build cell URLs (``https://cell-<id>.<domain>``).

    Examples
    --------
    >>> match router.route("client-42"):
    ...     case Routed(target_url=url):
    ...         redirect(url)
    ...     case NoActiveCells():
    ...         unavailable()
    """

    def __init__(self, snapshot: RingSnapshot, *, custom_domain: str = "") -> None:
        self._snapshot = snapshot
        self._custom_domain = custom_domain

    @property
    def snapshot(self) -> RingSnapshot:
        return self._snapshot

    def cell_url(self, cell: Cell) -> str:
        if self._custom_domain:
            return f"https://cell-{cell.cell_id}.{self._custom_domain}"
        return f"https://{cell.cell_id}.example.com"

    def route(self, client_id: str) -> RoutingDecision:
        if not client_id.strip():
            return InvalidClientId(client_id)

        cell = self._snapshot.current().get_cell(client_id)
        if cell is None:
            logger.warning("No active cells; cannot route %s", client_id)
            return NoActiveCells(client_id)

        return Routed(client_id=client_id, cell=cell, target_url=self.cell_url(cell))

    def explain(self, client_id: str) -> RouteExplanation:
        return RouteExplanation(
            client_id=client_id,
            hash_value=hash_key(client_id),
            cell=self._snapshot.current().get_cell(client_id),
        )


def build_router(registry: CellRegistry, config: CellRingConfig | None = None) -> Router:
    """Wire a registry, snapshot holder and router from configuration."""
    config = config or CellRingConfig()
    snapshot = RingSnapshot(
        registry,
        virtual_nodes=config.ring.virtual_nodes,
        refresh_interval=config.snapshot.refresh_interval,
    )
    return Router(snapshot, custom_domain=config.router.custom_domain)
