"""Cell Routing Example

Registers three cells, routes a batch of clients, then takes one region
offline and shows which clients moved.

Run with:
    uv run python examples/01-cell-routing.py
"""
from __future__ import annotations

from cellring import (
    Cell,
    InMemoryCellRegistry,
    JsonCodec,
    NoActiveCells,
    Routed,
    build_router,
    ring_report,
)


def main() -> None:
    registry = InMemoryCellRegistry()
    registry.register(Cell("cell-1", region="us-east-1", availability_zone="us-east-1a"))
    registry.register(Cell("cell-2", region="us-east-1", availability_zone="us-east-1b"))
    registry.register(
        Cell("cell-3", region="us-west-2", availability_zone="us-west-2a", weight=2.0)
    )

    router = build_router(registry)
    clients = [f"client-{i:03d}" for i in range(12)]

    before: dict[str, str] = {}
    for client_id in clients:
        match router.route(client_id):
            case Routed(cell=cell, target_url=url):
                before[client_id] = cell.cell_id
                print(f"{client_id} -> {cell.cell_id} ({url})")
            case NoActiveCells():
                print(f"{client_id} -> unavailable")

    for share in router.snapshot.current().distribution_report():
        print(f"{share.cell_id}: {share.virtual_nodes} vnodes ({share.percentage:.1f}%)")

    registry.set_region_active("us-west-2", False)
    ring = router.snapshot.refresh()

    moved = [c for c in clients if ring.get_cell(c).cell_id != before.get(c)]
    print(f"{len(moved)} of {len(clients)} clients moved after us-west-2 went offline")

    report = JsonCodec().encode(ring_report(ring))
    print(f"ring report: {len(report)} bytes")


if __name__ == "__main__":
    main()
