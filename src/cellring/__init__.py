from cellring.cell import Cell
from cellring.codec import (
    CellRecordError,
    Codec,
    JsonCodec,
    MsgpackCodec,
    cell_from_record,
    cell_to_record,
    ring_report,
)
from cellring.config import (
    CellRingConfig,
    LoggingConfig,
    RingConfig,
    RouterConfig,
    SnapshotConfig,
    configure_logging,
    discover_config,
    load_config,
)
from cellring.registry import CellRegistry, InMemoryCellRegistry
from cellring.ring import (
    CellShare,
    HashRing,
    RingPosition,
    RingVisualization,
    VirtualNode,
    hash_key,
)
from cellring.router import (
    InvalidClientId,
    NoActiveCells,
    RouteExplanation,
    Routed,
    Router,
    RoutingDecision,
    build_router,
)
from cellring.snapshot import RingSnapshot

__all__ = [
    # Ring
    "Cell",
    "CellShare",
    "HashRing",
    "RingPosition",
    "RingVisualization",
    "VirtualNode",
    "hash_key",
    # Registry
    "CellRegistry",
    "InMemoryCellRegistry",
    # Snapshot
    "RingSnapshot",
    # Routing
    "InvalidClientId",
    "NoActiveCells",
    "RouteExplanation",
    "Routed",
    "Router",
    "RoutingDecision",
    "build_router",
    # Codec
    "CellRecordError",
    "Codec",
    "JsonCodec",
    "MsgpackCodec",
    "cell_from_record",
    "cell_to_record",
    "ring_report",
    # Config
    "CellRingConfig",
    "LoggingConfig",
    "RingConfig",
    "RouterConfig",
    "SnapshotConfig",
    "configure_logging",
    "discover_config",
    "load_config",
]
