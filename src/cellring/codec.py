"""Registry record codec.

Cell records travel as camelCase mappings
(``cellId``/``region``/``availabilityZone``/``weight``/``active``).  This
module validates them at the boundary and encodes cell lists and ring
reports to JSON or MessagePack.

- ``JsonCodec`` -- standard library ``json``
- ``MsgpackCodec`` -- requires ``msgpack`` (``pip install cellring[msgpack]``)
"""

from __future__ import annotations

import importlib
import json
import math
from collections.abc import Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from cellring.cell import Cell
from cellring.ring import HashRing


class CellRecordError(ValueError):
    """A registry record cannot be turned into a ``Cell``."""


def _lazy_import(module_name: str, extra: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError:
        msg = f"'{module_name}' is required. Install with: pip install cellring[{extra}]"
        raise ModuleNotFoundError(msg) from None


def cell_from_record(record: Mapping[str, Any]) -> Cell:
    """Validate a registry record and build a ``Cell``.

    Unknown keys (``registeredAt``, ``lastHeartbeat``, ``ttl`` ...) are
    ignored.  A missing ``weight`` means 1 and a missing ``active`` means
    ``True``.

    Raises
    ------
    CellRecordError
        If ``cellId`` is missing or blank, ``weight`` is not a finite
        non-negative number, or ``active`` is not a boolean.

    Examples
    --------
    >>> cell_from_record({"cellId": "cell-1", "region": "us-east-1"})
    Cell(cell_id='cell-1', region='us-east-1', availability_zone='', weight=1.0, active=True)
    """
    cell_id = record.get("cellId")
    if not isinstance(cell_id, str) or not cell_id.strip():
        msg = f"Record has no usable cellId: {dict(record)!r}"
        raise CellRecordError(msg)

    weight = record.get("weight", 1)
    if isinstance(weight, bool) or not isinstance(weight, int | float):
        msg = f"Cell {cell_id}: weight must be a number, got {weight!r}"
        raise CellRecordError(msg)
    if not math.isfinite(weight) or weight < 0:
        msg = f"Cell {cell_id}: weight must be finite and non-negative, got {weight!r}"
        raise CellRecordError(msg)

    active = record.get("active", True)
    if not isinstance(active, bool):
        msg = f"Cell {cell_id}: active must be a boolean, got {active!r}"
        raise CellRecordError(msg)

    return Cell(
        cell_id=cell_id,
        region=str(record.get("region", "")),
        availability_zone=str(record.get("availabilityZone", "")),
        weight=float(weight),
        active=active,
    )


def cell_to_record(cell: Cell) -> dict[str, Any]:
    return {
        "cellId": cell.cell_id,
        "region": cell.region,
        "availabilityZone": cell.availability_zone,
        "weight": cell.weight,
        "active": cell.active,
    }


def ring_report(ring: HashRing) -> dict[str, Any]:
    """Distribution and full position list of *ring* as plain data."""
    return {
        "distribution": [
            {
                "cellId": share.cell_id,
                "virtualNodes": share.virtual_nodes,
                "percentage": share.percentage,
            }
            for share in ring.distribution_report()
        ],
        "ring": [
            {
                "position": entry.position,
                "cellId": entry.cell_id,
                "region": entry.region,
                "az": entry.az,
            }
            for entry in ring.get_ring_visualization()
        ],
        "totalVirtualNodes": ring.vnode_count,
    }


@runtime_checkable
class Codec(Protocol):
    def encode(self, payload: Any) -> bytes: ...
    def decode(self, data: bytes) -> Any: ...


class _CellListMixin:
    def encode_cells(self: Codec, cells: Iterable[Cell]) -> bytes:
        return self.encode([cell_to_record(cell) for cell in cells])

    def decode_cells(self: Codec, data: bytes) -> list[Cell]:
        payload = self.decode(data)
        if not isinstance(payload, list):
            msg = f"Expected a list of cell records, got {type(payload).__name__}"
            raise CellRecordError(msg)
        return [cell_from_record(record) for record in payload]


class JsonCodec(_CellListMixin):
    """UTF-8 JSON encoding of plain data."""

    def encode(self, payload: Any) -> bytes:
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")

    def decode(self, data: bytes) -> Any:
        return json.loads(data)


class MsgpackCodec(_CellListMixin):
    """MessagePack encoding of plain data.

    Requires the optional ``msgpack`` package.

    Examples
    --------
    >>> codec = MsgpackCodec()
    >>> codec.decode_cells(codec.encode_cells([Cell("cell-1")]))
    [Cell(cell_id='cell-1', region='', availability_zone='', weight=1.0, active=True)]
    """

    def encode(self, payload: Any) -> bytes:
        msgpack = _lazy_import("msgpack", "msgpack")
        return msgpack.packb(payload, use_bin_type=True)  # type: ignore[no-any-return]

    def decode(self, data: bytes) -> Any:
        msgpack = _lazy_import("msgpack", "msgpack")
        return msgpack.unpackb(data, raw=False)
