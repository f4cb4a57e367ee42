"""TOML-based configuration for cellring.

Provides ``load_config`` / ``discover_config`` for loading ``cellring.toml``
and frozen dataclasses for the ring, the snapshot refresher, the router and
logging.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from cellring.ring import DEFAULT_VIRTUAL_NODES


__all__ = [
    "CellRingConfig",
    "LogLevel",
    "LoggingConfig",
    "RingConfig",
    "RouterConfig",
    "SnapshotConfig",
    "configure_logging",
    "discover_config",
    "load_config",
]


CONFIG_FILENAME = "cellring.toml"

type LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class RingConfig:
    """Hash ring settings.

    Parameters
    ----------
    virtual_nodes : int
        Virtual nodes per unit of cell weight.

    Examples
    --------
    >>> RingConfig(virtual_nodes=300)
    RingConfig(virtual_nodes=300)
    """

    virtual_nodes: int = DEFAULT_VIRTUAL_NODES

    def __post_init__(self) -> None:
        if self.virtual_nodes < 1:
            msg = f"ring.virtual_nodes must be at least 1, got {self.virtual_nodes}"
            raise ValueError(msg)


@dataclass(frozen=True)
class SnapshotConfig:
    """Ring refresh settings.

    Parameters
    ----------
    refresh_interval : float
        Seconds between ring rebuilds from the registry.
    """

    refresh_interval: float = 30.0

    def __post_init__(self) -> None:
        if self.refresh_interval <= 0:
            msg = (
                "snapshot.refresh_interval must be positive, "
                f"got {self.refresh_interval}"
            )
            raise ValueError(msg)


@dataclass(frozen=True)
class RouterConfig:
    """Router settings.

    Parameters
    ----------
    custom_domain : str
        Domain cell URLs are built under.  Empty means placeholder URLs.
    """

    custom_domain: str = ""


@dataclass(frozen=True)
class LoggingConfig:
    level: LogLevel = "WARNING"

    def __post_init__(self) -> None:
        if self.level not in _LOG_LEVELS:
            msg = f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {self.level!r}"
            raise ValueError(msg)


@dataclass(frozen=True)
class CellRingConfig:
    """Top-level configuration container.

    Typically created via ``load_config()`` but can be constructed manually.

    Examples
    --------
    >>> config = CellRingConfig(ring=RingConfig(virtual_nodes=200))
    >>> config.ring.virtual_nodes
    200

    >>> config = load_config(Path("cellring.toml"))
    """

    ring: RingConfig = field(default_factory=RingConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    router: RouterConfig = field(default_factory=RouterConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def configure_logging(config: LoggingConfig) -> None:
    """Set the level of the ``cellring`` logger hierarchy."""
    logging.getLogger("cellring").setLevel(config.level)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``cellring.toml``.

    Parameters
    ----------
    start : Path | None
        Directory to start searching from.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = start or Path.cwd()
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> CellRingConfig:
    """Load a ``CellRingConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``cellring.toml`` by walking up from
    the current working directory.  Returns default config if no file is found.

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.
    ValueError
        If a setting is out of range.
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return CellRingConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw = tomllib.load(f)

    logging_raw = raw.get("logging", {})
    level = str(logging_raw.get("level", "WARNING")).upper()

    return CellRingConfig(
        ring=RingConfig(**raw.get("ring", {})),
        snapshot=SnapshotConfig(**raw.get("snapshot", {})),
        router=RouterConfig(**raw.get("router", {})),
        logging=LoggingConfig(level=level),  # type: ignore[arg-type]
    )
