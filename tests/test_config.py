from __future__ import annotations

import logging
from pathlib import Path

import pytest

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


# ---------------------------------------------------------------------------
# Config dataclass defaults
# ---------------------------------------------------------------------------


class TestRingConfig:
    def test_defaults(self) -> None:
        assert RingConfig().virtual_nodes == 150

    def test_custom(self) -> None:
        assert RingConfig(virtual_nodes=400).virtual_nodes == 400

    def test_rejects_zero(self) -> None:
        with pytest.raises(ValueError, match="virtual_nodes"):
            RingConfig(virtual_nodes=0)

    def test_frozen(self) -> None:
        cfg = RingConfig()
        with pytest.raises(AttributeError):
            cfg.virtual_nodes = 42  # type: ignore[misc]


class TestSnapshotConfig:
    def test_defaults(self) -> None:
        assert SnapshotConfig().refresh_interval == 30.0

    def test_rejects_non_positive(self) -> None:
        with pytest.raises(ValueError, match="refresh_interval"):
            SnapshotConfig(refresh_interval=0)


class TestLoggingConfig:
    def test_defaults(self) -> None:
        assert LoggingConfig().level == "WARNING"

    def test_rejects_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="logging.level"):
            LoggingConfig(level="LOUD")  # type: ignore[arg-type]

    def test_configure_logging(self) -> None:
        logger = logging.getLogger("cellring")
        previous = logger.level
        try:
            configure_logging(LoggingConfig(level="DEBUG"))
            assert logger.level == logging.DEBUG
            assert logging.getLogger("cellring.ring").getEffectiveLevel() == logging.DEBUG
        finally:
            logger.setLevel(previous)


class TestCellRingConfigDefaults:
    def test_all_defaults(self) -> None:
        cfg = CellRingConfig()
        assert cfg.ring == RingConfig()
        assert cfg.snapshot == SnapshotConfig()
        assert cfg.router == RouterConfig()
        assert cfg.router.custom_domain == ""
        assert cfg.logging == LoggingConfig()


# ---------------------------------------------------------------------------
# TOML loading
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_full_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cellring.toml"
        path.write_text(
            """
[ring]
virtual_nodes = 300

[snapshot]
refresh_interval = 5.5

[router]
custom_domain = "cells.example.org"

[logging]
level = "debug"
"""
        )

        cfg = load_config(path)

        assert cfg.ring.virtual_nodes == 300
        assert cfg.snapshot.refresh_interval == 5.5
        assert cfg.router.custom_domain == "cells.example.org"
        assert cfg.logging.level == "DEBUG"

    def test_partial_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "cellring.toml"
        path.write_text("[router]\ncustom_domain = 'x.test'\n")

        cfg = load_config(path)

        assert cfg.ring.virtual_nodes == 150
        assert cfg.snapshot.refresh_interval == 30.0
        assert cfg.router.custom_domain == "x.test"

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cellring.toml"
        path.write_text("")
        assert load_config(path) == CellRingConfig()

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_config(tmp_path / "nope.toml")

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = tmp_path / "cellring.toml"
        path.write_text("[ring]\nvirtual_nodes = -1\n")

        with pytest.raises(ValueError, match="virtual_nodes"):
            load_config(path)

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = tmp_path / "cellring.toml"
        path.write_text("[ring]\nreplicas = 3\n")

        with pytest.raises(TypeError):
            load_config(path)

    def test_discovered_from_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "cellring.toml").write_text("[ring]\nvirtual_nodes = 42\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert load_config().ring.virtual_nodes == 42

    def test_no_file_returns_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        if discover_config() is not None:
            pytest.skip("a cellring.toml exists above the temp directory")
        assert load_config() == CellRingConfig()


class TestDiscoverConfig:
    def test_finds_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / "cellring.toml").write_text("")
        assert discover_config(tmp_path) == (tmp_path / "cellring.toml").resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / "cellring.toml").write_text("")
        nested = tmp_path / "x" / "y" / "z"
        nested.mkdir(parents=True)

        assert discover_config(nested) == (tmp_path / "cellring.toml").resolve()

    def test_ignores_directory_named_like_config(self, tmp_path: Path) -> None:
        (tmp_path / "cellring.toml").mkdir()
        nested = tmp_path / "inner"
        nested.mkdir()

        found = discover_config(nested)
        assert found != (tmp_path / "cellring.toml").resolve()
