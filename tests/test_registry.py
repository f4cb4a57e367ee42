from __future__ import annotations

import math
import threading

import pytest

from cellring.cell import Cell
from cellring.registry import CellRegistry, InMemoryCellRegistry


@pytest.fixture
def registry() -> InMemoryCellRegistry:
    return InMemoryCellRegistry(
        [
            Cell("cell-2", region="us-west-2", availability_zone="us-west-2a"),
            Cell("cell-1", region="us-east-1", availability_zone="us-east-1a"),
            Cell("cell-3", region="us-east-1", availability_zone="us-east-1b"),
        ]
    )


class TestInMemoryCellRegistry:
    def test_satisfies_protocol(self, registry: InMemoryCellRegistry) -> None:
        assert isinstance(registry, CellRegistry)

    def test_scan_sorted_by_id(self, registry: InMemoryCellRegistry) -> None:
        assert [c.cell_id for c in registry.scan()] == ["cell-1", "cell-2", "cell-3"]

    def test_register_upserts(self, registry: InMemoryCellRegistry) -> None:
        registry.register(Cell("cell-1", region="eu-west-1", weight=2.0))

        assert len(registry) == 3
        assert registry.get("cell-1").region == "eu-west-1"
        assert registry.get("cell-1").weight == 2.0

    def test_get_unknown(self, registry: InMemoryCellRegistry) -> None:
        with pytest.raises(KeyError, match="cell-9"):
            registry.get("cell-9")

    def test_deregister(self, registry: InMemoryCellRegistry) -> None:
        registry.deregister("cell-2")
        registry.deregister("cell-9")

        assert "cell-2" not in registry
        assert len(registry) == 2

    def test_update_cell(self, registry: InMemoryCellRegistry) -> None:
        updated = registry.update_cell("cell-2", active=False, weight=0.5)

        assert updated.active is False
        assert updated.weight == 0.5
        assert updated.region == "us-west-2"
        assert registry.get("cell-2") == updated

    def test_update_cell_keeps_unset_fields(self, registry: InMemoryCellRegistry) -> None:
        registry.update_cell("cell-1", weight=3.0)
        assert registry.get("cell-1").active is True

    def test_update_unknown_cell(self, registry: InMemoryCellRegistry) -> None:
        with pytest.raises(KeyError, match="Unknown cell"):
            registry.update_cell("cell-9", active=False)

    def test_active_cells(self, registry: InMemoryCellRegistry) -> None:
        registry.update_cell("cell-1", active=False)
        assert [c.cell_id for c in registry.active_cells()] == ["cell-2", "cell-3"]

    def test_set_region_active(self, registry: InMemoryCellRegistry) -> None:
        updated = registry.set_region_active("us-east-1", False)

        assert updated == ["cell-1", "cell-3"]
        assert [c.cell_id for c in registry.active_cells()] == ["cell-2"]

    def test_set_region_active_unknown_region(
        self, registry: InMemoryCellRegistry
    ) -> None:
        with pytest.raises(KeyError, match="No cells found in region"):
            registry.set_region_active("ap-south-1", False)

    @pytest.mark.parametrize("weight", [-1.0, math.nan, math.inf])
    def test_update_cell_rejects_bad_weight(
        self, registry: InMemoryCellRegistry, weight: float
    ) -> None:
        with pytest.raises(ValueError, match="finite and non-negative"):
            registry.update_cell("cell-1", weight=weight)

        assert registry.get("cell-1").weight == 1.0

    def test_update_cell_accepts_zero_weight(
        self, registry: InMemoryCellRegistry
    ) -> None:
        assert registry.update_cell("cell-1", weight=0.0).weight == 0.0

    def test_concurrent_writers_and_membership_reads(
        self, registry: InMemoryCellRegistry
    ) -> None:
        misses: list[str] = []

        def churn(offset: int) -> None:
            for i in range(200):
                cell_id = f"cell-{offset}-{i}"
                registry.register(Cell(cell_id))
                if cell_id not in registry or len(registry) < 4:
                    misses.append(cell_id)
                registry.deregister(cell_id)

        threads = [threading.Thread(target=churn, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert misses == []
        assert len(registry) == 3
