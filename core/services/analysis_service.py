"""Summary statistics over an inventory dataset."""

from __future__ import annotations

from dataclasses import dataclass

from core.models import Dataset


@dataclass(frozen=True)
class InventoryAnalysis:
    """Totals shown in the catalog header.

    Attributes:
        total_items: Number of records.
        total_damaged_tiles: Sum of known damaged-tile counts.
        average_damaged_tiles: Mean over records with a known count.
        located_items: Records that have coordinates.
        reported_items: Records with a known damaged-tile count.
    """

    total_items: int
    total_damaged_tiles: int
    average_damaged_tiles: float
    located_items: int
    reported_items: int


def analyze_inventory(dataset: Dataset) -> InventoryAnalysis:
    """Compute `InventoryAnalysis`; unknown damage counts are left out, not zeroed."""
    counts = [r.damaged_tile_count for r in dataset if r.damaged_tile_count is not None]
    total = sum(counts)
    return InventoryAnalysis(
        total_items=len(dataset),
        total_damaged_tiles=total,
        average_damaged_tiles=(total / len(counts)) if counts else 0.0,
        located_items=sum(1 for r in dataset if r.has_coordinate),
        reported_items=len(counts),
    )
