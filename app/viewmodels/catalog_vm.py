"""ViewModel owning the loaded inventory and the current selection."""

from __future__ import annotations

from typing import Any

from loguru import logger

from app.viewmodels.tile_vm import TileVM
from core.models import Dataset, RecordIdentity, TileRecord
from core.services.analysis_service import InventoryAnalysis, analyze_inventory
from core.services.interfaces import MarkerCanvas
from core.services.marker_service import MarkerReconciler


class CatalogVM:
    """Main application view-model.

    Selection can be written by a marker click or by the street/address form;
    the last write wins. Every change is forwarded to the attached map.
    """

    def __init__(self, repo, log: Any | None = None) -> None:
        """Create a CatalogVM.

        Args:
            repo: Repository with `load(path)` and `save(path, dataset)` methods.
            log: Logger with loguru-style methods.
        """
        self._repo = repo
        self._log = log or logger.bind(component="catalog")
        self.dataset = Dataset()
        self._selected: RecordIdentity | None = None
        self._selected_tile: TileVM | None = None
        self._reconciler: MarkerReconciler | None = None
        self._source_csv_path: str | None = None

    def attach_map(self, canvas: MarkerCanvas) -> MarkerReconciler:
        """Bind a map canvas; marker clicks select the clicked record."""
        self._reconciler = MarkerReconciler(canvas, on_marker_click=self.select, log=self._log)
        self._reconciler.dataset_changed(self.dataset)
        self._reconciler.selection_changed(self._selected)
        return self._reconciler

    def load_csv(self, path: str) -> None:
        """Load CSV `path` and select its first record."""
        dataset = self._repo.load(path)
        self._source_csv_path = path
        self.set_dataset(dataset)
        first = dataset[0].identity if len(dataset) else None
        self.select(first)

    def export_csv(self, path: str) -> None:
        """Export the current dataset to CSV at `path`."""
        self._repo.save(path, self.dataset)

    def get_source_csv_path(self) -> str | None:
        """Return the last-loaded CSV path, if available."""
        return self._source_csv_path

    def set_dataset(self, dataset: Dataset) -> None:
        """Replace the inventory; a selection that disappeared is cleared."""
        self.dataset = dataset
        self._log.info("Dataset set: {} records", len(dataset))
        if self._reconciler is not None:
            self._reconciler.dataset_changed(dataset)
        if self._selected is not None and self._selected not in dataset:
            self._log.info("Selected record {} no longer present", tuple(self._selected))
            self.select(None)

    def select(self, identity: RecordIdentity | None) -> bool:
        """Select `identity` (or clear with None).

        Returns False, leaving the selection unchanged, if `identity` is not in
        the current dataset.
        """
        if identity is not None and identity not in self.dataset:
            self._log.warning("Cannot select unknown record {}", tuple(identity))
            return False
        if identity != self._selected:
            self._selected = identity
            self._selected_tile = None
            if identity is None:
                self._log.info("No item selected")
            else:
                self._log.info("Selected item {} ({})", identity.id, identity.street_sign)
        if self._reconciler is not None:
            self._reconciler.selection_changed(identity)
        return True

    def select_by_address(self, street_sign: str, street_address: str) -> bool:
        """Form selection: pick the first record matching sign and address."""
        for record in self.dataset:
            if record.street_sign == street_sign and record.street_address == street_address:
                return self.select(record.identity)
        self._log.warning("No record for {!r} at {!r}", street_sign, street_address)
        return False

    def street_signs(self) -> list[str]:
        """Distinct street signs for the first dropdown, sorted."""
        return sorted({r.street_sign for r in self.dataset})

    def addresses_for(self, street_sign: str) -> list[str]:
        """Addresses carrying `street_sign`, in dataset order."""
        return [r.street_address for r in self.dataset if r.street_sign == street_sign]

    @property
    def selected(self) -> RecordIdentity | None:
        return self._selected

    @property
    def selected_record(self) -> TileRecord | None:
        if self._selected is None:
            return None
        return self.dataset.get(self._selected)

    @property
    def selected_tile(self) -> TileVM | None:
        """Display state of the selected record; photo position survives re-reads."""
        record = self.selected_record
        if record is None:
            return None
        if self._selected_tile is None or not self._selected_tile.record.same_fields(record):
            self._selected_tile = TileVM(record)
        return self._selected_tile

    @property
    def analysis(self) -> InventoryAnalysis:
        return analyze_inventory(self.dataset)

    @property
    def record_count(self) -> int:
        """Number of records currently loaded."""
        return len(self.dataset)
