"""Keeps map markers in sync with the inventory and the current selection.

The service is decoupled from any map toolkit: it drives a `MarkerCanvas`
adapter and stores the handles it returns keyed by record identity, so a
reordered or filtered dataset never attaches a marker to the wrong record.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from loguru import logger

from core.models import Coordinate, Dataset, RecordIdentity, TileRecord
from core.services.interfaces import MarkerCanvas, MarkerStyle, ReconcileReport


def marker_popup(record: TileRecord) -> str:
    """Popup text shown for a record's marker."""
    damaged = "unknown" if record.damaged_tile_count is None else record.damaged_tile_count
    return f"{record.street_sign}: {damaged} damaged tiles"


@dataclass
class MarkerEntry:
    """Marker-set entry: the canvas handle and what it currently shows."""

    handle: Any
    coordinate: Coordinate
    popup: str


class MarkerReconciler:
    """Incremental, identity-keyed marker reconciliation.

    Two events drive the state: `dataset_changed` and `selection_changed`.
    Markers are created, moved in place, or removed; never rebuilt wholesale.

    Args:
        canvas: Map adapter that draws the markers.
        on_marker_click: Receives the identity of a clicked marker. When not
            given, clicks feed straight back into `selection_changed`.
        log: Logger with loguru-style methods.
    """

    def __init__(
        self,
        canvas: MarkerCanvas,
        on_marker_click: Callable[[RecordIdentity], None] | None = None,
        log: Any | None = None,
    ) -> None:
        self._canvas = canvas
        self._on_marker_click = on_marker_click
        self._log = log or logger.bind(component="markers")
        self._markers: dict[RecordIdentity, MarkerEntry] = {}
        self._dataset_ids: set[RecordIdentity] = set()
        self._selected: RecordIdentity | None = None
        self._highlighted: RecordIdentity | None = None

    @property
    def markers(self) -> Mapping[RecordIdentity, MarkerEntry]:
        """Read-only view of the marker-set."""
        return MappingProxyType(self._markers)

    @property
    def selected(self) -> RecordIdentity | None:
        return self._selected

    @property
    def highlighted(self) -> RecordIdentity | None:
        """Identity whose marker currently carries the highlighted style."""
        return self._highlighted

    def dataset_changed(self, dataset: Dataset) -> ReconcileReport:
        """Bring the marker-set in line with `dataset`."""
        report = ReconcileReport()
        wanted: dict[RecordIdentity, tuple[TileRecord, Coordinate]] = {
            r.identity: (r, r.coordinate) for r in dataset if r.coordinate is not None
        }

        for identity in [i for i in self._markers if i not in wanted]:
            entry = self._markers.pop(identity)
            self._canvas.remove_marker(entry.handle)
            if self._highlighted == identity:
                self._highlighted = None
            report.removed.append(identity)

        for identity, (record, coordinate) in wanted.items():
            popup = marker_popup(record)
            entry = self._markers.get(identity)
            if entry is None:
                handle = self._canvas.create_marker(
                    coordinate, popup, MarkerStyle.DEFAULT, self._click_handler(identity)
                )
                self._markers[identity] = MarkerEntry(handle, coordinate, popup)
                report.created.append(identity)
                continue
            if entry.coordinate != coordinate:
                self._canvas.move_marker(entry.handle, coordinate)
                entry.coordinate = coordinate
                report.moved.append(identity)
            if entry.popup != popup:
                self._canvas.set_marker_popup(entry.handle, popup)
                entry.popup = popup

        self._dataset_ids = set(dataset.identities())
        self._apply_style()
        if report.changed:
            self._log.debug(
                "Markers reconciled: {} created, {} moved, {} removed ({} live)",
                len(report.created),
                len(report.moved),
                len(report.removed),
                len(self._markers),
            )
        return report

    def selection_changed(self, identity: RecordIdentity | None) -> None:
        """Highlight the marker of `identity` (or none).

        Identities absent from the current dataset are ignored. A record
        without coordinates can be selected; no marker gets highlighted then.
        """
        if identity is not None and identity not in self._dataset_ids:
            self._log.debug("Ignoring selection of unknown record {}", tuple(identity))
            return
        self._selected = identity
        self._apply_style()

    def clear(self) -> None:
        """Remove every marker, e.g. when the map is torn down."""
        for entry in self._markers.values():
            self._canvas.remove_marker(entry.handle)
        self._markers.clear()
        self._dataset_ids.clear()
        self._highlighted = None

    def _apply_style(self) -> None:
        # Touches at most two markers: the old highlight and the new one
        target = self._selected if self._selected in self._markers else None
        if target == self._highlighted:
            return
        if self._highlighted is not None and self._highlighted in self._markers:
            self._canvas.set_marker_style(self._markers[self._highlighted].handle, MarkerStyle.DEFAULT)
        if target is not None:
            self._canvas.set_marker_style(self._markers[target].handle, MarkerStyle.HIGHLIGHTED)
        self._highlighted = target

    def _click_handler(self, identity: RecordIdentity) -> Callable[[], None]:
        def on_click() -> None:
            self._log.debug("Marker clicked: {}", tuple(identity))
            if self._on_marker_click is not None:
                self._on_marker_click(identity)
            else:
                self.selection_changed(identity)

        return on_click
