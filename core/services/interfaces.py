"""Core service interfaces and shared data structures.

This module defines the collaborator protocols (geocoder, drawable map
markers) and the simple dataclasses that describe enrichment and marker
reconciliation outcomes across the infrastructure and app layers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from core.models import Coordinate, Dataset, RecordIdentity


class GeocodingClient(Protocol):
    """Resolves one free-text address to a coordinate pair."""

    def query_for(self, street_address: str) -> str:
        """Return the address string submitted to the geocoding service."""
        raise NotImplementedError

    def resolve(self, query: str) -> Coordinate | None:
        """Return coordinates for `query`, or None when nothing matched.

        Raises:
            GeocodeError: On timeout, non-success status or malformed response.
        """
        raise NotImplementedError


class MarkerStyle(Enum):
    """Visual state of a map marker."""

    DEFAULT = "default"
    HIGHLIGHTED = "highlighted"


class MarkerCanvas(Protocol):
    """Abstracts the drawing primitives of the map widget.

    Handles returned by `create_marker` are opaque to the caller and are only
    ever passed back to the same canvas.
    """

    def create_marker(
        self,
        coordinate: Coordinate,
        popup: str,
        style: MarkerStyle,
        on_click: Callable[[], None],
    ) -> Any:
        """Draw a new marker and return its handle."""
        raise NotImplementedError

    def move_marker(self, handle: Any, coordinate: Coordinate) -> None:
        """Move an existing marker without recreating it."""
        raise NotImplementedError

    def set_marker_style(self, handle: Any, style: MarkerStyle) -> None:
        """Restyle an existing marker."""
        raise NotImplementedError

    def set_marker_popup(self, handle: Any, popup: str) -> None:
        """Replace the popup text of an existing marker."""
        raise NotImplementedError

    def remove_marker(self, handle: Any) -> None:
        """Erase a marker from the map."""
        raise NotImplementedError


@dataclass(frozen=True)
class EnrichmentFailure:
    """A record whose geocoding failed with a transport/protocol error.

    Attributes:
        record_identity: Identity of the record left without coordinates.
        cause: Reason reported by the geocoding client.
    """

    record_identity: RecordIdentity
    cause: str


@dataclass
class EnrichmentResult:
    """Outcome of an enrichment run.

    Attributes:
        dataset: Dataset with every resolvable record geocoded.
        failures: Per-record geocoding errors, in dataset order.
        geocoded: Number of records that received coordinates in this run.
        not_found: Number of records the service had no match for.
        cancelled: Whether the run stopped early on request.
    """

    dataset: Dataset
    failures: list[EnrichmentFailure] = field(default_factory=list)
    geocoded: int = 0
    not_found: int = 0
    cancelled: bool = False


@dataclass
class ReconcileReport:
    """Marker operations applied for one dataset change.

    Attributes:
        created: Identities that received a new marker.
        moved: Identities whose marker was moved in place.
        removed: Identities whose marker was erased.
    """

    created: list[RecordIdentity] = field(default_factory=list)
    moved: list[RecordIdentity] = field(default_factory=list)
    removed: list[RecordIdentity] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.moved or self.removed)
