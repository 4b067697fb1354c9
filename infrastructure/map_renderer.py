"""Retained-mode map canvas exported as a Leaflet page via folium.

`FoliumMarkerCanvas` implements the `MarkerCanvas` protocol. Pins live in
memory and can be clicked programmatically; `render` writes the current state
to a standalone HTML map.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
import os

import folium
from loguru import logger

from core.errors import WriteError
from core.models import Coordinate
from core.services.interfaces import MarkerStyle

# French Quarter, New Orleans
DEFAULT_CENTER = (29.9511, -90.0715)
DEFAULT_ZOOM = 13

ICON_COLOR = {
    MarkerStyle.DEFAULT: "blue",
    MarkerStyle.HIGHLIGHTED: "red",
}


@dataclass(eq=False)
class MapPin:
    """Handle for one drawn marker."""

    coordinate: Coordinate
    popup: str
    style: MarkerStyle
    on_click: Callable[[], None]
    removed: bool = False


class FoliumMarkerCanvas:
    """In-memory marker canvas rendered with folium."""

    def __init__(self) -> None:
        self._pins: list[MapPin] = []

    @property
    def pins(self) -> list[MapPin]:
        """Live pins in creation order."""
        return list(self._pins)

    def create_marker(
        self,
        coordinate: Coordinate,
        popup: str,
        style: MarkerStyle,
        on_click: Callable[[], None],
    ) -> MapPin:
        pin = MapPin(coordinate=coordinate, popup=popup, style=style, on_click=on_click)
        self._pins.append(pin)
        return pin

    def move_marker(self, handle: MapPin, coordinate: Coordinate) -> None:
        self._live(handle).coordinate = coordinate

    def set_marker_style(self, handle: MapPin, style: MarkerStyle) -> None:
        self._live(handle).style = style

    def set_marker_popup(self, handle: MapPin, popup: str) -> None:
        self._live(handle).popup = popup

    def remove_marker(self, handle: MapPin) -> None:
        pin = self._live(handle)
        pin.removed = True
        self._pins.remove(pin)

    def click(self, handle: MapPin) -> None:
        """Dispatch a click on `handle` as the map widget would."""
        self._live(handle).on_click()

    def build_map(
        self, center: tuple[float, float] = DEFAULT_CENTER, zoom: int = DEFAULT_ZOOM
    ) -> folium.Map:
        """Build a folium map holding one marker per live pin."""
        fmap = folium.Map(location=list(center), zoom_start=zoom, tiles="OpenStreetMap")
        for pin in self._pins:
            folium.Marker(
                location=[pin.coordinate.latitude, pin.coordinate.longitude],
                popup=folium.Popup(pin.popup, max_width=300),
                tooltip=pin.popup,
                icon=folium.Icon(color=ICON_COLOR[pin.style]),
            ).add_to(fmap)
        return fmap

    def render(
        self,
        output_html: str | os.PathLike[str],
        center: tuple[float, float] = DEFAULT_CENTER,
        zoom: int = DEFAULT_ZOOM,
    ) -> Path:
        """Write the map to `output_html` and return its path.

        Raises:
            WriteError: If the page cannot be written.
        """
        path = Path(output_html)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self.build_map(center, zoom).save(str(path))
        except OSError as ex:
            raise WriteError(str(path), str(ex)) from ex
        logger.info("Map written: {} ({} markers)", path, len(self._pins))
        return path

    def _live(self, handle: MapPin) -> MapPin:
        if handle.removed or handle not in self._pins:
            raise KeyError("marker handle is not on this canvas")
        return handle
