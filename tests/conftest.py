"""Shared fixtures: stub geocoder, recording canvas and recording logger."""

from __future__ import annotations

import sys

from loguru import logger
import pytest

from core.errors import GeocodeError
from core.models import Coordinate, TileRecord
from core.services.interfaces import MarkerStyle


class RecordingLog:
    """Captures loguru-style calls instead of writing to a global sink."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str]] = []

    def _emit(self, level: str, message: str, *args) -> None:
        self.records.append((level, message.format(*args)))

    def debug(self, message: str, *args) -> None:
        self._emit("DEBUG", message, *args)

    def info(self, message: str, *args) -> None:
        self._emit("INFO", message, *args)

    def warning(self, message: str, *args) -> None:
        self._emit("WARNING", message, *args)

    def error(self, message: str, *args) -> None:
        self._emit("ERROR", message, *args)

    def messages(self, level: str) -> list[str]:
        return [m for lvl, m in self.records if lvl == level]


class StubGeocoder:
    """Deterministic geocoder keyed by street address.

    Values are a `Coordinate`, None (not found) or an exception to raise.
    """

    def __init__(self, answers: dict[str, object] | None = None, locality: str = "New Orleans, LA"):
        self.answers = dict(answers or {})
        self.locality = locality
        self.calls: list[str] = []

    def query_for(self, street_address: str) -> str:
        return f"{street_address}, {self.locality}"

    def resolve(self, query: str) -> Coordinate | None:
        self.calls.append(query)
        address = query.rsplit(f", {self.locality}", 1)[0]
        answer = self.answers.get(address)
        if isinstance(answer, Exception):
            raise answer
        return answer  # type: ignore[return-value]


class RecordingCanvas:
    """MarkerCanvas double that records every drawing operation."""

    def __init__(self) -> None:
        self.ops: list[tuple] = []
        self.markers: dict[int, dict] = {}
        self._next = 1

    def create_marker(self, coordinate, popup, style, on_click):
        handle = self._next
        self._next += 1
        self.markers[handle] = {
            "coordinate": coordinate,
            "popup": popup,
            "style": style,
            "on_click": on_click,
        }
        self.ops.append(("create", handle))
        return handle

    def move_marker(self, handle, coordinate):
        self.markers[handle]["coordinate"] = coordinate
        self.ops.append(("move", handle))

    def set_marker_style(self, handle, style):
        self.markers[handle]["style"] = style
        self.ops.append(("style", handle, style))

    def set_marker_popup(self, handle, popup):
        self.markers[handle]["popup"] = popup
        self.ops.append(("popup", handle))

    def remove_marker(self, handle):
        del self.markers[handle]
        self.ops.append(("remove", handle))

    def click(self, handle):
        self.markers[handle]["on_click"]()

    def highlighted(self) -> list[int]:
        return [h for h, m in self.markers.items() if m["style"] is MarkerStyle.HIGHLIGHTED]


@pytest.fixture
def make_record():
    def _make(record_id: int, coords: tuple[float, float] | None = None, **kwargs) -> TileRecord:
        kwargs.setdefault("street_sign", f"Sign {record_id}")
        kwargs.setdefault("street_address", f"{record_id} Royal St")
        lat, lon = coords if coords is not None else (None, None)
        return TileRecord(id=record_id, latitude=lat, longitude=lon, **kwargs)

    return _make


@pytest.fixture
def recording_log() -> RecordingLog:
    return RecordingLog()


@pytest.fixture
def canvas() -> RecordingCanvas:
    return RecordingCanvas()


@pytest.fixture
def stub_geocoder():
    return StubGeocoder


@pytest.fixture
def geocode_error():
    return GeocodeError


@pytest.fixture(autouse=True)
def restore_loguru():
    """Undo sinks installed by `init_logging` during a test."""
    yield
    logger.remove()
    logger.add(sys.stderr)
