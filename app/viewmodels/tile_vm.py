"""View model wrapper around `TileRecord` with photo album navigation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

from core.models import TileRecord
from core.services.marker_service import marker_popup

NO_LOCATION_TEXT = "no location available"


@dataclass
class TileVM:
    """Expose convenient properties for bindings/templates."""

    record: TileRecord
    photo_index: int = 0

    @property
    def photos(self) -> list[str]:
        """Photo references in album order."""
        return list(self.record.photo_refs)

    @property
    def photo_count(self) -> int:
        return len(self.record.photo_refs)

    @property
    def current_photo(self) -> str | None:
        """Reference of the photo on display, or None when there are none."""
        if not self.record.photo_refs:
            return None
        return self.record.photo_refs[self.photo_index % self.photo_count]

    @property
    def current_photo_name(self) -> str:
        photo = self.current_photo
        return PurePath(photo).name if photo else ""

    @property
    def photo_caption(self) -> str:
        if not self.photo_count:
            return "No photos available for this item."
        return f"Photo {self.photo_index + 1} of {self.photo_count}"

    def next_photo(self) -> str | None:
        """Advance the album, wrapping around after the last photo."""
        if self.photo_count:
            self.photo_index = (self.photo_index + 1) % self.photo_count
        return self.current_photo

    def previous_photo(self) -> str | None:
        """Step the album back, wrapping around before the first photo."""
        if self.photo_count:
            self.photo_index = (self.photo_index + self.photo_count - 1) % self.photo_count
        return self.current_photo

    @property
    def location_text(self) -> str:
        coordinate = self.record.coordinate
        if coordinate is None:
            return NO_LOCATION_TEXT
        return f"{coordinate.latitude:.6f}, {coordinate.longitude:.6f}"

    @property
    def damage_text(self) -> str:
        """Damaged tile count, or "unknown" when it was never reported."""
        count = self.record.damaged_tile_count
        return "unknown" if count is None else str(count)

    @property
    def popup_text(self) -> str:
        return marker_popup(self.record)
