"""Core domain models for tile inventory records and datasets."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, fields, replace
import math
from typing import NamedTuple

MAX_PHOTOS = 5


class RecordIdentity(NamedTuple):
    """Stable identity of an inventory entry.

    Some dataset revisions reuse ids across address corrections, so the id
    alone is not enough to tell two records apart.
    """

    id: int
    street_sign: str
    street_address: str


class Coordinate(NamedTuple):
    """A WGS84 latitude/longitude pair."""

    latitude: float
    longitude: float


@dataclass(frozen=True, eq=False)
class TileRecord:
    """A single street-sign tile row originating from the inventory CSV."""

    id: int
    street_sign: str
    street_address: str
    sign_condition: str | None = None
    damaged_tile_count: int | None = None
    photo_refs: tuple[str, ...] = ()
    latitude: float | None = None
    longitude: float | None = None

    def __post_init__(self) -> None:
        if not self.street_sign.strip():
            raise ValueError("street_sign must not be empty")
        if not self.street_address.strip():
            raise ValueError("street_address must not be empty")
        if self.damaged_tile_count is not None and self.damaged_tile_count < 0:
            raise ValueError(f"damaged_tile_count must be >= 0, got {self.damaged_tile_count}")
        if len(self.photo_refs) > MAX_PHOTOS:
            raise ValueError(f"at most {MAX_PHOTOS} photos per record, got {len(self.photo_refs)}")
        if any(not ref or not ref.strip() for ref in self.photo_refs):
            raise ValueError("photo references must not be blank")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be both present or both absent")
        for value in (self.latitude, self.longitude):
            if value is not None and not math.isfinite(value):
                raise ValueError(f"coordinates must be finite, got {value!r}")
        # Accept any iterable of photos but store a tuple so the record stays hashable
        object.__setattr__(self, "photo_refs", tuple(self.photo_refs))

    @property
    def identity(self) -> RecordIdentity:
        return RecordIdentity(self.id, self.street_sign, self.street_address)

    @property
    def coordinate(self) -> Coordinate | None:
        """Coordinates of the record, or None when not geocoded."""
        if self.latitude is None or self.longitude is None:
            return None
        return Coordinate(self.latitude, self.longitude)

    @property
    def has_coordinate(self) -> bool:
        return self.latitude is not None

    def with_coordinate(self, coordinate: Coordinate | None) -> TileRecord:
        """Return a copy with both coordinates set (or both cleared)."""
        if coordinate is None:
            return replace(self, latitude=None, longitude=None)
        return replace(self, latitude=float(coordinate.latitude), longitude=float(coordinate.longitude))

    def same_fields(self, other: TileRecord) -> bool:
        """True if every field matches, not only the identity triple."""
        return all(getattr(self, f.name) == getattr(other, f.name) for f in fields(self))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TileRecord):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)


class Dataset:
    """Ordered inventory with unique record identities.

    Insertion order is the file row order. Duplicate identities are dropped
    keeping the first occurrence; the dropped rows are kept in `duplicates`
    so callers can report them.
    """

    def __init__(self, records: Iterable[TileRecord] = ()) -> None:
        kept: list[TileRecord] = []
        dropped: list[TileRecord] = []
        index: dict[RecordIdentity, int] = {}
        for record in records:
            if record.identity in index:
                dropped.append(record)
                continue
            index[record.identity] = len(kept)
            kept.append(record)
        self._records = tuple(kept)
        self._index = index
        self.duplicates: tuple[TileRecord, ...] = tuple(dropped)

    @property
    def records(self) -> tuple[TileRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TileRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> TileRecord:
        return self._records[index]

    def __contains__(self, item: object) -> bool:
        if isinstance(item, TileRecord):
            item = item.identity
        return item in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        if len(self) != len(other):
            return False
        return all(a.same_fields(b) for a, b in zip(self._records, other._records))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Dataset({len(self._records)} records)"

    def get(self, identity: RecordIdentity) -> TileRecord | None:
        """Return the record with `identity`, or None."""
        idx = self._index.get(identity)
        return None if idx is None else self._records[idx]

    def identities(self) -> list[RecordIdentity]:
        """Identities in dataset order."""
        return list(self._index)

    def replace(self, record: TileRecord) -> Dataset:
        """Return a new dataset with `record` swapped in at its current position."""
        idx = self._index.get(record.identity)
        if idx is None:
            raise KeyError(f"record not in dataset: {record.identity}")
        items = list(self._records)
        items[idx] = record
        return Dataset(items)
