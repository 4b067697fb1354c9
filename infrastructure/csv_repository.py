"""CSV persistence for the tile inventory.

Provides an all-or-nothing parser that reports the exact data row of any
malformed record, and a serializer that writes coordinates at full float
precision so that a parse/serialize round trip is lossless.
"""

from __future__ import annotations

import csv
import io
import math
import os
from pathlib import Path
import tempfile

from loguru import logger

from core.errors import ParseError, WriteError
from core.models import MAX_PHOTOS, Dataset, TileRecord

COL_ID = "ID"
COL_SIGN = "Street Sign"
COL_ADDRESS = "Street Address"
COL_CONDITION = "Sign Condition"
COL_DAMAGED = "Number of Tiles Damaged"
COL_PHOTOS = [f"Photo {n}" for n in range(1, MAX_PHOTOS + 1)]
COL_LAT = "latitude"
COL_LON = "longitude"

CSV_HEADERS = [
    COL_ID,
    COL_SIGN,
    COL_ADDRESS,
    COL_CONDITION,
    COL_DAMAGED,
    *COL_PHOTOS,
    COL_LAT,
    COL_LON,
]

REQUIRED_HEADERS = [COL_ID, COL_SIGN, COL_ADDRESS]


def _parse_int(value: str, column: str) -> int | None:
    s = value.strip()
    if not s:
        return None
    try:
        return int(s)
    except ValueError:
        raise ValueError(f"{column}: not an integer: {value!r}") from None


def _parse_float(value: str, column: str) -> float | None:
    s = value.strip()
    if not s:
        return None
    try:
        number = float(s)
    except ValueError:
        raise ValueError(f"{column}: not a number: {value!r}") from None
    if not math.isfinite(number):
        raise ValueError(f"{column}: not a finite number: {value!r}")
    return number


def _format_optional(value: object | None) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _row_to_record(cells: dict[str, str]) -> TileRecord:
    """Build a record from a header->cell mapping; raise ValueError if malformed."""
    record_id = _parse_int(cells[COL_ID], COL_ID)
    if record_id is None:
        raise ValueError(f"{COL_ID}: missing value")
    photos = tuple(cells[c] for c in COL_PHOTOS if cells.get(c, "").strip())
    return TileRecord(
        id=record_id,
        street_sign=cells[COL_SIGN],
        street_address=cells[COL_ADDRESS],
        sign_condition=cells.get(COL_CONDITION) or None,
        damaged_tile_count=_parse_int(cells.get(COL_DAMAGED, ""), COL_DAMAGED),
        photo_refs=photos,
        latitude=_parse_float(cells.get(COL_LAT, ""), COL_LAT),
        longitude=_parse_float(cells.get(COL_LON, ""), COL_LON),
    )


def parse_inventory(data: bytes) -> Dataset:
    """Parse inventory CSV bytes into a `Dataset`.

    The first row is the header. Unknown columns are ignored and missing
    optional columns yield absent values.

    Raises:
        ParseError: On the first malformed row; no partial dataset is returned.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as ex:
        raise ParseError(0, f"input is not valid UTF-8: {ex}") from ex

    reader = csv.reader(io.StringIO(text, newline=""))
    row_number = 0
    try:
        # Blank lines before the header are skipped like blank data lines
        header = next((row for row in reader if row), None)
        if header is None:
            return Dataset()
        header = [h.strip() for h in header]
        missing = [h for h in REQUIRED_HEADERS if h not in header]
        if missing:
            raise ParseError(0, f"CSV missing required headers: {missing}")
        # Only keep known columns; the first occurrence of a repeated name wins
        positions: dict[str, int] = {}
        for idx, name in enumerate(header):
            if name in CSV_HEADERS and name not in positions:
                positions[name] = idx

        records: list[TileRecord] = []
        for row in reader:
            if not row:
                continue
            row_number += 1
            if len(row) != len(header):
                raise ParseError(
                    row_number, f"expected {len(header)} fields, found {len(row)}"
                )
            cells = {name: row[idx] for name, idx in positions.items()}
            try:
                records.append(_row_to_record(cells))
            except ValueError as ex:
                raise ParseError(row_number, str(ex)) from ex
    except csv.Error as ex:
        raise ParseError(row_number + 1, f"invalid CSV: {ex}") from ex

    dataset = Dataset(records)
    for dup in dataset.duplicates:
        logger.warning("Dropping duplicate record {} (first occurrence kept)", tuple(dup.identity))
    return dataset


def serialize_inventory(dataset: Dataset) -> bytes:
    """Serialize `dataset` to CSV bytes with the canonical header."""
    buf = io.StringIO(newline="")
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for item in dataset:
        photos = list(item.photo_refs) + [""] * (MAX_PHOTOS - len(item.photo_refs))
        writer.writerow(
            [
                item.id,
                item.street_sign,
                item.street_address,
                _format_optional(item.sign_condition),
                _format_optional(item.damaged_tile_count),
                *photos,
                _format_optional(item.latitude),
                _format_optional(item.longitude),
            ]
        )
    return buf.getvalue().encode("utf-8")


class CsvInventoryRepository:
    """Load and save tile inventories in CSV format."""

    def load(self, csv_path: str | os.PathLike[str]) -> Dataset:
        """Read and parse the inventory at `csv_path`.

        `OSError` from reading the file propagates unchanged.
        """
        path = Path(csv_path)
        dataset = parse_inventory(path.read_bytes())
        logger.info("Loaded {} records from {}", len(dataset), path)
        return dataset

    def save(self, csv_path: str | os.PathLike[str], dataset: Dataset) -> None:
        """Write `dataset` to `csv_path`, replacing any existing file atomically.

        Raises:
            WriteError: If the file or its directory cannot be written.
        """
        path = Path(csv_path)
        payload = serialize_inventory(dataset)
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as ex:
            logger.error("Write inventory failed: {} ({})", path, ex)
            raise WriteError(str(path), str(ex)) from ex
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
        logger.info("Wrote {} records to {}", len(dataset), path)
