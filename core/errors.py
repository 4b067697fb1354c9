"""Error taxonomy shared by the codec, geocoder and batch tool.

A geocoder "not found" outcome is not an error: `resolve` returns None.
"""

from __future__ import annotations


class CatalogError(Exception):
    """Base class for all tile catalog errors."""


class ParseError(CatalogError):
    """A malformed inventory row. Fatal to the whole parse.

    Attributes:
        row_number: 1-based data row (the first row after the header is 1);
            0 means the header itself is unusable.
        cause: Human-readable reason.
    """

    def __init__(self, row_number: int, cause: str) -> None:
        super().__init__(f"row {row_number}: {cause}")
        self.row_number = row_number
        self.cause = cause


class GeocodeError(CatalogError):
    """Transport or protocol failure while talking to the geocoding service."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause


class WriteError(CatalogError):
    """Failure persisting the output inventory file."""

    def __init__(self, path: str, cause: str) -> None:
        super().__init__(f"cannot write {path}: {cause}")
        self.path = path
        self.cause = cause
