"""Address geocoding against a Nominatim (OpenStreetMap) endpoint via geopy.

One call is one outbound request: no caching and no retries happen here.
Rate limiting is the caller's job (see `EnrichmentService`).
"""

from __future__ import annotations

from collections.abc import Mapping
import math
from typing import Any

from geopy.exc import GeocoderParseError, GeopyError
from geopy.geocoders import Nominatim
from loguru import logger

from core.errors import GeocodeError
from core.models import Coordinate

DEFAULT_LOCALITY = "New Orleans, LA"
DEFAULT_USER_AGENT = "spanish-tiles-nola-catalog/1.0"
DEFAULT_DOMAIN = "nominatim.openstreetmap.org"
DEFAULT_TIMEOUT_SECONDS = 10.0
# Nominatim usage policy: at most one request per second
DEFAULT_MIN_DELAY_SECONDS = 1.0


class StrictNominatim(Nominatim):
    """Nominatim geocoder that only accepts a JSON array of places.

    Stock geopy reads an error object such as `{"error": "Unable to geocode"}`
    as "no match"; here any non-array body is a parse error.
    """

    def _parse_json(self, places, exactly_one=True):
        if not isinstance(places, list):
            raise GeocoderParseError(
                f"expected a JSON array of places, got {type(places).__name__}"
            )
        return super()._parse_json(places, exactly_one)


class NominatimGeocodingClient:
    """Resolve street addresses to coordinates.

    Args:
        user_agent: Identifying User-Agent; the public endpoint rejects
            anonymous traffic.
        locality: Suffix appended to every street address (the dataset's
            home city).
        timeout: Per-request timeout in seconds.
        domain: Nominatim host.
        scheme: "https" or "http".
        geocoder: Pre-built geopy geocoder, mainly for tests.
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        locality: str = DEFAULT_LOCALITY,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        domain: str = DEFAULT_DOMAIN,
        scheme: str = "https",
        geocoder: Any | None = None,
    ) -> None:
        if not isinstance(user_agent, str) or not user_agent.strip():
            raise ValueError("a non-empty user_agent is required by the geocoding service")
        if not isinstance(locality, str):
            raise ValueError(f"locality must be a string, got {locality!r}")
        self._locality = locality.strip()
        self._timeout = timeout
        self._geocoder = geocoder or StrictNominatim(
            user_agent=user_agent, timeout=timeout, domain=domain, scheme=scheme
        )

    @property
    def locality(self) -> str:
        return self._locality

    def query_for(self, street_address: str) -> str:
        """Return the full address submitted for `street_address`."""
        address = " ".join(street_address.split())
        if not self._locality:
            return address
        return f"{address}, {self._locality}"

    def resolve(self, query: str) -> Coordinate | None:
        """Geocode `query`; None when the service has no match.

        Raises:
            GeocodeError: On timeout, non-success status, or a response body
                that cannot be parsed into coordinates.
        """
        try:
            location = self._geocoder.geocode(query, exactly_one=True, timeout=self._timeout)
        except GeopyError as ex:
            logger.debug("Geocode request failed for {!r}: {}", query, ex)
            raise GeocodeError(f"{type(ex).__name__}: {ex}") from ex
        except (TypeError, ValueError) as ex:
            # geopy builds the Location eagerly; bad lat/lon strings surface here
            raise GeocodeError(f"malformed response: {ex}") from ex

        if not location:
            return None
        # geopy turns a place without lat/lon into Point(0, 0); read the raw strings instead
        raw = getattr(location, "raw", None)
        if not isinstance(raw, Mapping):
            raise GeocodeError("malformed response: place is not a JSON object")
        lat, lon = raw.get("lat"), raw.get("lon")
        if not isinstance(lat, str) or not isinstance(lon, str):
            raise GeocodeError("malformed response: place has no string lat/lon")
        try:
            coordinate = Coordinate(float(lat), float(lon))
        except ValueError as ex:
            raise GeocodeError(f"malformed coordinates in response: {ex}") from ex
        if not all(math.isfinite(v) for v in coordinate):
            raise GeocodeError(f"malformed coordinates in response: {lat!r}, {lon!r}")
        return coordinate
