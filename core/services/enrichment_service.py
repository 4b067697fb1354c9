"""Geocoding enrichment of an inventory dataset.

Records that already carry coordinates are passed through untouched and do not
consume a rate-limit slot. Requests are issued strictly one after another with
a minimum delay between consecutive calls, as required by the public
geocoding service's usage policy.
"""

from __future__ import annotations

import threading
from typing import Any

from geopy.extra.rate_limiter import RateLimiter
from loguru import logger

from core.errors import GeocodeError
from core.models import Dataset, TileRecord
from core.services.interfaces import EnrichmentFailure, EnrichmentResult, GeocodingClient


class EnrichmentService:
    """Fill in missing coordinates using a geocoding client.

    Args:
        client: Geocoding client; only `query_for` and `resolve` are used.
        min_delay_seconds: Minimum wall time between two outbound requests.
        log: Logger with loguru-style methods; defaults to a bound loguru logger.
    """

    def __init__(
        self,
        client: GeocodingClient,
        min_delay_seconds: float = 1.0,
        log: Any | None = None,
    ) -> None:
        if min_delay_seconds < 0:
            raise ValueError("min_delay_seconds must be >= 0")
        self._client = client
        self._min_delay = min_delay_seconds
        self._log = log or logger.bind(component="enrichment")
        # Retries belong to callers; GeocodeError is never retried here
        self._resolve = RateLimiter(
            client.resolve,
            min_delay_seconds=min_delay_seconds,
            max_retries=0,
            swallow_exceptions=False,
        )

    @property
    def min_delay_seconds(self) -> float:
        return self._min_delay

    def enrich(
        self, dataset: Dataset, cancel_event: threading.Event | None = None
    ) -> EnrichmentResult:
        """Geocode every record lacking coordinates, in dataset order.

        A failed record never aborts the run: it keeps empty coordinates and
        is reported in `EnrichmentResult.failures`.
        """
        out: list[TileRecord] = []
        result = EnrichmentResult(dataset=dataset)
        pending = sum(1 for r in dataset if not r.has_coordinate)
        self._log.info(
            "Enriching {} records ({} need geocoding, min delay {}s)",
            len(dataset),
            pending,
            self._min_delay,
        )

        for record in dataset:
            if record.has_coordinate or result.cancelled:
                out.append(record)
                continue
            if cancel_event is not None and cancel_event.is_set():
                self._log.info("Enrichment cancelled before record {}", record.id)
                result.cancelled = True
                out.append(record)
                continue

            query = self._client.query_for(record.street_address)
            try:
                coordinate = self._resolve(query)
            except GeocodeError as ex:
                self._log.warning("Geocoding failed for record {} ({!r}): {}", record.id, query, ex.cause)
                result.failures.append(EnrichmentFailure(record.identity, ex.cause))
                out.append(record)
                continue

            if coordinate is None:
                self._log.debug("No match for record {} ({!r})", record.id, query)
                result.not_found += 1
                out.append(record)
                continue

            self._log.debug("Record {} -> {}, {}", record.id, coordinate.latitude, coordinate.longitude)
            result.geocoded += 1
            out.append(record.with_coordinate(coordinate))

        result.dataset = Dataset(out)
        self._log.info(
            "Enrichment done: {} geocoded, {} not found, {} failed{}",
            result.geocoded,
            result.not_found,
            len(result.failures),
            " (cancelled)" if result.cancelled else "",
        )
        return result
