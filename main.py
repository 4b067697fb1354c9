"""Batch enrichment tool: geocode an inventory CSV and write it back.

Run:
  python main.py -i inventory.csv -o inventory_latlong.csv --map catalog.html
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from loguru import logger

from app.viewmodels.catalog_vm import CatalogVM
from core.errors import CatalogError
from core.services.enrichment_service import EnrichmentService
from infrastructure.csv_repository import CsvInventoryRepository
from infrastructure.geocoding_service import (
    DEFAULT_DOMAIN,
    DEFAULT_LOCALITY,
    DEFAULT_MIN_DELAY_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    NominatimGeocodingClient,
)
from infrastructure.logging import init_logging
from infrastructure.map_renderer import DEFAULT_CENTER, DEFAULT_ZOOM, FoliumMarkerCanvas
from infrastructure.settings import JsonSettings

BASE_DIR = Path(__file__).parent


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tile-catalog",
        description="Geocode a street-sign tile inventory and write the enriched CSV.",
    )
    parser.add_argument("-i", "--in", dest="input", required=True, help="input inventory CSV")
    parser.add_argument("-o", "--out", dest="output", required=True, help="output inventory CSV")
    parser.add_argument("--settings", default=None, help="JSON settings file")
    parser.add_argument("--min-delay-seconds", type=float, default=None)
    parser.add_argument("--map", dest="map_html", default=None, help="also write an HTML catalog map")
    parser.add_argument("--log-dir", default=None)
    return parser


def _load_settings(path: str | None) -> JsonSettings:
    if path is not None:
        return JsonSettings(path)
    default_path = BASE_DIR / "settings.json"
    return JsonSettings(default_path) if default_path.exists() else JsonSettings()


def _build_enrichment_service(
    settings: JsonSettings, min_delay: float | None
) -> EnrichmentService:
    client = NominatimGeocodingClient(
        user_agent=settings.get("geocoding.user_agent", DEFAULT_USER_AGENT),
        locality=settings.get("geocoding.locality", DEFAULT_LOCALITY),
        timeout=float(settings.get("geocoding.timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        domain=settings.get("geocoding.domain", DEFAULT_DOMAIN),
    )
    if min_delay is None:
        min_delay = float(settings.get("geocoding.min_delay_seconds", DEFAULT_MIN_DELAY_SECONDS))
    return EnrichmentService(client, min_delay_seconds=min_delay)


def _map_view(settings: JsonSettings) -> tuple[tuple[float, float], int]:
    """Return (center, zoom) for the catalog map; raise ValueError/TypeError if malformed."""
    center = settings.get("map.center", list(DEFAULT_CENTER))
    if not isinstance(center, (list, tuple)) or len(center) != 2:
        raise ValueError(f"map.center must be a [latitude, longitude] pair, got {center!r}")
    return (float(center[0]), float(center[1])), int(settings.get("map.zoom", DEFAULT_ZOOM))


def _render_map(
    vm: CatalogVM, center: tuple[float, float], zoom: int, output_html: str
) -> None:
    canvas = FoliumMarkerCanvas()
    vm.attach_map(canvas)
    canvas.render(output_html, center=center, zoom=zoom)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = _load_settings(args.settings)
        init_logging(args.log_dir or settings.get("logging.dir"), console_level="INFO")
        service = _build_enrichment_service(settings, args.min_delay_seconds)
        center, zoom = _map_view(settings)
    except (OSError, TypeError, ValueError) as ex:
        print(f"Error: {ex}", file=sys.stderr)
        return 1

    repo = CsvInventoryRepository()
    vm = CatalogVM(repo)

    try:
        logger.info("Reading CSV from {}", args.input)
        vm.load_csv(args.input)

        result = service.enrich(vm.dataset)
        for failure in result.failures:
            logger.warning(
                "Record {} ({}) left without coordinates: {}",
                failure.record_identity.id,
                failure.record_identity.street_address,
                failure.cause,
            )
        vm.set_dataset(result.dataset)

        logger.info("Writing results to {}", args.output)
        vm.export_csv(args.output)

        if args.map_html:
            _render_map(vm, center, zoom, args.map_html)
    except OSError as ex:
        logger.error("Cannot read {}: {}", args.input, ex)
        return 1
    except CatalogError as ex:
        logger.error("{}", ex)
        return 1

    logger.info("Processing complete. Output written to {}", args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
