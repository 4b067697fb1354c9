import json

from loguru import logger
import pytest

from infrastructure.logging import init_logging
from infrastructure.settings import JsonSettings


def test_settings_dotted_access(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"geocoding": {"locality": "Metairie, LA", "min_delay_seconds": 2}}),
        encoding="utf-8",
    )
    settings = JsonSettings(path)

    assert settings.get("geocoding.locality") == "Metairie, LA"
    assert settings.get("geocoding.min_delay_seconds") == 2
    assert settings.get("geocoding.user_agent", "fallback") == "fallback"
    assert settings.get("map.center.lat") is None


def test_settings_without_file_use_defaults():
    assert JsonSettings().get("map.zoom", 13) == 13


def test_settings_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        JsonSettings(tmp_path / "absent.json")

    listed = tmp_path / "list.json"
    listed.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        JsonSettings(listed)


def test_init_logging_writes_rotating_file(tmp_path):
    init_logging(str(tmp_path / "logs"))
    logger.info("enrichment started")
    logger.complete()

    files = list((tmp_path / "logs").glob("catalog_*.log"))
    assert len(files) == 1
    assert "enrichment started" in files[0].read_text(encoding="utf-8")
