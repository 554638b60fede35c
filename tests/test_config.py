"""
Tests for configuration loading and the local catalog.
"""

import json

import pytest

from slotly.adapters.local_catalog import LocalCatalog
from slotly.config import AppConfig
from slotly.domain.exceptions import UnknownBusinessError, UnknownServiceError
from slotly.domain.models import ReservationStatus

CONFIG_YAML = """
timezone: Europe/Berlin
availability:
  buffer_minutes: 5
businesses:
  - id: b1
    slug: studio
    name: Studio
    working_hours:
      - {weekday: 1, start: "10:00", end: "12:00"}
      - {weekday: 1, start: "13:00", end: "17:00"}
    services:
      - {id: s30, duration_minutes: 30}
      - {id: s60, duration_minutes: 60, buffer_minutes: 0}
  - id: b2
    timezone: America/New_York
    working_hours: []
    services:
      - {id: s15, duration_minutes: 15}
reservations_file: bookings.json
"""


def _write_config(tmp_path, text=CONFIG_YAML, reservations=None):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(text, encoding="utf-8")
    if reservations is not None:
        (tmp_path / "bookings.json").write_text(json.dumps(reservations), encoding="utf-8")
    return config_path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_load_from_yaml(self, tmp_path):
        config = AppConfig.load_from_yaml(_write_config(tmp_path))

        assert config.backend == "local"
        assert [b.id for b in config.businesses] == ["b1", "b2"]
        assert config.reservations_file == tmp_path / "bookings.json"
        assert config.timezone_for(config.businesses[1]) == "America/New_York"
        assert config.timezone_for(config.businesses[0]) == "Europe/Berlin"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "nope.yaml")

    def test_non_mapping_root(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(_write_config(tmp_path, text="- just\n- a list\n"))

    def test_remote_backend_requires_url(self):
        with pytest.raises(ValueError, match="api_base_url"):
            AppConfig(backend="remote")

    def test_duplicate_business_ids(self):
        with pytest.raises(ValueError, match="Duplicate business id"):
            AppConfig(businesses=[{"id": "b1"}, {"id": "b1"}])

    def test_duplicate_service_ids(self):
        with pytest.raises(ValueError, match="Duplicate service id"):
            AppConfig(businesses=[{
                "id": "b1",
                "services": [
                    {"id": "s", "duration_minutes": 30},
                    {"id": "s", "duration_minutes": 45},
                ],
            }])

    def test_invalid_working_hours(self):
        with pytest.raises(ValueError):
            AppConfig(businesses=[{
                "id": "b1",
                "working_hours": [{"weekday": 1, "start": "18:00", "end": "09:00"}],
            }])

    def test_invalid_weekday(self):
        with pytest.raises(ValueError):
            AppConfig(businesses=[{
                "id": "b1",
                "working_hours": [{"weekday": 0, "start": "09:00", "end": "18:00"}],
            }])

    def test_unknown_timezone(self):
        with pytest.raises(ValueError):
            AppConfig(timezone="Nowhere/Special")

    def test_find_business_by_slug(self):
        config = AppConfig(businesses=[{"id": "b1", "slug": "studio"}])

        assert config.find_business("studio").id == "b1"
        assert config.find_business("missing") is None


class TestLocalCatalog:
    """Tests for LocalCatalog."""

    def test_params_for_service(self, tmp_path):
        reservations = [
            {"businessId": "b1", "startAtIso": "2024-11-25T10:30:00", "status": "confirmed", "durationMin": 45},
            {"businessId": "b1", "startAtIso": "2024-11-25T11:30:00", "status": "cancelled"},
            {"businessId": "b2", "startAtIso": "2024-11-25T10:30:00", "status": "confirmed"},
        ]
        catalog = LocalCatalog(AppConfig.load_from_yaml(_write_config(tmp_path, reservations=reservations)))

        params = catalog.params_for("b1", "s30")

        assert params.service_duration_minutes == 30
        assert params.buffer_minutes == 5
        assert params.timezone == "Europe/Berlin"
        assert len(params.working_hours) == 2
        assert len(params.existing_reservations) == 2
        assert params.existing_reservations[0].duration_minutes == 45
        assert params.existing_reservations[1].status == ReservationStatus.CANCELLED

    def test_service_buffer_overrides_default(self, tmp_path):
        catalog = LocalCatalog(AppConfig.load_from_yaml(_write_config(tmp_path, reservations=[])))

        assert catalog.params_for("b1", "s60").buffer_minutes == 0

    def test_invalid_records_are_skipped(self, tmp_path):
        reservations = [
            {"businessId": "b1", "startAtIso": "2024-11-25T10:30:00"},
            {"businessId": "b1", "status": "confirmed"},
            {"businessId": "b1", "startAtIso": "not a date"},
        ]
        catalog = LocalCatalog(AppConfig.load_from_yaml(_write_config(tmp_path, reservations=reservations)))

        params = catalog.params_for("b1", "s30")

        assert len(params.existing_reservations) == 1
        assert params.existing_reservations[0].status == ReservationStatus.CONFIRMED

    def test_missing_reservations_file(self, tmp_path):
        catalog = LocalCatalog(AppConfig.load_from_yaml(_write_config(tmp_path)))

        assert catalog.params_for("b1", "s30").existing_reservations == ()

    @pytest.mark.parametrize("content", ["{not json", '{"businessId": "b1"}'])
    def test_unreadable_reservations_file(self, tmp_path, content):
        config_path = _write_config(tmp_path)
        (tmp_path / "bookings.json").write_text(content, encoding="utf-8")

        catalog = LocalCatalog(AppConfig.load_from_yaml(config_path))

        assert catalog.reservation_records == []
        assert catalog.params_for("b1", "s30").existing_reservations == ()

    def test_unknown_business(self, tmp_path):
        catalog = LocalCatalog(AppConfig.load_from_yaml(_write_config(tmp_path, reservations=[])))

        with pytest.raises(UnknownBusinessError):
            catalog.params_for("b9", "s30")

    def test_unknown_service(self, tmp_path):
        catalog = LocalCatalog(AppConfig.load_from_yaml(_write_config(tmp_path, reservations=[])))

        with pytest.raises(UnknownServiceError):
            catalog.params_for("b1", "s15")
