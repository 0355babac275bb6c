"""Tests for settings loading."""

import json

import pytest

from jsonnl.config import Settings
from jsonnl.scanner import ScanLimits


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.max_scan_chars == 2_000_000
        assert settings.max_literals == 100_000
        assert settings.language_ids == ("json", "jsonc")
        assert settings.enabled

    def test_accepts(self):
        settings = Settings()
        assert settings.accepts("json")
        assert not settings.accepts("yaml")
        assert not Settings(enabled=False).accepts("json")

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValueError):
            Settings(max_scan_chars=0)
        with pytest.raises(ValueError):
            Settings(max_literals=-1)

    def test_from_dict(self):
        settings = Settings.from_dict({"language_ids": ["json"], "max_literals": 5})
        assert settings.language_ids == ("json",)
        assert settings.max_literals == 5

    def test_from_dict_unknown_key(self):
        with pytest.raises(ValueError, match="unknown settings: colour"):
            Settings.from_dict({"colour": "red"})

    def test_load(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"max_scan_chars": 100}), encoding="utf-8")
        assert Settings.load(path).max_scan_chars == 100

    def test_load_requires_object(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1]", encoding="utf-8")
        with pytest.raises(ValueError):
            Settings.load(path)

    def test_scan_limits(self):
        limits = ScanLimits.from_settings(Settings(max_scan_chars=10, max_literals=3))
        assert (limits.max_chars, limits.max_literals) == (10, 3)


class TestSettingsValues:
    """Malformed values are rejected with ValueError."""

    def test_single_language_id_string(self):
        settings = Settings.from_dict({"language_ids": "json"})
        assert settings.language_ids == ("json",)
        assert settings.accepts("json")

    def test_language_ids_wrong_type(self):
        with pytest.raises(ValueError):
            Settings.from_dict({"language_ids": 3})
        with pytest.raises(ValueError):
            Settings.from_dict({"language_ids": ["json", 1]})

    def test_limit_wrong_type(self):
        with pytest.raises(ValueError, match="max_literals must be an integer"):
            Settings.from_dict({"max_literals": "10"})
        with pytest.raises(ValueError):
            Settings(max_scan_chars=True)

    def test_enabled_wrong_type(self):
        with pytest.raises(ValueError):
            Settings.from_dict({"enabled": "yes"})

    def test_load_bad_value(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"max_scan_chars": "big"}', encoding="utf-8")
        with pytest.raises(ValueError):
            Settings.load(path)
