import json

from backend import DEFAULT_SWIPE_THRESHOLD
from backend import settings as app_settings


def test_defaults_written_on_first_load(settings_file):
    settings = app_settings.load_settings(settings_file)
    assert settings_file.exists()
    assert settings == [
        {"key": "swipe_threshold", "value": DEFAULT_SWIPE_THRESHOLD, "type": "int"}
    ]
    stored = json.loads(settings_file.read_text(encoding="utf-8"))
    assert stored == settings


def test_missing_keys_are_filled_in(settings_file):
    settings_file.write_text(json.dumps([]), encoding="utf-8")
    settings = app_settings.load_settings(settings_file)
    values = {item["key"]: item["value"] for item in settings}
    assert values == {"swipe_threshold": DEFAULT_SWIPE_THRESHOLD}


def test_stored_values_win_over_defaults(settings_file):
    settings_file.write_text(
        json.dumps([{"key": "swipe_threshold", "value": 120, "type": "int"}]),
        encoding="utf-8",
    )
    settings = app_settings.load_settings(settings_file)
    assert [item["value"] for item in settings] == [120]


def test_only_swipe_threshold_is_configurable():
    assert [item["key"] for item in app_settings.DEFAULT_SETTINGS] == ["swipe_threshold"]


def test_corrupt_file_is_replaced_with_defaults(settings_file):
    settings_file.write_text("{not json", encoding="utf-8")
    settings = app_settings.load_settings(settings_file)
    assert settings == app_settings.DEFAULT_SETTINGS
    assert json.loads(settings_file.read_text(encoding="utf-8")) == settings


def test_get_and_set_value(settings_file):
    assert app_settings.get_value("swipe_threshold") == DEFAULT_SWIPE_THRESHOLD
    assert app_settings.get_value("missing") is None

    app_settings.set_value("swipe_threshold", 60)
    app_settings.set_value("theme", "dark")
    assert app_settings.get_value("swipe_threshold") == 60

    app_settings.reset_cache()
    assert app_settings.get_value("swipe_threshold") == 60
    assert app_settings.get_value("theme") == "dark"
