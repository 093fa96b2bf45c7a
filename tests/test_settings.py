import json
import logging

import pytest

from superlaser.settings import (
    SequenceSettings,
    Settings,
    SettingsError,
    configure_logging,
    load_settings,
)


def _write(tmp_path, data) -> str:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_without_a_file() -> None:
    settings = load_settings()
    assert settings == Settings()
    assert settings.sequence.debris_count == 2500
    assert settings.sequence.charge_rate == pytest.approx(0.01)
    assert settings.display.frame_rate == 60


def test_overrides_are_merged(tmp_path) -> None:
    path = _write(
        tmp_path,
        {
            "_notes": "tuning for a slower machine",
            "sequence": {"debris_count": 500, "explosion_duration": 4, "seed": 11, "_why": "x"},
            "display": {"window_size": [800, 600], "fullscreen": True},
        },
    )

    settings = load_settings(path)

    assert settings.sequence.debris_count == 500
    assert settings.sequence.explosion_duration == 4.0
    assert isinstance(settings.sequence.explosion_duration, float)
    assert settings.sequence.seed == 11
    assert settings.sequence.plasma_count == SequenceSettings().plasma_count
    assert settings.display.window_size == (800, 600)
    assert settings.display.fullscreen is True


def test_unknown_keys_warn(tmp_path, caplog) -> None:
    path = _write(tmp_path, {"sequence": {"warp_factor": 9}, "audio": {}})

    with caplog.at_level(logging.WARNING, logger="superlaser.settings"):
        settings = load_settings(path)

    assert settings == Settings()
    assert "sequence.warp_factor" in caplog.text
    assert "audio" in caplog.text


def test_wrong_types_raise(tmp_path) -> None:
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"sequence": {"debris_count": "lots"}}))
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"sequence": {"debris_count": 2.5}}))
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"display": {"fullscreen": 1}}))
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"display": {"window_size": [800]}}))


def test_invalid_values_raise(tmp_path) -> None:
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"sequence": {"debris_growth": 0.9}}))
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"sequence": {"easing": "bounce"}}))
    with pytest.raises(SettingsError):
        load_settings(_write(tmp_path, {"sequence": {"plasma_count": -1}}))


def test_missing_file_falls_back_unless_strict(tmp_path) -> None:
    missing = tmp_path / "nope.json"

    assert load_settings(missing) == Settings()
    with pytest.raises(FileNotFoundError):
        load_settings(missing, strict=True)


def test_configure_logging_rejects_unknown_level() -> None:
    with pytest.raises(SettingsError):
        configure_logging("chatty")
