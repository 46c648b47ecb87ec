"""
Tests for configuration management.
"""

import pytest
from shortgen.shared.config import Settings, normalize_chroma_color
from shortgen.shared.errors import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove compositor variables that may leak in from the developer's shell."""
    for key in (
        "MAX_DURATION", "MIN_SPEEDUP", "BREAK_DURATION", "PADDING", "OUTRO_GAP",
        "OUTRO_PADDING", "OUTRO_SCALE", "OUTRO_CHROMA_COLOR", "OUTRO_CHROMA_TOLERANCE",
        "OUTRO_MUTE", "OUTRO_SPEEDUP", "RENDER_TIMEOUT", "PROBE_TIMEOUT", "LOG_LEVEL", "CRF",
    ):
        monkeypatch.delenv(key, raising=False)


def test_settings_defaults():
    """Test documented defaults when nothing is configured."""
    settings = Settings(_env_file=None)

    assert settings.width == 1080
    assert settings.height == 1920
    assert settings.max_duration == 60.0
    assert settings.min_speedup == 1.5
    assert settings.break_duration == 0.5
    assert settings.outro_gap == 1.0
    assert settings.outro_scale == "contain"
    assert settings.outro_chroma_color is None
    assert settings.outro_mute is False
    assert settings.outro_speedup == 1.0


def test_settings_loads_env_file(tmp_path):
    """Test that settings load correctly from a .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        "MAX_DURATION=45\n"
        "MIN_SPEEDUP=1.2\n"
        "OUTRO_SCALE=cover\n"
        "OUTRO_MUTE=true\n"
        "OUTRO_SPEEDUP=1.25\n"
        "LOG_LEVEL=DEBUG\n"
    )

    settings = Settings(_env_file=str(env_file))

    assert settings.max_duration == 45.0
    assert settings.min_speedup == 1.2
    assert settings.outro_scale == "cover"
    assert settings.outro_mute is True
    assert settings.outro_speedup == 1.25
    assert settings.log_level == "DEBUG"


def test_environment_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("outro_gap", "2.5")

    settings = Settings(_env_file=None)

    assert settings.outro_gap == 2.5


@pytest.mark.parametrize("key,value", [
    ("MAX_DURATION", "0"),
    ("MIN_SPEEDUP", "-1"),
    ("OUTRO_SPEEDUP", "0"),
    ("BREAK_DURATION", "-0.5"),
    ("OUTRO_GAP", "-1"),
    ("RENDER_TIMEOUT", "0"),
    ("PROBE_TIMEOUT", "-5"),
])
def test_settings_rejects_invalid_numbers(monkeypatch, key, value):
    """Test that out-of-range timing values raise ConfigurationError."""
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError, match=key):
        Settings(_env_file=None)


@pytest.mark.parametrize("key", ["MAX_DURATION", "MIN_SPEEDUP", "OUTRO_SPEEDUP", "BREAK_DURATION", "OUTRO_GAP"])
@pytest.mark.parametrize("value", ["nan", "inf", "-inf"])
def test_settings_rejects_non_finite_numbers(monkeypatch, key, value):
    """Test that NaN and infinity in the environment fail fast."""
    monkeypatch.setenv(key, value)

    with pytest.raises(ConfigurationError, match=key):
        Settings(_env_file=None)


def test_zero_gaps_are_allowed(monkeypatch):
    monkeypatch.setenv("BREAK_DURATION", "0")
    monkeypatch.setenv("OUTRO_GAP", "0")

    settings = Settings(_env_file=None)

    assert settings.break_duration == 0
    assert settings.outro_gap == 0


@pytest.mark.parametrize("raw,expected", [
    ("0x00ff00", "0x00FF00"),
    ("#00FF00", "0x00FF00"),
    ("00ff00", "0x00FF00"),
    ("  0X1a2B3c ", "0x1A2B3C"),
    ("", None),
    (None, None),
])
def test_normalize_chroma_color(raw, expected):
    """Test accepted chroma colour spellings."""
    assert normalize_chroma_color(raw) == expected


@pytest.mark.parametrize("raw", ["green", "0x00ff0", "#00ff00ff", "0xGGGGGG"])
def test_invalid_chroma_color_warns(raw):
    """Test that an invalid colour disables keying with a warning."""
    with pytest.warns(UserWarning, match="Invalid chroma color format"):
        assert normalize_chroma_color(raw) is None


def test_invalid_chroma_color_setting_disables_key(monkeypatch):
    monkeypatch.setenv("OUTRO_CHROMA_COLOR", "not-a-color")

    with pytest.warns(UserWarning):
        settings = Settings(_env_file=None)

    assert settings.outro_chroma_color is None
    assert settings.composition_config().outro_chroma_key is None


def test_composition_config_from_settings(monkeypatch):
    """Test that settings translate into an explicit CompositionConfig."""
    monkeypatch.setenv("OUTRO_CHROMA_COLOR", "#00ff00")
    monkeypatch.setenv("OUTRO_CHROMA_TOLERANCE", "0.25")
    monkeypatch.setenv("PADDING", "80")
    monkeypatch.setenv("CRF", "18")

    config = Settings(_env_file=None).composition_config()

    assert config.padding == 80
    assert config.effective_outro_padding == 80
    assert config.outro_chroma_key.color == "0x00FF00"
    assert config.outro_chroma_key.tolerance == 0.25
    assert config.encoder.crf == 18
    assert config.encoder.video_codec == "libx264"


def test_composition_config_rejects_bad_combination(monkeypatch):
    """Test cross-field validation happens when building the config."""
    monkeypatch.setenv("PADDING", "600")

    settings = Settings(_env_file=None)

    with pytest.raises(ConfigurationError, match="no room"):
        settings.composition_config()
