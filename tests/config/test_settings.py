"""Tests for environment-driven settings.

Why these tests exist:
- Deployments configure polling through POLYSTREAMS_* variables
- Invalid values must be rejected before a pipeline exists
"""

import pytest
from pydantic import ValidationError

from polystreams import ConfigurationError
from polystreams.config import PollingSettings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in ["SOURCE_IDS", "PADDING", "REPEAT_AFTER", "SAFETY_MARGIN", "LOG_LEVEL"]:
        monkeypatch.delenv(f"POLYSTREAMS_{name}", raising=False)
    monkeypatch.chdir(tmp_path)  # keep a developer's .env out of the tests


def test_defaults_derive_interval() -> None:
    settings = PollingSettings(source_ids=["a", "b", "c", "d"])
    config = settings.to_config()

    assert settings.padding == 0.5
    assert settings.log_level == "INFO"
    assert config.source_ids == ("a", "b", "c", "d")
    assert config.repeat_after == 7.0


def test_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("POLYSTREAMS_SOURCE_IDS", '["x", "y"]')
    monkeypatch.setenv("POLYSTREAMS_PADDING", "2")
    monkeypatch.setenv("POLYSTREAMS_REPEAT_AFTER", "30")
    monkeypatch.setenv("POLYSTREAMS_LOG_LEVEL", "DEBUG")

    settings = PollingSettings()
    config = settings.to_config()

    assert config.source_ids == ("x", "y")
    assert config.padding == 2.0
    assert config.repeat_after == 30.0
    assert settings.log_level == "DEBUG"


def test_reads_dotenv_file(tmp_path) -> None:
    (tmp_path / ".env").write_text('POLYSTREAMS_SOURCE_IDS=["from-file"]\nPOLYSTREAMS_SAFETY_MARGIN=1\n')

    config = PollingSettings().to_config()

    assert config.source_ids == ("from-file",)
    assert config.repeat_after == 1.5


@pytest.mark.parametrize(
    "overrides",
    [{"padding": 0}, {"padding": -1}, {"repeat_after": 0}, {"safety_margin": 0}, {"log_level": "LOUD"}],
    ids=["zero-padding", "negative-padding", "zero-repeat", "zero-margin", "bad-level"],
)
def test_rejects_invalid_values(overrides) -> None:
    with pytest.raises(ValidationError):
        PollingSettings(source_ids=["a"], **overrides)


def test_repeat_after_must_exceed_stagger() -> None:
    settings = PollingSettings(source_ids=["a", "b", "c"], padding=1.0, repeat_after=2.0)
    with pytest.raises(ConfigurationError):
        settings.to_config()
