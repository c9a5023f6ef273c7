"""Configuration settings using Pydantic Settings.

Loads polling configuration from environment variables or a ``.env`` file.

Usage:
    from polystreams.config import PollingSettings

    # Load from environment variables (POLYSTREAMS_*)
    settings = PollingSettings()
    config = settings.to_config()

    # Or override with explicit values
    settings = PollingSettings(source_ids=["a", "b"], padding=0.25)
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from polystreams.scheduling.models import DEFAULT_SAFETY_MARGIN, PollingConfig


class PollingSettings(BaseSettings):  # type: ignore[misc]
    """Configuration for a polling pipeline.

    Attributes:
        source_ids: Sources to poll, in release order.
        padding: Seconds between stagger releases.
        repeat_after: Per-source polling interval. Derived from padding,
            source count and safety_margin when unset.
        safety_margin: Seconds added to the stagger duration when deriving
            repeat_after.
        log_level: Level for applications that configure logging from here.

    Environment Variables:
        POLYSTREAMS_SOURCE_IDS (JSON list, e.g. '["a", "b"]')
        POLYSTREAMS_PADDING
        POLYSTREAMS_REPEAT_AFTER
        POLYSTREAMS_SAFETY_MARGIN
        POLYSTREAMS_LOG_LEVEL
    """

    model_config = SettingsConfigDict(
        env_prefix="POLYSTREAMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    source_ids: list[str] = Field(default_factory=list)
    padding: float = Field(default=0.5, gt=0)
    repeat_after: float | None = Field(default=None, gt=0)
    safety_margin: float = Field(default=DEFAULT_SAFETY_MARGIN, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    def to_config(self) -> PollingConfig:
        """Build a validated PollingConfig.

        Raises:
            ConfigurationError: If repeat_after does not exceed the stagger
                duration.
        """
        if self.repeat_after is None:
            return PollingConfig.derive(self.source_ids, self.padding, self.safety_margin)
        return PollingConfig(self.source_ids, padding=self.padding, repeat_after=self.repeat_after)
