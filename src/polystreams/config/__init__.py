"""Configuration module using Pydantic Settings.

Usage:
    from polystreams.config import PollingSettings

    config = PollingSettings(source_ids=["a", "b"]).to_config()
"""

from polystreams.config.settings import PollingSettings

__all__ = [
    "PollingSettings",
]
