"""Configuration package for the lo-fi radio publisher.

Usage:
    from lofi_radio.config import config, LofiRadioConfig

    # Access domain configs
    config.paths.tmp_path
    config.api_keys.openai_api_key
    config.generation.video_provider
"""

from .base import LofiRadioConfig
from .paths import PathsConfig
from .api_keys import APIKeysConfig
from .generation import GenerationConfig
from .publishing import PublishingConfig
from .schedule import ScheduleConfig

# Process-wide instance for scripts; library code takes a config argument
config = LofiRadioConfig()

__all__ = [
    "config",
    "LofiRadioConfig",
    "PathsConfig",
    "APIKeysConfig",
    "GenerationConfig",
    "PublishingConfig",
    "ScheduleConfig",
]
