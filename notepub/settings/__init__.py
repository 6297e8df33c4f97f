"""Settings package exports."""

from .loader import (
    AppConfig,
    DescriptionSettings,
    HttpSettings,
    MicroblogSettings,
    PublishSettings,
    UploadSettings,
    load_config,
)

__all__ = [
    "AppConfig",
    "DescriptionSettings",
    "HttpSettings",
    "MicroblogSettings",
    "PublishSettings",
    "UploadSettings",
    "load_config",
]
