"""AI helpers for describing uploaded images."""

from .describer import (
    BaseDescriptionGenerator,
    DescriptionGenerator,
    GeminiDescriptionGenerator,
    build_description_generator,
    fallback_description,
)

__all__ = [
    "BaseDescriptionGenerator",
    "DescriptionGenerator",
    "GeminiDescriptionGenerator",
    "build_description_generator",
    "fallback_description",
]
