"""Data models for the localization pipeline."""

from .bundle import (
    BUNDLE_VERSION,
    Bundle,
    ExtractedFrom,
    LocalizationState,
    LocalizationUnit,
    StringCatalogUnitType,
    StringUnit,
)
from .entity import LocalizationEntity, ReviewOutcome

__all__ = [
    "BUNDLE_VERSION",
    "Bundle",
    "ExtractedFrom",
    "LocalizationState",
    "LocalizationUnit",
    "StringCatalogUnitType",
    "StringUnit",
    "LocalizationEntity",
    "ReviewOutcome",
]
