"""Exception types raised by the localization pipeline."""


class LocBundleError(Exception):
    """Base class for all pipeline errors surfaced to the user."""


class ConfigError(LocBundleError):
    """The project configuration is missing, unreadable or invalid."""


class BundleFormatError(LocBundleError):
    """A persisted bundle cannot be read or violates the bundle schema."""


class BundleMismatchError(LocBundleError):
    """Two bundles passed to a merge do not describe the same logical file."""


class ConverterError(LocBundleError):
    """A format converter could not parse or write its native format."""


class TokenBudgetError(LocBundleError):
    """A single string is too large for the translation token budget."""


class TranslationBackendError(LocBundleError):
    """The translation backend failed or returned an unusable response."""
