"""Export, translate and import localization bundles."""

__version__ = "0.1.0"
