"""Bundle persistence."""

from .bundle_store import BUNDLE_FILE_NAME, BundleStore, read_bundle, write_bundle

__all__ = ["BUNDLE_FILE_NAME", "BundleStore", "read_bundle", "write_bundle"]
