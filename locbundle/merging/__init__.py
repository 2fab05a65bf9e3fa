"""Bundle reconciliation."""

from .reconciler import merge_bundles, now_iso, resolve_state

__all__ = ["merge_bundles", "now_iso", "resolve_state"]
