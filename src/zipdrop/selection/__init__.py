"""Manual selection layered over the pattern-filtered tree."""

from .selection_state import SelectionState, SelectionStats, collect_paths, compute_stats

__all__ = ["SelectionState", "SelectionStats", "collect_paths", "compute_stats"]
