"""Exclusion rules for paths the user deselected by hand."""

from typing import FrozenSet, Iterable

from .base_rules import BaseExclusionRules


class ManualExclusionRules(BaseExclusionRules):
    """Exclusion rules backed by a fixed set of manually deselected paths.

    The set is captured at construction time, so later selection changes never
    leak into a traversal that is already using this object.

    Attributes:
        excluded_paths (FrozenSet[str]): The deselected relative paths.

    Example:
        >>> rules = ManualExclusionRules(["docs", "docs/readme.md"])
        >>> rules.exclude("docs", is_dir=True)
        True
        >>> rules.exclude("src/main.py")
        False
    """

    def __init__(self, excluded_paths: Iterable[str] = ()):
        self.excluded_paths: FrozenSet[str] = frozenset(excluded_paths)

    def exclude(self, path: str, is_dir: bool = False) -> bool:
        return path in self.excluded_paths

    def has_rules(self) -> bool:
        return bool(self.excluded_paths)
