"""Composite exclusion rules for combining multiple rule types."""

from typing import List, Sequence

from .base_rules import BaseExclusionRules


class CompositeExclusionRules(BaseExclusionRules):
    """Composite exclusion rules that combine multiple rule types.

    A path is excluded if ANY of the constituent rules excludes it. The session
    uses this to join pattern exclusion and manual exclusion into the single
    predicate shared by the selection statistics and the archive assembler, so the
    archive contains exactly what the preview shows.

    Attributes:
        rules (List[BaseExclusionRules]): List of constituent exclusion rules.

    Example:
        >>> from zipdrop.exclusion_rules.manual_rules import ManualExclusionRules
        >>> from zipdrop.exclusion_rules.pattern_rules import PatternExclusionRules
        >>> composite = CompositeExclusionRules([
        ...     PatternExclusionRules(["*.log"]),
        ...     ManualExclusionRules(["notes.txt"]),
        ... ])
        >>> composite.exclude("server.log")
        True
        >>> composite.exclude("notes.txt")
        True
        >>> composite.exclude("main.py")
        False
    """

    def __init__(self, rules: Sequence[BaseExclusionRules]):
        """Initialize composite exclusion rules.

        Args:
            rules: Sequence of exclusion rules to combine. Each rule must implement
                  the BaseExclusionRules interface.

        Raises:
            ValueError: If rules list is empty.
            TypeError: If any rule doesn't implement BaseExclusionRules.

        Note:
            Rules are evaluated in the order provided. Put the cheap set lookup of
            manual rules before pattern matching where it matters.
        """
        if not rules:
            raise ValueError("At least one exclusion rule must be provided")

        for i, rule in enumerate(rules):
            if not isinstance(rule, BaseExclusionRules):
                raise TypeError(f"Rule at index {i} must implement BaseExclusionRules, " f"got {type(rule)}")

        self.rules: List[BaseExclusionRules] = list(rules)

    def exclude(self, path: str, is_dir: bool = False) -> bool:
        """Check if a path should be excluded by any constituent rule.

        Args:
            path: Relative path to check.
            is_dir: Whether the path names a directory.

        Returns:
            True if ANY of the constituent rules excludes the path.
        """
        return any(rule.exclude(path, is_dir=is_dir) for rule in self.rules)

    def has_rules(self) -> bool:
        """Check if any constituent rule has rules configured."""
        return any(rule.has_rules() for rule in self.rules)
