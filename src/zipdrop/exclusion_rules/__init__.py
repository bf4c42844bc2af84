"""Exclusion rules for filtering files and directories."""

from .base_rules import BaseExclusionRules
from .composite_rules import CompositeExclusionRules
from .manual_rules import ManualExclusionRules
from .pattern_rules import PatternExclusionRules, compile_patterns, normalize_pattern

__all__ = [
    "BaseExclusionRules",
    "CompositeExclusionRules",
    "ManualExclusionRules",
    "PatternExclusionRules",
    "compile_patterns",
    "normalize_pattern",
]
