"""Glob-pattern exclusion rules backed by gitignore-style wildcard matching."""

from os import PathLike
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from pathspec import PathSpec
from pathspec.patterns import GitWildMatchPattern  # type: ignore

from zipdrop.types import PathType

from .base_rules import BaseExclusionRules

RECURSIVE_PREFIX = "**/"

# Characters that open a negation or a comment at the start of a gitignore line
LITERAL_LEADERS = ("!", "#")


def normalize_pattern(pattern: str) -> str:
    """Rewrite a bare name so that it matches at any depth of the tree.

    A pattern that contains no path separator and does not already start with the
    recursive wildcard prefix is prefixed with ``**/``. A leading ``!`` or ``#``
    on any other pattern is escaped so that it matches literally instead of
    negating or commenting out the pattern.

    Args:
        pattern: Free-form glob pattern as entered by the user.

    Returns:
        The normalized pattern.

    Example:
        >>> normalize_pattern("node_modules")
        '**/node_modules'
        >>> normalize_pattern("*.log")
        '**/*.log'
        >>> normalize_pattern("src/*.tmp")
        'src/*.tmp'
        >>> normalize_pattern("**/dist")
        '**/dist'
        >>> normalize_pattern("!build/keep.txt")
        '\\\\!build/keep.txt'
    """
    pattern = pattern.strip()
    if pattern.startswith(RECURSIVE_PREFIX) or "/" in pattern:
        if pattern.startswith(LITERAL_LEADERS):
            return "\\" + pattern
        return pattern
    return f"{RECURSIVE_PREFIX}{pattern}"


def read_pattern_file(rules_file: PathType) -> List[str]:
    """Read non-blank pattern lines from a gitignore-style file.

    Args:
        rules_file: Path to the file to read.

    Returns:
        The stripped, non-blank lines in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(rules_file)
    if not path.exists():
        raise FileNotFoundError(f"Rules file not found: {path}")

    with open(path, "r") as f:
        return [line.strip() for line in f.read().splitlines() if line.strip()]


class PatternExclusionRules(BaseExclusionRules):
    """Exclusion rules built from a set of glob patterns.

    Patterns are matched with the pathspec library's gitignore wildcard syntax
    (``*``, ``?``, ``[abc]``, ``**``, trailing ``/`` for directories). Wildcards
    match dotfiles. Bare names are normalized with :func:`normalize_pattern` so that
    ``node_modules`` excludes that name anywhere in the tree, not only at the root.

    Unlike a .gitignore file, the set is a plain logical OR: every pattern is
    compiled on its own and a path is excluded as soon as any of them matches, so
    a later pattern never re-includes what an earlier one excluded. A leading
    ``!`` never negates.

    Attributes:
        patterns (Tuple[str, ...]): The normalized patterns, in the order added.

    Example:
        >>> rules = PatternExclusionRules(["node_modules", "*.log"])
        >>> rules.exclude("web/node_modules", is_dir=True)
        True
        >>> rules.exclude("logs/app.log")
        True
        >>> rules.exclude("src/app.py")
        False
    """

    def __init__(self, patterns: Optional[Sequence[str]] = None):
        """Initialize PatternExclusionRules with an optional list of patterns.

        Args:
            patterns: Glob patterns to compile. Blank entries are ignored.
        """
        self._patterns: List[str] = []
        self._specs: List[PathSpec] = []

        if patterns is not None:
            for pattern in patterns:
                self.add_rule(pattern)

    @property
    def patterns(self) -> Tuple[str, ...]:
        return tuple(self._patterns)

    def exclude(self, path: str, is_dir: bool = False) -> bool:
        """Check if a path matches any compiled pattern.

        Directories are checked both as given and with a trailing slash so that
        directory-only patterns such as ``build/`` apply to them.

        Args:
            path: Slash-separated path relative to the picked root folder.
            is_dir: Whether the path names a directory.

        Returns:
            bool: True if any pattern matches.

        Example:
            >>> rules = PatternExclusionRules(["build/"])
            >>> rules.exclude("build", is_dir=True)
            True
            >>> rules.exclude("build")
            False
        """
        candidates = [path]
        if is_dir and not path.endswith("/"):
            candidates.append(path + "/")

        return any(spec.match_file(candidate) for spec in self._specs for candidate in candidates)

    def has_rules(self) -> bool:
        return bool(self._specs)

    def load_rules(self, rules_files: Union[PathType, Sequence[PathType]]) -> None:
        """Add the patterns listed in one or more gitignore-style files.

        Args:
            rules_files: Path(s) to file(s) with one pattern per line.

        Raises:
            FileNotFoundError: If any rules file does not exist.
        """
        # Convert to list if it's a single path
        if isinstance(rules_files, (str, PathLike)):
            rules_files = [rules_files]

        for rules_file in rules_files:
            for pattern in read_pattern_file(rules_file):
                self.add_rule(pattern)

    def add_rule(self, rule: str) -> None:
        """Normalize and compile a single glob pattern.

        Args:
            rule: The pattern to add, e.g. ``"*.pyc"`` or ``"dist"``. Blank
                patterns are ignored.

        Example:
            >>> rules = PatternExclusionRules()
            >>> rules.add_rule(".DS_Store")
            >>> rules.patterns
            ('**/.DS_Store',)
            >>> rules.exclude("photos/.DS_Store")
            True
        """
        if not rule.strip():
            return

        normalized = normalize_pattern(rule)
        self._patterns.append(normalized)
        self._specs.append(PathSpec.from_lines(GitWildMatchPattern, [normalized]))


def compile_patterns(patterns: Sequence[str]) -> PatternExclusionRules:
    """Compile a pattern list into a matcher.

    Args:
        patterns: Glob patterns, typically the session's persisted pattern list.

    Returns:
        A new PatternExclusionRules instance.
    """
    return PatternExclusionRules(patterns)
