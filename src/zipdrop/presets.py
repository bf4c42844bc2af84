"""Named bundles of exclusion patterns for common project types."""

from typing import Dict, Iterable, List, NamedTuple, Sequence, Tuple

from zipdrop.exceptions import UnknownPresetError

DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    "node_modules",
    ".git",
    "dist",
    ".next",
    ".vscode",
    ".pnpm",
    ".DS_Store",
    "*.log",
)


class PatternPreset(NamedTuple):
    """A named, described bundle of exclusion patterns.

    Attributes:
        id (str): Identifier used on the command line.
        name (str): Human-readable name.
        description (str): Short summary of what the patterns cover.
        patterns (Tuple[str, ...]): The glob patterns.
    """

    id: str
    name: str
    description: str
    patterns: Tuple[str, ...]


PATTERN_PRESETS: Tuple[PatternPreset, ...] = (
    PatternPreset(
        "web-dev",
        "Web Development",
        "Node.js, npm, pnpm, build outputs",
        (
            "node_modules",
            ".pnpm",
            "dist",
            "build",
            ".next",
            ".nuxt",
            ".output",
            ".cache",
            ".parcel-cache",
            "*.log",
            "npm-debug.log*",
            "yarn-debug.log*",
            "yarn-error.log*",
            ".npm",
            ".yarn",
        ),
    ),
    PatternPreset(
        "git-vcs",
        "Git & Version Control",
        "Git history, hooks, and metadata",
        (".git", ".gitignore", ".gitattributes", ".gitmodules", ".svn", ".hg"),
    ),
    PatternPreset(
        "ide-editor",
        "IDE & Editors",
        "VS Code, JetBrains, Vim, etc.",
        (".vscode", ".idea", "*.swp", "*.swo", "*~", ".project", ".classpath", ".settings", "*.sublime-*"),
    ),
    PatternPreset(
        "os-system",
        "OS & System Files",
        "macOS, Windows, Linux system files",
        (".DS_Store", "Thumbs.db", "Desktop.ini", "*.lnk", ".Spotlight-V100", ".Trashes", "ehthumbs.db"),
    ),
    PatternPreset(
        "python",
        "Python",
        "Virtual envs, cache, bytecode",
        (
            "__pycache__",
            "*.py[cod]",
            "*$py.class",
            ".Python",
            "venv",
            ".venv",
            "env",
            ".env",
            "ENV",
            ".tox",
            ".pytest_cache",
            ".mypy_cache",
            "*.egg-info",
            "dist",
            "build",
        ),
    ),
    PatternPreset(
        "java",
        "Java & JVM",
        "Maven, Gradle, compiled classes",
        ("target", "*.class", "*.jar", "*.war", "*.ear", ".gradle", "build", "out", ".mvn"),
    ),
    PatternPreset(
        "testing",
        "Testing & Coverage",
        "Test outputs, coverage reports",
        ("coverage", ".nyc_output", ".coverage", "htmlcov", "*.lcov", "test-results", "jest-results", ".jest"),
    ),
    PatternPreset(
        "defaults",
        "Defaults",
        "Quick preset for common dev projects",
        DEFAULT_EXCLUDE_PATTERNS,
    ),
)

_PRESETS_BY_ID: Dict[str, PatternPreset] = {preset.id: preset for preset in PATTERN_PRESETS}


def get_preset(preset_id: str) -> PatternPreset:
    """Look up a preset by identifier.

    Raises:
        UnknownPresetError: If no preset has that identifier.

    Example:
        >>> get_preset("git-vcs").patterns[0]
        '.git'
    """
    try:
        return _PRESETS_BY_ID[preset_id]
    except KeyError:
        raise UnknownPresetError(preset_id) from None


def merge_patterns(existing: Sequence[str], new: Iterable[str]) -> Tuple[List[str], int]:
    """Append the patterns of ``new`` that are not already present.

    Order is preserved: existing patterns first, then new ones in the order given.

    Returns:
        The merged list and the number of patterns that were added.

    Example:
        >>> merge_patterns(["dist", "*.log"], ["*.log", "build", "build"])
        (['dist', '*.log', 'build'], 1)
    """
    merged = list(existing)
    seen = set(merged)
    added = 0
    for pattern in new:
        if pattern not in seen:
            merged.append(pattern)
            seen.add(pattern)
            added += 1
    return merged, added
