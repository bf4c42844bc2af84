import pytest

from zipdrop.exclusion_rules.pattern_rules import (
    PatternExclusionRules,
    compile_patterns,
    normalize_pattern,
    read_pattern_file,
)


@pytest.mark.parametrize(
    "pattern,expected",
    [
        ("node_modules", "**/node_modules"),
        ("*.log", "**/*.log"),
        (".DS_Store", "**/.DS_Store"),
        ("  dist  ", "**/dist"),
        ("**/dist", "**/dist"),
        ("src/*.tmp", "src/*.tmp"),
        ("build/", "build/"),
        ("/dist", "/dist"),
        ("!build/keep.txt", "\\!build/keep.txt"),
        ("#notes/x.txt", "\\#notes/x.txt"),
        ("!keep.log", "**/!keep.log"),
    ],
)
def test_normalize_pattern(pattern, expected):
    assert normalize_pattern(pattern) == expected


@pytest.mark.parametrize(
    "path,is_dir,expected",
    [
        # Bare names match at any depth
        ("node_modules", True, True),
        ("web/node_modules", True, True),
        ("web/node_modules/react/index.js", False, True),
        ("server.log", False, True),
        ("logs/deep/app.log", False, True),
        # Dotfiles are matched by name and by wildcards
        (".DS_Store", False, True),
        ("photos/.DS_Store", False, True),
        # Character classes
        ("pkg/module.pyc", False, True),
        ("pkg/module.pyo", False, True),
        ("pkg/module.py", False, False),
        # Patterns with a slash are anchored at the root
        ("src/scratch.tmp", False, True),
        ("lib/src/scratch.tmp", False, False),
        # Unrelated paths survive
        ("src/main.py", False, False),
        ("README.md", False, False),
    ],
)
def test_pattern_exclusion(path, is_dir, expected):
    rules = PatternExclusionRules(["node_modules", "*.log", ".DS_Store", "*.py[cod]", "src/*.tmp"])
    assert rules.exclude(path, is_dir=is_dir) == expected, f"Failed for path: {path}"


def test_wildcard_matches_dotfiles():
    rules = PatternExclusionRules(["*"])
    assert rules.exclude(".env")
    assert rules.exclude("config/.hidden")


def test_directory_only_pattern():
    rules = PatternExclusionRules(["build/"])

    assert rules.exclude("build", is_dir=True)
    assert rules.exclude("packages/app/build", is_dir=True)
    assert not rules.exclude("build")


def test_patterns_are_a_plain_or():
    """A later pattern never re-includes what an earlier one excluded."""
    rules = PatternExclusionRules(["*.log", "!keep.log"])

    assert rules.exclude("keep.log")
    assert rules.exclude("other.log")


@pytest.mark.parametrize("pattern", ["!build/keep.txt", "#notes/x.txt"])
def test_leading_bang_and_hash_match_literally(pattern):
    """A leading ! or # is part of the name, not a negation or a comment."""
    rules = PatternExclusionRules([pattern])

    assert rules.exclude(pattern)
    assert not rules.exclude(pattern[1:])


def test_empty_rules_exclude_nothing():
    rules = PatternExclusionRules()

    assert not rules.has_rules()
    assert not rules.exclude("anything.txt")
    assert not rules.exclude("dir", is_dir=True)


def test_blank_patterns_are_ignored():
    rules = PatternExclusionRules(["", "   ", "*.log"])

    assert rules.patterns == ("**/*.log",)
    assert rules.has_rules()


def test_add_rule_keeps_order():
    rules = PatternExclusionRules(["dist"])
    rules.add_rule("*.tmp")
    rules.add_rule("docs/")

    assert rules.patterns == ("**/dist", "**/*.tmp", "docs/")


def test_load_rules_from_files(tmp_path):
    first = tmp_path / ".gitignore"
    first.write_text("*.pyc\n\nbuild/\n")
    second = tmp_path / "custom.ignore"
    second.write_text("  secrets.txt  \n")

    rules = PatternExclusionRules()
    rules.load_rules([first, second])

    assert rules.patterns == ("**/*.pyc", "build/", "**/secrets.txt")
    assert rules.exclude("a/b/c.pyc")
    assert rules.exclude("config/secrets.txt")


def test_load_rules_single_path(tmp_path):
    ignore_file = tmp_path / ".npmignore"
    ignore_file.write_text("*.log\n")

    rules = PatternExclusionRules()
    rules.load_rules(str(ignore_file))

    assert rules.exclude("npm-debug.log")


def test_read_pattern_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError, match="Rules file not found"):
        read_pattern_file(tmp_path / "missing.ignore")


def test_compile_patterns():
    rules = compile_patterns(["node_modules"])

    assert isinstance(rules, PatternExclusionRules)
    assert rules.exclude("a/node_modules", is_dir=True)
