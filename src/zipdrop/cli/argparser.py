"""Command-line argument parsing for zipdrop.

This module defines the command-line interface for zipdrop,
handling argument parsing and validation.
"""

import argparse
import os
from pathlib import Path
from typing import Any, List, Optional, Sequence, Type, Union

from zipdrop import __version__
from zipdrop.exclusion_rules.pattern_rules import read_pattern_file

DEFAULT_STATE_FILE = "~/.config/zipdrop/state.json"
API_URL_ENV = "ZIPDROP_API_URL"
STATE_FILE_ENV = "ZIPDROP_STATE_FILE"


def create_pattern_action(patterns: List[str]) -> Type[argparse.Action]:
    """Create a custom action class collecting exclusion patterns.

    This factory function creates an action class that appends to the provided
    list as arguments are processed. This preserves the exact order of pattern
    specifications as they appear on the command line, whether given directly
    or read from pattern files.

    Args:
        patterns: The list to extend during parsing.

    Returns:
        A custom action class for use with argparse.
    """

    class PatternAction(argparse.Action):
        """Action to collect patterns as arguments are processed.

        ``-e/--exclude`` reads a gitignore-style file and adds each of its
        non-blank lines; ``-i/--ignore`` adds a single pattern.
        """

        def __init__(self, option_strings: List[str], dest: str, **kwargs: Any) -> None:
            super().__init__(option_strings, dest, **kwargs)

        def __call__(
            self,
            parser: argparse.ArgumentParser,
            namespace: argparse.Namespace,
            values: Union[str, Sequence[Any], None],
            option_string: Optional[str] = None,
        ) -> None:
            if values is None:
                return

            if option_string in ("-e", "--exclude"):
                if isinstance(values, (str, os.PathLike)):
                    patterns.extend(read_pattern_file(values))
                else:
                    patterns.extend(read_pattern_file(Path(str(values))))
            else:  # -i/--ignore
                patterns.append(str(values))

            # Also keep the raw values on the namespace
            current = getattr(namespace, self.dest, None) or []
            setattr(namespace, self.dest, current + [values])

    return PatternAction


def create_parser(patterns: List[str]) -> argparse.ArgumentParser:
    """Create and configure the command-line argument parser.

    Args:
        patterns: The list that collects -i/-e patterns during parsing.

    Returns:
        An ArgumentParser instance configured with zipdrop's options.
    """
    description = """
    zipdrop: Create a ZIP archive of a folder, minus the parts you don't want.

    Exclusion patterns use gitignore-style wildcards. A bare name such as
    node_modules or *.log matches at any depth. Patterns saved with
    --save-patterns are applied automatically on later runs.

    Every archive contains a _ZIPDROP_MANIFEST.txt file describing the archive,
    including an MD5 hash of the archive content taken before the manifest was
    added.

    Everything happens locally. If a statistics service is configured with
    --api-url or ZIPDROP_API_URL, only file counts and sizes are sent to it.
    """

    epilog = """
    Examples:
      # Archive a folder into ./project.zip
      zipdrop /path/to/project

      # Exclude patterns directly and from a file
      zipdrop -i node_modules -i "*.log" -e .gitignore /path/to/project

      # Apply preset pattern bundles
      zipdrop -p web-dev -p os-system /path/to/project

      # Leave out individual entries of the tree
      zipdrop -x docs -x notes/todo.md /path/to/project

      # Preview the tree without writing anything
      zipdrop --preview -s stdout /path/to/project

      # Choose the archive name and destination
      zipdrop -n release-1.2 -d /tmp /path/to/project

      # Remember the given patterns for next time
      zipdrop --save-patterns -i dist /path/to/project

      # List presets, show or clear local statistics
      zipdrop --list-presets
      zipdrop --show-stats
      zipdrop --clear-stats
    """

    parser = argparse.ArgumentParser(
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-V", "--version", action="version", version=f"zipdrop {__version__}", help="Show the version and exit"
    )

    PatternAction = create_pattern_action(patterns)

    parser.add_argument(
        "directory",
        type=Path,
        nargs="?",
        help="The folder to archive. Paths inside the archive are relative to this folder.",
    )
    parser.add_argument(
        "-i",
        "--ignore",
        type=str,
        metavar="PATTERN",
        action=PatternAction,
        help=(
            "Glob pattern to exclude. Bare names match at any depth; patterns containing a slash "
            "match from the folder root; a trailing slash matches directories only. Can be specified "
            "multiple times."
        ),
    )
    parser.add_argument(
        "-e",
        "--exclude",
        type=Path,
        metavar="FILE",
        action=PatternAction,
        help="File with one exclusion pattern per line (e.g., .gitignore). Can be specified multiple times.",
    )
    parser.add_argument(
        "-p",
        "--preset",
        metavar="ID",
        action="append",
        help="Add the patterns of a preset (see --list-presets). Can be specified multiple times.",
    )
    parser.add_argument(
        "--no-saved-patterns",
        action="store_true",
        help="Ignore the saved pattern list for this run.",
    )
    parser.add_argument(
        "--save-patterns",
        action="store_true",
        help="Save the resulting pattern list for future runs.",
    )
    parser.add_argument(
        "-x",
        "--deselect",
        metavar="PATH",
        action="append",
        help=(
            "Leave out an entry of the tree by its path relative to the folder. Deselecting a directory "
            "leaves out everything below it. Can be specified multiple times."
        ),
    )
    parser.add_argument(
        "-n",
        "--name",
        metavar="NAME",
        help="Archive name without the .zip extension (default: the folder's name).",
    )
    parser.add_argument(
        "-d",
        "--dest",
        type=Path,
        metavar="DIR",
        default=Path("."),
        help="Directory to write the archive into (default: current directory).",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print the tree of what would be archived and exit without writing anything.",
    )
    parser.add_argument(
        "-s",
        "--summary",
        metavar="DEST",
        choices=["stderr", "stdout"],
        help="Print summary report. Valid destinations: stderr, stdout",
    )
    parser.add_argument(
        "-L",
        "--follow-symlinks",
        action="store_true",
        help="Follow symbolic links during traversal. By default, symlinks are skipped.",
    )
    parser.add_argument(
        "--api-url",
        metavar="URL",
        default=os.environ.get(API_URL_ENV, ""),
        help=f"Base URL of a statistics service (default: ${API_URL_ENV}; empty disables reporting).",
    )
    parser.add_argument(
        "--state-file",
        type=Path,
        metavar="FILE",
        default=Path(os.environ.get(STATE_FILE_ENV) or DEFAULT_STATE_FILE),
        help=f"JSON file holding saved patterns and statistics (default: ${STATE_FILE_ENV} or {DEFAULT_STATE_FILE}).",
    )
    parser.add_argument(
        "--no-stats",
        action="store_true",
        help="Do not record this archive in local or remote statistics.",
    )
    parser.add_argument(
        "--list-presets",
        action="store_true",
        help="List the available pattern presets and exit.",
    )
    parser.add_argument(
        "--show-stats",
        action="store_true",
        help="Print local (and, if configured, community) statistics.",
    )
    parser.add_argument(
        "--clear-stats",
        action="store_true",
        help="Delete local statistics and history.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print progress messages and debug logging.",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command-line arguments.

    Performs additional validation beyond what argparse can handle.

    Args:
        args: Parsed command-line arguments.

    Raises:
        ValueError: If any arguments fail validation.
    """
    standalone = args.list_presets or args.show_stats or args.clear_stats
    if args.directory is None and not standalone:
        raise ValueError("a directory is required unless --list-presets, --show-stats or --clear-stats is given")
