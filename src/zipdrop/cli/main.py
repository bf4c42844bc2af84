"""Command-line interface for zipdrop.

This module provides the command-line interface for zipdrop, allowing users to
preview and archive a folder with exclusion patterns and manual deselections. It
handles command-line argument parsing, user-facing messages, and signal
management for graceful interruption handling.

Signal Handling Notes:
    - SIGPIPE: Handled when output pipe is closed (e.g., when piping a preview to
      `head`) on Unix-like systems
    - SIGINT: Ctrl+C before the archive build starts exits immediately. During the
      build it is deferred: the archive is completed and written, then the
      program exits with status 130.

Exit Codes:
    0: Successful completion
    1: Runtime error during execution
    2: Command-line syntax error
    126: Permission denied
    130: Interrupted by SIGINT (Ctrl+C)
    141: Broken pipe (SIGPIPE) on Unix-like systems

Example:
    # Archive a folder, leaving out dependencies and logs
    $ zipdrop /path/to/project -i node_modules -i "*.log"

    # Preview what would be archived
    $ zipdrop --preview /path/to/project

    # Display version information
    $ zipdrop --version
"""

import argparse
import logging
import sys
from typing import List, Optional

from zipdrop.archive.archive_assembler import ArchiveBuildResult
from zipdrop.cli.argparser import create_parser, validate_args
from zipdrop.cli.safe_writer import SafeWriter
from zipdrop.cli.signal_handler import setup_signal_handling, signal_handler
from zipdrop.exceptions import ArchiveBuildError, NoFilesSelectedError, NoFolderSelectedError
from zipdrop.file_system_tree.local_handle import LocalDirectoryHandle
from zipdrop.notifications import NotificationLevel
from zipdrop.presets import PATTERN_PRESETS
from zipdrop.selection.selection_state import SelectionStats
from zipdrop.session import ZipDropSession
from zipdrop.sizes import format_size
from zipdrop.stats.remote import RemoteStatsClient
from zipdrop.stats.stats_store import StatsStore
from zipdrop.storage import JSONFileStore, KeyValueStore, MemoryStore, PatternStore

HISTORY_LINES = 5


class CLINotifier:
    """Print session notifications to stderr.

    Warnings and errors carry a ``Warning:``/``Error:`` prefix. Progress messages
    are only printed in verbose mode.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def __call__(self, message: str, level: NotificationLevel) -> None:
        if level is NotificationLevel.ERROR:
            print(f"Error: {message}", file=sys.stderr)
        elif level is NotificationLevel.WARNING:
            print(f"Warning: {message}", file=sys.stderr)
        elif level is NotificationLevel.SUCCESS or self.verbose:
            print(message, file=sys.stderr)


def format_summary(
    stats: SelectionStats,
    estimated_size: int,
    result: Optional[ArchiveBuildResult] = None,
) -> str:
    """Format the selection totals, and the archive figures if built, into a report.

    Args:
        stats: Totals of the current selection.
        estimated_size: Estimated archive size for the selection.
        result: The build result, if an archive was created.

    Returns:
        A formatted string with one labelled figure per line.
    """
    lines = [
        f"Directories: {stats.folders}",
        f"Files: {stats.files}",
        f"Size: {format_size(stats.bytes)}",
    ]

    if result is None:
        lines.append(f"Estimated archive size: {format_size(estimated_size)}")
    else:
        lines.extend(
            [
                f"Archive: {result.file_name}",
                f"Archive size: {format_size(result.archive_bytes)}",
                f"Space saved: {format_size(result.bytes_saved)} ({result.compression_ratio:.1f}%)",
                f"MD5: {result.digest}",
            ]
        )

    return "\n".join(lines)


def format_presets() -> str:
    """List every preset with its description and patterns."""
    blocks = []
    for preset in PATTERN_PRESETS:
        blocks.append(f"{preset.id}: {preset.name} ({preset.description})\n    {' '.join(preset.patterns)}")
    return "\n".join(blocks)


def format_stats(stats_store: StatsStore, remote_client: RemoteStatsClient) -> str:
    """Format local statistics, recent history and, if enabled, community totals."""
    stats = stats_store.get_stats()
    lines = [
        f"Archives created: {stats.total_zips_created:,}",
        f"Files zipped: {stats.total_files_zipped:,}",
        f"Original size: {format_size(stats.total_raw_size_bytes)}",
        f"Compressed size: {format_size(stats.total_zipped_size_bytes)}",
        f"Space saved: {format_size(stats_store.total_saved())} ({stats_store.average_compression_ratio():.1f}%)",
    ]
    if stats.first_used_at:
        lines.append(f"First used: {stats.first_used_at}")
    if stats.last_used_at:
        lines.append(f"Last used: {stats.last_used_at}")

    history = stats_store.get_history()[:HISTORY_LINES]
    if history:
        lines.append("")
        lines.append("Recent archives:")
        for item in history:
            lines.append(
                f"  {item.timestamp}  {item.folder_name}  {item.files_count:,} files  "
                f"{format_size(item.raw_size_bytes)} -> {format_size(item.zipped_size_bytes)} "
                f"({item.compression_ratio:.0f}% smaller)"
            )

    if remote_client.enabled:
        community = remote_client.fetch_stats()
        today = remote_client.fetch_today_stats()
        lines.append("")
        if community is None:
            lines.append("Community statistics unavailable")
        else:
            lines.append(f"Community archives: {int(community.get('total_zips', 0)):,}")
            lines.append(f"Community files: {int(community.get('total_files', 0)):,}")
            lines.append(f"Community space saved: {format_size(int(community.get('total_bytes_saved', 0)))}")
        if today is not None:
            lines.append(f"Archives today: {int(today.get('zips_created', 0)):,}")

    return "\n".join(lines)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def run(args: argparse.Namespace, cli_patterns: List[str]) -> int:
    """Carry out the parsed command line.

    Errors already reported to the user through the session's notifier end the
    run with an exit code; any other exception propagates to ``main``.

    Args:
        args: Parsed and validated arguments.
        cli_patterns: Patterns collected from -i/-e, in command-line order.

    Returns:
        The exit code.
    """
    state: KeyValueStore = JSONFileStore(args.state_file)
    stats_store = StatsStore(state)
    remote_client = RemoteStatsClient(args.api_url, state)

    if args.list_presets:
        print(format_presets())
    if args.clear_stats:
        stats_store.clear()
        print("Statistics cleared", file=sys.stderr)
    if args.show_stats:
        print(format_stats(stats_store, remote_client))
    if args.directory is None:
        return 0

    saved_patterns = [] if args.no_saved_patterns else PatternStore(state).load()
    pattern_store = PatternStore(state if args.save_patterns else MemoryStore())

    session = ZipDropSession(
        pattern_store,
        notifier=CLINotifier(args.verbose),
        stats_store=None if args.no_stats else stats_store,
        remote_client=None if args.no_stats else remote_client,
    )
    session.set_patterns(saved_patterns + cli_patterns)
    if args.preset:
        session.apply_presets(args.preset)

    root = LocalDirectoryHandle(args.directory, follow_symlinks=args.follow_symlinks)
    try:
        session.select_root(root)
    except PermissionError:
        return 126
    except OSError:
        return 1

    for path in args.deselect or []:
        try:
            session.toggle(path.strip("/"))
        except KeyError:
            raise ValueError(f"Not in the archive tree: {path}") from None

    if args.name is not None:
        session.output_name = args.name

    if args.preview:
        with SafeWriter(sys.stdout.fileno()) as writer:
            try:
                if session.tree is None:
                    print("Warning: No files survive the exclusion patterns", file=sys.stderr)
                else:
                    writer.write_lines(session.preview_lines())
                if args.summary:
                    report = format_summary(session.stats(), session.estimated_zip_size())
                    if args.summary == "stdout":
                        writer.write("\n" + report + "\n")
                    else:
                        print(report, file=sys.stderr)
            except BrokenPipeError:
                pass
        return 0

    if signal_handler.sigint_received.is_set():
        session.cancel_root_selection()
        return 130

    try:
        with signal_handler.deferring_sigint():
            result, target = session.create_archive(args.dest)
    except (NoFolderSelectedError, NoFilesSelectedError):
        return 1
    except ArchiveBuildError as e:
        return 126 if isinstance(e.cause, PermissionError) else 1

    with SafeWriter(sys.stdout.fileno()) as writer:
        try:
            writer.write(f"{target}\n")
            if args.summary:
                report = format_summary(session.stats(), session.estimated_zip_size(), result)
                if args.summary == "stdout":
                    writer.write(report + "\n")
                else:
                    print(report, file=sys.stderr)
        except BrokenPipeError:
            pass

    return 0


def main() -> None:
    """Main entry point for the zipdrop command-line interface.

    Exit codes:
        0: Successful completion
        1: Runtime error during execution
        2: Command-line syntax error
        126: Permission denied
        130: Interrupted by SIGINT (Ctrl+C)
        141: Broken pipe (SIGPIPE) on Unix-like systems
    """
    setup_signal_handling()

    try:
        # Filled in by the -i/-e actions while parsing
        cli_patterns: List[str] = []

        parser = create_parser(cli_patterns)
        try:
            args = parser.parse_args()
        except SystemExit:
            # argparse calls sys.exit(2) for argument errors
            # or sys.exit(0) for --version
            raise

        try:
            validate_args(args)
        except ValueError as e:
            parser.error(str(e))

        configure_logging(args.verbose)
        exit_code = run(args, cli_patterns)

    except PermissionError as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(126)
    except Exception as e:
        print(f"Error: {str(e)}", file=sys.stderr)
        sys.exit(1)

    # Handle exit codes based on received signals
    if signal_handler.sigpipe_received.is_set():
        sys.exit(141)
    elif signal_handler.sigint_received.is_set():
        sys.exit(130)
    elif exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
