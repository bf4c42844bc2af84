"""Session object owning everything between picking a folder and writing an archive.

A ZipDropSession holds the picked root, the persisted pattern list, the
materialized tree, the manual selection and the output name. It is the only
place where these change, and it rebuilds the tree in full whenever the root or
the pattern list changes. While an archive build runs, every state-changing
method raises BuildInProgressError.
"""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from zipdrop.archive.archive_assembler import ArchiveAssembler, ArchiveBuildResult, BuildPhase, BuildProgress
from zipdrop.exceptions import (
    ArchiveBuildError,
    ArchiveCodecError,
    BuildInProgressError,
    NoFilesSelectedError,
    NoFolderSelectedError,
)
from zipdrop.exclusion_rules.base_rules import BaseExclusionRules
from zipdrop.exclusion_rules.composite_rules import CompositeExclusionRules
from zipdrop.exclusion_rules.pattern_rules import PatternExclusionRules, compile_patterns
from zipdrop.file_system_tree.file_system_tree import FileSystemTree
from zipdrop.file_system_tree.handles import DirectoryHandle
from zipdrop.file_system_tree.tree_node import TreeNode
from zipdrop.notifications import NotificationLevel, Notifier, log_notifier
from zipdrop.presets import get_preset, merge_patterns
from zipdrop.selection.selection_state import SelectionState, SelectionStats, compute_stats
from zipdrop.sizes import estimate_zip_size, format_size
from zipdrop.stats.remote import RemoteStatsClient
from zipdrop.stats.stats_store import StatsStore
from zipdrop.storage import PatternStore
from zipdrop.types import PathType

logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".part"


class ZipDropSession:
    """Orchestrate pattern editing, tree preview, selection and archive creation.

    Attributes:
        pattern_store (PatternStore): Where the pattern list is persisted.
        stats_store (Optional[StatsStore]): Local statistics sink.
        remote_client (Optional[RemoteStatsClient]): Remote statistics sink.

    Example:
        >>> from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle
        >>> from zipdrop.storage import MemoryStore
        >>> session = ZipDropSession(PatternStore(MemoryStore()), notifier=lambda message, level: None)
        >>> session.set_patterns(["*.log"])
        >>> session.select_root(InMemoryDirectoryHandle("X", {"a.log": "0123456789", "b.txt": "x" * 20}))
        >>> session.stats()
        SelectionStats(files=1, folders=1, bytes=20)
    """

    def __init__(
        self,
        pattern_store: PatternStore,
        *,
        notifier: Optional[Notifier] = None,
        stats_store: Optional[StatsStore] = None,
        remote_client: Optional[RemoteStatsClient] = None,
    ) -> None:
        """Initialize a session and load the persisted pattern list.

        Args:
            pattern_store: Where the pattern list is loaded from and saved to.
            notifier: Receives every user-facing notification. Defaults to logging.
            stats_store: Records each completed archive locally, if given.
            remote_client: Reports each completed archive remotely, if given.
        """
        self.pattern_store = pattern_store
        self.stats_store = stats_store
        self.remote_client = remote_client
        self._notify: Notifier = notifier or log_notifier

        self._patterns: List[str] = pattern_store.load()
        self._pattern_rules: PatternExclusionRules = compile_patterns(self._patterns)
        self._root: Optional[DirectoryHandle] = None
        self._tree: Optional[FileSystemTree] = None
        self._selection = SelectionState()
        self._output_name = ""
        self._build_lock = threading.Lock()

    # State access

    @property
    def patterns(self) -> Tuple[str, ...]:
        return tuple(self._patterns)

    @property
    def root(self) -> Optional[DirectoryHandle]:
        return self._root

    @property
    def file_system_tree(self) -> Optional[FileSystemTree]:
        return self._tree

    @property
    def tree(self) -> Optional[TreeNode]:
        """Root node of the current tree, or None if no folder is picked or nothing survives."""
        if self._tree is None:
            return None
        return self._tree.get_tree()

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def is_building(self) -> bool:
        return self._build_lock.locked()

    @property
    def output_name(self) -> str:
        return self._output_name

    @output_name.setter
    def output_name(self, name: str) -> None:
        self._ensure_idle()
        self._output_name = name

    @property
    def effective_output_name(self) -> str:
        """Output name with blanks falling back to the picked folder's name."""
        name = self._output_name.strip()
        if name:
            return name
        return self._root.name if self._root is not None else ""

    def _ensure_idle(self) -> None:
        if self._build_lock.locked():
            raise BuildInProgressError()

    # Pattern list

    def set_patterns(self, patterns: Iterable[str]) -> None:
        """Replace the pattern list, persist it and rebuild the tree.

        Patterns are trimmed; blanks and duplicates are dropped.

        Raises:
            BuildInProgressError: If a build is running.
            OSError: If the tree cannot be rebuilt. The root is cleared.
        """
        self._ensure_idle()
        cleaned, _ = merge_patterns([], (p.strip() for p in patterns if p.strip()))
        self._apply_patterns(cleaned)

    def add_pattern(self, pattern: str) -> bool:
        """Append one pattern.

        Returns:
            False if the pattern is blank or already present, True otherwise.

        Raises:
            BuildInProgressError: If a build is running.
            OSError: If the tree cannot be rebuilt. The root is cleared.
        """
        self._ensure_idle()
        trimmed = pattern.strip()
        if not trimmed or trimmed in self._patterns:
            return False
        self._apply_patterns(self._patterns + [trimmed])
        self._notify(f'Pattern "{trimmed}" added', NotificationLevel.SUCCESS)
        return True

    def remove_pattern(self, pattern: str) -> bool:
        """Remove one pattern.

        Returns:
            False if the pattern was not present, True otherwise.

        Raises:
            BuildInProgressError: If a build is running.
            OSError: If the tree cannot be rebuilt. The root is cleared.
        """
        self._ensure_idle()
        if pattern not in self._patterns:
            return False
        self._apply_patterns([p for p in self._patterns if p != pattern])
        self._notify(f'Pattern "{pattern}" removed', NotificationLevel.INFO)
        return True

    def clear_patterns(self) -> None:
        self._ensure_idle()
        self._apply_patterns([])
        self._notify("All patterns cleared", NotificationLevel.INFO)

    def apply_presets(self, preset_ids: Iterable[str]) -> int:
        """Merge the patterns of one or more presets into the pattern list.

        Returns:
            The number of patterns that were not already present.

        Raises:
            BuildInProgressError: If a build is running.
            UnknownPresetError: If any identifier is unknown. Nothing is changed.
            OSError: If the tree cannot be rebuilt. The root is cleared.
        """
        self._ensure_idle()
        presets = [get_preset(preset_id) for preset_id in preset_ids]
        merged, added = merge_patterns(self._patterns, (p for preset in presets for p in preset.patterns))
        self._apply_patterns(merged)
        self._notify(f"{added} pattern{'' if added == 1 else 's'} added", NotificationLevel.SUCCESS)
        return added

    def _apply_patterns(self, patterns: List[str]) -> None:
        self._patterns = patterns
        self.pattern_store.save(patterns)
        self._pattern_rules = compile_patterns(patterns)
        if self._root is not None:
            self._rebuild_tree(prune_selection=True)

    # Root folder

    def select_root(self, root: DirectoryHandle) -> None:
        """Pick a new root folder and build its tree.

        Clears the selection and resets the output name to the folder's name.

        Raises:
            BuildInProgressError: If a build is running.
            OSError: If the tree cannot be built. The root is cleared.
        """
        self._ensure_idle()
        self._root = root
        self._selection = SelectionState()
        self._output_name = root.name
        self._rebuild_tree(prune_selection=False)
        self._notify(f'Folder "{root.name}" selected', NotificationLevel.SUCCESS)

    def cancel_root_selection(self) -> None:
        """Report that picking a folder was cancelled. State is left unchanged."""
        self._notify("Folder selection was cancelled", NotificationLevel.WARNING)

    def reset(self) -> None:
        """Forget the root, tree, selection and output name. Patterns are kept.

        Raises:
            BuildInProgressError: If a build is running.
        """
        self._ensure_idle()
        self._clear_root()
        self._notify("View reset", NotificationLevel.INFO)

    def _clear_root(self) -> None:
        self._root = None
        self._tree = None
        self._selection = SelectionState()
        self._output_name = ""

    def _rebuild_tree(self, prune_selection: bool) -> None:
        if self._root is None:
            return
        # A pattern change rescans the tree already shown
        tree = self._tree if prune_selection and self._tree is not None else FileSystemTree(self._root)
        self._tree = None
        tree.exclusion_rules = self._pattern_rules
        try:
            tree.refresh()
        except OSError as e:
            logger.debug("Failed to build tree for %s", self._root.name, exc_info=True)
            self._clear_root()
            self._notify(f"Error reading folder: {e}", NotificationLevel.ERROR)
            raise

        self._tree = tree
        if prune_selection:
            self._selection = self._selection.prune(tree.get_tree())
        else:
            self._selection = SelectionState()

    # Selection

    def toggle(self, node_or_path: Union[TreeNode, str]) -> SelectionStats:
        """Flip the selection of a node and its subtree.

        Args:
            node_or_path: A node of the current tree, or its relative path.

        Returns:
            The selection totals after the change.

        Raises:
            BuildInProgressError: If a build is running.
            NoFolderSelectedError: If no folder is picked.
            KeyError: If the path names no node of the current tree.
        """
        self._ensure_idle()
        if self._tree is None:
            raise NoFolderSelectedError()

        if isinstance(node_or_path, str):
            node = self._tree.find_node(node_or_path)
            if node is None:
                raise KeyError(node_or_path)
        else:
            node = node_or_path

        self._selection = self._selection.toggle(node)
        return self.stats()

    def select_all(self) -> None:
        self._ensure_idle()
        self._selection = self._selection.select_all()

    def deselect_all(self) -> None:
        self._ensure_idle()
        self._selection = self._selection.deselect_all(self.tree)

    def stats(self) -> SelectionStats:
        if self._tree is not None and not self._selection.excluded_paths:
            return SelectionStats(
                self._tree.get_file_count(), self._tree.get_directory_count(), self._tree.get_total_size()
            )
        return compute_stats(self.tree, self._selection.excluded_paths)

    def estimated_zip_size(self) -> int:
        return estimate_zip_size(self.stats().bytes)

    def exclusion_rules(self) -> BaseExclusionRules:
        """Combined pattern and manual exclusion predicate for the current state."""
        return CompositeExclusionRules([self._selection.as_exclusion_rules(), self._pattern_rules])

    def preview_lines(self) -> Iterator[str]:
        """Yield the lines of the current tree with selection marks."""
        if self._tree is None:
            return
        yield from self._tree.stream_tree_representation(self._selection.excluded_paths)

    def preview(self) -> str:
        """Render the current tree with selection marks, or an empty string."""
        return "\n".join(self.preview_lines())

    # Archive

    def create_archive(
        self,
        destination: PathType,
        progress_callback: Optional[Callable[[BuildProgress], None]] = None,
    ) -> Tuple[ArchiveBuildResult, Path]:
        """Build the archive and write it as ``<output name>.zip`` into ``destination``.

        The archive is written to a temporary file next to the target and renamed
        into place, so a failed build never leaves a partial archive behind.

        Args:
            destination: Existing directory to write the archive into.
            progress_callback: Called with every build progress event.

        Returns:
            The build result and the path of the written archive.

        Raises:
            BuildInProgressError: If a build is already running.
            NoFolderSelectedError: If no folder is picked.
            NoFilesSelectedError: If every file is excluded.
            ArchiveBuildError: If reading, compressing or writing fails.
        """
        if not self._build_lock.acquire(blocking=False):
            raise BuildInProgressError()
        try:
            return self._create_archive(Path(destination), progress_callback)
        finally:
            self._build_lock.release()

    def _create_archive(
        self,
        destination: Path,
        progress_callback: Optional[Callable[[BuildProgress], None]],
    ) -> Tuple[ArchiveBuildResult, Path]:
        if self._root is None:
            self._notify("Please select a folder first", NotificationLevel.WARNING)
            raise NoFolderSelectedError()
        if self.stats().files == 0:
            self._notify("No files to zip", NotificationLevel.WARNING)
            raise NoFilesSelectedError()

        assembler = ArchiveAssembler(
            self._root,
            self.exclusion_rules(),
            self.effective_output_name,
            source_name=self._root.name,
        )
        target = destination / assembler.file_name

        try:
            for progress in assembler.iter_build():
                self._notify_progress(progress)
                if progress_callback is not None:
                    progress_callback(progress)
            result = assembler.result
            _write_atomic(target, result.blob)
        except (OSError, ArchiveCodecError) as e:
            error = ArchiveBuildError(e)
            self._notify(str(error), NotificationLevel.ERROR)
            raise error from e

        self._record_completion(result)
        self._notify(
            f"ZIP created! {format_size(result.archive_bytes)} ({result.compression_ratio:.0f}% smaller)",
            NotificationLevel.SUCCESS,
        )
        return result, target

    def _notify_progress(self, progress: BuildProgress) -> None:
        if progress.phase is BuildPhase.COUNTING:
            self._notify("Counting files...", NotificationLevel.INFO)
        elif progress.phase is BuildPhase.COLLECTING and progress.current == 0:
            self._notify(f"Zipping {progress.total} files...", NotificationLevel.INFO)
        elif progress.phase is BuildPhase.COMPRESSING:
            self._notify("Compressing...", NotificationLevel.INFO)
        elif progress.phase is BuildPhase.HASHING:
            self._notify("Computing integrity hash...", NotificationLevel.INFO)
        elif progress.phase is BuildPhase.FINALIZING:
            self._notify("Finalizing archive...", NotificationLevel.INFO)

    def _record_completion(self, result: ArchiveBuildResult) -> None:
        """Send the completion event to the configured sinks. Sink failures are logged only."""
        if self.stats_store is not None:
            try:
                self.stats_store.record_zip_creation(
                    folder_name=self._root.name if self._root is not None else result.output_name,
                    files_count=result.files_added,
                    raw_size_bytes=result.raw_bytes,
                    zipped_size_bytes=result.compressed_bytes,
                )
            except Exception as e:
                logger.warning("Failed to record local statistics: %s", e)

        if self.remote_client is not None:
            try:
                self.remote_client.record_event(
                    files_count=result.files_added,
                    raw_size_bytes=result.raw_bytes,
                    zipped_size_bytes=result.compressed_bytes,
                )
            except Exception as e:
                logger.warning("Failed to record remote statistics: %s", e)


def _write_atomic(target: Path, data: bytes) -> None:
    partial = target.with_name(target.name + PARTIAL_SUFFIX)
    try:
        partial.write_bytes(data)
        os.replace(partial, target)
    except OSError:
        partial.unlink(missing_ok=True)
        raise
