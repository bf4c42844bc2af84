"""Unit tests for the CLI main module."""

import json
import zipfile
from unittest.mock import patch

import pytest

from zipdrop.archive.manifest import MANIFEST_PATH
from zipdrop.cli.argparser import API_URL_ENV, STATE_FILE_ENV
from zipdrop.cli.safe_writer import SafeWriter
from zipdrop.cli.main import CLINotifier, format_presets, format_stats, format_summary, main
from zipdrop.cli.signal_handler import SignalHandler
from zipdrop.notifications import NotificationLevel
from zipdrop.selection.selection_state import SelectionStats
from zipdrop.session import ZipDropSession
from zipdrop.stats.remote import RemoteStatsClient
from zipdrop.stats.stats_store import StatsStore
from zipdrop.storage import MemoryStore


@pytest.fixture(autouse=True)
def no_signal_setup(monkeypatch):
    """Keep main() from replacing the test runner's signal handlers."""
    monkeypatch.delenv(API_URL_ENV, raising=False)
    monkeypatch.delenv(STATE_FILE_ENV, raising=False)
    with patch("zipdrop.cli.main.setup_signal_handling"):
        yield


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "docs").mkdir()
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "src" / "main.py").write_text("print('hello')\n")
    (root / "docs" / "guide.md").write_text("# Guide\n")
    (root / "node_modules" / "pkg" / "index.js").write_text("module.exports = {}\n")
    (root / "server.log").write_text("log line\n")
    return root


@pytest.fixture
def out_dir(tmp_path):
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def state_file(tmp_path):
    return tmp_path / "state.json"


def run_main(*argv):
    with patch("sys.argv", ["zipdrop", *argv]):
        main()


def run_main_expecting_exit(*argv):
    with pytest.raises(SystemExit) as exc_info:
        run_main(*argv)
    return exc_info.value.code


def archive_names(path):
    with zipfile.ZipFile(path) as archive:
        return archive.namelist()


class TestCLINotifier:
    def test_levels(self, capsys):
        notifier = CLINotifier(verbose=False)

        notifier("ZIP created!", NotificationLevel.SUCCESS)
        notifier("Counting files...", NotificationLevel.INFO)
        notifier("No files to zip", NotificationLevel.WARNING)
        notifier("Error creating ZIP file", NotificationLevel.ERROR)

        assert capsys.readouterr().err.splitlines() == [
            "ZIP created!",
            "Warning: No files to zip",
            "Error: Error creating ZIP file",
        ]

    def test_verbose_shows_progress(self, capsys):
        CLINotifier(verbose=True)("Counting files...", NotificationLevel.INFO)

        assert capsys.readouterr().err == "Counting files...\n"


class TestFormatting:
    def test_summary_before_build(self):
        report = format_summary(SelectionStats(files=3, folders=2, bytes=2048), 1433)

        assert report.splitlines() == [
            "Directories: 2",
            "Files: 3",
            "Size: 2 KiB",
            "Estimated archive size: 1.4 KiB",
        ]

    def test_presets_listing(self):
        listing = format_presets()

        assert "web-dev: Web Development" in listing
        assert "defaults: Defaults" in listing
        assert "node_modules .git dist" in listing

    def test_stats_listing(self):
        store = MemoryStore()
        stats = StatsStore(store)
        stats.record_zip_creation("project", 3, 300, 210)

        text = format_stats(stats, RemoteStatsClient("", store))

        assert "Archives created: 1" in text
        assert "Space saved: 90 bytes (30.0%)" in text
        assert "Recent archives:" in text
        assert "project  3 files" in text
        assert "Community" not in text

    def test_stats_listing_with_unavailable_service(self):
        store = MemoryStore()
        client = RemoteStatsClient("https://stats.example.com", store)

        with patch.object(client, "fetch_stats", return_value=None), patch.object(
            client, "fetch_today_stats", return_value=None
        ):
            text = format_stats(StatsStore(store), client)

        assert "Community statistics unavailable" in text


class TestMain:
    def test_creates_archive(self, project, out_dir, state_file, capfd):
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file), "-i", "node_modules", "-i", "*.log")

        target = out_dir / "project.zip"
        assert archive_names(target) == ["docs/guide.md", "src/main.py", MANIFEST_PATH]
        captured = capfd.readouterr()
        assert str(target) in captured.out
        assert "ZIP created!" in captured.err

    def test_patterns_from_file_and_presets(self, project, out_dir, state_file, tmp_path):
        ignore_file = tmp_path / "custom.ignore"
        ignore_file.write_text("docs/\n")

        run_main(
            str(project), "-d", str(out_dir), "--state-file", str(state_file), "-e", str(ignore_file), "-p", "defaults"
        )

        assert archive_names(out_dir / "project.zip") == ["src/main.py", MANIFEST_PATH]

    def test_deselect_and_name(self, project, out_dir, state_file):
        run_main(
            str(project),
            "-d",
            str(out_dir),
            "--state-file",
            str(state_file),
            "-i",
            "node_modules",
            "-x",
            "docs",
            "-x",
            "/server.log",
            "-n",
            "release",
        )

        assert archive_names(out_dir / "release.zip") == ["src/main.py", MANIFEST_PATH]

    def test_summary_to_stdout(self, project, out_dir, state_file, capfd):
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file), "-s", "stdout")

        out = capfd.readouterr().out
        assert "Files: 4" in out
        assert "Archive: project.zip" in out
        assert "MD5: " in out

    def test_preview_writes_nothing(self, project, out_dir, state_file, capfd):
        run_main(
            "--preview", str(project), "-d", str(out_dir), "--state-file", str(state_file), "-i", "node_modules",
            "-x", "docs",
        )

        out = capfd.readouterr().out
        assert out.splitlines()[:3] == ["project/", "├── [ ] docs/", "│   └── [ ] guide.md (8 bytes)"]
        assert "node_modules" not in out
        assert list(out_dir.iterdir()) == []

    def test_preview_is_streamed_line_by_line(self, project, out_dir, state_file, capfd):
        with patch.object(SafeWriter, "write_lines", autospec=True, side_effect=SafeWriter.write_lines) as write_lines:
            run_main(
                "--preview", str(project), "-d", str(out_dir), "--state-file", str(state_file), "-i", "node_modules",
                "-s", "stdout",
            )

        write_lines.assert_called_once()
        out = capfd.readouterr().out
        assert out.startswith("project/\n")
        # project, docs and src
        assert "Directories: 3" in out

    def test_saved_patterns(self, project, out_dir, state_file):
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file), "--save-patterns", "-i", "*.log")

        assert json.loads(state_file.read_text())["zipdrop:excludePatterns"] == ["*.log"]

        # Saved patterns apply to later runs
        (out_dir / "project.zip").unlink()
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file), "-i", "node_modules")
        assert "server.log" not in archive_names(out_dir / "project.zip")

        # ...unless told otherwise
        (out_dir / "project.zip").unlink()
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file), "--no-saved-patterns")
        assert "server.log" in archive_names(out_dir / "project.zip")

    def test_statistics_are_recorded(self, project, out_dir, state_file, capfd):
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file))
        run_main("--show-stats", "--state-file", str(state_file))

        assert "Archives created: 1" in capfd.readouterr().out

        run_main("--clear-stats", "--state-file", str(state_file))
        run_main("--show-stats", "--state-file", str(state_file))
        assert "Archives created: 0" in capfd.readouterr().out

    def test_no_stats(self, project, out_dir, state_file):
        run_main(str(project), "-d", str(out_dir), "--state-file", str(state_file), "--no-stats")

        assert not state_file.exists() or "zipdrop:stats" not in json.loads(state_file.read_text())

    def test_list_presets(self, state_file, capfd):
        run_main("--list-presets", "--state-file", str(state_file))

        assert "python: Python" in capfd.readouterr().out

    def test_missing_directory_argument(self, capfd):
        assert run_main_expecting_exit() == 2
        assert "a directory is required" in capfd.readouterr().err

    def test_nonexistent_directory(self, tmp_path, state_file, capfd):
        assert run_main_expecting_exit(str(tmp_path / "missing"), "--state-file", str(state_file)) == 1
        assert "Error: Root path does not exist" in capfd.readouterr().err

    def test_unknown_deselect_path(self, project, out_dir, state_file, capfd):
        code = run_main_expecting_exit(str(project), "-d", str(out_dir), "--state-file", str(state_file), "-x", "nope")

        assert code == 1
        assert "Error: Not in the archive tree: nope" in capfd.readouterr().err
        assert list(out_dir.iterdir()) == []

    def test_unknown_preset(self, project, out_dir, state_file, capfd):
        code = run_main_expecting_exit(str(project), "-d", str(out_dir), "--state-file", str(state_file), "-p", "cobol")

        assert code == 1
        assert "Unknown pattern preset: 'cobol'" in capfd.readouterr().err

    def test_everything_excluded(self, project, out_dir, state_file, capfd):
        code = run_main_expecting_exit(str(project), "-d", str(out_dir), "--state-file", str(state_file), "-i", "*")

        assert code == 1
        assert "Warning: No files to zip" in capfd.readouterr().err
        assert list(out_dir.iterdir()) == []

    def test_unwritable_destination(self, project, tmp_path, state_file, capfd):
        code = run_main_expecting_exit(str(project), "-d", str(tmp_path / "missing"), "--state-file", str(state_file))

        assert code == 1
        assert "Error: Error creating ZIP file" in capfd.readouterr().err

    def test_interrupted_before_build(self, project, out_dir, state_file, capfd):
        handler = SignalHandler()
        handler.sigint_received.set()

        with patch("zipdrop.cli.main.signal_handler", handler):
            code = run_main_expecting_exit(str(project), "-d", str(out_dir), "--state-file", str(state_file))

        assert code == 130
        assert "Folder selection was cancelled" in capfd.readouterr().err
        assert list(out_dir.iterdir()) == []

    def test_interrupt_during_build_completes_archive(self, project, out_dir, state_file):
        handler = SignalHandler()
        original_create_archive = ZipDropSession.create_archive

        def interrupted_create_archive(self, *args, **kwargs):
            handler.handle_sigint(2, None)
            return original_create_archive(self, *args, **kwargs)

        with patch("zipdrop.cli.main.signal_handler", handler), patch.object(
            ZipDropSession, "create_archive", interrupted_create_archive
        ):
            code = run_main_expecting_exit(str(project), "-d", str(out_dir), "--state-file", str(state_file))

        assert code == 130
        assert (out_dir / "project.zip").exists()
