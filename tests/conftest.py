"""Test configuration and fixtures for zipdrop."""

import pytest

from zipdrop.file_system_tree.memory_handle import InMemoryDirectoryHandle


def pytest_addoption(parser):
    """Add custom command-line options for tests."""
    parser.addoption("--run-cli-tests", action="store_true", default=False, help="Run CLI integration tests (slow)")


@pytest.fixture
def project_root():
    """An in-memory project with dependencies, logs and nested sources."""
    return InMemoryDirectoryHandle(
        "project",
        {
            "README.md": "# Project\n",
            "src": {
                "main.py": "print('hello')\n",
                "utils": {"helpers.py": "def helper():\n    return 42\n"},
            },
            "docs": {"guide.md": "Guide\n" * 10, "api.md": "API\n"},
            "node_modules": {"react": {"index.js": "module.exports = {}\n"}},
            "server.log": "log line\n" * 5,
        },
        last_modified=1700000000.0,
    )
