"""Tests for the log manager"""

import datetime
import json
import os

import pytest

from mcp_xcode.utils.logs import LogManager, get_log_manager, set_log_manager

NOW = datetime.datetime(2025, 1, 15, 10, 30, 45)


@pytest.fixture
def manager(tmp_path):
    return LogManager(log_dir=str(tmp_path / "logs"), retention_days=7, clock=lambda: NOW)


def test_save_log_layout(manager):
    path = manager.save_log("build", "** BUILD SUCCEEDED **\n", "MyApp")

    assert path == os.path.join(manager.log_dir, "2025-01-15", "10-30-45-build-MyApp.log")
    with open(path, encoding="utf-8") as f:
        assert f.read() == "** BUILD SUCCEEDED **\n"


def test_metadata_header(manager):
    path = manager.save_log("test", "output", "MyApp", {"scheme": "MyApp", "exitCode": 65})

    with open(path, encoding="utf-8") as f:
        content = f.read()
    header, _, body = content.partition("=== End Metadata ===\n\n")
    assert header.startswith("=== Log Metadata ===\n")
    assert json.loads(header[len("=== Log Metadata ===\n"):]) == {"scheme": "MyApp", "exitCode": 65}
    assert body == "output"


def test_names_are_unique_within_a_second(manager):
    first = manager.save_log("build", "one", "MyApp")
    second = manager.save_log("build", "two", "MyApp")

    assert first != second
    assert second.endswith("10-30-45-build-MyApp-1.log")


def test_unsafe_label_characters_are_replaced(manager):
    path = manager.save_log("build", "", "My App/../x")
    assert os.path.dirname(path) == os.path.join(manager.log_dir, "2025-01-15")
    assert os.path.basename(path) == "10-30-45-build-My_App_.._x.log"


def test_latest_link_points_at_newest(manager):
    manager.save_log("build", "one", "MyApp")
    newest = manager.save_log("build", "two", "MyApp")

    link = os.path.join(manager.log_dir, "latest-build.log")
    assert os.path.islink(link)
    assert os.path.realpath(link) == os.path.realpath(newest)


def test_debug_data(manager):
    path = manager.save_debug_data("build-command", {"command": "xcodebuild build"}, "MyApp")

    assert path.endswith("10-30-45-build-command-MyApp-debug.json")
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == {"command": "xcodebuild build"}
    again = manager.save_debug_data("build-command", {}, "MyApp")
    assert again.endswith("10-30-45-build-command-MyApp-1-debug.json")


def test_unwritable_directory_returns_none(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("not a directory")
    manager = LogManager(log_dir=str(blocker), clock=lambda: NOW)

    assert manager.save_log("build", "output") is None
    assert manager.save_debug_data("build", {}) is None


def test_cleanup_old_logs(manager):
    for day in ("2025-01-01", "2025-01-07", "2025-01-08", "2025-01-15"):
        os.makedirs(os.path.join(manager.log_dir, day))
    os.makedirs(os.path.join(manager.log_dir, "not-a-date"))

    assert manager.cleanup_old_logs() == 2
    assert sorted(os.listdir(manager.log_dir)) == ["2025-01-08", "2025-01-15", "not-a-date"]


def test_cleanup_without_directory(manager):
    assert manager.cleanup_old_logs() == 0


def test_display_path(manager):
    home = os.path.expanduser("~")
    assert manager.display_path(os.path.join(home, "logs", "a.log")) == os.path.join("~", "logs", "a.log")
    assert manager.display_path("/var/tmp/a.log") == "/var/tmp/a.log"


def test_default_manager_follows_config(isolated_config):
    set_log_manager(None)
    assert get_log_manager().log_dir == isolated_config.log_dir
    assert get_log_manager() is get_log_manager()
