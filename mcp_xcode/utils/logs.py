#!/usr/bin/env python3
"""Persisted build/test logs and debug snapshots"""

import datetime
import json
import logging
import os
import re
import shutil
from typing import Any, Callable, Dict, Optional

from mcp_xcode.config_manager import get_config

logger = logging.getLogger(__name__)

DATE_DIR_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
UNSAFE_NAME_CHARS = re.compile(r"[^\w.\-]+")
METADATA_START = "=== Log Metadata ==="
METADATA_END = "=== End Metadata ==="


class LogManager:
    """
    Stores raw tool output under <log_dir>/<YYYY-MM-DD>/.

    Files are named HH-MM-SS-<kind>[-<label>].log and begin with a JSON
    metadata header. A latest-<kind>.log symlink in the log root points at
    the newest log of each kind. Saving never raises; a failed write is
    logged and reported as None.
    """

    def __init__(self,
                 log_dir: Optional[str] = None,
                 retention_days: Optional[int] = None,
                 clock: Callable[[], datetime.datetime] = datetime.datetime.now):
        config = get_config()
        self.log_dir = log_dir or config.log_dir
        self.retention_days = retention_days if retention_days is not None else config.log_retention_days
        self._clock = clock

    def _day_dir(self, now: datetime.datetime) -> str:
        path = os.path.join(self.log_dir, now.strftime("%Y-%m-%d"))
        os.makedirs(path, exist_ok=True)
        return path

    def _filename(self, now: datetime.datetime, kind: str, label: Optional[str], suffix: str) -> str:
        name = kind if not label else f"{kind}-{label}"
        name = UNSAFE_NAME_CHARS.sub("_", name)
        return f"{now.strftime('%H-%M-%S')}-{name}{suffix}"

    def _unique(self, directory: str, filename: str) -> str:
        path = os.path.join(directory, filename)
        stem, ext = os.path.splitext(filename)
        if filename.endswith("-debug.json"):
            stem, ext = filename[:-len("-debug.json")], "-debug.json"
        counter = 1
        while os.path.exists(path):
            path = os.path.join(directory, f"{stem}-{counter}{ext}")
            counter += 1
        return path

    def save_log(self,
                 kind: str,
                 content: str,
                 label: Optional[str] = None,
                 metadata: Optional[Dict[str, Any]] = None) -> Optional[str]:
        """
        Save raw output to a log file.

        Args:
            kind: Operation kind (build, test, run)
            content: Raw tool output
            label: Usually the project name
            metadata: Written as a JSON header before the content

        Returns:
            Path of the saved log, or None if it could not be written
        """
        now = self._clock()
        try:
            path = self._unique(self._day_dir(now), self._filename(now, kind, label, ".log"))
            with open(path, "w", encoding="utf-8") as f:
                if metadata:
                    f.write(f"{METADATA_START}\n")
                    f.write(json.dumps(metadata, indent=2, default=str))
                    f.write(f"\n{METADATA_END}\n\n")
                f.write(content)
        except OSError as e:
            logger.warning("Could not save %s log: %s", kind, e)
            return None

        self._update_latest_link(kind, path)
        logger.debug("Saved %s log to %s", kind, path)
        return path

    def save_debug_data(self, kind: str, payload: Any, label: Optional[str] = None) -> Optional[str]:
        """Save a JSON snapshot (e.g. the exact command) next to the logs."""
        now = self._clock()
        try:
            path = self._unique(self._day_dir(now), self._filename(now, kind, label, "-debug.json"))
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
        except OSError as e:
            logger.warning("Could not save %s debug data: %s", kind, e)
            return None
        return path

    def _update_latest_link(self, kind: str, path: str):
        link = os.path.join(self.log_dir, f"latest-{kind}.log")
        target = os.path.relpath(path, self.log_dir)
        try:
            if os.path.lexists(link):
                os.unlink(link)
            os.symlink(target, link)
        except OSError as e:
            logger.debug("Could not update %s: %s", link, e)

    def cleanup_old_logs(self) -> int:
        """
        Remove date directories older than the retention period.

        Returns:
            Number of directories removed
        """
        if not os.path.isdir(self.log_dir):
            return 0

        cutoff = (self._clock() - datetime.timedelta(days=self.retention_days)).date()
        removed = 0
        for entry in sorted(os.listdir(self.log_dir)):
            path = os.path.join(self.log_dir, entry)
            if os.path.islink(path) or not os.path.isdir(path) or not DATE_DIR_PATTERN.match(entry):
                continue
            try:
                day = datetime.datetime.strptime(entry, "%Y-%m-%d").date()
            except ValueError:
                continue
            if day < cutoff:
                try:
                    shutil.rmtree(path)
                    removed += 1
                except OSError as e:
                    logger.warning("Could not remove old logs in %s: %s", path, e)
        if removed:
            logger.info("Removed %d log director%s older than %d days",
                        removed, "y" if removed == 1 else "ies", self.retention_days)
        return removed

    def display_path(self, path: str) -> str:
        """Shorten the home directory to ~ for display"""
        home = os.path.expanduser("~")
        if path.startswith(home + os.sep):
            return "~" + path[len(home):]
        return path


_log_manager: Optional[LogManager] = None


def get_log_manager() -> LogManager:
    global _log_manager
    if _log_manager is None:
        _log_manager = LogManager()
    return _log_manager


def set_log_manager(manager: Optional[LogManager]):
    global _log_manager
    _log_manager = manager
