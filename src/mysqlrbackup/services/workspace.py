"""Backup and staging directory management for mysql-rbackup."""

import logging
import os
import shutil
from typing import List, Tuple

from mysqlrbackup.constants import DIR_MODE
from mysqlrbackup.errors import WorkspaceError
from mysqlrbackup.errors_catalog import actionable_error
from mysqlrbackup.models import RetentionResult


class WorkspaceService:
    """Prepares the backup/staging directories and enforces local retention."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def ensure_directory(self, path: str):
        try:
            os.makedirs(path, mode=DIR_MODE, exist_ok=True)
        except OSError as exc:
            raise WorkspaceError(
                actionable_error("directory_unavailable", path=path, reason=str(exc))
            ) from exc

        if not os.path.isdir(path) or not os.access(path, os.W_OK | os.X_OK):
            raise WorkspaceError(
                actionable_error(
                    "directory_unavailable", path=path, reason="not a writable directory"
                )
            )

    def list_backup_files(self, backup_dir: str) -> List[str]:
        """Returns the visible regular files of ``backup_dir``, oldest first.

        Files are ordered by ``st_ctime``; entries sharing a timestamp are
        ordered by name so the sweep is reproducible.
        """
        entries: List[Tuple[float, str, str]] = []
        try:
            with os.scandir(backup_dir) as it:
                for entry in it:
                    if entry.name.startswith("."):
                        continue
                    try:
                        if not entry.is_file(follow_symlinks=False):
                            continue
                        created = self.creation_time(entry.path)
                    except FileNotFoundError:
                        continue
                    entries.append((created, entry.name, entry.path))
        except OSError as exc:
            raise WorkspaceError(
                actionable_error("directory_unavailable", path=backup_dir, reason=str(exc))
            ) from exc

        entries.sort(key=lambda item: (item[0], item[1]))
        return [path for _, _, path in entries]

    def creation_time(self, path: str) -> float:
        return os.stat(path, follow_symlinks=False).st_ctime

    def enforce_retention(self, backup_dir: str, keep: int) -> RetentionResult:
        files = self.list_backup_files(backup_dir)
        excess = max(0, len(files) - keep)
        if not excess:
            self.logger.debug("Retention: %s file(s) present, limit %s.", len(files), keep)
            return RetentionResult(kept=tuple(files))

        self.logger.info("Removing %s old archive(s) beyond the limit of %s...", excess, keep)
        removed: List[str] = []
        failed: List[str] = []
        for path in files[:excess]:
            try:
                os.remove(path)
                removed.append(path)
                self.logger.debug("Removed old archive: %s", path)
            except OSError as exc:
                failed.append(path)
                self.logger.warning("Could not remove old archive %s: %s", path, exc)

        return RetentionResult(kept=tuple(files[excess:]), removed=tuple(removed), failed=tuple(failed))

    def prepare_workspace(
        self, backup_dir: str, temp_dir: str, local_count: int, database_count: int
    ) -> RetentionResult:
        self.logger.info("Checking workspace...")
        backup_real = os.path.realpath(backup_dir)
        temp_real = os.path.realpath(temp_dir)
        if os.path.commonpath([backup_real, temp_real]) in (backup_real, temp_real):
            # Neither directory may contain the other.
            raise WorkspaceError(
                f"Backup directory {backup_dir} and staging directory {temp_dir} must not overlap."
            )
        self.ensure_directory(backup_dir)
        self.ensure_directory(temp_dir)

        self.logger.info("Checking and clearing archives...")
        return self.enforce_retention(backup_dir, local_count * database_count)

    def clear_directory(self, path: str):
        """Removes everything inside ``path`` and keeps the directory itself."""
        if not os.path.isdir(path):
            self.ensure_directory(path)
            return

        try:
            with os.scandir(path) as it:
                entries = list(it)
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    shutil.rmtree(entry.path)
                else:
                    os.remove(entry.path)
        except OSError as exc:
            raise WorkspaceError(f"Could not clear staging directory {path}: {exc}") from exc
        self.logger.debug("Cleared directory: %s", path)
