"""Archive creation helpers for mysql-rbackup."""

import os
import tarfile
from typing import List

from mysqlrbackup.constants import TAR_COMMAND
from mysqlrbackup.errors import BackupError


class ArchiveService:
    """Packs a staging directory into a gzip-compressed tarball with ``tar``."""

    def __init__(self, logger, run_cmd):
        self.logger = logger
        self.run_cmd = run_cmd

    def create_archive(self, source_dir: str, archive_path: str) -> str:
        # "." keeps tar from refusing an empty member list.
        try:
            self.run_cmd(
                [TAR_COMMAND, "-czf", archive_path, "-C", source_dir, "."],
                check=True,
                capture_output=True,
            )
        except BaseException:
            self.remove_partial(archive_path)
            raise

        self.logger.debug("Created archive: %s", archive_path)
        return archive_path

    def remove_partial(self, archive_path: str):
        if not os.path.exists(archive_path):
            return
        try:
            os.remove(archive_path)
            self.logger.debug("Removed partial archive: %s", archive_path)
        except OSError as exc:
            self.logger.warning("Could not remove partial archive %s: %s", archive_path, exc)

    def list_members(self, archive_path: str) -> List[str]:
        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                return sorted(
                    os.path.normpath(member.name)
                    for member in archive.getmembers()
                    if member.isfile()
                )
        except (tarfile.TarError, OSError) as exc:
            raise BackupError(f"Invalid archive: {archive_path}") from exc
