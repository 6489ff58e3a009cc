"""Per-database dump, archive and replication loop."""

import os
import re
from typing import Optional, Sequence

from mysqlrbackup.constants import ARCHIVE_SUFFIX, DUMP_FILE_SUFFIX
from mysqlrbackup.errors import BackupError, ExternalToolError, WorkspaceError
from mysqlrbackup.errors_catalog import actionable_error
from mysqlrbackup.models import DatabaseTarget, RemoteTarget, RunOptions, RunReport

UNSAFE_FILENAME_RE = re.compile(r"[^0-9A-Za-z._$-]+")


def safe_filename(name: str) -> str:
    """Maps a table or database name onto a single, harmless path component."""
    sanitized = UNSAFE_FILENAME_RE.sub("_", name.strip()).lstrip(".")
    return sanitized or "_"


def build_dump_filename(table: str, run_date: str, run_time: str) -> str:
    return f"{safe_filename(table)}.{run_date}.{run_time}{DUMP_FILE_SUFFIX}"


def build_archive_filename(database: str, run_date: str, run_time: str) -> str:
    return f"{safe_filename(database)}.{run_date}.{run_time}{ARCHIVE_SUFFIX}"


class DumpService:
    """Dumps every table of each database, archives the result and ships it."""

    def __init__(
        self,
        logger,
        mysql_service,
        archive_service,
        workspace_service,
        replication_service,
    ):
        self.logger = logger
        self.mysql_service = mysql_service
        self.archive_service = archive_service
        self.workspace_service = workspace_service
        self.replication_service = replication_service

    def run_backups(
        self,
        databases: Sequence[DatabaseTarget],
        options: RunOptions,
        temp_dir: str,
        backup_dir: str,
        run_date: str,
        run_time: str,
        remotes: Sequence[RemoteTarget] = (),
        report: Optional[RunReport] = None,
    ) -> RunReport:
        report = report if report is not None else RunReport()
        self.logger.info("Starting backups...")
        # Leftovers from an aborted run must not end up in the first archive.
        self.workspace_service.clear_directory(temp_dir)

        for database in databases:
            archive_path = self.backup_database(
                database, options, temp_dir, backup_dir, run_date, run_time, report
            )
            if archive_path and remotes:
                report.failures.extend(
                    self.replication_service.push_to_remotes(
                        archive_path, remotes, options, database=database.name
                    )
                )
            self.logger.info("Finished database %s.", database.name)

        return report

    def backup_database(
        self,
        database: DatabaseTarget,
        options: RunOptions,
        temp_dir: str,
        backup_dir: str,
        run_date: str,
        run_time: str,
        report: RunReport,
    ) -> Optional[str]:
        """Returns the archive path, or ``None`` when no archive was produced."""
        self.logger.info("Backing up database %s...", database.name)
        tables_listed = False

        try:
            with self.mysql_service.replication_paused(
                database, options.slave_mode, report, cwd=temp_dir
            ):
                try:
                    tables = self.mysql_service.list_tables(database, cwd=temp_dir)
                except ExternalToolError as exc:
                    self.logger.error("Could not list tables of %s: %s", database.name, exc)
                    report.record("list_tables", str(exc), database=database.name)
                else:
                    tables_listed = True
                    if not tables:
                        self.logger.warning("Database %s has no tables.", database.name)
                    self.dump_tables(database, tables, temp_dir, run_date, run_time, report)

            if not tables_listed:
                return None

            self.logger.info("Completed backups, zipping it up...")
            archive_path = os.path.join(
                backup_dir, build_archive_filename(database.name, run_date, run_time)
            )
            try:
                self.archive_service.create_archive(temp_dir, archive_path)
            except BackupError as exc:
                self.logger.error("Could not archive database %s: %s", database.name, exc)
                report.record("archive", str(exc), database=database.name, subject=archive_path)
                return None

            report.archives.append(archive_path)
            if options.verbose:
                try:
                    members = self.archive_service.list_members(archive_path)
                except BackupError as exc:
                    self.logger.warning("Could not read back %s: %s", archive_path, exc)
                else:
                    self.logger.info("Archived %s dump file(s) into %s", len(members), archive_path)
            return archive_path
        except KeyboardInterrupt:
            report.interrupted = True
            self.logger.warning(
                "Interrupted while backing up %s. No archive was written for it.", database.name
            )
            raise
        finally:
            self.logger.info("Cleaning up...")
            try:
                self.workspace_service.clear_directory(temp_dir)
            except WorkspaceError as exc:
                self.logger.error("%s", exc)
                report.record("clear_staging", str(exc), database=database.name, subject=temp_dir)

    def dump_tables(
        self,
        database: DatabaseTarget,
        tables: Sequence[str],
        temp_dir: str,
        run_date: str,
        run_time: str,
        report: RunReport,
    ):
        used_names = set()
        for table in tables:
            self.logger.info("Backing up table %s...", table)
            filename = build_dump_filename(table, run_date, run_time)
            if filename in used_names:
                stem = filename[: -len(DUMP_FILE_SUFFIX)]
                suffix = 2
                while f"{stem}.{suffix}{DUMP_FILE_SUFFIX}" in used_names:
                    suffix += 1
                filename = f"{stem}.{suffix}{DUMP_FILE_SUFFIX}"
            used_names.add(filename)

            try:
                self.mysql_service.dump_table(
                    database, table, os.path.join(temp_dir, filename), cwd=temp_dir
                )
            except ExternalToolError as exc:
                message = actionable_error("table_dump_failed", table=table, database=database.name)
                self.logger.error("%s\n%s", message, exc)
                report.record("dump_table", f"{message} {exc}", database=database.name, subject=table)
