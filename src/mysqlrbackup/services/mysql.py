"""MySQL client and mysqldump invocations for mysql-rbackup."""

import os
from contextlib import contextmanager
from typing import Iterator, List, Optional

from mysqlrbackup.constants import (
    DUMP_FLAGS,
    LIST_TABLES_SQL,
    MYSQL_COMMAND,
    MYSQLDUMP_COMMAND,
    START_REPLICATION_SQL,
    STOP_REPLICATION_SQL,
    TABLE_LISTING_HEADER_PREFIX,
)
from mysqlrbackup.errors import ExternalToolError
from mysqlrbackup.errors_catalog import actionable_error
from mysqlrbackup.models import DatabaseTarget, RunReport


class MysqlService:
    """Builds and runs ``mysql``/``mysqldump`` commands for one database target."""

    def __init__(self, logger, run_cmd):
        self.logger = logger
        self.run_cmd = run_cmd

    @staticmethod
    def connection_args(target: DatabaseTarget) -> List[str]:
        args = [f"--user={target.user}"]
        if target.password:
            args.append(f"--password={target.password}")
        return args

    def _execute(self, target: DatabaseTarget, statement: str, cwd: Optional[str] = None):
        return self.run_cmd(
            [MYSQL_COMMAND, *self.connection_args(target), "--batch", f"--execute={statement}"],
            check=True,
            capture_output=True,
            cwd=cwd,
        )

    def stop_replication(self, target: DatabaseTarget, cwd: Optional[str] = None):
        self.logger.info("Stopping the slave...")
        self._execute(target, STOP_REPLICATION_SQL, cwd=cwd)

    def start_replication(self, target: DatabaseTarget, cwd: Optional[str] = None):
        self.logger.info("Restarting the slave...")
        self._execute(target, START_REPLICATION_SQL, cwd=cwd)

    @contextmanager
    def replication_paused(
        self,
        target: DatabaseTarget,
        enabled: bool,
        report: RunReport,
        cwd: Optional[str] = None,
    ) -> Iterator[None]:
        """Stops replication around the block and always attempts to restart it."""
        if not enabled:
            yield
            return

        try:
            self.stop_replication(target, cwd=cwd)
        except ExternalToolError as exc:
            message = actionable_error("replication_toggle_failed", action="stop", database=target.name)
            self.logger.error("%s\n%s", message, exc)
            report.record("pause_replication", f"{message} {exc}", database=target.name)

        try:
            yield
        finally:
            try:
                self.start_replication(target, cwd=cwd)
            except ExternalToolError as exc:
                message = actionable_error(
                    "replication_toggle_failed", action="start", database=target.name
                )
                self.logger.error("%s\n%s", message, exc)
                report.record("resume_replication", f"{message} {exc}", database=target.name)

    def list_tables(self, target: DatabaseTarget, cwd: Optional[str] = None) -> List[str]:
        result = self.run_cmd(
            [
                MYSQL_COMMAND,
                *self.connection_args(target),
                "--batch",
                "--raw",
                "--skip-column-names",
                f"--execute={LIST_TABLES_SQL}",
                target.name,
            ],
            check=True,
            capture_output=True,
            cwd=cwd,
        )

        tables: List[str] = []
        for line in (result.stdout or "").splitlines():
            cleaned = line.strip()
            if not cleaned or cleaned.startswith(TABLE_LISTING_HEADER_PREFIX):
                continue
            tables.append(cleaned)
        return tables

    def dump_table(
        self,
        target: DatabaseTarget,
        table: str,
        destination: str,
        cwd: Optional[str] = None,
    ):
        try:
            self.run_cmd(
                [
                    MYSQLDUMP_COMMAND,
                    *DUMP_FLAGS,
                    *self.connection_args(target),
                    target.name,
                    table,
                ],
                check=True,
                cwd=cwd,
                stdout_path=destination,
            )
        except BaseException:
            if os.path.exists(destination):
                try:
                    os.remove(destination)
                except OSError as exc:
                    self.logger.warning("Could not remove partial dump %s: %s", destination, exc)
            raise
