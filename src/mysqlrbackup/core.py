import logging
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.table import Table

from .errors import BackupError
from .models import BackupConfig, RetentionResult, RunOptions, RunReport, RunStamp
from .services.archive import ArchiveService
from .services.command_runner import CommandRunner
from .services.dump import DumpService
from .services.mysql import MysqlService
from .services.replication import ReplicationService
from .services.workspace import WorkspaceService

console = Console()
logger = logging.getLogger("mysqlrbackup")


class MysqlRbackup:
    def __init__(
        self,
        config: BackupConfig,
        options: RunOptions,
        now: Optional[datetime] = None,
        command_runner: Optional[CommandRunner] = None,
    ):
        self.config = config
        self.options = options
        self.stamp = RunStamp.from_datetime(now or datetime.now())
        self.report = RunReport()

        self.command_runner = command_runner or CommandRunner(
            logger=logger, default_timeout=config.command_timeout
        )
        self.workspace_service = WorkspaceService(logger=logger)
        self.mysql_service = MysqlService(logger=logger, run_cmd=self.command_runner.run)
        self.archive_service = ArchiveService(logger=logger, run_cmd=self.command_runner.run)
        self.replication_service = ReplicationService(logger=logger, run_cmd=self.command_runner.run)
        self.dump_service = DumpService(
            logger=logger,
            mysql_service=self.mysql_service,
            archive_service=self.archive_service,
            workspace_service=self.workspace_service,
            replication_service=self.replication_service,
        )

    def prepare_workspace(self) -> RetentionResult:
        result = self.workspace_service.prepare_workspace(
            self.config.backup_directory,
            self.config.temp_directory,
            self.config.local_count,
            len(self.config.databases),
        )
        for path in result.failed:
            self.report.record("retention", f"Could not remove old archive {path}", subject=path)
        return result

    def run_backups(self) -> RunReport:
        return self.dump_service.run_backups(
            self.config.databases,
            self.options,
            self.config.temp_directory,
            self.config.backup_directory,
            self.stamp.date,
            self.stamp.time,
            remotes=self.config.remotes,
            report=self.report,
        )

    def print_summary(self):
        if self.report.failures:
            table = Table(title="Backup failures", show_lines=False)
            table.add_column("Stage", style="cyan")
            table.add_column("Database")
            table.add_column("Subject")
            table.add_column("Message", style="red")
            for failure in self.report.failures:
                table.add_row(
                    failure.stage,
                    failure.database or "-",
                    failure.subject or "-",
                    failure.message,
                )
            console.print(table)
            console.print(
                f"[bold red]{len(self.report.failures)} unit(s) failed; "
                f"{len(self.report.archives)} archive(s) written.[/bold red]"
            )
        elif self.options.verbose:
            console.print(
                f"[bold green]And we're done! {len(self.report.archives)} archive(s) written.[/bold green]"
            )

    def run(self) -> int:
        try:
            logger.info("Starting mysql-rbackup run %s %s...", self.stamp.date, self.stamp.time)
            self.prepare_workspace()
            self.run_backups()
            self.print_summary()
            return 0 if self.report.ok else 1

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            self.report.interrupted = True
            return 1
        except BackupError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
