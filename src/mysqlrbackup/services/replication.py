"""Remote archive replication over scp."""

from typing import List, Optional, Sequence

from mysqlrbackup.constants import SCP_COMMAND
from mysqlrbackup.errors import ExternalToolError
from mysqlrbackup.errors_catalog import actionable_error
from mysqlrbackup.models import RemoteTarget, RunOptions, UnitFailure


class ReplicationService:
    """Pushes a finished archive to every configured remote, in order."""

    def __init__(self, logger, run_cmd):
        self.logger = logger
        self.run_cmd = run_cmd

    @staticmethod
    def build_copy_command(archive_path: str, remote: RemoteTarget) -> List[str]:
        return [SCP_COMMAND, "-r", "-P", str(remote.port), archive_path, remote.host_spec]

    def push_to_remotes(
        self,
        archive_path: str,
        remotes: Sequence[RemoteTarget],
        options: RunOptions,
        database: Optional[str] = None,
    ) -> List[UnitFailure]:
        failures: List[UnitFailure] = []
        for remote in remotes:
            self.logger.info("Copying file to host %s...", remote.host)
            try:
                self.run_cmd(
                    self.build_copy_command(archive_path, remote),
                    check=True,
                    capture_output=True,
                )
            except ExternalToolError as exc:
                message = actionable_error("remote_copy_failed", archive=archive_path, host=remote.host)
                self.logger.error("%s\n%s", message, exc)
                failures.append(
                    UnitFailure(
                        stage="copy_remote",
                        database=database,
                        subject=remote.host_spec,
                        message=f"{message} {exc}",
                    )
                )
        return failures
