"""Domain errors for mysql-rbackup."""

from typing import List, Optional


class BackupError(RuntimeError):
    """Raised when the backup run cannot continue safely."""


class ConfigError(BackupError):
    """Raised for a malformed configuration file or entry."""


class WorkspaceError(BackupError):
    """Raised when the backup or staging directory is unusable."""


class ExternalToolError(BackupError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr
