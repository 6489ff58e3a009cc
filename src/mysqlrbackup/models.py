"""Shared domain models for mysql-rbackup."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

from .constants import DATE_FORMAT, DEFAULT_LOCAL_COUNT, DEFAULT_SCP_PORT, TIME_FORMAT


@dataclass(frozen=True)
class DatabaseTarget:
    """Connection parameters for one database to back up."""

    name: str
    user: str
    password: str = field(default="", repr=False)


@dataclass(frozen=True)
class RemoteTarget:
    """An scp destination in ``user@host:path`` form."""

    host_spec: str
    port: int = DEFAULT_SCP_PORT

    @property
    def host(self) -> str:
        return self.host_spec.split(":", 1)[0]


@dataclass(frozen=True)
class RunOptions:
    verbose: bool = False
    slave_mode: bool = False


@dataclass(frozen=True)
class RunStamp:
    """Date and time components shared by every file produced in one run."""

    date: str
    time: str

    @classmethod
    def from_datetime(cls, moment: datetime) -> "RunStamp":
        return cls(date=moment.strftime(DATE_FORMAT), time=moment.strftime(TIME_FORMAT))


@dataclass(frozen=True)
class BackupConfig:
    databases: Tuple[DatabaseTarget, ...]
    backup_directory: str
    temp_directory: str
    remotes: Tuple[RemoteTarget, ...] = ()
    local_count: int = DEFAULT_LOCAL_COUNT
    log_file: Optional[str] = None
    command_timeout: Optional[float] = None


@dataclass(frozen=True)
class RetentionResult:
    kept: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    failed: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UnitFailure:
    """A non-fatal failure of one unit of work (table, remote, bracket call)."""

    stage: str
    database: Optional[str]
    subject: Optional[str]
    message: str


@dataclass
class RunReport:
    """Accumulates the outcome of a backup run."""

    archives: List[str] = field(default_factory=list)
    failures: List[UnitFailure] = field(default_factory=list)
    interrupted: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures and not self.interrupted

    def record(
        self,
        stage: str,
        message: str,
        database: Optional[str] = None,
        subject: Optional[str] = None,
    ) -> UnitFailure:
        failure = UnitFailure(stage=stage, database=database, subject=subject, message=message)
        self.failures.append(failure)
        return failure
