"""
mysql-rbackup - Periodic MySQL table dumps with local retention and scp replication
"""

__version__ = "1.0.0"

from .core import MysqlRbackup
from .errors import BackupError

__all__ = ["MysqlRbackup", "BackupError"]
