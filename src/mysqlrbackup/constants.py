"""Shared constants for mysql-rbackup."""

DIR_MODE = 0o750

MYSQL_COMMAND = "mysql"
MYSQLDUMP_COMMAND = "mysqldump"
TAR_COMMAND = "tar"
SCP_COMMAND = "scp"

DUMP_FLAGS = (
    "--add-drop-table",
    "--allow-keywords",
    "--quick",
    "--complete-insert",
)

STOP_REPLICATION_SQL = "STOP SLAVE;"
START_REPLICATION_SQL = "START SLAVE;"
LIST_TABLES_SQL = "SHOW TABLES;"
TABLE_LISTING_HEADER_PREFIX = "Tables_in_"

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H%M"
DUMP_FILE_SUFFIX = ".sql"
ARCHIVE_SUFFIX = ".tgz"

DEFAULT_CONFIG_FILENAME = ".mysql_rbackup.yml"
CONFIG_ENV_VAR = "MYSQL_RBACKUP_CONFIG"
DEFAULT_LOCAL_COUNT = 30
DEFAULT_SCP_PORT = 22
