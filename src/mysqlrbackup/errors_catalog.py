"""Actionable error catalog for mysql-rbackup."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "config_not_found": {
        "what": "Config file not found: {path}",
        "next": "Create `.mysql_rbackup.yml` in the working directory or set MYSQL_RBACKUP_CONFIG.",
    },
    "directory_unavailable": {
        "what": "Directory `{path}` could not be created or is not writable: {reason}",
        "next": "Check the path and permissions in `backup_directory` / `temp_directory`.",
    },
    "command_not_found": {
        "what": "Required command not found: {command}.",
        "next": "Install the MySQL client tools, tar and scp, and make sure they are on PATH.",
    },
    "table_dump_failed": {
        "what": "Dump of table `{table}` in database `{database}` failed.",
        "next": "Check the database credentials and run mysqldump manually for this table.",
    },
    "replication_toggle_failed": {
        "what": "Could not {action} replication for database `{database}`.",
        "next": "Verify the slave state with `SHOW SLAVE STATUS` before the next run.",
    },
    "remote_copy_failed": {
        "what": "Copy of `{archive}` to {host} failed.",
        "next": "Check key-based SSH access to the remote host and the configured port.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
