"""Configuration loader for mysql-rbackup."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from mysqlrbackup.constants import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_LOCAL_COUNT,
    DEFAULT_SCP_PORT,
)
from mysqlrbackup.errors import ConfigError
from mysqlrbackup.errors_catalog import actionable_error
from mysqlrbackup.models import BackupConfig, DatabaseTarget, RemoteTarget


class ConfigLoader:
    """Loads the YAML file describing databases, directories and remotes."""

    SUPPORTED_KEYS = {
        "databases",
        "backup_directory",
        "temp_directory",
        "remote_hosts",
        "local_count",
        "log_file",
        "command_timeout",
    }
    REQUIRED_KEYS = ("databases", "backup_directory", "temp_directory")

    def resolve_path(self, cwd: Optional[str] = None) -> str:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return env_path
        return os.path.join(cwd or os.getcwd(), DEFAULT_CONFIG_FILENAME)

    def load(self, config_path: str) -> BackupConfig:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(actionable_error("config_not_found", path=str(config_path)))

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigError(f"Invalid config file '{config_path}': {exc}") from exc

        if not isinstance(parsed, dict):
            raise ConfigError("Config file must contain a YAML mapping at the root.")

        return self.parse(parsed)

    def parse(self, values: Dict[str, Any]) -> BackupConfig:
        unknown = sorted(set(values.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigError(f"Unknown configuration keys: {unknown_list}")

        missing = [key for key in self.REQUIRED_KEYS if not values.get(key)]
        if missing:
            raise ConfigError(f"Missing required configuration keys: {', '.join(missing)}")

        databases = self._parse_list(values["databases"], "databases", self.parse_database)
        remotes = self._parse_list(values.get("remote_hosts") or [], "remote_hosts", self.parse_remote)

        backup_directory = self._parse_directory(values["backup_directory"], "backup_directory")
        temp_directory = self._parse_directory(values["temp_directory"], "temp_directory")
        if self.paths_overlap(backup_directory, temp_directory):
            raise ConfigError(
                "`backup_directory` and `temp_directory` must be different paths "
                "and neither may contain the other."
            )

        local_count = values.get("local_count", DEFAULT_LOCAL_COUNT)
        if isinstance(local_count, bool) or not isinstance(local_count, int) or local_count < 1:
            raise ConfigError(f"`local_count` must be a positive integer, got: {local_count!r}")

        command_timeout = values.get("command_timeout")
        if command_timeout is not None:
            if isinstance(command_timeout, bool) or not isinstance(command_timeout, (int, float)):
                raise ConfigError(f"`command_timeout` must be a number, got: {command_timeout!r}")
            if command_timeout <= 0:
                raise ConfigError("`command_timeout` must be greater than zero.")
            command_timeout = float(command_timeout)

        log_file = values.get("log_file")
        if log_file is not None:
            log_file = os.path.expanduser(str(log_file))

        return BackupConfig(
            databases=tuple(databases),
            backup_directory=backup_directory,
            temp_directory=temp_directory,
            remotes=tuple(remotes),
            local_count=local_count,
            log_file=log_file,
            command_timeout=command_timeout,
        )

    def parse_database(self, entry: Any) -> DatabaseTarget:
        """Accepts ``"name, user, password"`` or a ``{name, user, password}`` mapping."""
        if isinstance(entry, str):
            parts = [part.strip() for part in entry.split(",")]
            if len(parts) == 2:
                parts.append("")
            if len(parts) != 3:
                raise ConfigError(
                    f"Invalid database entry '{entry}'. Expected 'name, user, password'."
                )
            name, user, password = parts
        elif isinstance(entry, dict):
            unknown = sorted(set(entry.keys()) - {"name", "user", "password"})
            if unknown:
                raise ConfigError(f"Unknown database entry keys: {', '.join(unknown)}")
            name = str(entry.get("name") or "").strip()
            user = str(entry.get("user") or "").strip()
            password = "" if entry.get("password") is None else str(entry["password"])
        else:
            raise ConfigError(f"Invalid database entry: {entry!r}")

        if not name or not user:
            raise ConfigError(f"Database entry {entry!r} needs both a name and a user.")
        return DatabaseTarget(name=name, user=user, password=password)

    def parse_remote(self, entry: Any) -> RemoteTarget:
        """Accepts ``"user@host:path, port"`` or a ``{host, port}`` mapping."""
        if isinstance(entry, str):
            parts = [part.strip() for part in entry.split(",")]
            if len(parts) > 2:
                raise ConfigError(
                    f"Invalid remote entry '{entry}'. Expected 'user@host:path, port'."
                )
            host_spec = parts[0]
            raw_port: Any = parts[1] if len(parts) == 2 and parts[1] else DEFAULT_SCP_PORT
        elif isinstance(entry, dict):
            unknown = sorted(set(entry.keys()) - {"host", "port"})
            if unknown:
                raise ConfigError(f"Unknown remote entry keys: {', '.join(unknown)}")
            host_spec = str(entry.get("host") or "").strip()
            raw_port = entry.get("port", DEFAULT_SCP_PORT)
        else:
            raise ConfigError(f"Invalid remote entry: {entry!r}")

        user_host, sep, _ = host_spec.partition(":")
        if not sep or "@" not in user_host or user_host.startswith("-"):
            raise ConfigError(f"Invalid remote host '{host_spec}'. Expected 'user@host:path'.")

        try:
            port = int(raw_port)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid port for remote '{host_spec}': {raw_port!r}") from exc
        if not 0 < port < 65536:
            raise ConfigError(f"Port for remote '{host_spec}' is out of range: {port}")

        return RemoteTarget(host_spec=host_spec, port=port)

    @staticmethod
    def is_within_dir(base_dir: str, candidate: str) -> bool:
        try:
            return os.path.commonpath([base_dir, candidate]) == base_dir
        except ValueError:
            return False

    def paths_overlap(self, first: str, second: str) -> bool:
        first_real = os.path.realpath(first)
        second_real = os.path.realpath(second)
        return self.is_within_dir(first_real, second_real) or self.is_within_dir(
            second_real, first_real
        )

    @staticmethod
    def _parse_list(raw: Any, key: str, parser) -> List:
        if not isinstance(raw, list):
            raise ConfigError(f"`{key}` must be a list.")
        return [parser(entry) for entry in raw]

    @staticmethod
    def _parse_directory(raw: Any, key: str) -> str:
        if not isinstance(raw, str) or not raw.strip():
            raise ConfigError(f"`{key}` must be a non-empty path.")
        return os.path.expanduser(raw.strip())
