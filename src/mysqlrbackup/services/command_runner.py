"""Subprocess execution service for mysql-rbackup."""

import subprocess
from typing import List, Optional

from mysqlrbackup.errors import ExternalToolError
from mysqlrbackup.errors_catalog import actionable_error


class CommandRunner:
    """Runs external commands from an argument vector with checked exit status."""

    SECRET_PREFIXES = ("--password=",)

    def __init__(self, logger, default_timeout: Optional[float] = None):
        self.logger = logger
        self.default_timeout = default_timeout

    @classmethod
    def describe(cls, cmd: List[str]) -> str:
        masked = []
        for part in cmd:
            for prefix in cls.SECRET_PREFIXES:
                if part.startswith(prefix):
                    part = f"{prefix}****"
            masked.append(part)
        return " ".join(masked)

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        cwd: Optional[str] = None,
        stdout_path: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = self.describe(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout

        try:
            if stdout_path:
                with open(stdout_path, "w", encoding="utf-8") as stdout_file:
                    result = subprocess.run(
                        cmd,
                        encoding="utf-8",
                        errors="replace",
                        stdout=stdout_file,
                        stderr=subprocess.PIPE,
                        cwd=cwd,
                        timeout=effective_timeout,
                    )
            else:
                result = subprocess.run(
                    cmd,
                    encoding="utf-8",
                    errors="replace",
                    capture_output=capture_output,
                    cwd=cwd,
                    timeout=effective_timeout,
                )
        except FileNotFoundError as exc:
            raise ExternalToolError(
                actionable_error("command_not_found", command=cmd[0]), command=cmd
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(
                f"Command timed out after {effective_timeout}s: {cmd_str}", command=cmd
            ) from exc
        except Exception as exc:
            raise ExternalToolError(
                f"Failed to execute command: {cmd_str}. {exc}", command=cmd
            ) from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip()
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise ExternalToolError(
                message, command=cmd, returncode=result.returncode, stderr=stderr
            )

        self.logger.warning(message)
        return result
