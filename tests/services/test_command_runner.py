import sys

import pytest

from mysqlrbackup.errors import ExternalToolError
from mysqlrbackup.services.command_runner import CommandRunner


class DummyLogger:
    def __init__(self):
        self.debug_messages = []

    def debug(self, message, *args, **_kwargs):
        self.debug_messages.append(message % args)

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExternalToolError, match="boom") as exc_info:
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"],
            check=True,
            capture_output=True,
        )

    assert exc_info.value.returncode == 3
    assert exc_info.value.stderr == "boom"


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.exit(1)"],
        check=False,
        capture_output=True,
    )

    assert result.returncode == 1


def test_command_runner_streams_stdout_to_file_in_cwd(tmp_path):
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        cwd=str(tmp_path),
        stdout_path=str(tmp_path / "out.sql"),
    )

    assert result.returncode == 0
    assert (tmp_path / "out.sql").read_text(encoding="utf-8").strip() == str(tmp_path)


def test_command_runner_missing_binary_raises_actionable_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExternalToolError, match="Required command not found"):
        runner.run(["definitely-not-a-real-binary-for-mysql-rbackup"])


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExternalToolError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            check=True,
            capture_output=True,
            timeout=0.1,
        )


def test_command_runner_masks_password_in_logs():
    logger = DummyLogger()
    runner = CommandRunner(logger=logger)

    runner.run([sys.executable, "-c", "pass", "--password=hunter2"], capture_output=True)

    assert any("--password=****" in message for message in logger.debug_messages)
    assert not any("hunter2" in message for message in logger.debug_messages)


def test_command_runner_replaces_undecodable_output():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'\\xff\\xfeorders\\n')"],
        capture_output=True,
    )

    assert result.returncode == 0
    assert result.stdout == "\ufffd\ufffdorders\n"


def test_command_runner_failure_with_undecodable_stderr_is_a_tool_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(ExternalToolError) as exc_info:
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.buffer.write(b'\\xff'); sys.exit(2)"],
            capture_output=True,
        )

    assert exc_info.value.returncode == 2
    assert exc_info.value.stderr == "\ufffd"


def test_command_runner_keeps_raw_bytes_when_streaming_to_file(tmp_path):
    runner = CommandRunner(logger=DummyLogger())
    destination = tmp_path / "latin1.sql"

    runner.run(
        [sys.executable, "-c", "import sys; sys.stdout.buffer.write(b'caf\\xe9')"],
        stdout_path=str(destination),
    )

    assert destination.read_bytes() == b"caf\xe9"
