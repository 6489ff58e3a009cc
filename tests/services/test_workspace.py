import os

import pytest

from mysqlrbackup.errors import WorkspaceError
from mysqlrbackup.services.workspace import WorkspaceService


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, message, *args, **_kwargs):
        self.warnings.append(message % args)


def _seed(directory, names):
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_text(name, encoding="utf-8")


def _service_with_ctimes(monkeypatch, ctimes):
    service = WorkspaceService(logger=DummyLogger())
    monkeypatch.setattr(service, "creation_time", lambda path: ctimes[os.path.basename(path)])
    return service


def test_prepare_workspace_creates_missing_directories(tmp_path):
    service = WorkspaceService(logger=DummyLogger())
    backup_dir = tmp_path / "nested" / "backups"
    temp_dir = tmp_path / "nested" / "work"

    result = service.prepare_workspace(str(backup_dir), str(temp_dir), 30, 2)

    assert backup_dir.is_dir()
    assert temp_dir.is_dir()
    assert result.removed == ()


def test_prepare_workspace_removes_oldest_files_beyond_keep(tmp_path, monkeypatch):
    backup_dir = tmp_path / "backups"
    ctimes = {"e.tgz": 50.0, "a.tgz": 10.0, "d.tgz": 40.0, "b.tgz": 20.0, "c.tgz": 30.0}
    _seed(backup_dir, ctimes)
    service = _service_with_ctimes(monkeypatch, ctimes)

    result = service.prepare_workspace(str(backup_dir), str(tmp_path / "work"), 1, 3)

    assert sorted(os.listdir(backup_dir)) == ["c.tgz", "d.tgz", "e.tgz"]
    assert [os.path.basename(path) for path in result.removed] == ["a.tgz", "b.tgz"]
    assert [os.path.basename(path) for path in result.kept] == ["c.tgz", "d.tgz", "e.tgz"]


def test_creation_time_ties_are_broken_by_filename(tmp_path, monkeypatch):
    backup_dir = tmp_path / "backups"
    ctimes = {"b.tgz": 10.0, "a.tgz": 10.0, "c.tgz": 5.0}
    _seed(backup_dir, ctimes)
    service = _service_with_ctimes(monkeypatch, ctimes)

    ordered = service.list_backup_files(str(backup_dir))

    assert [os.path.basename(path) for path in ordered] == ["c.tgz", "a.tgz", "b.tgz"]


def test_prepare_workspace_keeps_everything_under_limit(tmp_path):
    backup_dir = tmp_path / "backups"
    _seed(backup_dir, ["one.tgz", "two.tgz"])
    service = WorkspaceService(logger=DummyLogger())

    result = service.prepare_workspace(str(backup_dir), str(tmp_path / "work"), 1, 2)

    assert result.removed == ()
    assert sorted(os.listdir(backup_dir)) == ["one.tgz", "two.tgz"]


def test_prepare_workspace_is_idempotent(tmp_path, monkeypatch):
    backup_dir = tmp_path / "backups"
    ctimes = {"a.tgz": 1.0, "b.tgz": 2.0, "c.tgz": 3.0}
    _seed(backup_dir, ctimes)
    service = _service_with_ctimes(monkeypatch, ctimes)

    first = service.prepare_workspace(str(backup_dir), str(tmp_path / "work"), 2, 1)
    second = service.prepare_workspace(str(backup_dir), str(tmp_path / "work"), 2, 1)

    assert len(first.removed) == 1
    assert second.removed == ()
    assert sorted(os.listdir(backup_dir)) == ["b.tgz", "c.tgz"]


def test_retention_ignores_hidden_files_directories_and_temp_dir(tmp_path):
    backup_dir = tmp_path / "backups"
    temp_dir = tmp_path / "work"
    _seed(backup_dir, [".keep"])
    (backup_dir / "subdir").mkdir()
    _seed(temp_dir, ["orders.sql", "customers.sql"])
    service = WorkspaceService(logger=DummyLogger())

    result = service.prepare_workspace(str(backup_dir), str(temp_dir), 1, 1)

    assert result.removed == ()
    assert (backup_dir / ".keep").exists()
    assert (backup_dir / "subdir").is_dir()
    assert sorted(os.listdir(temp_dir)) == ["customers.sql", "orders.sql"]


def test_retention_continues_after_a_failed_deletion(tmp_path, monkeypatch):
    backup_dir = tmp_path / "backups"
    ctimes = {"a.tgz": 1.0, "b.tgz": 2.0, "c.tgz": 3.0}
    _seed(backup_dir, ctimes)
    logger = DummyLogger()
    service = WorkspaceService(logger=logger)
    monkeypatch.setattr(service, "creation_time", lambda path: ctimes[os.path.basename(path)])

    real_remove = os.remove

    def flaky_remove(path):
        if path.endswith("a.tgz"):
            raise PermissionError("read-only")
        real_remove(path)

    monkeypatch.setattr(os, "remove", flaky_remove)

    result = service.enforce_retention(str(backup_dir), 1)

    assert [os.path.basename(path) for path in result.failed] == ["a.tgz"]
    assert [os.path.basename(path) for path in result.removed] == ["b.tgz"]
    assert logger.warnings and "a.tgz" in logger.warnings[0]


def test_prepare_workspace_raises_when_directory_cannot_be_created(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("file", encoding="utf-8")
    service = WorkspaceService(logger=DummyLogger())

    with pytest.raises(WorkspaceError, match="not-a-dir"):
        service.prepare_workspace(str(blocker / "backups"), str(tmp_path / "work"), 1, 1)


def test_clear_directory_empties_but_keeps_directory(tmp_path):
    temp_dir = tmp_path / "work"
    _seed(temp_dir, ["orders.sql"])
    (temp_dir / "nested").mkdir()
    (temp_dir / "nested" / "file.txt").write_text("x", encoding="utf-8")
    service = WorkspaceService(logger=DummyLogger())

    service.clear_directory(str(temp_dir))

    assert temp_dir.is_dir()
    assert os.listdir(temp_dir) == []


def test_prepare_workspace_rejects_backup_dir_inside_temp_dir(tmp_path):
    backup_dir = tmp_path / "work" / "backups"
    _seed(backup_dir, ["sales.2024-01-01.0000.tgz"])
    service = WorkspaceService(logger=DummyLogger())

    with pytest.raises(WorkspaceError, match="must not overlap"):
        service.prepare_workspace(str(backup_dir), str(tmp_path / "work"), 1, 1)

    assert os.listdir(backup_dir) == ["sales.2024-01-01.0000.tgz"]
