import subprocess
from types import SimpleNamespace

import pytest

from core.config import RefreshConfig
from pipeline.runner import MakeTaskRunner, TaskFailedError


class FakeRun:
    def __init__(self, returncode: int = 0, stdout: str = "", stderr: str = "", exc: Exception | None = None) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.exc = exc
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(returncode=self.returncode, stdout=self.stdout, stderr=self.stderr)


def _config(tmp_path, **overrides) -> RefreshConfig:
    return RefreshConfig(working_dir=tmp_path, backup_root=tmp_path / "backup", **overrides)


def test_make_targets_run_in_working_dir(tmp_path, monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr("pipeline.runner.subprocess.run", fake)
    runner = MakeTaskRunner(_config(tmp_path, make_timeout_s=60.0))

    runner.clean()
    runner.run_data_transfer()
    runner.watch_recipe()
    runner.prepare_backup_dir()

    commands = [cmd for cmd, _ in fake.calls]
    assert commands == [
        ["make", "clean"],
        ["make", "datagouv-to-upload"],
        ["make", "watch-run"],
        ["make", "backup-dir"],
    ]
    _, kwargs = fake.calls[0]
    assert kwargs["cwd"] == str(tmp_path)
    assert kwargs["timeout"] == 60.0
    assert kwargs["stdout"] is None


def test_target_names_follow_settings(tmp_path, monkeypatch):
    fake = FakeRun()
    monkeypatch.setattr("pipeline.runner.subprocess.run", fake)
    runner = MakeTaskRunner(_config(tmp_path, make_executable="gmake", targets={"recipe": "recipe-run-full"}))

    runner.run_recipe()
    runner.run_backup()

    assert [cmd for cmd, _ in fake.calls] == [["gmake", "recipe-run-full"], ["gmake", "backup"]]


def test_non_zero_exit_raises(tmp_path, monkeypatch):
    monkeypatch.setattr("pipeline.runner.subprocess.run", FakeRun(returncode=2))
    runner = MakeTaskRunner(_config(tmp_path))

    with pytest.raises(TaskFailedError) as excinfo:
        runner.configure()

    assert excinfo.value.step == "config"
    assert excinfo.value.returncode == 2


def test_missing_executable_raises(tmp_path, monkeypatch):
    monkeypatch.setattr("pipeline.runner.subprocess.run", FakeRun(exc=FileNotFoundError("make")))
    runner = MakeTaskRunner(_config(tmp_path))

    with pytest.raises(TaskFailedError, match="executable not found"):
        runner.start_index_store()


def test_timeout_raises(tmp_path, monkeypatch):
    monkeypatch.setattr(
        "pipeline.runner.subprocess.run",
        FakeRun(exc=subprocess.TimeoutExpired(cmd="make", timeout=5)),
    )
    runner = MakeTaskRunner(_config(tmp_path))

    with pytest.raises(TaskFailedError, match="timed out"):
        runner.stop_index_store()


def test_index_status_captures_output(tmp_path, monkeypatch):
    fake = FakeRun(stdout="yellow open deces x 1 1 10 0 1kb 1kb\n")
    monkeypatch.setattr("pipeline.runner.subprocess.run", fake)
    runner = MakeTaskRunner(_config(tmp_path, index_container="es"))

    output = runner.index_status()

    cmd, kwargs = fake.calls[0]
    assert cmd == ["docker", "exec", "es", "curl", "-s", "http://localhost:9200/_cat/indices?v"]
    assert kwargs["stdout"] == subprocess.PIPE
    assert "deces" in output


def test_index_status_error_includes_stderr(tmp_path, monkeypatch):
    monkeypatch.setattr("pipeline.runner.subprocess.run", FakeRun(returncode=1, stderr="No such container: es"))
    runner = MakeTaskRunner(_config(tmp_path))

    with pytest.raises(TaskFailedError, match="No such container"):
        runner.index_status()
