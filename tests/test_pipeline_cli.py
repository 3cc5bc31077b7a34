import json

from pipeline import cli as cli_module
from pipeline.runner import TaskFailedError, TaskRunner


class QuietRunner(TaskRunner):
    """Runner whose backup target leaves one archive behind."""

    fail_on = None

    def __init__(self, config) -> None:
        self.config = config

    def _maybe_fail(self, step: str) -> None:
        if step == self.fail_on:
            raise TaskFailedError(step, "exit status 2", returncode=2)

    def clean(self):
        self._maybe_fail("clean")

    def configure(self):
        self._maybe_fail("config")

    def run_data_transfer(self):
        pass

    def run_recipe(self):
        pass

    def watch_recipe(self):
        pass

    def start_index_store(self):
        pass

    def stop_index_store(self):
        pass

    def prepare_backup_dir(self):
        (self.config.working_dir / "backend" / "backup").mkdir(parents=True, exist_ok=True)

    def run_backup(self):
        (self.config.working_dir / "backend" / "backup" / "esdata_cli.tar").write_bytes(b"tar")

    def index_status(self):
        return ""


def _project(tmp_path):
    project = tmp_path / "project"
    (project / "backend" / "upload").mkdir(parents=True)
    (tmp_path / "backup" / "upload").mkdir(parents=True)
    return project


def test_cli_prints_json_report(tmp_path, monkeypatch, capsys):
    project = _project(tmp_path)
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)
    monkeypatch.setattr(cli_module, "MakeTaskRunner", QuietRunner)

    code = cli_module.cli(["--project-dir", str(project), "--json", "--keep", "3", "--no-notify"])

    assert code == 0
    output = capsys.readouterr().out
    payload = json.loads(output[output.index("{") :])
    assert payload["ok"] is True
    assert payload["rotation"]["kept"] == ["esdata_cli.tar"]
    stats_step = next(step for step in payload["steps"] if step["name"] == "report-stats")
    assert stats_step["skipped"] is True
    assert (tmp_path / "backup" / "backup" / "esdata_cli.tar").exists()


def test_cli_returns_one_on_failure(tmp_path, monkeypatch, capsys):
    project = _project(tmp_path)

    class FailingRunner(QuietRunner):
        fail_on = "clean"

    monkeypatch.setattr(cli_module, "MakeTaskRunner", FailingRunner)

    code = cli_module.cli(["--project-dir", str(project), "--no-notify"])

    assert code == 1
    captured = capsys.readouterr()
    assert "FAIL prepare" in captured.out
    assert "Refresh aborted" in captured.err


def test_build_config_applies_flags(tmp_path, monkeypatch):
    monkeypatch.delenv("ESREFRESH_KEEP", raising=False)
    monkeypatch.delenv("ESREFRESH_MIN_DIGITS", raising=False)
    parser_args = type(
        "Args",
        (),
        {
            "backup_root": tmp_path / "elsewhere",
            "keep": 0,
            "min_digits": 7,
            "no_notify": True,
            "no_doc_count": True,
        },
    )()

    config = cli_module.build_config(parser_args, tmp_path)

    assert config.backup_root == (tmp_path / "elsewhere").resolve()
    assert config.keep_last == 1
    assert config.min_digits == 7
    assert config.notify_enabled is False
    assert config.query_doc_count is False
