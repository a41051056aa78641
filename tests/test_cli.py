"""Tests for the ci-orchestrator command line."""
import json

import pytest

from ci_orchestrator import cli
from ci_orchestrator.services.pipeline_runner import LocalPipelineRunner
from tests.fakes import FakeExecutor


@pytest.fixture(autouse=True)
def _selection(patched_selection, monkeypatch):
    monkeypatch.delenv("CHANGE_TARGET", raising=False)
    # Keep pytest's own log capture handlers on the root logger
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)
    return patched_selection


@pytest.fixture
def executor(monkeypatch, test_settings):
    fake = FakeExecutor()
    fake.dry_runs = []

    def fake_create_runner(backend, settings=None, progress=None, dry_run=None):
        fake.dry_runs.append(dry_run)
        return LocalPipelineRunner(settings=test_settings, executor=fake)

    monkeypatch.setattr(cli, "create_runner", fake_create_runner)
    return fake


def test_select_all_prints_catalog_order(capsys):
    assert cli.main(["select", "--mode", "all"]) == 0
    assert capsys.readouterr().out.split() == ["adservice", "cartservice", "frontend"]


def test_select_none_reports_no_work_on_stderr(capsys):
    assert cli.main(["select", "--mode", "none"]) == 0
    captured = capsys.readouterr()
    assert captured.out == ""
    assert cli.NO_WORK_MESSAGE in captured.err


def test_select_auto_with_changed_paths(capsys):
    code = cli.main([
        "select", "--mode", "auto",
        "--changed-path", "src/frontend/main.go",
        "--changed-path", "src/adservice/build.gradle",
    ])
    assert code == 0
    assert capsys.readouterr().out.split() == ["adservice", "frontend"]


def test_select_auto_reads_paths_file(capsys, tmp_path):
    paths_file = tmp_path / "changed.txt"
    paths_file.write_text("src/cartservice/x.cs\n\ndocs/index.md\n")

    assert cli.main(["select", "--mode", "auto", "--changed-paths-from", str(paths_file), "--json"]) == 0

    body = json.loads(capsys.readouterr().out)
    assert body["services"] == ["cartservice"]
    assert body["changed_paths_count"] == 2


def test_select_auto_base_ref_from_change_target(monkeypatch, stub_diff, capsys):
    monkeypatch.setenv("CHANGE_TARGET", "release")
    stub_diff.paths = {"src/frontend/main.go"}

    assert cli.main(["select", "--mode", "auto"]) == 0
    assert stub_diff.calls == ["release"]

    assert cli.main(["select", "--mode", "auto", "--base-ref", "develop"]) == 0
    assert stub_diff.calls == ["release", "develop"]


def test_select_unknown_service_exits_2(capsys):
    assert cli.main(["select", "--mode", "checkoutservice"]) == 2
    assert "checkoutservice" in capsys.readouterr().err


def test_missing_paths_file_exits_2(capsys, tmp_path):
    code = cli.main(["select", "--mode", "auto", "--changed-paths-from", str(tmp_path / "missing.txt")])
    assert code == 2


def test_mode_is_required():
    with pytest.raises(SystemExit):
        cli.main(["select"])


def test_run_success(executor, capsys):
    assert cli.main(["run", "--mode", "frontend"]) == 0
    assert capsys.readouterr().out.strip() == "frontend: ok"
    assert executor.dry_runs == [None]


def test_run_failure_exits_1(executor, capsys):
    executor.exit_codes[("docker", "build", "-f", "src/cartservice/Dockerfile")] = 1

    assert cli.main(["run", "--mode", "all"]) == 1

    captured = capsys.readouterr()
    assert captured.out.splitlines() == ["adservice: ok", "cartservice: FAILED"]
    assert "build" in captured.err


def test_run_no_work(executor, capsys):
    assert cli.main(["run", "--mode", "none"]) == 0
    assert cli.NO_WORK_MESSAGE in capsys.readouterr().err
    assert executor.calls == []


def test_run_dry_run_flag(executor):
    cli.main(["run", "--mode", "frontend", "--dry-run"])
    assert executor.dry_runs == [True]


def test_run_json_output(executor, capsys):
    assert cli.main(["run", "--mode", "adservice", "--json"]) == 0
    body = json.loads(capsys.readouterr().out)
    assert body["status"] == "succeeded"
    assert body["services"][0]["service"] == "adservice"


def test_run_unexpected_error_exits_1(executor, monkeypatch, capsys):
    async def crash(*args, **kwargs):
        raise RuntimeError("docker daemon went away")

    monkeypatch.setattr(executor, "run", crash)

    assert cli.main(["run", "--mode", "frontend"]) == 1
    assert "docker daemon went away" in capsys.readouterr().err
