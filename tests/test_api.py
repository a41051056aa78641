"""Tests for the HTTP API (selection and runs routers)."""
import httpx
import pytest
from fastapi.testclient import TestClient

from ci_orchestrator import main
from ci_orchestrator.integrations.jenkins import JenkinsIntegration
from ci_orchestrator.main import app
from ci_orchestrator.routers import runs
from ci_orchestrator.services.pipeline_runner import LocalPipelineRunner
from tests.fakes import FakeExecutor


@pytest.fixture
def client(patched_selection):
    return TestClient(app)


@pytest.fixture
def executor(monkeypatch, test_settings):
    """Route runs started through the API to a LocalPipelineRunner with a recording executor."""
    fake = FakeExecutor()
    created = []

    def fake_create_runner(backend, settings=None, progress=None, dry_run=None):
        created.append((backend, dry_run))
        return LocalPipelineRunner(settings=test_settings, executor=fake, progress=progress)

    monkeypatch.setattr(runs, "create_runner", fake_create_runner)
    fake.created = created
    return fake


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_services(client):
    response = client.get("/api/v1/services")

    assert response.status_code == 200
    body = response.json()
    assert body["services"] == ["adservice", "cartservice", "frontend"]
    assert body["source_root"] == "src"


def test_select_auto_with_paths(client):
    response = client.post("/api/v1/services/select", json={
        "mode": "auto",
        "changed_paths": ["src/frontend/main.go", "README.md"],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["services"] == ["frontend"]
    assert body["no_work"] is False
    assert body["changed_paths_count"] == 2


def test_select_auto_uses_git_diff(client, stub_diff):
    stub_diff.paths = {"src/cartservice/Program.cs"}

    response = client.post("/api/v1/services/select", json={"mode": "auto", "base_ref": "develop"})

    assert response.json()["services"] == ["cartservice"]
    assert stub_diff.calls == ["develop"]


def test_select_none_is_no_work(client):
    body = client.post("/api/v1/services/select", json={"mode": "none"}).json()
    assert body["services"] == []
    assert body["no_work"] is True


def test_select_unknown_service_is_400(client):
    response = client.post("/api/v1/services/select", json={"mode": "checkoutservice"})

    assert response.status_code == 400
    assert "checkoutservice" in response.json()["detail"]


def test_select_requires_mode(client):
    assert client.post("/api/v1/services/select", json={}).status_code == 422


def test_start_run_and_poll(client, executor):
    response = client.post("/api/v1/runs", json={"mode": "frontend"})

    assert response.status_code == 202
    accepted = response.json()
    assert accepted["status"] == "pending"
    assert accepted["selection"]["services"] == ["frontend"]

    # TestClient runs background tasks before returning the response
    run = client.get(f"/api/v1/runs/{accepted['run_id']}").json()
    assert run["completed"] is True
    assert run["status"] == "succeeded"
    assert run["result"]["services"][0]["service"] == "frontend"
    assert [e["stage"] for e in run["events"]][0] == "queued"
    assert run["events"][-1]["stage"] == "completed"
    assert executor.commands("docker", "build")


def test_start_run_passes_backend_and_dry_run(client, executor):
    client.post("/api/v1/runs", json={"mode": "frontend", "backend": "jenkins", "dry_run": True})
    assert executor.created == [("jenkins", True)]


def test_failed_run_reports_stage(client, executor):
    executor.exit_codes[("docker", "build")] = 1

    accepted = client.post("/api/v1/runs", json={"mode": "all"}).json()
    run = client.get(f"/api/v1/runs/{accepted['run_id']}").json()

    assert run["status"] == "failed"
    assert run["result"]["failed_stage"] == "build"
    assert run["result"]["failed_service"] == "adservice"
    assert len(executor.commands("docker", "build")) == 1


def test_empty_run_is_no_work(client, executor):
    response = client.post("/api/v1/runs", json={"mode": "none"})

    assert response.status_code == 202
    accepted = response.json()
    assert accepted["status"] == "no_work"
    run = client.get(f"/api/v1/runs/{accepted['run_id']}").json()
    assert run["status"] == "no_work"
    assert executor.calls == []


def test_run_with_unknown_service_is_400(client, executor):
    response = client.post("/api/v1/runs", json={"mode": "nosuchservice"})
    assert response.status_code == 400
    assert executor.created == []


def test_unknown_run_is_404(client):
    response = client.get("/api/v1/runs/doesnotexist")
    assert response.status_code == 404


def test_status_reports_jenkins(client, monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "jenkins.test"
        return httpx.Response(200, json={}, headers={"X-Jenkins": "2.440.1"})

    def make(config):
        return JenkinsIntegration(config, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    monkeypatch.setattr(main, "JenkinsIntegration", make)

    body = client.get("/api/v1/status").json()

    assert body["services"] == 3
    assert body["jenkins"] == "healthy"
    assert body["jenkins_version"] == "2.440.1"


def test_run_completes_when_runner_cannot_be_built(client, monkeypatch):
    def broken_create_runner(backend, settings=None, progress=None, dry_run=None):
        raise RuntimeError("no runner")

    monkeypatch.setattr(runs, "create_runner", broken_create_runner)

    accepted = client.post("/api/v1/runs", json={"mode": "frontend"}).json()
    run = client.get(f"/api/v1/runs/{accepted['run_id']}").json()

    assert run["completed"] is True
    assert run["status"] == "failed"
    assert run["result"]["error"] == "RuntimeError: no runner"


def test_unexpected_runner_error_marks_run_failed(client, executor, monkeypatch):
    async def crash(*args, **kwargs):
        raise ValueError("unreadable reply")

    monkeypatch.setattr(executor, "run", crash)

    accepted = client.post("/api/v1/runs", json={"mode": "frontend"}).json()
    run = client.get(f"/api/v1/runs/{accepted['run_id']}").json()

    assert run["completed"] is True
    assert run["status"] == "failed"
    assert "unreadable reply" in run["result"]["error"]
