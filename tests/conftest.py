"""
Shared pytest fixtures for ci-orchestrator tests.

Provides test settings rooted in a temp directory, a small service catalog, and the fakes for
the two I/O seams: the command executor (subprocesses) and the git diff provider.
"""
import pytest

from ci_orchestrator.config import Settings
from ci_orchestrator.services.service_selector import ServiceCatalog, service_selection
from tests.fakes import TEST_REGISTRY, TEST_SERVICES, FakeExecutor, StubDiffProvider


@pytest.fixture
def catalog() -> ServiceCatalog:
    return ServiceCatalog(TEST_SERVICES)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        repo_dir=str(tmp_path),
        source_root="src",
        base_ref="main",
        services_catalog_path=None,
        default_services=list(TEST_SERVICES),
        artifacts_dir="reports",
        dry_run=False,
        service_repo="shop",
        image_tag="latest",
        ecr_registry=TEST_REGISTRY,
        aws_region="us-east-1",
        jenkins_url="http://jenkins.test/jenkins",
        jenkins_poll_interval=0,
        jenkins_wait_timeout=5,
        _env_file=None,
    )


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor(outputs={("aws", "ecr", "get-login-password"): "ecr-password\n"})


@pytest.fixture
def stub_diff() -> StubDiffProvider:
    return StubDiffProvider()


@pytest.fixture
def patched_selection(monkeypatch, test_settings, catalog, stub_diff):
    """Point the module-level selection singleton (used by the CLI and routers) at test state."""
    monkeypatch.setattr(service_selection, "settings", test_settings)
    monkeypatch.setattr(service_selection, "_catalog", catalog)
    monkeypatch.setattr(service_selection, "_diff_provider", stub_diff)
    return service_selection
