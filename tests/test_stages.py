"""Tests for the stage command builders."""
import os

from ci_orchestrator.services.pipeline_runner import stages
from tests.fakes import TEST_REGISTRY


def test_image_names(test_settings):
    assert stages.local_image(test_settings, "adservice") == "shop/adservice:latest"
    assert stages.remote_image(test_settings, "adservice") == f"{TEST_REGISTRY}/shop/adservice:latest"


def test_remote_image_without_registry(test_settings):
    test_settings.ecr_registry = None
    assert stages.remote_image(test_settings, "adservice") is None
    assert stages.cleanup_command(test_settings, "adservice") == ["docker", "rmi", "shop/adservice:latest"]


def test_build_command_uses_service_directory(test_settings):
    assert stages.build_command(test_settings, "frontend") == [
        "docker", "build", "-f", "src/frontend/Dockerfile", "-t", "shop/frontend:latest", "src/frontend",
    ]


def test_secrets_scan_writes_report_to_artifacts(test_settings):
    argv = stages.secrets_scan_command(test_settings)
    assert argv[:3] == ["gitleaks", "git", "-v"]
    assert "--redact=100" in argv
    report = argv[argv.index("--report-path") + 1]
    assert report == os.path.join(test_settings.repo_dir, "reports", "leaks.json")


def test_image_scan_command(test_settings):
    argv = stages.image_scan_command(test_settings, "cartservice")
    assert argv[:2] == ["trivy", "image"]
    assert argv[argv.index("--severity") + 1] == "HIGH,CRITICAL"
    assert argv[argv.index("--exit-code") + 1] == "1"
    assert argv[-1] == "shop/cartservice:latest"
    assert "--ignore-unfixed" not in argv

    test_settings.trivy_ignore_unfixed = True
    assert "--ignore-unfixed" in stages.image_scan_command(test_settings, "cartservice")


def test_sast_command_targets_service_source(test_settings):
    argv = stages.sast_command(test_settings, "adservice")
    assert argv[:2] == ["semgrep", "scan"]
    assert "--error" in argv
    assert argv[-1] == "src/adservice"
    assert argv[argv.index("--output") + 1].endswith("semgrep-adservice.json")


def test_iac_command(test_settings):
    argv = stages.iac_scan_command(test_settings)
    assert argv[:3] == ["checkov", "-d", "terraform"]
    assert argv[argv.index("--framework") + 1] == "terraform"


def test_push_commands(test_settings):
    assert stages.registry_password_command(test_settings) == [
        "aws", "ecr", "get-login-password", "--region", "us-east-1",
    ]
    assert stages.registry_login_command(test_settings)[-2:] == ["--password-stdin", TEST_REGISTRY]
    assert stages.tag_command(test_settings, "frontend") == [
        "docker", "tag", "shop/frontend:latest", f"{TEST_REGISTRY}/shop/frontend:latest",
    ]
    assert stages.push_command(test_settings, "frontend") == [
        "docker", "push", f"{TEST_REGISTRY}/shop/frontend:latest",
    ]


def test_empty_source_root(test_settings):
    test_settings.source_root = ""
    assert stages.service_dir(test_settings, "frontend") == "frontend"
