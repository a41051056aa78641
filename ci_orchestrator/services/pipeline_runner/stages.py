"""
File: stages.py
Purpose: Builds the argv for every pipeline stage -- gitleaks secret scan, checkov IaC scan,
    semgrep SAST, docker build, trivy image scan, ECR login/tag/push and docker rmi cleanup --
    from Settings and a service name.
When Used: Called by the local pipeline runner for each stage; also exercised directly by tests.
Why Created: The commands used to be interpolated shell strings in the Jenkinsfile. Building them
    as argv lists avoids quoting bugs and keeps them testable without running anything.
"""
import os
import posixpath
from typing import List, Optional

from ci_orchestrator.config import Settings
from ci_orchestrator.services.pipeline_runner.constants import (
    GITLEAKS_REPORT,
    semgrep_report,
    trivy_report,
)


def service_dir(settings: Settings, service: str) -> str:
    """Build context of a service, relative to the repo root (src/<service>)."""
    return posixpath.join(settings.source_root, service) if settings.source_root else service


def local_image(settings: Settings, service: str) -> str:
    return f"{settings.service_repo}/{service}:{settings.image_tag}"


def remote_image(settings: Settings, service: str) -> Optional[str]:
    if not settings.ecr_registry:
        return None
    return f"{settings.ecr_registry.rstrip('/')}/{local_image(settings, service)}"


def artifacts_path(settings: Settings, name: str = "") -> str:
    root = os.path.abspath(os.path.join(settings.repo_dir, settings.artifacts_dir))
    return os.path.join(root, name) if name else root


def secrets_scan_command(settings: Settings) -> List[str]:
    return [
        "gitleaks", "git", "-v",
        "--exit-code", "1",
        f"--redact={settings.gitleaks_redact}",
        "--report-path", artifacts_path(settings, GITLEAKS_REPORT),
        ".",
    ]


def iac_scan_command(settings: Settings) -> List[str]:
    return [
        "checkov",
        "-d", settings.terraform_dir,
        "--framework", settings.checkov_framework,
        "--output", "json",
        "--output-file-path", artifacts_path(settings),
        "--quiet",
    ]


def sast_command(settings: Settings, service: str) -> List[str]:
    return [
        "semgrep", "scan",
        "--config", settings.semgrep_config,
        "--error",
        "--json",
        "--output", artifacts_path(settings, semgrep_report(service)),
        service_dir(settings, service),
    ]


def build_command(settings: Settings, service: str) -> List[str]:
    context = service_dir(settings, service)
    return [
        "docker", "build",
        "-f", posixpath.join(context, "Dockerfile"),
        "-t", local_image(settings, service),
        context,
    ]


def image_scan_command(settings: Settings, service: str) -> List[str]:
    argv = [
        "trivy", "image",
        "--exit-code", "1",
        "--severity", settings.trivy_severity,
        "--format", "json",
        "--output", artifacts_path(settings, trivy_report(service)),
    ]
    if settings.trivy_ignore_unfixed:
        argv.append("--ignore-unfixed")
    argv.append(local_image(settings, service))
    return argv


def registry_password_command(settings: Settings) -> List[str]:
    return ["aws", "ecr", "get-login-password", "--region", settings.aws_region]


def registry_login_command(settings: Settings) -> List[str]:
    return ["docker", "login", "--username", "AWS", "--password-stdin", settings.ecr_registry or ""]


def tag_command(settings: Settings, service: str) -> List[str]:
    return ["docker", "tag", local_image(settings, service), remote_image(settings, service) or ""]


def push_command(settings: Settings, service: str) -> List[str]:
    return ["docker", "push", remote_image(settings, service) or ""]


def cleanup_command(settings: Settings, service: str) -> List[str]:
    argv = ["docker", "rmi", local_image(settings, service)]
    remote = remote_image(settings, service)
    if remote:
        argv.append(remote)
    return argv
