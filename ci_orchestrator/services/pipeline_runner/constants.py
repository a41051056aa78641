"""
File: constants.py
Purpose: Stage names, report file names and failure hints for the pipeline runner.
When Used: Imported by the stage command builders and both runner backends.
Why Created: Single source of truth for names that show up in progress events, StageResults and
    artifact paths.
"""

# Repository-level stages (once per run, before any service)
STAGE_SECRETS = "secrets"
STAGE_IAC = "iac"

# Per-service stages, in execution order
STAGE_SAST = "sast"
STAGE_BUILD = "build"
STAGE_IMAGE_SCAN = "image-scan"
STAGE_PUSH = "push"
STAGE_CLEANUP = "cleanup"

# Jenkins backend: one remote build per service
STAGE_JENKINS = "jenkins"

GITLEAKS_REPORT = "leaks.json"
CHECKOV_REPORT = "results_json.json"  # checkov's fixed name inside --output-file-path


def semgrep_report(service: str) -> str:
    return f"semgrep-{service}.json"


def trivy_report(service: str) -> str:
    return f"trivy-{service}.json"


FAILURE_HINTS = {
    STAGE_SECRETS: f"Secrets detected in code. Review {GITLEAKS_REPORT} for details.",
    STAGE_IAC: "Terraform misconfigurations found. Review the checkov report.",
    STAGE_SAST: "SAST findings reported by semgrep.",
    STAGE_BUILD: "docker build failed.",
    STAGE_IMAGE_SCAN: "Image vulnerabilities at or above the configured severity.",
    STAGE_PUSH: "Registry login or push failed.",
}
