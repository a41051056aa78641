"""
File: config.py
Purpose: Central configuration management -- loads settings from environment variables and the
    .env file into a single Pydantic Settings class covering service selection (source root,
    base ref, catalog file), the local pipeline runner (stage toggles, registry, scanner options)
    and the Jenkins trigger backend.
When Used: Imported at startup by the CLI, the FastAPI app and most services to access the
    global 'settings' singleton.
Why Created: Keeps every knob that the Jenkins job used to take as a string parameter
    (ECR_REGISTRY, SERVICE_REPO, AWS_REGION, SERVICE_NAME) in one typed, testable place
    instead of scattered across pipeline scripts.
"""
from typing import List, Optional
from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SERVICES = [
    "adservice",
    "cartservice",
    "checkoutservice",
    "currencyservice",
    "emailservice",
    "frontend",
    "loadgenerator",
    "paymentservice",
    "productcatalogservice",
    "recommendationservice",
    "shippingservice",
    "shoppingassistantservice",
]


class ToolConfig(BaseModel):
    """Connection settings for a single external tool"""
    enabled: bool = True
    base_url: str
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None


class Settings(BaseSettings):
    """Application settings"""
    app_name: str = "CI Orchestrator"
    app_version: str = "1.0.0"
    debug: bool = False

    # API Settings
    api_prefix: str = "/api/v1"
    cors_origins: list = ["*"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Service selection
    repo_dir: str = "."
    source_root: str = "src"
    base_ref: str = "main"
    services_catalog_path: Optional[str] = "config/services.yaml"
    default_services: List[str] = list(DEFAULT_SERVICES)

    # Pipeline runner
    artifacts_dir: str = "reports"
    dry_run: bool = False
    stage_timeout: int = 1800  # seconds
    enable_secret_scan: bool = True
    enable_iac_scan: bool = True
    enable_sast: bool = True
    enable_image_scan: bool = True
    enable_push: bool = True
    terraform_dir: str = "terraform"

    # Image naming: <service_repo>/<service>:<image_tag>, pushed as <ecr_registry>/<...>
    service_repo: str = "microservices"
    image_tag: str = "latest"
    ecr_registry: Optional[str] = None
    aws_region: str = "us-east-1"

    # Scanner options
    gitleaks_redact: int = 100
    semgrep_config: str = "auto"
    trivy_severity: str = "HIGH,CRITICAL"
    trivy_ignore_unfixed: bool = False
    checkov_framework: str = "terraform"

    # Jenkins trigger backend
    jenkins_url: str = "http://jenkins-master:8080/jenkins"
    jenkins_username: Optional[str] = None
    jenkins_password: Optional[str] = None
    jenkins_job_template: str = "{service}-pipeline"
    jenkins_poll_interval: float = 5.0  # seconds
    jenkins_wait_timeout: int = 3600  # seconds

    # Run history kept in memory by the API
    max_completed_runs: int = 200

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    def jenkins_tool(self) -> ToolConfig:
        """Jenkins connection as a ToolConfig for the integration client"""
        return ToolConfig(
            base_url=self.jenkins_url,
            username=self.jenkins_username,
            password=self.jenkins_password,
            enabled=bool(self.jenkins_url),
        )


# Global instance
settings = Settings()
