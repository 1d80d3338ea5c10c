"""Configuration models for validation using Pydantic."""

from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


# Environment variable name for each required credential field
REQUIRED_ENV_VARS = {
    "github_token": "GITHUB_TOKEN",
    "gcp_project_id": "GCP_PROJECT_ID",
    "github_username": "GITHUB_USERNAME",
}


class CredentialsConfig(BaseModel):
    """Credentials and scope loaded from environment variables."""

    github_token: Optional[str] = Field(None, description="GitHub personal access token")
    gcp_project_id: Optional[str] = Field(None, description="GCP project hosting the BigQuery datasets")
    github_username: Optional[str] = Field(None, description="GitHub account whose activity is extracted")
    google_application_credentials: Optional[str] = Field(
        None, description="Path to a service account key (optional, ADC is used otherwise)"
    )

    @model_validator(mode='after')
    def validate_required_values(self):
        """Ensure every required value is set, reporting all missing ones at once."""
        missing = [
            env_name
            for field_name, env_name in REQUIRED_ENV_VARS.items()
            if not (getattr(self, field_name) or "").strip()
        ]
        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}"
            )
        return self


class Config(BaseModel):
    """Application configuration."""

    credentials: CredentialsConfig
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper
