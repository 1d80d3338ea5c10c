"""Configuration loader that reads from .env and validates with Pydantic."""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from pydantic import ValidationError

from models.config_models import Config, CredentialsConfig


def load_config() -> Config:
    """
    Load and validate configuration from environment variables.

    Reads from .env file in the project root (real environment variables
    take precedence) and validates the GitHub token, GCP project ID and
    GitHub username using Pydantic models.

    Returns:
        Config: Validated configuration object

    Raises:
        SystemExit: If configuration is invalid or missing required fields
    """
    # Load .env file from project root; existing env vars are not overridden
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)

    try:
        config = Config(
            credentials=CredentialsConfig(
                github_token=os.getenv("GITHUB_TOKEN"),
                gcp_project_id=os.getenv("GCP_PROJECT_ID"),
                github_username=os.getenv("GITHUB_USERNAME"),
                google_application_credentials=os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

        return config

    except ValidationError as e:
        print("❌ Configuration validation failed:", file=sys.stderr)
        print("\nPlease check your environment or .env file:", file=sys.stderr)

        for error in e.errors():
            field_path = " → ".join(str(x) for x in error["loc"])
            message = error["msg"]
            if field_path:
                print(f"  • {field_path}: {message}", file=sys.stderr)
            else:
                print(f"  • {message}", file=sys.stderr)

        print("\nHint: Copy .env.example to .env and fill in your credentials.", file=sys.stderr)
        sys.exit(1)
