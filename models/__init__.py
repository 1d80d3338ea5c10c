"""Data models for the DevPulse extractor."""

from models.config_models import Config, CredentialsConfig
from models.data_models import (
    Commit,
    InsertResult,
    Language,
    PullRequest,
    Repository,
    Review,
    RowError,
)

__all__ = [
    "Config",
    "CredentialsConfig",
    "Commit",
    "InsertResult",
    "Language",
    "PullRequest",
    "Repository",
    "Review",
    "RowError",
]
