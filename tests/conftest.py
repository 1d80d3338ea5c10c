"""Shared pytest fixtures and configuration."""

from unittest.mock import MagicMock, Mock

import pytest

from models.data_models import InsertResult


@pytest.fixture
def test_env(monkeypatch):
    """
    Set valid test environment variables.

    This fixture sets up valid test environment variables so config
    can be loaded during tests without requiring real credentials.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test_token_1234567890")
    monkeypatch.setenv("GCP_PROJECT_ID", "devpulse-test-project")
    monkeypatch.setenv("GITHUB_USERNAME", "octocat")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    return {
        "github_token": "ghp_test_token_1234567890",
        "gcp_project_id": "devpulse-test-project",
        "github_username": "octocat",
        "log_level": "DEBUG",
    }


@pytest.fixture
def invalid_env(monkeypatch):
    """
    Set up blank environment variables for testing validation.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "")
    monkeypatch.setenv("GCP_PROJECT_ID", "  ")
    monkeypatch.delenv("GITHUB_USERNAME", raising=False)


@pytest.fixture
def make_response():
    """
    Factory for mocked ``requests`` responses.

    Usage:
        make_response(200, json_data=[...], headers={"Link": "..."})
    """
    def _make(status_code=200, json_data=None, headers=None):
        response = Mock()
        response.status_code = status_code
        response.headers = headers if headers is not None else {}
        response.json.return_value = json_data
        return response

    return _make


@pytest.fixture
def mock_loader():
    """
    Warehouse loader double whose load methods accept every row.

    Each ``load_*`` returns an InsertResult counting the rows it was given,
    and watermarks are read as absent.
    """
    loader = MagicMock()

    def _accept_all(*args):
        rows = args[-1]
        if rows and hasattr(rows[0], "languages"):
            # Languages are flattened to one row per (repo, language)
            count = sum(len(language.languages) for language in rows)
        else:
            count = len(rows)
        return InsertResult(total_rows=count, successful_rows=count)

    for method in (
        "load_repositories",
        "load_commits",
        "load_pull_requests",
        "load_reviews",
        "load_languages",
    ):
        getattr(loader, method).side_effect = _accept_all

    loader.get_last_extraction_timestamp.return_value = None
    return loader
