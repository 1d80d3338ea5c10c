"""Tests for GitHub payload models and insert results."""

import pytest
from pydantic import ValidationError

from models import Commit, InsertResult, Language, PullRequest, Repository, Review, RowError


class TestRepository:
    """Tests for Repository model."""

    def test_parses_api_payload(self):
        """Nested owner is parsed and unknown fields are ignored."""
        repo = Repository.model_validate({
            "id": 42,
            "name": "devpulse",
            "full_name": "octocat/devpulse",
            "owner": {"login": "octocat", "id": 1, "type": "User"},
            "language": "Python",
            "visibility": "public",
            "fork": False,
            "stargazers_count": 7,
            "created_at": "2024-01-01T00:00:00Z",
            "updated_at": "2025-01-01T00:00:00Z",
            "html_url": "https://github.com/octocat/devpulse",
        })

        assert repo.full_name == "octocat/devpulse"
        assert repo.owner.login == "octocat"
        assert repo.stargazers_count == 7
        assert not hasattr(repo, "html_url")

    def test_defaults_for_optional_fields(self):
        repo = Repository.model_validate({"id": 1, "name": "x", "full_name": "o/x"})
        assert repo.owner is None
        assert repo.fork is False
        assert repo.stargazers_count == 0

    def test_missing_required_field_rejected(self):
        with pytest.raises(ValidationError):
            Repository.model_validate({"id": 1, "name": "x"})


class TestCommit:
    """Tests for Commit model."""

    def test_authored_date_from_nested_author(self):
        commit = Commit.model_validate({
            "sha": "abc123",
            "commit": {
                "message": "Fix bug",
                "author": {"name": "Octo Cat", "email": "octo@example.com", "date": "2025-01-15T10:30:00Z"},
            },
        })
        assert commit.authored_date == "2025-01-15T10:30:00Z"
        assert commit.stats is None

    def test_authored_date_missing(self):
        assert Commit.model_validate({"sha": "abc"}).authored_date is None
        assert Commit.model_validate({"sha": "abc", "commit": {"message": "m"}}).authored_date is None

    def test_stats_parsed_when_present(self):
        commit = Commit.model_validate({
            "sha": "abc",
            "stats": {"additions": 10, "deletions": 2, "total": 12},
        })
        assert commit.stats.additions == 10
        assert commit.stats.total == 12


class TestPullRequestAndReview:
    """Tests for PullRequest and Review models."""

    def test_pull_request_payload(self):
        pr = PullRequest.model_validate({
            "number": 5,
            "title": "Add feature",
            "state": "closed",
            "user": {"login": "octocat"},
            "merged_at": None,
            "updated_at": "2025-02-01T00:00:00Z",
        })
        assert pr.number == 5
        assert pr.user.login == "octocat"
        assert pr.merged_at is None

    def test_review_payload(self):
        review = Review.model_validate({
            "id": 99,
            "state": "APPROVED",
            "user": {"login": "reviewer"},
            "submitted_at": "2025-02-02T00:00:00Z",
        })
        assert review.id == 99
        assert review.body is None


class TestLanguage:
    def test_defaults_to_empty_map(self):
        assert Language(repo_full_name="o/r").languages == {}


class TestInsertResult:
    """Tests for InsertResult model."""

    def test_empty_result(self):
        result = InsertResult()
        assert result.total_rows == 0
        assert result.successful_rows == 0
        assert not result.has_errors

    def test_with_row_errors(self):
        result = InsertResult(
            total_rows=3,
            successful_rows=2,
            errors=[RowError(row_index=1, message="no such field")],
        )
        assert result.has_errors
        assert result.errors[0].row_index == 1
