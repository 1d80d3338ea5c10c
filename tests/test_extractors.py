"""Tests for the per-entity extractors and the since-filter."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from extractors import (
    CommitExtractor,
    LanguageExtractor,
    PullRequestExtractor,
    RepositoryExtractor,
    ReviewExtractor,
)
from extractors.filters import filter_since, parse_timestamp
from models.data_models import Commit, InsertResult, Language, PullRequest, Repository, Review, RowError

WATERMARK = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)


def commit(sha, date):
    author = {"name": "Octo", "email": "o@example.com", "date": date} if date is not None else None
    return Commit.model_validate({"sha": sha, "commit": {"message": "m", "author": author}})


def pull_request(number, updated_at=None):
    return PullRequest.model_validate({"number": number, "updated_at": updated_at})


def repository(name, repo_id=1):
    return Repository.model_validate({"id": repo_id, "name": name, "full_name": f"octocat/{name}"})


class TestParseTimestamp:
    """Tests for GitHub timestamp parsing."""

    def test_zulu_suffix(self):
        assert parse_timestamp("2025-01-10T12:00:00Z") == WATERMARK

    def test_offset_normalized_to_utc_instant(self):
        parsed = parse_timestamp("2025-01-10T14:00:00+02:00")
        assert parsed == WATERMARK

    def test_naive_treated_as_utc(self):
        assert parse_timestamp("2025-01-10T12:00:00").tzinfo is not None

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2025-13-45T99:00:00Z"])
    def test_unparsable_returns_none(self, value):
        assert parse_timestamp(value) is None


class TestFilterSince:
    """Tests for incremental filtering."""

    def test_no_watermark_keeps_everything(self):
        items = [commit("a", "2020-01-01T00:00:00Z"), commit("b", None)]
        assert filter_since(items, None, lambda c: c.authored_date) == items

    def test_keeps_only_items_after_watermark(self):
        before = commit("before", "2025-01-09T00:00:00Z")
        after = commit("after", "2025-01-11T00:00:00Z")

        kept = filter_since([before, after], WATERMARK, lambda c: c.authored_date)

        assert [c.sha for c in kept] == ["after"]

    def test_equal_to_watermark_excluded(self):
        exact = commit("exact", "2025-01-10T12:00:00Z")
        assert filter_since([exact], WATERMARK, lambda c: c.authored_date) == []

    def test_unparsable_or_missing_dates_always_kept(self):
        items = [commit("garbage", "not-a-date"), commit("missing", None), commit("old", "2000-01-01T00:00:00Z")]

        kept = filter_since(items, WATERMARK, lambda c: c.authored_date)

        assert [c.sha for c in kept] == ["garbage", "missing"]

    def test_naive_watermark_treated_as_utc(self):
        naive = WATERMARK.replace(tzinfo=None)
        after = commit("after", "2025-01-10T12:00:01Z")
        assert filter_since([after], naive, lambda c: c.authored_date) == [after]

    def test_preserves_order(self):
        items = [pull_request(n, (WATERMARK + timedelta(hours=n)).isoformat()) for n in (3, 1, 2)]
        kept = filter_since(items, WATERMARK, lambda pr: pr.updated_at)
        assert [pr.number for pr in kept] == [3, 1, 2]


class TestRepositoryExtractor:
    """Tests for RepositoryExtractor."""

    def test_loads_and_returns_repositories(self, mock_loader):
        client = Mock()
        repos = [repository("a"), repository("b")]
        client.get_repositories.return_value = repos

        result = RepositoryExtractor(client, mock_loader).extract_and_load()

        assert result == repos
        mock_loader.load_repositories.assert_called_once_with(repos)

    def test_no_repositories_no_load(self, mock_loader):
        client = Mock()
        client.get_repositories.return_value = []

        assert RepositoryExtractor(client, mock_loader).extract_and_load() == []
        mock_loader.load_repositories.assert_not_called()

    def test_client_errors_propagate(self, mock_loader):
        client = Mock()
        client.get_repositories.side_effect = RuntimeError("401 Unauthorized")

        with pytest.raises(RuntimeError):
            RepositoryExtractor(client, mock_loader).extract_and_load()


class TestCommitExtractor:
    """Tests for CommitExtractor."""

    def test_since_filter_applied_before_load(self, mock_loader):
        client = Mock()
        client.get_commits.return_value = [
            commit("before", "2025-01-09T00:00:00Z"),
            commit("after", "2025-01-11T00:00:00Z"),
            commit("unparsable", "???"),
        ]

        loaded = CommitExtractor(client, mock_loader).extract_and_load("octocat/a", WATERMARK)

        assert loaded == 2
        repo_name, commits = mock_loader.load_commits.call_args.args
        assert repo_name == "octocat/a"
        assert [c.sha for c in commits] == ["after", "unparsable"]

    def test_full_mode_loads_all(self, mock_loader):
        client = Mock()
        client.get_commits.return_value = [commit("a", "2000-01-01T00:00:00Z"), commit("b", None)]

        assert CommitExtractor(client, mock_loader).extract_and_load("octocat/a") == 2

    def test_nothing_new_no_load(self, mock_loader):
        client = Mock()
        client.get_commits.return_value = [commit("old", "2000-01-01T00:00:00Z")]

        assert CommitExtractor(client, mock_loader).extract_and_load("octocat/a", WATERMARK) == 0
        mock_loader.load_commits.assert_not_called()

    def test_returns_accepted_rows_only(self):
        client = Mock()
        client.get_commits.return_value = [commit("a", None), commit("b", None)]
        loader = Mock()
        loader.load_commits.return_value = InsertResult(
            total_rows=2, successful_rows=1, errors=[RowError(row_index=0, message="bad")]
        )

        assert CommitExtractor(client, loader).extract_and_load("octocat/a") == 1


class TestPullRequestExtractor:
    """Tests for PullRequestExtractor."""

    def test_returns_filtered_pull_requests(self, mock_loader):
        client = Mock()
        client.get_pull_requests.return_value = [
            pull_request(1, "2025-01-01T00:00:00Z"),
            pull_request(2, "2025-02-01T00:00:00Z"),
        ]

        prs = PullRequestExtractor(client, mock_loader).extract_and_load("octocat/a", WATERMARK)

        assert [pr.number for pr in prs] == [2]
        mock_loader.load_pull_requests.assert_called_once_with("octocat/a", prs)

    def test_empty_no_load(self, mock_loader):
        client = Mock()
        client.get_pull_requests.return_value = []

        assert PullRequestExtractor(client, mock_loader).extract_and_load("octocat/a") == []
        mock_loader.load_pull_requests.assert_not_called()


class TestReviewExtractor:
    """Tests for ReviewExtractor."""

    def test_one_load_per_pull_request_with_reviews(self, mock_loader):
        client = Mock()
        reviews_by_pr = {
            1: [Review.model_validate({"id": 10}), Review.model_validate({"id": 11})],
            2: [],
            3: [Review.model_validate({"id": 30})],
        }
        client.get_reviews.side_effect = lambda repo, number: reviews_by_pr[number]

        loaded = ReviewExtractor(client, mock_loader).extract_and_load(
            "octocat/a", [pull_request(1), pull_request(2), pull_request(3)]
        )

        assert loaded == 3
        assert [c.args[1] for c in mock_loader.load_reviews.call_args_list] == [1, 3]

    def test_no_pull_requests(self, mock_loader):
        client = Mock()

        assert ReviewExtractor(client, mock_loader).extract_and_load("octocat/a", []) == 0
        client.get_reviews.assert_not_called()
        mock_loader.load_reviews.assert_not_called()


class TestLanguageExtractor:
    """Tests for LanguageExtractor."""

    def test_skips_repositories_without_languages(self, mock_loader):
        client = Mock()
        client.get_languages.side_effect = lambda name: Language(
            repo_full_name=name,
            languages={"Python": 100, "Shell": 5} if name == "octocat/a" else {},
        )

        loaded = LanguageExtractor(client, mock_loader).extract_and_load(
            [repository("a"), repository("b")]
        )

        assert loaded == 2
        languages = mock_loader.load_languages.call_args.args[0]
        assert [lang.repo_full_name for lang in languages] == ["octocat/a"]

    def test_no_languages_no_load(self, mock_loader):
        client = Mock()
        client.get_languages.return_value = Language(repo_full_name="octocat/a")

        assert LanguageExtractor(client, mock_loader).extract_and_load([repository("a")]) == 0
        mock_loader.load_languages.assert_not_called()
