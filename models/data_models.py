"""Data models for GitHub API payloads and warehouse insert results.

API models mirror the subset of the GitHub REST response we load into the
warehouse. Unknown fields are ignored so new API fields never break parsing.
Timestamps are kept as the ISO-8601 strings GitHub returns.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class GitHubModel(BaseModel):
    """Base for API payload models (ignores fields we don't map)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class GitHubUser(GitHubModel):
    login: Optional[str] = None
    id: Optional[int] = None


class Repository(GitHubModel):
    """Repository metadata from GET /user/repos."""

    id: int
    name: str
    full_name: str
    owner: Optional[GitHubUser] = None
    language: Optional[str] = None
    visibility: Optional[str] = None
    fork: bool = False
    stargazers_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class CommitAuthor(GitHubModel):
    name: Optional[str] = None
    email: Optional[str] = None
    date: Optional[str] = None


class CommitDetail(GitHubModel):
    message: Optional[str] = None
    author: Optional[CommitAuthor] = None


class CommitStats(GitHubModel):
    additions: int = 0
    deletions: int = 0
    total: int = 0


class Commit(GitHubModel):
    """Commit from GET /repos/{owner}/{repo}/commits.

    The list endpoint nests author info under ``commit.author``; ``stats``
    is only present on the single-commit endpoint, so it may be missing.
    """

    sha: str
    commit: Optional[CommitDetail] = None
    author: Optional[GitHubUser] = None
    stats: Optional[CommitStats] = None

    @property
    def authored_date(self) -> Optional[str]:
        if self.commit is None or self.commit.author is None:
            return None
        return self.commit.author.date


class PullRequest(GitHubModel):
    """Pull request from GET /repos/{owner}/{repo}/pulls?state=all."""

    number: int
    title: Optional[str] = None
    state: Optional[str] = None
    user: Optional[GitHubUser] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    merged_at: Optional[str] = None
    merge_commit_sha: Optional[str] = None


class Review(GitHubModel):
    """Pull request review.

    The reviews endpoint does not repeat the PR number, so the loader
    threads (repo, pr_number) into each row explicitly.
    """

    id: int
    state: Optional[str] = None
    submitted_at: Optional[str] = None
    body: Optional[str] = None
    user: Optional[GitHubUser] = None


class Language(BaseModel):
    """Language byte counts for one repository."""

    repo_full_name: str
    languages: dict[str, int] = Field(default_factory=dict)


class RowError(BaseModel):
    row_index: int
    message: str


class InsertResult(BaseModel):
    """Outcome of one bulk insert: attempted rows, accepted rows, per-row errors."""

    total_rows: int = 0
    successful_rows: int = 0
    errors: list[RowError] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)
