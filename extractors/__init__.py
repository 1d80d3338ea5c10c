"""Per-entity extractors: fetch from GitHub, filter, load into the warehouse."""

from extractors.commits import CommitExtractor
from extractors.languages import LanguageExtractor
from extractors.pull_requests import PullRequestExtractor
from extractors.repositories import RepositoryExtractor
from extractors.reviews import ReviewExtractor

__all__ = [
    "CommitExtractor",
    "LanguageExtractor",
    "PullRequestExtractor",
    "RepositoryExtractor",
    "ReviewExtractor",
]
