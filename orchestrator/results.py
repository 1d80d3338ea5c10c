"""Per-step extraction results and the aggregated run summary.

Results live only in memory for the duration of a run; the summary is what
the CLI prints and what decides the process exit code.
"""

from typing import Optional
from pydantic import BaseModel, Field

ENTITY_REPOSITORIES = "repositories"
ENTITY_COMMITS = "commits"
ENTITY_PULL_REQUESTS = "pull_requests"
ENTITY_REVIEWS = "reviews"
ENTITY_LANGUAGES = "languages"

# Reporting order; every one of these has its own watermark
ENTITY_TYPES = (
    ENTITY_REPOSITORIES,
    ENTITY_COMMITS,
    ENTITY_PULL_REQUESTS,
    ENTITY_REVIEWS,
    ENTITY_LANGUAGES,
)

# Synthetic entity type for a failed warehouse setup
ENTITY_INFRASTRUCTURE = "infrastructure"

SCOPE_ALL = "all"
SCOPE_NONE = "N/A"


class ExtractionResult(BaseModel):
    """Outcome of extracting one entity type for one repository (or globally)."""

    entity_type: str
    repo_full_name: str
    records_extracted: int = 0
    records_loaded: int = 0
    success: bool
    error_message: Optional[str] = None
    duration_ms: int = 0

    @classmethod
    def succeeded(
        cls,
        entity_type: str,
        repo_full_name: str,
        extracted: int,
        loaded: int,
        duration_ms: int,
    ) -> "ExtractionResult":
        return cls(
            entity_type=entity_type,
            repo_full_name=repo_full_name,
            records_extracted=extracted,
            records_loaded=loaded,
            success=True,
            duration_ms=duration_ms,
        )

    @classmethod
    def failed(
        cls,
        entity_type: str,
        repo_full_name: str,
        error: str,
        duration_ms: int,
    ) -> "ExtractionResult":
        return cls(
            entity_type=entity_type,
            repo_full_name=repo_full_name,
            success=False,
            error_message=error,
            duration_ms=duration_ms,
        )


class ExtractionSummary(BaseModel):
    """All results of one run plus its total duration."""

    results: list[ExtractionResult] = Field(default_factory=list)
    total_duration_ms: int = 0

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def has_failures(self) -> bool:
        return any(not r.success for r in self.results)

    @property
    def failures(self) -> list[ExtractionResult]:
        return [r for r in self.results if not r.success]

    def results_for(self, entity_type: str) -> list[ExtractionResult]:
        return [r for r in self.results if r.entity_type == entity_type]

    def total_extracted_for_entity(self, entity_type: str) -> int:
        return sum(r.records_extracted for r in self.results_for(entity_type) if r.success)

    def total_loaded_for_entity(self, entity_type: str) -> int:
        return sum(r.records_loaded for r in self.results_for(entity_type) if r.success)

    def failures_for_entity(self, entity_type: str) -> int:
        return sum(1 for r in self.results_for(entity_type) if not r.success)

    def format_report(self) -> str:
        """Render the human-readable run summary printed by the CLI."""
        lines = [
            "",
            "=== DevPulse Extraction Summary ===",
            f"Duration: {self.total_duration_ms}ms",
            f"Results:  {self.success_count} successful, {self.failure_count} failed",
            "",
            "Entity breakdown:",
        ]
        for entity_type in ENTITY_TYPES:
            lines.append(
                f"  {entity_type:<16} "
                f"extracted={self.total_extracted_for_entity(entity_type):<6} "
                f"loaded={self.total_loaded_for_entity(entity_type):<6} "
                f"failures={self.failures_for_entity(entity_type)}"
            )

        if self.has_failures:
            lines.append("")
            lines.append("Failures:")
            for r in self.failures:
                lines.append(f"  - {r.entity_type} [{r.repo_full_name}]: {r.error_message}")

        lines.append("")
        return "\n".join(lines)
