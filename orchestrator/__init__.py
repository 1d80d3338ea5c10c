"""Extraction orchestration: sequencing, result aggregation, watermarks."""

from orchestrator.orchestrator import ExtractionOrchestrator
from orchestrator.results import ExtractionResult, ExtractionSummary

__all__ = ["ExtractionOrchestrator", "ExtractionResult", "ExtractionSummary"]
