"""Top-level production-readiness analysis."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from .capacity import AggregationError, CapacityAggregator
from .config import AnalysisConfig
from .corpus import FileCorpus
from .fixes import (
    CompletionPlan,
    FixEligibilityClassifier,
    FixGroup,
    FixSelection,
    build_completion_plan,
)
from .logging import get_logger, log_duration
from .models import AnalysisResult, CapacityReport, CompletenessAnalysis, RepoFile
from .repo_scanner import RepoScanner
from .scorers import ScorerRegistry
from .stack import TechStackDetector

FileInput = Union[FileCorpus, Iterable[RepoFile], Iterable[Mapping[str, object]]]


def as_corpus(files: FileInput) -> FileCorpus:
    """Accept a corpus, ``RepoFile`` objects or ``{path, content, size}`` mappings."""
    if isinstance(files, FileCorpus):
        return files
    items = list(files)
    if all(isinstance(item, RepoFile) for item in items):
        return FileCorpus(items)  # type: ignore[arg-type]
    records: List[Mapping[str, object]] = []
    for item in items:
        if isinstance(item, RepoFile):
            records.append(item.to_dict())
        elif isinstance(item, Mapping):
            records.append(item)
        else:
            raise TypeError(f"Unsupported file record: {type(item).__name__}")
    return FileCorpus.from_records(records)


class ReadinessAnalyzer:
    """Runs detection, scoring and aggregation over one corpus per call.

    The analyzer holds only immutable collaborators, so one instance can serve
    concurrent calls.
    """

    def __init__(
        self,
        detector: Optional[TechStackDetector] = None,
        registry: Optional[ScorerRegistry] = None,
        aggregator: Optional[CapacityAggregator] = None,
        classifier: Optional[FixEligibilityClassifier] = None,
        *,
        config: Optional[AnalysisConfig] = None,
    ) -> None:
        self.detector = detector or TechStackDetector()
        self.registry = registry or ScorerRegistry()
        self.aggregator = aggregator or CapacityAggregator(self.registry.rule_points)
        self.classifier = classifier or FixEligibilityClassifier()
        self.config = config or AnalysisConfig()
        self.logger = get_logger("analyzer")

    def analyze_completeness(self, repo_url: str, files: FileInput) -> CompletenessAnalysis:
        """Return the analysis, raising :class:`AggregationError` when it cannot be built."""
        corpus = as_corpus(files)
        with log_duration(self.logger, f"Analysis of {repo_url or '<corpus>'}"):
            profile = self.detector.detect(corpus)
            categories = self.registry.evaluate(
                corpus,
                profile,
                parallel=self.config.parallel,
                max_workers=self.config.max_workers,
            )
            return self.aggregator.aggregate(repo_url, profile, categories)

    def analyze_repository(self, repo_url: str, files: FileInput) -> AnalysisResult:
        """Analyze and estimate capacity; failures are returned, never raised."""
        try:
            analysis = self.analyze_completeness(repo_url, files)
            capacity = self.aggregator.capacity(analysis)
        except AggregationError as exc:
            self._log_exception("Analysis failed", exc)
            return AnalysisResult(ok=False, error=str(exc))
        return AnalysisResult(ok=True, analysis=analysis, capacity=capacity)

    def capacity(self, analysis: CompletenessAnalysis) -> CapacityReport:
        return self.aggregator.capacity(analysis)

    def plan_fixes(
        self,
        analysis: CompletenessAnalysis,
        selection: Optional[FixSelection] = None,
    ) -> Tuple[List[FixGroup], CompletionPlan]:
        groups = self.classifier.select(analysis, selection)
        return groups, build_completion_plan(groups)

    def scan(self, path: Path, scanner: Optional[RepoScanner] = None) -> FileCorpus:
        return (scanner or RepoScanner()).scan(path)

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


def analyze_completeness(repo_url: str, files: FileInput) -> CompletenessAnalysis:
    return ReadinessAnalyzer().analyze_completeness(repo_url, files)


def analyze_repository(repo_url: str, files: FileInput) -> AnalysisResult:
    return ReadinessAnalyzer().analyze_repository(repo_url, files)


__all__ = [
    "ReadinessAnalyzer",
    "analyze_completeness",
    "analyze_repository",
    "as_corpus",
]
