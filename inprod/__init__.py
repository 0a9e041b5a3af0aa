"""Production-readiness analysis for source repositories."""

from .analyzer import ReadinessAnalyzer, analyze_completeness, analyze_repository
from .capacity import AggregationError, CapacityAggregator
from .corpus import FileCorpus, ManifestError
from .fixes import FixEligibilityClassifier, FixSelection, instant_fix_gaps
from .models import (
    AnalysisResult,
    CapacityReport,
    CategoryScore,
    CompletenessAnalysis,
    Gap,
    RepoFile,
    TechStackProfile,
)
from .scorers import RuleTableError, ScorerRegistry
from .stack import TechStackDetector
from .summary import format_analysis_summary

__all__ = [
    "AggregationError",
    "AnalysisResult",
    "CapacityAggregator",
    "CapacityReport",
    "CategoryScore",
    "CompletenessAnalysis",
    "FileCorpus",
    "FixEligibilityClassifier",
    "FixSelection",
    "Gap",
    "ManifestError",
    "ReadinessAnalyzer",
    "RepoFile",
    "RuleTableError",
    "ScorerRegistry",
    "TechStackDetector",
    "TechStackProfile",
    "analyze_completeness",
    "analyze_repository",
    "format_analysis_summary",
    "instant_fix_gaps",
]
