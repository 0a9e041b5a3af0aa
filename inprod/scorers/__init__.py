"""Category scorers, their registry and rule-table validation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterator, List, Optional, Sequence

from ..capacity import TIER_CEILINGS
from ..constants import (
    CATEGORIES,
    CONFIDENCES,
    FIX_TYPES,
    PLATFORM_CATEGORIES,
    SEVERITIES,
    applicable_categories,
)
from ..corpus import FileCorpus, ManifestError
from ..failsafe import FAILED_GAP_SUFFIX, build_failed_category
from ..logging import get_logger
from ..models import CategoryScore, TechStackProfile
from .application import AuthenticationScorer, BackendScorer, DatabaseScorer, FrontendScorer
from .base import CategoryScorer, Check, Penalty, RuleBasedScorer
from .delivery import DeploymentScorer, VersionControlScorer
from .integration import ApiIntegrationsScorer, DesignUxScorer, StateManagementScorer
from .quality import ErrorHandlingScorer, SecurityScorer, TestingScorer

logger = get_logger("scorers")

# Registered in category declaration order.
_BUILTIN_SCORERS: tuple[type[RuleBasedScorer], ...] = (
    FrontendScorer,
    BackendScorer,
    DatabaseScorer,
    AuthenticationScorer,
    ApiIntegrationsScorer,
    StateManagementScorer,
    DesignUxScorer,
    TestingScorer,
    SecurityScorer,
    ErrorHandlingScorer,
    VersionControlScorer,
    DeploymentScorer,
)


class RuleTableError(RuntimeError):
    """Raised when the static scoring tables are inconsistent."""


def default_scorers() -> List[RuleBasedScorer]:
    return [factory() for factory in _BUILTIN_SCORERS]


def validate_rule_tables(scorers: Sequence[RuleBasedScorer]) -> None:
    """Check the scorer tables for consistency, raising on the first problem."""
    by_category: Dict[str, RuleBasedScorer] = {}
    for scorer in scorers:
        if scorer.category not in CATEGORIES:
            raise RuleTableError(f"Scorer {type(scorer).__name__} has unknown category '{scorer.category}'")
        if scorer.category in by_category:
            raise RuleTableError(f"Category '{scorer.category}' has more than one scorer")
        by_category[scorer.category] = scorer

    missing = [category for category in CATEGORIES if category not in by_category]
    if missing:
        raise RuleTableError(f"No scorer registered for: {', '.join(missing)}")

    for platform, categories in PLATFORM_CATEGORIES.items():
        unknown = [category for category in categories if category not in CATEGORIES]
        if unknown:
            raise RuleTableError(f"Platform '{platform}' maps to unknown categories: {', '.join(unknown)}")

    seen_ids: Dict[str, str] = {}
    for category in CATEGORIES:
        scorer = by_category[category]
        _validate_ceilings(category)
        rules: List[Check | Penalty] = [*scorer.checks, *scorer.penalties]
        for rule in rules:
            if rule.id in seen_ids:
                raise RuleTableError(
                    f"Gap id '{rule.id}' is used by both {seen_ids[rule.id]} and {category}"
                )
            if rule.id.endswith(FAILED_GAP_SUFFIX):
                raise RuleTableError(f"Gap id '{rule.id}' collides with the failure gap namespace")
            seen_ids[rule.id] = category
            if rule.points <= 0:
                raise RuleTableError(f"Rule '{rule.id}' must carry a positive point value")
            if rule.severity not in SEVERITIES:
                raise RuleTableError(f"Rule '{rule.id}' has unknown severity '{rule.severity}'")
            if rule.confidence not in CONFIDENCES:
                raise RuleTableError(f"Rule '{rule.id}' has unknown confidence '{rule.confidence}'")
            if rule.fix_type not in FIX_TYPES:
                raise RuleTableError(f"Rule '{rule.id}' has unknown fix type '{rule.fix_type}'")
        total = sum(check.points for check in scorer.checks)
        if total != 100:
            raise RuleTableError(f"Checks for '{category}' sum to {total}, expected 100")


def _validate_ceilings(category: str) -> None:
    ceilings = TIER_CEILINGS.get(category)
    if ceilings is None or len(ceilings) != 6:
        raise RuleTableError(f"Category '{category}' needs exactly six tier ceilings")
    if any(later < earlier for earlier, later in zip(ceilings, ceilings[1:])):
        raise RuleTableError(f"Tier ceilings for '{category}' must be non-decreasing")


class ScorerRegistry:
    """Closed, ordered collection of category scorers.

    ``evaluate`` runs every scorer applicable to the profile's platform and
    returns results in category declaration order. A scorer that raises is
    isolated and replaced with a fail-closed zero score.
    """

    def __init__(self, scorers: Optional[Sequence[RuleBasedScorer]] = None) -> None:
        selected = list(scorers) if scorers is not None else default_scorers()
        validate_rule_tables(selected)
        self._scorers: Dict[str, RuleBasedScorer] = {scorer.category: scorer for scorer in selected}
        self._points: Dict[str, int] = {}
        for scorer in selected:
            self._points.update(scorer.rule_points())

    def __iter__(self) -> Iterator[RuleBasedScorer]:
        return (self._scorers[category] for category in CATEGORIES)

    def get(self, category: str) -> RuleBasedScorer:
        return self._scorers[category]

    def for_platform(self, platform: str) -> List[RuleBasedScorer]:
        return [self._scorers[category] for category in applicable_categories(platform)]

    def rule_points(self, gap_id: str) -> int:
        """Points recovered by fixing ``gap_id``; 0 for unknown or failure gaps."""
        return self._points.get(gap_id, 0)

    def evaluate(
        self,
        corpus: FileCorpus,
        profile: TechStackProfile,
        *,
        parallel: bool = True,
        max_workers: Optional[int] = None,
    ) -> List[CategoryScore]:
        scorers = self.for_platform(profile.platform)
        if not scorers:
            return []

        def _run(scorer: CategoryScorer) -> CategoryScore:
            return _score_isolated(scorer, corpus, profile)

        if not parallel or len(scorers) == 1:
            return [_run(scorer) for scorer in scorers]

        workers = max_workers or len(scorers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="inprod-scorer") as executor:
            # map() yields in submission order, keeping results in declaration order
            return list(executor.map(_run, scorers))


def _score_isolated(
    scorer: CategoryScorer,
    corpus: FileCorpus,
    profile: TechStackProfile,
) -> CategoryScore:
    try:
        return scorer.score(corpus, profile)
    except ManifestError as exc:
        logger.warning("Scoring %s failed closed: %s", scorer.category, exc)
        return build_failed_category(
            scorer.category,
            platform=profile.platform,
            reason=exc.reason,
            file=exc.path,
        )
    except Exception as exc:
        logger.warning("Scorer %s raised %s; scoring it as failed", scorer.category, exc)
        logger.debug("Scorer %s traceback", scorer.category, exc_info=True)
        return build_failed_category(scorer.category, platform=profile.platform, reason=str(exc))


# Inconsistent tables are a packaging error; refuse to import.
validate_rule_tables(default_scorers())


__all__ = [
    "CategoryScorer",
    "Check",
    "Penalty",
    "RuleBasedScorer",
    "RuleTableError",
    "ScorerRegistry",
    "default_scorers",
    "validate_rule_tables",
]
