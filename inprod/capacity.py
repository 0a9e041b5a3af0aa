"""Capacity model: category tiers, bottleneck selection and altitude levels.

Every number in a :class:`CapacityReport` is derived from three static tables
in this module: the tier thresholds, the per-category tier ceilings and the
altitude levels. The report can never exceed the ceiling of its weakest
category because effective users are that ceiling scaled by the overall score.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import CATEGORIES
from .logging import get_logger
from .models import (
    Altitude,
    CapacityReport,
    CategoryCapacity,
    CategoryScore,
    CompletenessAnalysis,
    Gap,
    NextLevel,
    RemediationItem,
    TechStackProfile,
)

# Lower bounds (inclusive) of tiers 1-5; anything below the first is tier 0.
TIER_THRESHOLDS: tuple[int, ...] = (20, 40, 60, 80, 90)

TIER_CEILINGS: Dict[str, Tuple[int, ...]] = {
    "frontend": (500, 5_000, 50_000, 500_000, 5_000_000, 100_000_000),
    "backend": (100, 1_000, 10_000, 100_000, 1_000_000, 50_000_000),
    "database": (100, 1_000, 10_000, 100_000, 1_000_000, 10_000_000),
    "authentication": (50, 1_000, 10_000, 250_000, 2_500_000, 100_000_000),
    "apiIntegrations": (1_000, 10_000, 50_000, 500_000, 5_000_000, 500_000_000),
    "stateManagement": (1_000, 10_000, 100_000, 1_000_000, 10_000_000, 1_000_000_000),
    "designUx": (1_000, 10_000, 100_000, 1_000_000, 10_000_000, 1_000_000_000),
    "testing": (100, 2_000, 20_000, 200_000, 2_000_000, 200_000_000),
    "security": (10, 500, 5_000, 100_000, 1_000_000, 100_000_000),
    "errorHandling": (100, 1_000, 10_000, 100_000, 2_000_000, 200_000_000),
    "versionControl": (1_000, 10_000, 100_000, 1_000_000, 10_000_000, 1_000_000_000),
    "deployment": (10, 100, 1_000, 50_000, 1_000_000, 100_000_000),
}

HOURLY_RATE = 150
# Categories at or above this score only contribute gaps when they are the bottleneck.
HEALTHY_SCORE = 80


@dataclass(frozen=True)
class AltitudeLevel:
    """One named capacity band: users in ``[threshold, next threshold)``."""

    name: str
    threshold: int
    start: int
    end: int
    unit: str


ALTITUDE_LEVELS: tuple[AltitudeLevel, ...] = (
    AltitudeLevel("GROUNDED", 0, 0, 0, "ft"),
    AltitudeLevel("HANGAR", 1, 0, 500, "ft"),
    AltitudeLevel("RUNWAY", 10, 500, 2_000, "ft"),
    AltitudeLevel("TAKEOFF", 100, 2_000, 10_000, "ft"),
    AltitudeLevel("CLIMBING", 1_000, 10_000, 20_000, "ft"),
    AltitudeLevel("CRUISING", 10_000, 20_000, 45_000, "ft"),
    AltitudeLevel("STRATOSPHERE", 100_000, 45_000, 160_000, "ft"),
    AltitudeLevel("KARMAN", 1_000_000, 100, 400, "km"),
    AltitudeLevel("ORBIT", 10_000_000, 400, 36_000, "km"),
    AltitudeLevel("GEOSTATIONARY", 100_000_000, 36_000, 384_000, "km"),
    AltitudeLevel("VOYAGER", 1_000_000_000, 24_000_000_000, 24_000_000_000, "km"),
)


class AggregationError(ValueError):
    """Raised when category results cannot be combined into a report."""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def tier_for(score: int) -> int:
    """Return the 0-5 tier for a category score."""
    return sum(1 for threshold in TIER_THRESHOLDS if score >= threshold)


def ceiling_for(category: str, score: int) -> int:
    return TIER_CEILINGS[category][tier_for(score)]


def overall_score(scores: Iterable[int]) -> int:
    """Half-up rounded mean of ``scores``, clamped to [0, 100]."""
    values = list(scores)
    if not values:
        raise AggregationError("no category scores to aggregate")
    # integer form of floor(mean + 0.5)
    mean = (2 * sum(values) + len(values)) // (2 * len(values))
    return max(0, min(100, mean))


def select_bottleneck(scores: Mapping[str, int]) -> str:
    """Return the category with the lowest ceiling, earliest declared on ties."""
    ordered = [category for category in CATEGORIES if category in scores]
    if not ordered:
        raise AggregationError("no applicable categories")
    bottleneck = ordered[0]
    lowest = ceiling_for(bottleneck, scores[bottleneck])
    for category in ordered[1:]:
        ceiling = ceiling_for(category, scores[category])
        if ceiling < lowest:
            bottleneck, lowest = category, ceiling
    return bottleneck


def effective_users(scores: Mapping[str, int]) -> int:
    bottleneck = select_bottleneck(scores)
    overall = overall_score(scores[category] for category in CATEGORIES if category in scores)
    return ceiling_for(bottleneck, scores[bottleneck]) * overall // 100


def level_for(users: int) -> AltitudeLevel:
    """Return the highest level whose threshold is <= ``users``."""
    selected = ALTITUDE_LEVELS[0]
    for level in ALTITUDE_LEVELS:
        if users >= level.threshold:
            selected = level
        else:
            break
    return selected


def next_level(level: AltitudeLevel) -> Optional[AltitudeLevel]:
    index = ALTITUDE_LEVELS.index(level)
    if index + 1 >= len(ALTITUDE_LEVELS):
        return None
    return ALTITUDE_LEVELS[index + 1]


def altitude_for(users: int) -> Altitude:
    """Interpolate the altitude of ``users`` inside its level's bracket."""
    level = level_for(users)
    upper = next_level(level)
    if upper is None or level.start == level.end:
        return Altitude(value=level.start, unit=level.unit)
    fraction = (users - level.threshold) / (upper.threshold - level.threshold)
    return Altitude(value=int(level.start + (level.end - level.start) * fraction), unit=level.unit)


def percent_to_next(users: int) -> int:
    level = level_for(users)
    upper = next_level(level)
    if upper is None:
        return 100
    span = upper.threshold - level.threshold
    return max(0, min(100, (users - level.threshold) * 100 // span))


def estimate_hours(effort_minutes: int) -> float:
    return round(effort_minutes / 60, 2)


def estimate_cost(hours: float) -> int:
    return round_half_up(hours * HOURLY_RATE)


class CapacityAggregator:
    """Joins category results into an analysis and a capacity report.

    ``rule_points`` maps a gap id to the points its rule is worth; it is used
    to estimate how many users fixing that gap would unlock.
    """

    def __init__(self, rule_points: Optional[Callable[[str], int]] = None) -> None:
        self.rule_points = rule_points or (lambda gap_id: 0)
        self.logger = get_logger("capacity")

    def aggregate(
        self,
        repo_url: str,
        profile: TechStackProfile,
        categories: Sequence[CategoryScore],
    ) -> CompletenessAnalysis:
        if not categories:
            raise AggregationError(f"no applicable categories for platform '{profile.platform}'")

        by_name = {item.category: item for item in categories}
        ordered = tuple(by_name[name] for name in CATEGORIES if name in by_name)
        unknown = sorted(set(by_name) - set(CATEGORIES))
        if unknown:
            raise AggregationError(f"unknown categories: {', '.join(unknown)}")

        gaps = [gap for item in ordered for gap in item.gaps]
        analysis = CompletenessAnalysis(
            repo_url=repo_url,
            tech_stack=profile,
            overall_score=overall_score(item.score for item in ordered),
            categories=ordered,
            total_gaps=len(gaps),
            blocker_count=_count(gaps, "blocker"),
            critical_count=_count(gaps, "critical"),
            warning_count=_count(gaps, "warning"),
            estimated_fix_minutes=sum(gap.effort_minutes for gap in gaps),
            can_auto_fix=sum(1 for gap in gaps if gap.fix_type == "instant"),
        )
        self.logger.debug(
            "Aggregated %d categories: overall=%d gaps=%d",
            len(ordered),
            analysis.overall_score,
            analysis.total_gaps,
        )
        return analysis

    def capacity(self, analysis: CompletenessAnalysis) -> CapacityReport:
        scores = {item.category: item.score for item in analysis.categories}
        bottleneck = select_bottleneck(scores)
        users = ceiling_for(bottleneck, scores[bottleneck]) * analysis.overall_score // 100
        level = level_for(users)

        category_capacity = tuple(
            CategoryCapacity(
                category=item.category,
                score=item.score,
                tier=tier_for(item.score),
                max_users=ceiling_for(item.category, item.score),
                status=_status(item, bottleneck),
            )
            for item in analysis.categories
        )

        report = CapacityReport(
            current_altitude=altitude_for(users),
            altitude_level=level.name,
            max_concurrent_users=users,
            bottleneck=bottleneck,
            categories=category_capacity,
            to_next_level=self._next_level(analysis, scores, bottleneck, users, level),
        )
        self.logger.debug(
            "Capacity: %s users=%d bottleneck=%s", level.name, users, bottleneck
        )
        return report

    def remediation(
        self,
        analysis: CompletenessAnalysis,
        scores: Mapping[str, int],
        bottleneck: str,
        users: int,
    ) -> List[RemediationItem]:
        """Prioritise gaps by the users they unlock, cheapest first on ties."""
        items: List[RemediationItem] = []
        for item in analysis.categories:
            if item.category != bottleneck and item.score >= HEALTHY_SCORE:
                continue
            for gap in item.gaps:
                hours = estimate_hours(gap.effort_minutes)
                items.append(
                    RemediationItem(
                        gap=gap,
                        impact_users=self._impact(gap, scores, users),
                        estimated_hours=hours,
                        estimated_cost=estimate_cost(hours),
                    )
                )
        items.sort(key=lambda entry: (-entry.impact_users, entry.gap.effort_minutes))
        return items

    def _impact(self, gap: Gap, scores: Mapping[str, int], users: int) -> int:
        points = self.rule_points(gap.id)
        if points <= 0:
            return 0
        raised = dict(scores)
        raised[gap.category] = min(100, raised[gap.category] + points)
        return max(0, effective_users(raised) - users)

    def _next_level(
        self,
        analysis: CompletenessAnalysis,
        scores: Mapping[str, int],
        bottleneck: str,
        users: int,
        level: AltitudeLevel,
    ) -> Optional[NextLevel]:
        upper = next_level(level)
        if upper is None:
            return None
        fixes = tuple(self.remediation(analysis, scores, bottleneck, users))
        hours = round(sum(item.estimated_hours for item in fixes), 2)
        return NextLevel(
            level=upper.name,
            users_needed=upper.threshold - users,
            fixes=fixes,
            estimated_hours=hours,
            estimated_cost=sum(item.estimated_cost for item in fixes),
            percent_to_next=percent_to_next(users),
        )


def _count(gaps: Sequence[Gap], severity: str) -> int:
    return sum(1 for gap in gaps if gap.severity == severity)


def _status(item: CategoryScore, bottleneck: str) -> str:
    if item.category == bottleneck:
        return "bottleneck"
    if item.score < 40:
        return "critical"
    if item.score < HEALTHY_SCORE:
        return "warning"
    return "good"


__all__ = [
    "ALTITUDE_LEVELS",
    "AggregationError",
    "AltitudeLevel",
    "CapacityAggregator",
    "HOURLY_RATE",
    "TIER_CEILINGS",
    "TIER_THRESHOLDS",
    "altitude_for",
    "ceiling_for",
    "effective_users",
    "level_for",
    "overall_score",
    "percent_to_next",
    "select_bottleneck",
    "tier_for",
]
