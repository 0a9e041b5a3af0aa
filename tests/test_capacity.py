"""Tests for tiers, bottleneck selection, altitude levels and remediation ordering."""

from __future__ import annotations

from typing import Dict, Sequence

import pytest

from inprod.capacity import (
    AggregationError,
    CapacityAggregator,
    altitude_for,
    ceiling_for,
    estimate_cost,
    estimate_hours,
    level_for,
    overall_score,
    percent_to_next,
    select_bottleneck,
    tier_for,
)
from inprod.constants import CATEGORIES
from inprod.models import Altitude, CategoryScore, Gap, TechStackProfile
from inprod.scorers import ScorerRegistry

WEB = TechStackProfile(platform="web")


def _gap(gap_id: str, category: str, effort: int, severity: str = "warning") -> Gap:
    return Gap(
        id=gap_id,
        category=category,
        title=gap_id,
        description=gap_id,
        severity=severity,
        confidence="likely",
        fix_type="suggested",
        effort_minutes=effort,
    )


def _categories(scores: Dict[str, int], gaps: Sequence[Gap] = ()) -> list[CategoryScore]:
    return [
        CategoryScore(
            category=category,
            label=category,
            score=scores.get(category, 100),
            gaps=tuple(gap for gap in gaps if gap.category == category),
        )
        for category in CATEGORIES
    ]


@pytest.mark.parametrize(
    ("users", "level"),
    [
        (0, "GROUNDED"),
        (1, "HANGAR"),
        (9, "HANGAR"),
        (10, "RUNWAY"),
        (99, "RUNWAY"),
        (100, "TAKEOFF"),
        (999, "TAKEOFF"),
        (1_000, "CLIMBING"),
        (99_999, "CRUISING"),
        (100_000, "STRATOSPHERE"),
        (10_000_000, "ORBIT"),
        (999_999_999, "GEOSTATIONARY"),
        (1_000_000_000, "VOYAGER"),
    ],
)
def test_level_breakpoints(users: int, level: str) -> None:
    assert level_for(users).name == level


@pytest.mark.parametrize(
    ("score", "tier"),
    [(0, 0), (19, 0), (20, 1), (39, 1), (40, 2), (59, 2), (60, 3), (79, 3), (80, 4), (89, 4), (90, 5), (100, 5)],
)
def test_tier_thresholds(score: int, tier: int) -> None:
    assert tier_for(score) == tier


def test_overall_score_rounds_half_up() -> None:
    assert overall_score([50, 51]) == 51
    assert overall_score([0, 0, 1]) == 0
    assert overall_score([100, 100]) == 100
    with pytest.raises(AggregationError):
        overall_score([])


def test_bottleneck_is_minimum_ceiling_with_declaration_tie_break() -> None:
    assert select_bottleneck({"designUx": 0, "stateManagement": 0}) == "stateManagement"
    assert select_bottleneck({"security": 95, "deployment": 10}) == "deployment"
    assert select_bottleneck({category: 100 for category in CATEGORIES}) == "database"


def test_altitude_interpolates_within_level() -> None:
    assert altitude_for(0) == Altitude(0, "ft")
    assert altitude_for(10) == Altitude(500, "ft")
    assert altitude_for(55) == Altitude(1_250, "ft")
    assert altitude_for(10_000_000) == Altitude(400, "km")
    assert altitude_for(5_000_000_000) == Altitude(24_000_000_000, "km")


def test_percent_to_next_is_floored() -> None:
    assert percent_to_next(0) == 0
    assert percent_to_next(55) == 50
    assert percent_to_next(99) == 98
    assert percent_to_next(1_000_000_000) == 100


def test_hours_and_cost_estimates() -> None:
    assert estimate_hours(90) == 1.5
    assert estimate_cost(1.5) == 225
    assert estimate_hours(20) == 0.33
    assert estimate_cost(estimate_hours(20)) == 50


def test_aggregate_counts_gaps_and_orders_categories() -> None:
    gaps = [
        _gap("sec-env-committed", "security", 30, severity="blocker"),
        _gap("testing-no-framework", "testing", 30, severity="critical"),
        _gap("vc-license", "versionControl", 5),
    ]
    shuffled = list(reversed(_categories({"security": 40, "testing": 0}, gaps)))

    analysis = CapacityAggregator().aggregate("repo", WEB, shuffled)

    assert [item.category for item in analysis.categories] == list(CATEGORIES)
    assert analysis.total_gaps == 3
    assert (analysis.blocker_count, analysis.critical_count, analysis.warning_count) == (1, 1, 1)
    assert analysis.estimated_fix_minutes == 65
    assert analysis.can_auto_fix == 0


def test_aggregate_rejects_empty_and_unknown_categories() -> None:
    aggregator = CapacityAggregator()

    with pytest.raises(AggregationError, match="no applicable categories"):
        aggregator.aggregate("repo", WEB, [])
    with pytest.raises(AggregationError, match="unknown categories: mystery"):
        aggregator.aggregate("repo", WEB, [CategoryScore(category="mystery", label="?", score=1)])


def test_perfect_scores_reach_orbit_through_database_ceiling() -> None:
    aggregator = CapacityAggregator()
    analysis = aggregator.aggregate("repo", WEB, _categories({}))

    report = aggregator.capacity(analysis)

    assert analysis.overall_score == 100
    assert report.bottleneck == "database"
    assert report.max_concurrent_users == ceiling_for("database", 100) == 10_000_000
    assert report.altitude_level == "ORBIT"
    assert report.current_altitude == Altitude(400, "km")
    assert report.to_next_level is not None
    assert report.to_next_level.level == "GEOSTATIONARY"
    assert report.to_next_level.users_needed == 90_000_000
    assert report.to_next_level.fixes == ()
    statuses = {item.category: item.status for item in report.categories}
    assert statuses["database"] == "bottleneck"
    assert set(statuses.values()) == {"bottleneck", "good"}


def test_effective_users_never_exceed_bottleneck_ceiling() -> None:
    aggregator = CapacityAggregator()
    for scores in ({"frontend": 10}, {"security": 55, "testing": 85}, {"deployment": 95}):
        analysis = aggregator.aggregate("repo", WEB, _categories(scores))
        report = aggregator.capacity(analysis)
        lowest = min(ceiling_for(item.category, item.score) for item in analysis.categories)
        assert report.max_concurrent_users <= lowest
        assert ceiling_for(report.bottleneck, analysis.category(report.bottleneck).score) == lowest


def test_remediation_prioritises_capacity_impact() -> None:
    registry = ScorerRegistry()
    gaps = [
        _gap("testing-no-test-files", "testing", 120, severity="critical"),
        _gap("testing-no-framework", "testing", 30, severity="critical"),
        _gap("ux-dark-mode", "designUx", 45),
        _gap("vc-license", "versionControl", 5),
    ]
    aggregator = CapacityAggregator(registry.rule_points)
    analysis = aggregator.aggregate(
        "repo",
        WEB,
        _categories({"testing": 0, "designUx": 50, "versionControl": 85}, gaps),
    )

    report = aggregator.capacity(analysis)

    assert report.bottleneck == "testing"
    assert report.max_concurrent_users == 86
    assert report.altitude_level == "RUNWAY"
    next_level = report.to_next_level
    assert next_level is not None
    assert next_level.level == "TAKEOFF"
    assert next_level.users_needed == 14
    assert next_level.percent_to_next == 84
    # healthy, non-bottleneck categories contribute nothing
    assert [item.gap.id for item in next_level.fixes] == [
        "testing-no-framework",
        "testing-no-test-files",
        "ux-dark-mode",
    ]
    impacts = [item.impact_users for item in next_level.fixes]
    assert impacts == sorted(impacts, reverse=True)
    assert impacts[0] > 0
    assert next_level.estimated_hours == round(0.5 + 2.0 + 0.75, 2)
    assert next_level.estimated_cost == 75 + 300 + 113
    statuses = {item.category: item.status for item in report.categories}
    assert (statuses["testing"], statuses["designUx"], statuses["versionControl"]) == (
        "bottleneck",
        "warning",
        "good",
    )


def test_unknown_gaps_have_no_impact_and_sort_by_effort() -> None:
    gaps = [
        _gap("testing-analysis-failed", "testing", 30, severity="critical"),
        _gap("custom-gap", "testing", 10),
    ]
    aggregator = CapacityAggregator(ScorerRegistry().rule_points)
    analysis = aggregator.aggregate("repo", WEB, _categories({"testing": 0}, gaps))

    fixes = aggregator.capacity(analysis).to_next_level.fixes

    assert [(item.gap.id, item.impact_users) for item in fixes] == [
        ("custom-gap", 0),
        ("testing-analysis-failed", 0),
    ]
