"""Human-readable Markdown summary of an analysis."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from jinja2 import Environment, FileSystemLoader

from .constants import SEVERITIES
from .models import CapacityReport, CompletenessAnalysis, Gap

_TEMPLATE_NAME = "summary.md.j2"
_TOP_GAP_LIMIT = 5


def _create_env() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


_ENV = _create_env()


def format_analysis_summary(
    analysis: CompletenessAnalysis,
    capacity: Optional[CapacityReport] = None,
) -> str:
    """Render ``analysis`` (and optionally its capacity report) as Markdown."""
    stack = analysis.tech_stack
    bottleneck_label = None
    if capacity is not None:
        bottleneck = analysis.category(capacity.bottleneck)
        bottleneck_label = bottleneck.label if bottleneck else capacity.bottleneck

    rendered = _ENV.get_template(_TEMPLATE_NAME).render(
        analysis=analysis,
        stack=stack,
        details=_stack_details(analysis),
        hours=round(analysis.estimated_fix_minutes / 60, 1),
        top_gaps=_top_gaps(analysis.all_gaps()),
        capacity=capacity,
        bottleneck_label=bottleneck_label,
    )
    return rendered.strip() + "\n"


def _stack_details(analysis: CompletenessAnalysis) -> List[Tuple[str, str]]:
    stack = analysis.tech_stack
    candidates = (
        ("Package manager", stack.package_manager),
        ("Database", stack.database),
        ("Test framework", stack.test_framework),
        ("CI", stack.ci_provider),
        ("Deployment", stack.deployment_platform),
    )
    return [(label, value) for label, value in candidates if value]


def _top_gaps(gaps: Tuple[Gap, ...]) -> List[Gap]:
    ranked = sorted(gaps, key=lambda gap: SEVERITIES.index(gap.severity))
    return [gap for gap in ranked if gap.severity in ("blocker", "critical")][:_TOP_GAP_LIMIT]


__all__ = ["format_analysis_summary"]
