"""Fail-closed category results for scorers that could not run."""

from __future__ import annotations

from typing import Optional

from .constants import category_label
from .models import CategoryScore, Gap

FAILED_GAP_SUFFIX = "-analysis-failed"


def build_failed_category(
    category: str,
    *,
    platform: Optional[str] = None,
    reason: Optional[str] = None,
    file: Optional[str] = None,
) -> CategoryScore:
    """Return a zero score carrying a single gap that explains the failure."""
    label = category_label(category, platform)
    cleaned_reason = _format_reason(reason)
    description = f"{label} could not be evaluated, so it is scored as failing."
    if cleaned_reason:
        description = f"{description} Cause: {cleaned_reason}."
    gap = Gap(
        id=failed_gap_id(category),
        category=category,
        title=f"{label} analysis failed",
        description=description,
        severity="critical",
        confidence="possible",
        fix_type="guided",
        file=file,
        effort_minutes=30,
    )
    return CategoryScore(
        category=category,
        label=label,
        score=0,
        detected=(),
        gaps=(gap,),
        can_generate=False,
    )


def failed_gap_id(category: str) -> str:
    return f"{category}{FAILED_GAP_SUFFIX}"


def _format_reason(reason: Optional[str]) -> Optional[str]:
    if not reason:
        return None
    cleaned = " ".join(str(reason).split())
    cleaned = cleaned.rstrip(".")
    if len(cleaned) > 200:
        cleaned = cleaned[:197].rstrip() + "..."
    return cleaned or None


__all__ = ["FAILED_GAP_SUFFIX", "build_failed_category", "failed_gap_id"]
