"""Core data models shared across inprod components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class RepoFile:
    """A single repository file as supplied by the retrieval collaborator."""

    path: str
    content: str
    size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"path": self.path, "content": self.content, "size": self.size}


@dataclass(frozen=True)
class TechStackProfile:
    """Technology profile inferred once per analysis."""

    platform: str
    languages: Tuple[str, ...] = ()
    frameworks: Tuple[str, ...] = ()
    package_manager: Optional[str] = None
    database: Optional[str] = None
    test_framework: Optional[str] = None
    ci_provider: Optional[str] = None
    deployment_platform: Optional[str] = None
    maturity_level: str = "prototype"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "languages": list(self.languages),
            "frameworks": list(self.frameworks),
            "packageManager": self.package_manager,
            "database": self.database,
            "testFramework": self.test_framework,
            "ciProvider": self.ci_provider,
            "deploymentPlatform": self.deployment_platform,
            "maturityLevel": self.maturity_level,
        }


@dataclass(frozen=True)
class Gap:
    """A detected deficiency tied to one rule of one category."""

    id: str
    category: str
    title: str
    description: str
    severity: str
    confidence: str
    fix_type: str
    file: Optional[str] = None
    line: Optional[int] = None
    fix_template: Optional[str] = None
    effort_minutes: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "severity": self.severity,
            "confidence": self.confidence,
            "fixType": self.fix_type,
            "effortMinutes": self.effort_minutes,
        }
        if self.file is not None:
            data["file"] = self.file
        if self.line is not None:
            data["line"] = self.line
        if self.fix_template is not None:
            data["fixTemplate"] = self.fix_template
        return data


@dataclass(frozen=True)
class CategoryScore:
    """Score, detected signals and gaps for one category."""

    category: str
    label: str
    score: int
    detected: Tuple[str, ...] = ()
    gaps: Tuple[Gap, ...] = ()
    can_generate: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "label": self.label,
            "score": self.score,
            "detected": list(self.detected),
            "gaps": [gap.to_dict() for gap in self.gaps],
            "canGenerate": self.can_generate,
        }


@dataclass(frozen=True)
class CompletenessAnalysis:
    """Aggregated production-readiness assessment for one corpus."""

    repo_url: str
    tech_stack: TechStackProfile
    overall_score: int
    categories: Tuple[CategoryScore, ...]
    total_gaps: int
    blocker_count: int
    critical_count: int
    warning_count: int
    estimated_fix_minutes: int
    can_auto_fix: int

    def category(self, name: str) -> Optional[CategoryScore]:
        """Return the score for ``name`` or None when it is not applicable."""
        for item in self.categories:
            if item.category == name:
                return item
        return None

    def all_gaps(self) -> Tuple[Gap, ...]:
        return tuple(gap for item in self.categories for gap in item.gaps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "repoUrl": self.repo_url,
            "techStack": self.tech_stack.to_dict(),
            "overallScore": self.overall_score,
            "categories": [item.to_dict() for item in self.categories],
            "totalGaps": self.total_gaps,
            "blockerCount": self.blocker_count,
            "criticalCount": self.critical_count,
            "warningCount": self.warning_count,
            "estimatedFixMinutes": self.estimated_fix_minutes,
            "canAutoFix": self.can_auto_fix,
        }


@dataclass(frozen=True)
class Altitude:
    value: int
    unit: str

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "unit": self.unit}


@dataclass(frozen=True)
class CategoryCapacity:
    """Per-category ceiling derived from the category's tier."""

    category: str
    score: int
    tier: int
    max_users: int
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "score": self.score,
            "tier": self.tier,
            "maxUsers": self.max_users,
            "status": self.status,
        }


@dataclass(frozen=True)
class RemediationItem:
    """A gap annotated with its estimated capacity impact and cost."""

    gap: Gap
    impact_users: int
    estimated_hours: float
    estimated_cost: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gap": self.gap.to_dict(),
            "impactUsers": self.impact_users,
            "estimatedHours": self.estimated_hours,
            "estimatedCost": self.estimated_cost,
        }


@dataclass(frozen=True)
class NextLevel:
    level: str
    users_needed: int
    fixes: Tuple[RemediationItem, ...]
    estimated_hours: float
    estimated_cost: int
    percent_to_next: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "usersNeeded": self.users_needed,
            "fixes": [item.to_dict() for item in self.fixes],
            "estimatedHours": self.estimated_hours,
            "estimatedCost": self.estimated_cost,
            "percentToNext": self.percent_to_next,
        }


@dataclass(frozen=True)
class CapacityReport:
    """Bottleneck-driven capacity estimate for an analysis."""

    current_altitude: Altitude
    altitude_level: str
    max_concurrent_users: int
    bottleneck: str
    categories: Tuple[CategoryCapacity, ...] = ()
    to_next_level: Optional[NextLevel] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentAltitude": self.current_altitude.to_dict(),
            "altitudeLevel": self.altitude_level,
            "maxConcurrentUsers": self.max_concurrent_users,
            "bottleneck": self.bottleneck,
            "categories": [item.to_dict() for item in self.categories],
            "toNextLevel": self.to_next_level.to_dict() if self.to_next_level else None,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of a top-level analysis call; failures are values, not exceptions."""

    ok: bool
    analysis: Optional[CompletenessAnalysis] = None
    capacity: Optional[CapacityReport] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "capacity": self.capacity.to_dict() if self.capacity else None,
            "error": self.error,
        }
