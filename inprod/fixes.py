"""Fix eligibility, completion planning and generator dispatch."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .constants import CATEGORIES, SEVERITIES
from .corpus import FileCorpus
from .logging import get_logger
from .models import CompletenessAnalysis, Gap, RepoFile, TechStackProfile

logger = get_logger("fixes")


@dataclass(frozen=True)
class FixSelection:
    """Which gaps a caller wants fixed.

    Explicit gap ids take precedence over ``instant_only``, which takes
    precedence over categories. An empty selection means every instant gap.
    """

    gap_ids: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    instant_only: bool = False


@dataclass(frozen=True)
class FixGroup:
    category: str
    gaps: Tuple[Gap, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"category": self.category, "gaps": [gap.to_dict() for gap in self.gaps]}


def instant_fix_gaps(analysis: CompletenessAnalysis) -> List[Gap]:
    return [gap for gap in analysis.all_gaps() if gap.fix_type == "instant"]


class FixEligibilityClassifier:
    """Selects gaps for remediation and groups them by category."""

    def select(
        self,
        analysis: CompletenessAnalysis,
        selection: Optional[FixSelection] = None,
    ) -> List[FixGroup]:
        selection = selection or FixSelection()
        if selection.gap_ids:
            wanted = set(selection.gap_ids)
            targets = [gap for gap in analysis.all_gaps() if gap.id in wanted]
        elif selection.instant_only:
            targets = instant_fix_gaps(analysis)
        elif selection.categories:
            chosen = set(selection.categories)
            targets = [gap for gap in analysis.all_gaps() if gap.category in chosen]
        else:
            targets = instant_fix_gaps(analysis)
        return group_by_category(targets)


def group_by_category(gaps: Iterable[Gap]) -> List[FixGroup]:
    """Group ``gaps`` in category declaration order, keeping gap order within a group."""
    grouped: Dict[str, List[Gap]] = {}
    for gap in gaps:
        grouped.setdefault(gap.category, []).append(gap)
    return [
        FixGroup(category=category, gaps=tuple(grouped[category]))
        for category in CATEGORIES
        if grouped.get(category)
    ]


@dataclass(frozen=True)
class PlanEntry:
    category: str
    gaps: Tuple[Gap, ...]
    estimated_files: int
    estimated_minutes: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "gaps": [gap.to_dict() for gap in self.gaps],
            "estimatedFiles": self.estimated_files,
            "estimatedMinutes": self.estimated_minutes,
        }


@dataclass(frozen=True)
class CompletionPlan:
    categories: Tuple[PlanEntry, ...]
    total_files: int
    total_minutes: int
    priority: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "categories": [entry.to_dict() for entry in self.categories],
            "totalFiles": self.total_files,
            "totalMinutes": self.total_minutes,
            "priority": list(self.priority),
        }


def build_completion_plan(groups: Sequence[FixGroup]) -> CompletionPlan:
    entries = tuple(
        PlanEntry(
            category=group.category,
            gaps=group.gaps,
            estimated_files=_estimated_files(group.gaps),
            estimated_minutes=sum(gap.effort_minutes for gap in group.gaps),
        )
        for group in groups
    )

    def _priority_key(group: FixGroup) -> Tuple[int, int]:
        worst = min(SEVERITIES.index(gap.severity) for gap in group.gaps)
        return worst, CATEGORIES.index(group.category)

    return CompletionPlan(
        categories=entries,
        total_files=sum(entry.estimated_files for entry in entries),
        total_minutes=sum(entry.estimated_minutes for entry in entries),
        priority=tuple(group.category for group in sorted(groups, key=_priority_key)),
    )


def _estimated_files(gaps: Sequence[Gap]) -> int:
    templates = {gap.fix_template for gap in gaps if gap.fix_template}
    return len(templates) + sum(1 for gap in gaps if not gap.fix_template)


# Generator collaborators


@dataclass(frozen=True)
class RepoContext:
    """Read-only repository view handed to fix generators."""

    files: Tuple[RepoFile, ...]
    tech_stack: TechStackProfile
    package_json: Optional[Mapping[str, Any]] = None
    readme: Optional[str] = None

    @classmethod
    def from_corpus(cls, corpus: FileCorpus, profile: TechStackProfile) -> "RepoContext":
        package_json: Optional[Mapping[str, Any]] = None
        manifest = corpus.get("package.json")
        if manifest is not None:
            try:
                loaded = json.loads(manifest.content)
            except (ValueError, RecursionError) as exc:
                logger.debug("Ignoring unreadable package.json: %s", exc)
            else:
                package_json = loaded if isinstance(loaded, dict) else None

        readme = corpus.get("README.md", case_sensitive=False)
        return cls(
            files=corpus.files,
            tech_stack=profile,
            package_json=package_json,
            readme=readme.content if readme else None,
        )


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str
    language: str
    category: str
    confidence: int
    is_modification: bool = False
    original_content: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "path": self.path,
            "content": self.content,
            "language": self.language,
            "category": self.category,
            "confidence": self.confidence,
            "isModification": self.is_modification,
        }
        if self.original_content is not None:
            data["originalContent"] = self.original_content
        if self.description is not None:
            data["description"] = self.description
        return data


class FixGenerator(ABC):
    """Produces files that remediate gaps of the categories it handles."""

    categories: Tuple[str, ...] = ()

    def handles(self, category: str) -> bool:
        return category in self.categories

    @abstractmethod
    def generate(self, context: RepoContext, gaps: Sequence[Gap]) -> Sequence[GeneratedFile]:
        """Return generated or modified files for ``gaps``."""


def dispatch_fixes(
    context: RepoContext,
    groups: Sequence[FixGroup],
    generators: Sequence[FixGenerator],
) -> List[GeneratedFile]:
    """Run each generator over its groups; a failing generator is skipped."""
    generated: List[GeneratedFile] = []
    for group in groups:
        for generator in generators:
            if not generator.handles(group.category):
                continue
            try:
                files = generator.generate(context, group.gaps)
            except Exception as exc:
                logger.warning(
                    "Generator %s failed for %s: %s",
                    type(generator).__name__,
                    group.category,
                    exc,
                )
                logger.debug("Generator traceback", exc_info=True)
                continue
            generated.extend(files)
    logger.debug("Generated %d files for %d groups", len(generated), len(groups))
    return generated


__all__ = [
    "CompletionPlan",
    "FixEligibilityClassifier",
    "FixGenerator",
    "FixGroup",
    "FixSelection",
    "GeneratedFile",
    "PlanEntry",
    "RepoContext",
    "build_completion_plan",
    "dispatch_fixes",
    "group_by_category",
    "instant_fix_gaps",
]
