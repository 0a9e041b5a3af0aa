"""Base classes and rule primitives for category scorers."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from ..constants import PLATFORM_CATEGORIES, category_label
from ..corpus import FileCorpus, is_test_path
from ..models import CategoryScore, Gap, TechStackProfile
from ..stack.signatures import SIGNATURES

Predicate = Callable[[FileCorpus, TechStackProfile], bool]


@dataclass(frozen=True)
class Evidence:
    """Location that triggered a penalty."""

    file: str
    line: Optional[int] = None


Finder = Callable[[FileCorpus, TechStackProfile], Optional[Evidence]]


@dataclass(frozen=True)
class Check:
    """A positive checklist item; unmet checks become gaps with the check's id."""

    id: str
    signal: str
    points: int
    title: str
    description: str
    severity: str
    confidence: str
    fix_type: str
    effort_minutes: int
    predicate: Predicate
    fix_template: Optional[str] = None

    def gap(self, category: str) -> Gap:
        return Gap(
            id=self.id,
            category=category,
            title=self.title,
            description=self.description,
            severity=self.severity,
            confidence=self.confidence,
            fix_type=self.fix_type,
            fix_template=self.fix_template,
            effort_minutes=self.effort_minutes,
        )


@dataclass(frozen=True)
class Penalty:
    """A condition that subtracts points and reports where it was found."""

    id: str
    points: int
    title: str
    description: str
    severity: str
    confidence: str
    fix_type: str
    effort_minutes: int
    finder: Finder
    fix_template: Optional[str] = None

    def gap(self, category: str, evidence: Evidence) -> Gap:
        return Gap(
            id=self.id,
            category=category,
            title=self.title,
            description=self.description,
            severity=self.severity,
            confidence=self.confidence,
            fix_type=self.fix_type,
            file=evidence.file,
            line=evidence.line,
            fix_template=self.fix_template,
            effort_minutes=self.effort_minutes,
        )


class CategoryScorer(ABC):
    """Contract for scorers that turn a corpus into one category score."""

    category: str = ""

    def supports(self, profile: TechStackProfile) -> bool:
        """Return True when the category applies to the detected platform."""
        return self.category in PLATFORM_CATEGORIES.get(profile.platform, ())

    @abstractmethod
    def score(self, corpus: FileCorpus, profile: TechStackProfile) -> CategoryScore:
        """Evaluate the category; must be pure and side-effect free."""


class RuleBasedScorer(CategoryScorer):
    """Scores a category from a fixed checklist and penalty table.

    Met checks add their points, triggered penalties subtract theirs and the
    sum is clamped to [0, 100]. Scorers that read dependency data fail closed
    on malformed manifests by raising before any rule runs.
    """

    checks: Tuple[Check, ...] = ()
    penalties: Tuple[Penalty, ...] = ()
    requires_manifests: bool = True

    def score(self, corpus: FileCorpus, profile: TechStackProfile) -> CategoryScore:
        if self.requires_manifests:
            corpus.manifests.require_valid()

        total = 0
        detected: List[str] = []
        gaps: List[Gap] = []
        for check in self.checks:
            if check.predicate(corpus, profile):
                total += check.points
                detected.append(check.signal)
            else:
                gaps.append(check.gap(self.category))

        for penalty in self.penalties:
            evidence = penalty.finder(corpus, profile)
            if evidence is not None:
                total -= penalty.points
                gaps.append(penalty.gap(self.category, evidence))

        return CategoryScore(
            category=self.category,
            label=category_label(self.category, profile.platform),
            score=max(0, min(100, total)),
            detected=tuple(detected),
            gaps=tuple(gaps),
            can_generate=any(gap.fix_type == "instant" for gap in gaps),
        )

    def rule_points(self) -> dict[str, int]:
        """Return ``gap id -> points`` for every check and penalty."""
        points = {check.id: check.points for check in self.checks}
        points.update({penalty.id: penalty.points for penalty in self.penalties})
        return points


# Rule helpers shared by the category modules

SOURCE_GLOBS: tuple[str, ...] = (
    "*.ts",
    "*.tsx",
    "*.js",
    "*.jsx",
    "*.mjs",
    "*.cjs",
    "*.vue",
    "*.svelte",
    "*.astro",
    "*.py",
    "*.go",
    "*.rs",
    "*.rb",
    "*.php",
    "*.java",
    "*.kt",
    "*.swift",
    "*.dart",
    "*.cs",
    "*.ex",
)
UI_GLOBS: tuple[str, ...] = (
    "*.tsx",
    "*.jsx",
    "*.vue",
    "*.svelte",
    "*.astro",
    "*.html",
    "*.swift",
    "*.kt",
    "*.dart",
    "*.xml",
)
STYLE_GLOBS: tuple[str, ...] = ("*.css", "*.scss", "*.sass", "*.less")
CI_GLOBS: tuple[str, ...] = (
    ".github/workflows/*.yml",
    ".github/workflows/*.yaml",
    ".gitlab-ci.yml",
    ".circleci/config.yml",
    "Jenkinsfile",
    "azure-pipelines.yml",
    "bitbucket-pipelines.yml",
    ".travis.yml",
)


def dep(*names: str, prefixes: Tuple[str, ...] = ()) -> Predicate:
    wanted = frozenset(name.lower() for name in names)

    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        dependencies = corpus.manifests.dependencies
        if wanted & dependencies:
            return True
        return bool(prefixes) and any(name.startswith(prefixes) for name in dependencies)

    return _predicate


def path(*patterns: str) -> Predicate:
    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return corpus.has(*patterns)

    return _predicate


def text(
    pattern: str,
    *,
    globs: Sequence[str] = SOURCE_GLOBS,
    include_tests: bool = False,
    flags: int = re.MULTILINE,
) -> Predicate:
    regex = re.compile(pattern, flags)

    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return corpus.contains(regex, globs=globs, include_tests=include_tests)

    return _predicate


def script(*names: str) -> Predicate:
    """Root package.json defines a non-placeholder script with one of ``names``."""

    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        scripts = corpus.manifests.scripts()
        return any(
            scripts.get(name) and "no test specified" not in scripts[name] for name in names
        )

    return _predicate


def root_file(*names: str) -> Predicate:
    """A file with one of ``names`` exists at the repository root (any case)."""

    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return corpus.exists(*names, case_sensitive=False)

    return _predicate


def has_test_files(corpus: FileCorpus, profile: TechStackProfile) -> bool:
    return bool(corpus.test_files())


def detected(*kinds: str) -> Predicate:
    """The profile lists a framework of one of the signature ``kinds``."""
    technologies = frozenset(
        signature.technology for signature in SIGNATURES if signature.kind in kinds
    )

    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return any(name in technologies for name in profile.frameworks)

    return _predicate


def profile_has(attribute: str) -> Predicate:
    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return getattr(profile, attribute) is not None

    return _predicate


def language(*names: str) -> Predicate:
    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return any(name in profile.languages for name in names)

    return _predicate


def any_of(*predicates: Predicate) -> Predicate:
    def _predicate(corpus: FileCorpus, profile: TechStackProfile) -> bool:
        return any(predicate(corpus, profile) for predicate in predicates)

    return _predicate


def find_text(
    pattern: str,
    *,
    globs: Sequence[str] = SOURCE_GLOBS,
    flags: int = re.MULTILINE,
) -> Finder:
    """Locate the first non-test occurrence of ``pattern``."""
    regex = re.compile(pattern, flags)

    def _finder(corpus: FileCorpus, profile: TechStackProfile) -> Optional[Evidence]:
        found = corpus.search(regex, globs=globs, include_tests=False)
        if found is None:
            return None
        item, line = found
        return Evidence(file=item.path, line=line)

    return _finder


def find_path(*patterns: str) -> Finder:
    def _finder(corpus: FileCorpus, profile: TechStackProfile) -> Optional[Evidence]:
        for item in corpus.glob(*patterns):
            if not is_test_path(item.path):
                return Evidence(file=item.path)
        return None

    return _finder


__all__ = [
    "CI_GLOBS",
    "CategoryScorer",
    "Check",
    "Evidence",
    "Penalty",
    "RuleBasedScorer",
    "SOURCE_GLOBS",
    "STYLE_GLOBS",
    "UI_GLOBS",
    "any_of",
    "dep",
    "detected",
    "find_path",
    "find_text",
    "has_test_files",
    "language",
    "path",
    "profile_has",
    "root_file",
    "script",
    "text",
]
