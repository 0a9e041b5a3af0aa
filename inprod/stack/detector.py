"""Technology-stack inference over a file corpus."""

from __future__ import annotations

from collections import Counter
from pathlib import PurePosixPath
from typing import Dict, List, Optional, Sequence, Tuple

from ..corpus import PRIMARY_MANIFESTS, FileCorpus
from ..logging import get_logger
from ..models import TechStackProfile
from .signatures import SIGNATURES, Signature

_LANGUAGE_BY_SUFFIX = {
    ".py": "Python",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".java": "Java",
    ".kt": "Kotlin",
    ".kts": "Kotlin",
    ".go": "Go",
    ".rs": "Rust",
    ".rb": "Ruby",
    ".php": "PHP",
    ".cs": "C#",
    ".c": "C",
    ".h": "C",
    ".cpp": "C++",
    ".hpp": "C++",
    ".cc": "C++",
    ".swift": "Swift",
    ".m": "Objective-C",
    ".mm": "Objective-C++",
    ".scala": "Scala",
    ".dart": "Dart",
    ".ex": "Elixir",
    ".exs": "Elixir",
    ".sh": "Shell",
}

# Directories whose manifests describe fixtures rather than independent projects.
_NON_PROJECT_SEGMENTS = {"examples", "example", "fixtures", "__fixtures__", "test", "tests", "docs"}

_FRAMEWORK_KINDS: tuple[str, ...] = (
    "ui_framework",
    "server_framework",
    "cli_framework",
    "mobile_framework",
)


class TechStackDetector:
    """Infers a :class:`TechStackProfile` from a corpus.

    Every signature is evaluated against the whole corpus, which is iterated in
    path order, so the result never depends on the order files were supplied
    in. When several signatures of one kind match, the earliest declared wins.
    """

    def __init__(self, signatures: Sequence[Signature] = SIGNATURES) -> None:
        self.signatures = tuple(signatures)
        self.logger = get_logger("stack")

    def detect(self, corpus: FileCorpus) -> TechStackProfile:
        matched = self._match(corpus)

        frameworks: List[str] = []
        for kind in _FRAMEWORK_KINDS:
            for technology in matched.get(kind, []):
                if technology not in frameworks:
                    frameworks.append(technology)

        test_framework = _first(matched, "test_framework")
        ci_provider = _first(matched, "ci")
        deployment_platform = _first(matched, "deployment")
        has_tests = test_framework is not None or bool(corpus.test_files())

        profile = TechStackProfile(
            platform=self._platform(corpus, matched),
            languages=self._languages(corpus),
            frameworks=tuple(frameworks),
            package_manager=_first(matched, "package_manager"),
            database=_first(matched, "database"),
            test_framework=test_framework,
            ci_provider=ci_provider,
            deployment_platform=deployment_platform,
            maturity_level=_maturity(has_tests, ci_provider is not None, deployment_platform is not None),
        )
        self.logger.debug(
            "Detected platform=%s frameworks=%s maturity=%s",
            profile.platform,
            ", ".join(profile.frameworks) or "-",
            profile.maturity_level,
        )
        return profile

    def _match(self, corpus: FileCorpus) -> Dict[str, List[str]]:
        matched: Dict[str, List[str]] = {}
        for signature in self.signatures:
            if signature.matches(corpus):
                matched.setdefault(signature.kind, []).append(signature.technology)
        return matched

    def _platform(self, corpus: FileCorpus, matched: Dict[str, List[str]]) -> str:
        has_ui = bool(matched.get("ui_framework"))
        if _is_monorepo(corpus, matched):
            return "monorepo"
        if matched.get("ios"):
            return "ios"
        if matched.get("android"):
            return "android"
        if _has_cli_entry(corpus, matched) and not has_ui:
            return "cli"
        if matched.get("server_framework") and not has_ui:
            return "backend"
        if has_ui:
            return "web"
        return "library"

    @staticmethod
    def _languages(corpus: FileCorpus) -> Tuple[str, ...]:
        counts: Counter[str] = Counter()
        for item in corpus:
            language = _LANGUAGE_BY_SUFFIX.get(PurePosixPath(item.path).suffix.lower())
            if language is not None:
                counts[language] += 1
        ordered = sorted(counts.items(), key=lambda entry: (-entry[1], entry[0]))
        return tuple(language for language, _ in ordered)


def _first(matched: Dict[str, List[str]], kind: str) -> Optional[str]:
    items = matched.get(kind)
    return items[0] if items else None


def _has_cli_entry(corpus: FileCorpus, matched: Dict[str, List[str]]) -> bool:
    if matched.get("cli_entry") or matched.get("cli_framework"):
        return True
    return any(
        manifest.entry_points and manifest.directory == ""
        for manifest in corpus.manifests.manifests
    )


def _is_monorepo(corpus: FileCorpus, matched: Dict[str, List[str]]) -> bool:
    if matched.get("workspace"):
        return True
    if any(manifest.workspaces for manifest in corpus.manifests.manifests):
        return True

    directories = set()
    for path in corpus.paths:
        pure = PurePosixPath(path)
        if pure.name not in PRIMARY_MANIFESTS:
            continue
        if any(part in _NON_PROJECT_SEGMENTS for part in pure.parts[:-1]):
            continue
        parent = pure.parent.as_posix()
        directories.add("" if parent == "." else parent)
    return len(directories) >= 2


def _maturity(has_tests: bool, has_ci: bool, has_deployment: bool) -> str:
    if has_tests and has_ci:
        return "production" if has_deployment else "mvp"
    if has_tests or has_ci:
        return "mvp"
    return "prototype"


__all__ = ["TechStackDetector"]
