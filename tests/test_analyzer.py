"""End-to-end tests for the readiness analyzer."""

from __future__ import annotations

import json
import random
from typing import List

import pytest

from inprod.analyzer import ReadinessAnalyzer, analyze_repository
from inprod.capacity import AggregationError
from inprod.config import AnalysisConfig
from inprod.constants import CATEGORIES
from inprod.corpus import FileCorpus
from inprod.models import CategoryScore, CompletenessAnalysis, TechStackProfile
from inprod.scorers import ScorerRegistry
from tests._fixtures.corpus_builder import CorpusBuilder, web_app_files, web_app_with_tests_files


class EmptyRegistry(ScorerRegistry):
    def evaluate(self, corpus: FileCorpus, profile: TechStackProfile, **_: object) -> List[CategoryScore]:
        return []


def _gap_ids(analysis: CompletenessAnalysis, category: str) -> set[str]:
    return {gap.id for gap in analysis.category(category).gaps}


def test_minimal_web_app_has_testing_and_ci_gaps(
    corpus_builder: CorpusBuilder, analyzer: ReadinessAnalyzer
) -> None:
    corpus = corpus_builder.write(web_app_files()).corpus()

    analysis = analyzer.analyze_completeness("https://example.test/app", corpus)

    assert analysis.repo_url == "https://example.test/app"
    assert analysis.tech_stack.platform == "web"
    assert len(analysis.categories) == 12
    assert "testing-no-framework" in _gap_ids(analysis, "testing")
    assert "deploy-no-ci" in _gap_ids(analysis, "deployment")
    assert 0 < analysis.overall_score < 100


def test_adding_a_test_setup_improves_testing(
    corpus_builder: CorpusBuilder, analyzer: ReadinessAnalyzer
) -> None:
    before = analyzer.analyze_completeness("repo", corpus_builder.write(web_app_files()).records())
    after = analyzer.analyze_completeness("repo", corpus_builder.write(web_app_with_tests_files()).records())

    assert after.category("testing").score > before.category("testing").score
    assert "testing-no-framework" not in _gap_ids(after, "testing")
    assert after.overall_score >= before.overall_score
    assert after.tech_stack.test_framework == "vitest"


def test_adding_a_readme_never_lowers_scores(
    corpus_builder: CorpusBuilder, analyzer: ReadinessAnalyzer
) -> None:
    before = analyzer.analyze_completeness("repo", corpus_builder.write(web_app_files()).records())
    after = analyzer.analyze_completeness(
        "repo", corpus_builder.write({"README.md": "# App\n"}).records()
    )

    assert after.category("versionControl").score == before.category("versionControl").score + 25
    assert after.overall_score >= before.overall_score
    for previous, current in zip(before.categories, after.categories):
        assert current.score >= previous.score


def test_totals_match_the_gaps(corpus_builder: CorpusBuilder, analyzer: ReadinessAnalyzer) -> None:
    analysis = analyzer.analyze_completeness("repo", corpus_builder.write(web_app_files()).corpus())
    gaps = analysis.all_gaps()

    assert analysis.total_gaps == len(gaps)
    assert analysis.blocker_count == sum(1 for gap in gaps if gap.severity == "blocker")
    assert analysis.critical_count == sum(1 for gap in gaps if gap.severity == "critical")
    assert analysis.warning_count == sum(1 for gap in gaps if gap.severity == "warning")
    assert analysis.estimated_fix_minutes == sum(gap.effort_minutes for gap in gaps)
    assert analysis.can_auto_fix == sum(1 for gap in gaps if gap.fix_type == "instant")
    assert all(0 <= item.score <= 100 for item in analysis.categories)
    assert [item.category for item in analysis.categories] == list(CATEGORIES)


def test_output_is_independent_of_file_order(corpus_builder: CorpusBuilder) -> None:
    corpus_builder.write(web_app_with_tests_files())
    corpus_builder.write(
        {
            "README.md": "# App\n\nSet the environment variables in `.env.example`.\n",
            ".github/workflows/ci.yml": "jobs:\n  test:\n    steps:\n      - run: npm test\n",
            "src/lib/api.ts": "export async function load() {\n  try {\n    return await fetch('/x')\n  } catch (e) {}\n}\n",
        }
    )
    records = corpus_builder.records()
    shuffled = list(records)
    random.Random(3).shuffle(shuffled)

    sequential = ReadinessAnalyzer(config=AnalysisConfig(parallel=False))
    parallel = ReadinessAnalyzer(config=AnalysisConfig(parallel=True, max_workers=3))

    first = sequential.analyze_repository("repo", records).to_dict()
    second = parallel.analyze_repository("repo", shuffled).to_dict()

    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_analyze_repository_returns_capacity(corpus_builder: CorpusBuilder) -> None:
    records = [item.to_dict() for item in corpus_builder.write(web_app_files()).records()]

    result = analyze_repository("repo", records)

    assert result.ok is True
    assert result.error is None
    assert result.capacity is not None
    assert result.capacity.bottleneck in CATEGORIES
    assert result.to_dict()["capacity"]["altitudeLevel"] == result.capacity.altitude_level


def test_aggregation_failure_is_a_failed_result(corpus_builder: CorpusBuilder) -> None:
    analyzer = ReadinessAnalyzer(registry=EmptyRegistry(), config=AnalysisConfig(parallel=False))
    corpus = corpus_builder.write(web_app_files()).corpus()

    result = analyzer.analyze_repository("repo", corpus)

    assert result.ok is False
    assert result.analysis is None
    assert "no applicable categories for platform 'web'" in result.error
    with pytest.raises(AggregationError):
        analyzer.analyze_completeness("repo", corpus)


def test_malformed_manifest_never_raises(analyzer: ReadinessAnalyzer) -> None:
    result = analyzer.analyze_repository(
        "repo",
        [{"path": "package.json", "content": "{"}, {"path": "index.html", "content": "<h1>hi</h1>"}],
    )

    assert result.ok is True
    failed = [
        item.category
        for item in result.analysis.categories
        if item.gaps and item.gaps[0].id.endswith("-analysis-failed")
    ]
    assert result.analysis.tech_stack.platform == "library"
    assert "testing" in failed
    assert "versionControl" not in failed


@pytest.mark.parametrize(
    "path, content",
    [
        ("svc/pyproject.toml", "[project]\nname = 'x'\ndependencies = 5\n"),
        ("svc/pyproject.toml", "[project]\nname = 'x'\n\n[project.optional-dependencies]\ndev = 1\n"),
        ("svc/pyproject.toml", "[dependency-groups]\ntest = 'pytest'\n"),
        ("package.json", "[" * 200000),
        ("composer.json", "{\"a\": " * 200000),
    ],
)
def test_wrongly_typed_or_deep_manifest_fails_closed(
    analyzer: ReadinessAnalyzer, path: str, content: str
) -> None:
    records = [
        {"path": name, "content": body} for name, body in web_app_files().items() if name != path
    ]
    records.append({"path": path, "content": content})

    result = analyzer.analyze_repository("repo", records)

    assert result.ok is True
    failed = {
        item.category
        for item in result.analysis.categories
        if item.gaps and item.gaps[0].id.endswith("-analysis-failed")
    }
    assert "testing" in failed
    assert "versionControl" not in failed


def test_unsupported_records_are_rejected(analyzer: ReadinessAnalyzer) -> None:
    with pytest.raises(TypeError):
        analyzer.analyze_completeness("repo", [42])
