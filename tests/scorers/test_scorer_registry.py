"""Tests for scorer registration, rule-table validation and failure isolation."""

from __future__ import annotations

from dataclasses import replace

import pytest

from inprod.constants import CATEGORIES
from inprod.corpus import FileCorpus
from inprod.models import CategoryScore, TechStackProfile
from inprod.scorers import RuleTableError, ScorerRegistry, default_scorers, validate_rule_tables
from inprod.scorers.application import BackendScorer, FrontendScorer
from inprod.scorers.integration import DesignUxScorer
from inprod.stack import TechStackDetector
from tests._fixtures.corpus_builder import CorpusBuilder, web_app_files


class ExplodingDesignScorer(DesignUxScorer):
    def score(self, corpus: FileCorpus, profile: TechStackProfile) -> CategoryScore:
        raise RuntimeError("boom")


class ShortFrontendScorer(FrontendScorer):
    checks = FrontendScorer.checks[:-1]


class ClashingBackendScorer(BackendScorer):
    checks = (replace(BackendScorer.checks[0], id="fe-framework"),) + BackendScorer.checks[1:]


class MislabelledBackendScorer(BackendScorer):
    checks = (replace(BackendScorer.checks[0], severity="urgent"),) + BackendScorer.checks[1:]


def _swap(category: str, scorer: object) -> list:
    return [scorer if item.category == category else item for item in default_scorers()]


def test_default_tables_are_consistent() -> None:
    validate_rule_tables(default_scorers())


def test_registry_iterates_in_declaration_order() -> None:
    registry = ScorerRegistry()

    assert [scorer.category for scorer in registry] == list(CATEGORIES)
    assert [scorer.category for scorer in registry.for_platform("library")] == [
        "testing",
        "security",
        "versionControl",
    ]


def test_missing_scorer_is_rejected() -> None:
    with pytest.raises(RuleTableError, match="No scorer registered for: frontend"):
        validate_rule_tables(default_scorers()[1:])


def test_duplicate_scorer_is_rejected() -> None:
    with pytest.raises(RuleTableError, match="more than one scorer"):
        validate_rule_tables([*default_scorers(), FrontendScorer()])


def test_points_must_sum_to_one_hundred() -> None:
    with pytest.raises(RuleTableError, match="Checks for 'frontend' sum to 90"):
        validate_rule_tables(_swap("frontend", ShortFrontendScorer()))


def test_gap_ids_must_be_unique() -> None:
    with pytest.raises(RuleTableError, match="'fe-framework' is used by both frontend and backend"):
        ScorerRegistry(_swap("backend", ClashingBackendScorer()))


def test_unknown_severity_is_rejected() -> None:
    with pytest.raises(RuleTableError, match="unknown severity 'urgent'"):
        validate_rule_tables(_swap("backend", MislabelledBackendScorer()))


def test_rule_points_lookup() -> None:
    registry = ScorerRegistry()

    assert registry.rule_points("testing-no-framework") == 30
    assert registry.rule_points("sec-env-committed") == 25
    assert registry.rule_points("testing-analysis-failed") == 0
    assert registry.rule_points("no-such-gap") == 0


def test_parallel_and_sequential_evaluation_agree(corpus_builder: CorpusBuilder) -> None:
    corpus = corpus_builder.write(web_app_files()).corpus()
    profile = TechStackDetector().detect(corpus)
    registry = ScorerRegistry()

    parallel = registry.evaluate(corpus, profile, parallel=True, max_workers=4)
    sequential = registry.evaluate(corpus, profile, parallel=False)

    assert parallel == sequential
    assert [item.category for item in parallel] == list(CATEGORIES)


def test_malformed_manifest_fails_dependent_categories_closed() -> None:
    corpus = FileCorpus.from_records(
        [
            {"path": "package.json", "content": '{"dependencies": {"next": '},
            {"path": "README.md", "content": "# Demo\n"},
        ]
    )
    profile = TechStackProfile(platform="web")

    results = {item.category: item for item in ScorerRegistry().evaluate(corpus, profile, parallel=False)}

    frontend = results["frontend"]
    assert frontend.score == 0
    assert [gap.id for gap in frontend.gaps] == ["frontend-analysis-failed"]
    assert frontend.gaps[0].file == "package.json"
    assert frontend.gaps[0].severity == "critical"
    assert frontend.can_generate is False
    # version control never reads manifests
    assert results["versionControl"].score > 0
    assert "vc-no-readme" not in {gap.id for gap in results["versionControl"].gaps}


def test_raising_scorer_is_isolated(corpus_builder: CorpusBuilder) -> None:
    corpus = corpus_builder.write(web_app_files()).corpus()
    profile = TechStackDetector().detect(corpus)
    registry = ScorerRegistry(_swap("designUx", ExplodingDesignScorer()))

    results = registry.evaluate(corpus, profile)

    assert len(results) == len(CATEGORIES)
    design = next(item for item in results if item.category == "designUx")
    assert design.score == 0
    assert design.gaps[0].id == "designUx-analysis-failed"
    assert "boom" in design.gaps[0].description
    frontend = next(item for item in results if item.category == "frontend")
    assert frontend.score > 0
