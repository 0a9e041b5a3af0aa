from __future__ import annotations

from pathlib import Path

import pytest

from inprod.analyzer import ReadinessAnalyzer
from inprod.config import AnalysisConfig
from tests._fixtures.corpus_builder import CorpusBuilder


@pytest.fixture
def corpus_builder(tmp_path: Path) -> CorpusBuilder:
    """Provide a reusable corpus builder rooted at the pytest tmp_path."""
    return CorpusBuilder(tmp_path)


@pytest.fixture
def analyzer() -> ReadinessAnalyzer:
    """Sequential analyzer so failures point at a single scorer."""
    return ReadinessAnalyzer(config=AnalysisConfig(parallel=False))
