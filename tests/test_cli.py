"""CLI parser and command behaviour tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterator

import pytest

from inprod.cli import _build_parser, main
from tests._fixtures.corpus_builder import CorpusBuilder, web_app_files


@pytest.fixture(autouse=True)
def _reset_inprod_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("inprod")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "analyze"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.path == "."


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["analyze", "repo", "--verbose", "--json"])
    assert args.verbose is True
    assert args.path == "repo"
    assert args.json is True


def test_cli_collects_fix_selection() -> None:
    parser = _build_parser()
    args = parser.parse_args(
        ["fixes", "--gap", "deploy-no-ci", "--gap", "vc-no-readme", "--category", "testing", "--instant-only"]
    )
    assert args.gap_ids == ["deploy-no-ci", "vc-no-readme"]
    assert args.categories == ["testing"]
    assert args.instant_only is True


def test_cli_serve_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve", "--host", "0.0.0.0", "--port", "9001"])
    assert (args.host, args.port) == ("0.0.0.0", 9001)


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args([])


def test_analyze_prints_json_report(
    corpus_builder: CorpusBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    corpus_builder.write(web_app_files())

    main(["analyze", str(corpus_builder.path()), "--json", "--repo-url", "acme/shop"])

    report = json.loads(capsys.readouterr().out)
    assert report["ok"] is True
    assert report["analysis"]["repoUrl"] == "acme/shop"
    assert report["analysis"]["techStack"]["platform"] == "web"
    assert len(report["analysis"]["categories"]) == 12
    assert report["capacity"]["bottleneck"]


def test_analyze_prints_markdown_summary(
    corpus_builder: CorpusBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    corpus_builder.write(web_app_files())

    main(["analyze", str(corpus_builder.path())])

    out = capsys.readouterr().out
    assert out.startswith("# Production Readiness:")
    assert "next.js" in out


def test_fixes_lists_selected_gaps(
    corpus_builder: CorpusBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    corpus_builder.write(web_app_files())

    main(["fixes", str(corpus_builder.path()), "--gap", "deploy-no-ci"])

    out = capsys.readouterr().out
    assert "deployment:" in out
    assert "deploy-no-ci" in out
    assert "[github-actions]" in out
    assert "Estimated 1 files, " in out


def test_fixes_reports_empty_selection(
    corpus_builder: CorpusBuilder, capsys: pytest.CaptureFixture[str]
) -> None:
    corpus_builder.write(web_app_files())

    main(["fixes", str(corpus_builder.path()), "--gap", "no-such-gap"])

    assert capsys.readouterr().out.strip() == "No gaps selected"


def test_missing_path_exits_non_zero(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["analyze", str(tmp_path / "missing")])

    assert excinfo.value.code == 1
    assert "Repository path not found" in capsys.readouterr().err
