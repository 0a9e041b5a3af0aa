"""Tests for inprod.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from inprod.config import ConfigError, InProdConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, InProdConfig)
    assert config.root == tmp_path.resolve()
    assert config.repo_url is None
    assert config.analysis.parallel is True
    assert config.analysis.max_workers is None
    assert config.scanner.max_file_size == 100_000
    assert config.scanner.max_files == 200
    assert config.scanner.exclude_paths == []
    assert (config.service.host, config.service.port) == ("127.0.0.1", 8000)


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    (tmp_path / ".inprod.yml").write_text(
        """
repo_url: "https://github.com/acme/shop"
analysis:
  parallel: "no"
  max_workers: 4
scanner:
  max_file_size: 2048
  max_files: "50"
  exclude_paths:
    - fixtures/
service:
  host: 0.0.0.0
  port: 9000
exclude_paths: "*.snap"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.repo_url == "https://github.com/acme/shop"
    assert config.analysis.parallel is False
    assert config.analysis.max_workers == 4
    assert config.scanner.max_file_size == 2048
    assert config.scanner.max_files == 50
    assert config.scanner.exclude_paths == ["fixtures/", "*.snap"]
    assert (config.service.host, config.service.port) == ("0.0.0.0", 9000)


def test_load_config_ignores_invalid_values(tmp_path: Path) -> None:
    (tmp_path / ".inprod.yml").write_text(
        "analysis:\n  max_workers: -2\nscanner:\n  max_files: many\nservice:\n  port: 70000\n",
        encoding="utf-8",
    )

    config = load_config(tmp_path / ".inprod.yml")

    assert config.analysis.max_workers is None
    assert config.scanner.max_files == 200
    assert config.service.port == 8000


def test_load_config_accepts_empty_file(tmp_path: Path) -> None:
    (tmp_path / ".inprod.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).scanner.max_files == 200


def test_load_config_rejects_non_mapping(tmp_path: Path) -> None:
    (tmp_path / ".inprod.yml").write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="must contain a mapping"):
        load_config(tmp_path)


def test_load_config_rejects_invalid_yaml(tmp_path: Path) -> None:
    (tmp_path / ".inprod.yml").write_text("scanner: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)
