"""Configuration loading for inprod (.inprod.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".inprod.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalysisConfig:
    """Scorer execution settings."""

    parallel: bool = True
    max_workers: Optional[int] = None


@dataclass
class ScannerConfig:
    """Limits and exclusions applied when reading a local checkout."""

    max_file_size: int = 100_000
    max_files: int = 200
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class ServiceConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class InProdConfig:
    """Represents the settings defined in .inprod.yml."""

    root: Path
    repo_url: Optional[str] = None
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)


def load_config(config_path: Path) -> InProdConfig:
    """Load configuration from ``config_path`` (a directory or the file itself)."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return InProdConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    analysis = AnalysisConfig()
    analysis_data = _as_dict(data.get("analysis"))
    if analysis_data:
        parallel = _as_bool(analysis_data.get("parallel"))
        if parallel is not None:
            analysis.parallel = parallel
        max_workers = _as_int(analysis_data.get("max_workers"))
        if max_workers is not None and max_workers > 0:
            analysis.max_workers = max_workers

    scanner = ScannerConfig()
    scanner_data = _as_dict(data.get("scanner"))
    if scanner_data:
        max_file_size = _as_int(scanner_data.get("max_file_size"))
        if max_file_size is not None and max_file_size > 0:
            scanner.max_file_size = max_file_size
        max_files = _as_int(scanner_data.get("max_files"))
        if max_files is not None and max_files > 0:
            scanner.max_files = max_files
        scanner.exclude_paths = _as_str_list(scanner_data.get("exclude_paths"))
    # top-level excludes are accepted as a shorthand
    for pattern in _as_str_list(data.get("exclude_paths")):
        if pattern not in scanner.exclude_paths:
            scanner.exclude_paths.append(pattern)

    service = ServiceConfig()
    service_data = _as_dict(data.get("service"))
    if service_data:
        service.host = _as_str(service_data.get("host")) or service.host
        port = _as_int(service_data.get("port"))
        if port is not None and 0 < port < 65536:
            service.port = port

    return InProdConfig(
        root=root,
        repo_url=_as_str(data.get("repo_url")),
        analysis=analysis,
        scanner=scanner,
        service=service,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "InProdConfig",
    "ScannerConfig",
    "ServiceConfig",
    "load_config",
]
