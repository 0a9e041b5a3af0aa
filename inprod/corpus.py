"""In-memory file corpus and dependency-manifest parsing."""

from __future__ import annotations

import json
import re
import tomllib
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

import yaml

from .logging import get_logger
from .models import RepoFile

logger = get_logger("corpus")

_TEST_PATH_PATTERNS: tuple[str, ...] = (
    "*.test.*",
    "*.spec.*",
    "test_*.py",
    "*_test.py",
    "*_test.go",
    "*Test.java",
    "*Test.kt",
    "*Tests.swift",
    "*_spec.rb",
)
_TEST_DIR_SEGMENTS = {"test", "tests", "__tests__", "spec", "e2e", "androidTest", "UITests"}


class ManifestError(ValueError):
    """Raised when a dependency manifest cannot be parsed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to parse {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class Manifest:
    """Normalized view of a single dependency manifest."""

    path: str
    ecosystem: str
    dependencies: Tuple[str, ...] = ()
    dev_dependencies: Tuple[str, ...] = ()
    scripts: Mapping[str, str] = field(default_factory=dict)
    entry_points: Tuple[str, ...] = ()
    workspaces: bool = False

    @property
    def directory(self) -> str:
        parent = PurePosixPath(self.path).parent.as_posix()
        return "" if parent == "." else parent

    @property
    def all_dependencies(self) -> Tuple[str, ...]:
        return self.dependencies + self.dev_dependencies


def normalise_path(path: str) -> str:
    cleaned = path.replace("\\", "/").strip()
    while cleaned.startswith("./"):
        cleaned = cleaned[2:]
    return cleaned.lstrip("/")


def is_test_path(path: str) -> bool:
    """Return True when ``path`` looks like an automated test file."""
    normalized = normalise_path(path)
    name = PurePosixPath(normalized).name
    if any(fnmatchcase(name, pattern) for pattern in _TEST_PATH_PATTERNS):
        return True
    segments = normalized.split("/")[:-1]
    return any(segment in _TEST_DIR_SEGMENTS for segment in segments)


class FileCorpus:
    """Immutable, order-independent view over the files of one repository.

    Files are stored sorted by path so every consumer observes the same
    iteration order regardless of how the caller supplied them. When the same
    path appears twice the lexically smallest content wins.
    """

    def __init__(self, files: Iterable[RepoFile]) -> None:
        by_path: Dict[str, RepoFile] = {}
        for item in sorted(files, key=lambda f: (normalise_path(f.path), f.content)):
            path = normalise_path(item.path)
            if not path or path in by_path:
                continue
            if path != item.path:
                item = RepoFile(path=path, content=item.content, size=item.size)
            by_path[path] = item
        self._by_path = by_path
        self._files: Tuple[RepoFile, ...] = tuple(by_path.values())
        self._lower_paths = {path.lower(): path for path in by_path}
        self.manifests = ManifestIndex.build(self._files)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, object]]) -> "FileCorpus":
        """Build a corpus from plain ``{path, content, size}`` mappings."""
        files: List[RepoFile] = []
        for record in records:
            path = str(record.get("path", ""))
            content = record.get("content")
            text = content if isinstance(content, str) else ""
            size = record.get("size")
            files.append(
                RepoFile(
                    path=path,
                    content=text,
                    size=size if isinstance(size, int) else len(text.encode("utf-8")),
                )
            )
        return cls(files)

    def __iter__(self) -> Iterator[RepoFile]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    @property
    def files(self) -> Tuple[RepoFile, ...]:
        return self._files

    @property
    def paths(self) -> Tuple[str, ...]:
        return tuple(self._by_path)

    def get(self, path: str, *, case_sensitive: bool = True) -> Optional[RepoFile]:
        normalized = normalise_path(path)
        if case_sensitive:
            return self._by_path.get(normalized)
        actual = self._lower_paths.get(normalized.lower())
        return self._by_path.get(actual) if actual else None

    def exists(self, *paths: str, case_sensitive: bool = True) -> bool:
        return any(self.get(path, case_sensitive=case_sensitive) is not None for path in paths)

    def glob(self, *patterns: str) -> List[RepoFile]:
        """Return files whose path or basename matches any glob pattern.

        Patterns containing a slash match the full path; bare patterns match
        the basename anywhere in the tree.
        """
        return [item for item in self._files if _matches_any(item.path, patterns)]

    def has(self, *patterns: str) -> bool:
        return any(_matches_any(item.path, patterns) for item in self._files)

    def search(
        self,
        pattern: str | re.Pattern[str],
        *,
        globs: Sequence[str] | None = None,
        include_tests: bool = True,
        flags: int = 0,
    ) -> Optional[Tuple[RepoFile, int]]:
        """Return the first ``(file, line)`` whose content matches ``pattern``."""
        regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)
        for item in self._files:
            if globs is not None and not _matches_any(item.path, globs):
                continue
            if not include_tests and is_test_path(item.path):
                continue
            match = regex.search(item.content)
            if match:
                line = item.content.count("\n", 0, match.start()) + 1
                return item, line
        return None

    def contains(
        self,
        pattern: str | re.Pattern[str],
        *,
        globs: Sequence[str] | None = None,
        include_tests: bool = True,
        flags: int = 0,
    ) -> bool:
        return (
            self.search(pattern, globs=globs, include_tests=include_tests, flags=flags)
            is not None
        )

    def test_files(self) -> List[RepoFile]:
        return [item for item in self._files if is_test_path(item.path)]


def _matches_any(path: str, patterns: Iterable[str]) -> bool:
    name = PurePosixPath(path).name
    for pattern in patterns:
        if "/" in pattern:
            if fnmatchcase(path, pattern):
                return True
            # allow patterns such as ``app/**/page.tsx`` to match ``app/page.tsx``
            if "**/" in pattern and fnmatchcase(path, pattern.replace("**/", "")):
                return True
        elif fnmatchcase(name, pattern):
            return True
    return False


# Manifest parsing


class ManifestIndex:
    """Parsed dependency manifests of a corpus.

    Parsing happens once at corpus construction. Malformed manifests are
    recorded rather than raised so detection can stay best-effort; rules that
    depend on dependency data call :meth:`require_valid` to fail closed.
    """

    def __init__(self, manifests: Sequence[Manifest], errors: Sequence[ManifestError]) -> None:
        self.manifests: Tuple[Manifest, ...] = tuple(manifests)
        self.errors: Tuple[ManifestError, ...] = tuple(errors)
        names: Set[str] = set()
        for manifest in self.manifests:
            names.update(manifest.all_dependencies)
        self._dependencies = frozenset(names)

    @classmethod
    def build(cls, files: Sequence[RepoFile]) -> "ManifestIndex":
        manifests: List[Manifest] = []
        errors: List[ManifestError] = []
        for item in files:
            parser = _parser_for(item.path)
            if parser is None:
                continue
            try:
                manifests.append(_parse_manifest(parser, item))
            except ManifestError as exc:
                logger.warning("%s", exc)
                errors.append(exc)
        return cls(manifests, errors)

    @property
    def dependencies(self) -> frozenset[str]:
        """All dependency names, ignoring malformed manifests."""
        return self._dependencies

    def require_valid(self) -> None:
        if self.errors:
            raise self.errors[0]

    def strict_dependencies(self) -> frozenset[str]:
        self.require_valid()
        return self._dependencies

    def root(self, ecosystem: str) -> Optional[Manifest]:
        for manifest in self.manifests:
            if manifest.ecosystem == ecosystem and manifest.directory == "":
                return manifest
        return None

    def scripts(self) -> Dict[str, str]:
        """Scripts of the root package.json (strict)."""
        self.require_valid()
        manifest = self.root("node")
        return dict(manifest.scripts) if manifest else {}

    def of(self, ecosystem: str) -> List[Manifest]:
        return [manifest for manifest in self.manifests if manifest.ecosystem == ecosystem]


def _parse_manifest(parser: Callable[[RepoFile], Manifest], item: RepoFile) -> Manifest:
    try:
        return parser(item)
    except ManifestError:
        raise
    except RecursionError as exc:
        raise ManifestError(item.path, "nesting too deep") from exc
    except (TypeError, ValueError) as exc:
        raise ManifestError(item.path, f"unexpected content ({exc})") from exc


def _string_list(item: RepoFile, value: object, field: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ManifestError(item.path, f"{field} must be a list")
    return [entry for entry in value if isinstance(entry, str)]


def _split_requirement(spec: str) -> str:
    name = re.split(r"[<>=!~;\[\s@]", spec.strip(), 1)[0].strip()
    return name.lower()


def _parse_package_json(item: RepoFile) -> Manifest:
    try:
        data = json.loads(item.content or "{}")
    except json.JSONDecodeError as exc:
        raise ManifestError(item.path, f"invalid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise ManifestError(item.path, "expected a JSON object")

    def _extract(key: str) -> Tuple[str, ...]:
        deps = data.get(key, {})
        if isinstance(deps, dict):
            return tuple(sorted(str(name).lower() for name in deps))
        return ()

    scripts = data.get("scripts")
    bin_field = data.get("bin")
    entry_points: Tuple[str, ...] = ()
    if isinstance(bin_field, str):
        entry_points = (bin_field,)
    elif isinstance(bin_field, dict):
        entry_points = tuple(sorted(str(name) for name in bin_field))

    return Manifest(
        path=item.path,
        ecosystem="node",
        dependencies=_extract("dependencies") + _extract("peerDependencies"),
        dev_dependencies=_extract("devDependencies"),
        scripts={str(k): str(v) for k, v in scripts.items()} if isinstance(scripts, dict) else {},
        entry_points=entry_points,
        workspaces=bool(data.get("workspaces")),
    )


def _parse_requirements(item: RepoFile) -> Manifest:
    packages: List[str] = []
    for line in item.content.splitlines():
        stripped = line.split("#", 1)[0].strip()
        if not stripped or stripped.startswith("-"):
            continue
        name = _split_requirement(stripped)
        if name:
            packages.append(name)
    dev = "dev" in PurePosixPath(item.path).name or "test" in PurePosixPath(item.path).name
    deps = tuple(sorted(set(packages)))
    return Manifest(
        path=item.path,
        ecosystem="python",
        dependencies=() if dev else deps,
        dev_dependencies=deps if dev else (),
    )


def _load_toml(item: RepoFile) -> Dict[str, object]:
    try:
        return tomllib.loads(item.content)
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(item.path, f"invalid TOML ({exc})") from exc


def _parse_pyproject(item: RepoFile) -> Manifest:
    data = _load_toml(item)
    runtime: Set[str] = set()
    dev: Set[str] = set()
    entry_points: List[str] = []

    project = data.get("project")
    if isinstance(project, dict):
        for dep in _string_list(item, project.get("dependencies"), "project.dependencies"):
            runtime.add(_split_requirement(dep))
        optional = project.get("optional-dependencies") or {}
        if not isinstance(optional, dict):
            raise ManifestError(item.path, "project.optional-dependencies must be a table")
        for extra, values in optional.items():
            for dep in _string_list(item, values, f"project.optional-dependencies.{extra}"):
                dev.add(_split_requirement(dep))
        scripts = project.get("scripts")
        if isinstance(scripts, dict):
            entry_points.extend(str(name) for name in scripts)

    tool = data.get("tool") if isinstance(data.get("tool"), dict) else {}
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        poetry_deps = poetry.get("dependencies", {}) or {}
        if isinstance(poetry_deps, dict):
            runtime.update(str(name).lower() for name in poetry_deps)
        groups = poetry.get("group", {}) or {}
        if isinstance(groups, dict):
            for group in groups.values():
                if isinstance(group, dict) and isinstance(group.get("dependencies"), dict):
                    dev.update(str(name).lower() for name in group["dependencies"])
        poetry_scripts = poetry.get("scripts")
        if isinstance(poetry_scripts, dict):
            entry_points.extend(str(name) for name in poetry_scripts)

    dependency_groups = data.get("dependency-groups")
    if isinstance(dependency_groups, dict):
        for group_name, values in dependency_groups.items():
            for dep in _string_list(item, values, f"dependency-groups.{group_name}"):
                dev.add(_split_requirement(dep))

    runtime.discard("python")
    runtime.discard("")
    dev.discard("")
    return Manifest(
        path=item.path,
        ecosystem="python",
        dependencies=tuple(sorted(runtime)),
        dev_dependencies=tuple(sorted(dev)),
        entry_points=tuple(sorted(entry_points)),
    )


def _parse_pipfile(item: RepoFile) -> Manifest:
    data = _load_toml(item)
    packages = data.get("packages", {})
    dev_packages = data.get("dev-packages", {})
    return Manifest(
        path=item.path,
        ecosystem="python",
        dependencies=tuple(sorted(str(n).lower() for n in packages)) if isinstance(packages, dict) else (),
        dev_dependencies=tuple(sorted(str(n).lower() for n in dev_packages))
        if isinstance(dev_packages, dict)
        else (),
    )


def _parse_setup_py(item: RepoFile) -> Manifest:
    deps = {
        _split_requirement(match)
        for block in re.findall(r"install_requires\s*=\s*\[([^\]]*)\]", item.content)
        for match in re.findall(r"['\"]([^'\"]+)['\"]", block)
    }
    entry_points = ("console_scripts",) if "console_scripts" in item.content else ()
    return Manifest(
        path=item.path,
        ecosystem="python",
        dependencies=tuple(sorted(dep for dep in deps if dep)),
        entry_points=entry_points,
    )


def _parse_go_mod(item: RepoFile) -> Manifest:
    deps: Set[str] = set()
    in_block = False
    for raw in item.content.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if line.startswith("require ("):
            in_block = True
            continue
        if in_block and line == ")":
            in_block = False
            continue
        if line.startswith("require "):
            line = line[len("require "):]
        elif not in_block:
            continue
        module = line.split()[0]
        deps.add(module.lower())
    return Manifest(path=item.path, ecosystem="go", dependencies=tuple(sorted(deps)))


def _parse_cargo(item: RepoFile) -> Manifest:
    data = _load_toml(item)

    def _names(key: str) -> Tuple[str, ...]:
        section = data.get(key, {})
        return tuple(sorted(str(n).lower() for n in section)) if isinstance(section, dict) else ()

    bins = data.get("bin")
    entry_points = tuple(
        str(entry.get("name", "")) for entry in bins if isinstance(entry, dict)
    ) if isinstance(bins, list) else ()
    return Manifest(
        path=item.path,
        ecosystem="rust",
        dependencies=_names("dependencies"),
        dev_dependencies=_names("dev-dependencies"),
        entry_points=entry_points,
        workspaces=isinstance(data.get("workspace"), dict),
    )


def _parse_gemfile(item: RepoFile) -> Manifest:
    gems = re.findall(r"^\s*gem\s+['\"]([^'\"]+)['\"]", item.content, re.MULTILINE)
    return Manifest(path=item.path, ecosystem="ruby", dependencies=tuple(sorted({g.lower() for g in gems})))


def _parse_composer(item: RepoFile) -> Manifest:
    try:
        data = json.loads(item.content or "{}")
    except json.JSONDecodeError as exc:
        raise ManifestError(item.path, f"invalid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise ManifestError(item.path, "expected a JSON object")
    require = data.get("require", {})
    require_dev = data.get("require-dev", {})
    return Manifest(
        path=item.path,
        ecosystem="php",
        dependencies=tuple(sorted(str(n).lower() for n in require)) if isinstance(require, dict) else (),
        dev_dependencies=tuple(sorted(str(n).lower() for n in require_dev))
        if isinstance(require_dev, dict)
        else (),
    )


def _parse_pom(item: RepoFile) -> Manifest:
    try:
        root = ET.fromstring(item.content)
    except ET.ParseError as exc:
        raise ManifestError(item.path, f"invalid XML ({exc})") from exc

    match = re.match(r"\{(.+)}", root.tag)
    namespace = match.group(1) if match else None
    tag = f"{{{namespace}}}dependency" if namespace else "dependency"
    group_tag = f"{{{namespace}}}groupId" if namespace else "groupId"
    artifact_tag = f"{{{namespace}}}artifactId" if namespace else "artifactId"

    deps: Set[str] = set()
    for dep in root.findall(f".//{tag}"):
        group = dep.findtext(group_tag, default="")
        artifact = dep.findtext(artifact_tag, default="")
        if group and artifact:
            deps.add(f"{group}:{artifact}".lower())
    return Manifest(path=item.path, ecosystem="java", dependencies=tuple(sorted(deps)))


def _parse_gradle(item: RepoFile) -> Manifest:
    deps: Set[str] = set()
    pattern = re.compile(r"['\"]([\w\-.]+:[\w\-.]+)(?::[\w\-.$]+)?['\"]")
    for line in item.content.splitlines():
        line = line.strip()
        if not line or line.startswith("//"):
            continue
        if any(token in line for token in ("implementation", "api", "compile", "runtimeOnly", "testImplementation")):
            found = pattern.search(line)
            if found:
                deps.add(found.group(1).lower())
    plugins = re.findall(r"id\s*\(?\s*['\"]([\w.\-]+)['\"]", item.content)
    deps.update(plugin.lower() for plugin in plugins)
    return Manifest(path=item.path, ecosystem="java", dependencies=tuple(sorted(deps)))


def _parse_podfile(item: RepoFile) -> Manifest:
    pods = re.findall(r"^\s*pod\s+['\"]([^'\"]+)['\"]", item.content, re.MULTILINE)
    return Manifest(path=item.path, ecosystem="ios", dependencies=tuple(sorted({p.lower() for p in pods})))


def _parse_pubspec(item: RepoFile) -> Manifest:
    try:
        data = yaml.safe_load(item.content) or {}
    except yaml.YAMLError as exc:
        raise ManifestError(item.path, f"invalid YAML ({exc})") from exc
    if not isinstance(data, dict):
        raise ManifestError(item.path, "expected a YAML mapping")
    deps = data.get("dependencies") or {}
    dev = data.get("dev_dependencies") or {}
    return Manifest(
        path=item.path,
        ecosystem="dart",
        dependencies=tuple(sorted(str(n).lower() for n in deps)) if isinstance(deps, dict) else (),
        dev_dependencies=tuple(sorted(str(n).lower() for n in dev)) if isinstance(dev, dict) else (),
    )


_MANIFEST_PARSERS: Tuple[Tuple[str, Callable[[RepoFile], Manifest]], ...] = (
    ("package.json", _parse_package_json),
    ("requirements*.txt", _parse_requirements),
    ("pyproject.toml", _parse_pyproject),
    ("Pipfile", _parse_pipfile),
    ("setup.py", _parse_setup_py),
    ("go.mod", _parse_go_mod),
    ("Cargo.toml", _parse_cargo),
    ("Gemfile", _parse_gemfile),
    ("composer.json", _parse_composer),
    ("pom.xml", _parse_pom),
    ("build.gradle", _parse_gradle),
    ("build.gradle.kts", _parse_gradle),
    ("Podfile", _parse_podfile),
    ("pubspec.yaml", _parse_pubspec),
)

# Manifests that define an independently buildable project (used for monorepo detection).
PRIMARY_MANIFESTS: frozenset[str] = frozenset(
    {
        "package.json",
        "pyproject.toml",
        "setup.py",
        "go.mod",
        "Cargo.toml",
        "composer.json",
        "pom.xml",
        "Gemfile",
        "pubspec.yaml",
    }
)


def _parser_for(path: str) -> Optional[Callable[[RepoFile], Manifest]]:
    name = PurePosixPath(path).name
    for pattern, parser in _MANIFEST_PARSERS:
        if fnmatchcase(name, pattern):
            return parser
    return None


__all__ = [
    "FileCorpus",
    "Manifest",
    "ManifestError",
    "ManifestIndex",
    "PRIMARY_MANIFESTS",
    "is_test_path",
    "normalise_path",
]
