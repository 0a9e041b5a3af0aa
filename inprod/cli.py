"""CLI entrypoints for inprod commands."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from .analyzer import ReadinessAnalyzer
from .config import ConfigError, InProdConfig, load_config
from .fixes import FixSelection
from .logging import configure_logging
from .repo_scanner import RepoScanner
from .summary import format_analysis_summary


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_target_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the repository root (defaults to current directory).",
    )
    parser.add_argument(
        "--repo-url",
        default=None,
        help="Identifier echoed in the report (defaults to the resolved path).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the machine-readable report instead of the Markdown summary.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inprod",
        description="Score a repository's production readiness and estimate its capacity.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyze a local checkout and print its readiness report.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_target_options(analyze_parser)

    fixes_parser = subparsers.add_parser(
        "fixes",
        help="List the gaps eligible for remediation, grouped by category.",
    )
    _add_verbose_option(fixes_parser, suppress_default=True)
    _add_target_options(fixes_parser)
    fixes_parser.add_argument(
        "--gap",
        dest="gap_ids",
        action="append",
        default=[],
        metavar="ID",
        help="Select a specific gap id (repeatable).",
    )
    fixes_parser.add_argument(
        "--category",
        dest="categories",
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Select every gap of a category (repeatable).",
    )
    fixes_parser.add_argument(
        "--instant-only",
        action="store_true",
        help="Only select gaps with an instant fix.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default=None, help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for inprod commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "json", False)),
    )

    config_root = Path(getattr(args, "path", ".")).expanduser()
    try:
        config = load_config(config_root)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "serve":
        from .service import run_service

        run_service(
            host=args.host or config.service.host,
            port=args.port or config.service.port,
        )
        return

    analyzer = ReadinessAnalyzer(config=config.analysis)
    try:
        corpus = RepoScanner(config.scanner).scan(args.path)
    except (FileNotFoundError, NotADirectoryError) as exc:
        parser.exit(1, f"{exc}\n")

    repo_url = _repo_url(args, config)
    result = analyzer.analyze_repository(repo_url, corpus)
    if not result.ok or result.analysis is None or result.capacity is None:
        parser.exit(1, f"inprod {args.command} failed: {result.error}\nRun with --verbose for more details.\n")

    if args.command == "analyze":
        if args.json:
            _print_json(result.to_dict())
        else:
            print(format_analysis_summary(result.analysis, result.capacity), end="")
    elif args.command == "fixes":
        selection = FixSelection(
            gap_ids=tuple(args.gap_ids),
            categories=tuple(args.categories),
            instant_only=bool(args.instant_only),
        )
        groups, plan = analyzer.plan_fixes(result.analysis, selection)
        if args.json:
            _print_json({"groups": [group.to_dict() for group in groups], "plan": plan.to_dict()})
        elif not groups:
            print("No gaps selected")
        else:
            for group in groups:
                print(f"{group.category}:")
                for gap in group.gaps:
                    template = f" [{gap.fix_template}]" if gap.fix_template else ""
                    print(f"  - {gap.id}: {gap.title}{template}")
            print(f"Estimated {plan.total_files} files, {plan.total_minutes} minutes")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _repo_url(args: argparse.Namespace, config: InProdConfig) -> str:
    if args.repo_url:
        return args.repo_url
    if config.repo_url:
        return config.repo_url
    return str(Path(args.path).expanduser().resolve())


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":  # pragma: no cover
    main()
