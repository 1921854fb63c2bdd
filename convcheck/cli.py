"""Command-line entry point for the convcheck engine."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .config import Configuration, load_config, merge_configs
from .engine import Engine
from .errors import ConvcheckError
from .registry import RuleRegistry, build_default_registry
from .result import Report, format_summary_table
from .utils import load_tree

DEFAULT_CONFIG = "convcheck.yaml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="convcheck",
        description="Check a parsed syntax tree against coding conventions",
    )
    parser.add_argument(
        "--tree",
        "-t",
        help="Path to the serialized syntax tree (YAML or JSON) to check.",
    )
    parser.add_argument(
        "--source-path",
        default=None,
        help="Source file path the tree was parsed from, used for exclusion globs.",
    )
    parser.add_argument(
        "--config",
        "-c",
        dest="config_paths",
        action="append",
        default=[],
        help=f"Configuration file (repeatable, later files win; defaults to {DEFAULT_CONFIG} if present).",
    )
    parser.add_argument(
        "--workers",
        "-j",
        type=int,
        default=1,
        help="Number of worker threads used for rule dispatch.",
    )
    parser.add_argument(
        "--format",
        choices=["json"],
        default="json",
        help="Report format for file output (defaults to json).",
    )
    parser.add_argument(
        "--out",
        "--output",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the structured report (e.g., artifacts/convcheck.json).",
    )
    parser.add_argument(
        "--list-rules",
        action="store_true",
        help="Print the registered rules and exit.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log engine progress to stderr.",
    )
    return parser


def load_configuration(config_paths: List[str]) -> Configuration:
    if not config_paths:
        return load_config(Path(DEFAULT_CONFIG))
    return merge_configs(*(load_config(Path(path)) for path in config_paths))


def list_rules(registry: RuleRegistry) -> None:
    for rule in registry:
        print(f"{rule.id:<28} {rule.default_severity.value:<8} {rule.title}")


def write_output(report: Report, output_path: str | None, report_format: str) -> None:
    summary = format_summary_table(report)
    print(summary)

    if report_format == "json":
        payload = json.dumps(report.to_dict(), indent=2)
        if output_path:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            output_file.write_text(payload, encoding="utf-8")
            print(f"\nReport written to {output_path}")
        else:
            print("\nJSON Report")
            print(payload)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    registry = build_default_registry()
    if args.list_rules:
        list_rules(registry)
        return 0
    if not args.tree:
        parser.error("--tree is required")

    try:
        tree = load_tree(Path(args.tree), source_path=args.source_path)
    except ValueError as exc:
        raise SystemExit(f"Failed to load syntax tree: {exc}")
    if tree is None:
        raise SystemExit(f"Syntax tree not found: {args.tree}")

    try:
        engine = Engine(registry, load_configuration(args.config_paths), workers=args.workers)
    except (ConvcheckError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}")

    report = engine.run(tree)
    write_output(report, args.output_path, args.format)
    return report.exit_code()


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
