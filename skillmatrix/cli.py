from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence

import yaml

from matrixkit import (
    Cancelled,
    Completed,
    Matrix,
    SelectionReport,
    WizardEngine,
    finalize_selection,
    run_wizard,
)
from skillmatrix.foundation.config_io import load_config
from skillmatrix.foundation.logging_utils import setup_operational_logger
from skillmatrix.framework.config import AppConfig

EXIT_COMPLETED = 0
EXIT_CANCELLED = 1
EXIT_INVALID = 2
EXIT_CONFIG_ERROR = 3

logger = logging.getLogger("skillmatrix")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="skillmatrix", add_help=True)
    parser.add_argument("--config", help="Load this config file instead of config/config.yaml")
    parser.add_argument("--log-level", help="Override logging.level")
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Choose a set of skills")
    source = init.add_mutually_exclusive_group()
    source.add_argument("--stack", help="Use a suggested stack without prompting")
    source.add_argument("--skills", help="Comma-separated skill ids or aliases, without prompting")
    init.add_argument("--output", help="Write the finalized selection to this YAML file")

    validate = sub.add_parser("validate", help="Validate a selection of skills")
    validate.add_argument("skills", nargs="+", help="Skill ids or aliases (commas also accepted)")
    validate.add_argument("--json", action="store_true", help="Print the report as JSON")

    list_cmd = sub.add_parser("list", help="List skills in category order")
    list_cmd.add_argument("--csv", help="Write the table to a CSV file instead of printing it")
    list_cmd.add_argument("--relations", action="store_true", help="List relation edges instead of skills")

    matrix = sub.add_parser("matrix", help="Dump the merged matrix as JSON")
    matrix.add_argument("--output", help="Write the JSON to this file")

    sub.add_parser("stacks", help="List suggested stacks")
    return parser


def _split_skills(values: Sequence[str]) -> list[str]:
    return [part.strip() for value in values for part in value.split(",") if part.strip()]


def _print_report(report: SelectionReport) -> None:
    for issue in report.errors:
        print(f"error: {issue.message}")
    for issue in report.warnings:
        print(f"warning: {issue.message}")


def _load_matrix(app_config: AppConfig) -> Matrix:
    from .framework.loader import load_and_merge

    result = load_and_merge(app_config)
    if app_config.strict:
        return result.raise_for_errors()
    return result.matrix


def _write_selection(path: str, outcome: Completed) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    payload = {"stack": outcome.preset, "skills": list(outcome.selection)}
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)
    logger.info("Wrote selection to %s", path)


def _run_init(args: argparse.Namespace, app_config: AppConfig, matrix: Matrix) -> int:
    if args.stack:
        stack = matrix.stack(args.stack)
        if stack is None:
            known = ", ".join(s.id for s in matrix.suggested_stacks) or "<none>"
            print(f"error: Unknown stack: {args.stack} (available: {known})", file=sys.stderr)
            return EXIT_INVALID
        outcome = finalize_selection(matrix, stack.all_skill_ids, preset=stack.id)
    elif args.skills:
        outcome = finalize_selection(matrix, _split_skills([args.skills]))
    else:
        from .framework.prompts import TerminalPrompter

        prompter = TerminalPrompter()
        outcome = run_wizard(WizardEngine(matrix), prompter.ask, on_transition=prompter.notify)

    if isinstance(outcome, Cancelled):
        print("Cancelled.")
        return EXIT_CANCELLED

    _print_report(outcome.report)
    if not isinstance(outcome, Completed):
        return EXIT_INVALID

    for skill_id in outcome.selection:
        print(skill_id)
    output_path = args.output or app_config.output_path
    if output_path:
        _write_selection(output_path, outcome)
    return EXIT_COMPLETED


def _run_validate(args: argparse.Namespace, matrix: Matrix) -> int:
    outcome = finalize_selection(matrix, _split_skills(args.skills))
    if args.json:
        print(json.dumps(outcome.report.to_dict(), indent=2))
    else:
        _print_report(outcome.report)
        print("valid" if outcome.report.valid else "invalid")
    return EXIT_COMPLETED if isinstance(outcome, Completed) else EXIT_INVALID


def _run_list(args: argparse.Namespace, matrix: Matrix) -> int:
    from .framework.report import relations_frame, skills_frame, write_csv

    df = relations_frame(matrix) if args.relations else skills_frame(matrix)
    if args.csv:
        write_csv(df, args.csv)
        print(f"Wrote {len(df)} rows to {args.csv}")
    else:
        print(df.to_string(index=False))
    return EXIT_COMPLETED


def _run_matrix(args: argparse.Namespace, matrix: Matrix) -> int:
    text = json.dumps(matrix.to_dict(), indent=2)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as handle:
            handle.write(text + "\n")
        print(f"Wrote matrix to {args.output}")
    else:
        print(text)
    return EXIT_COMPLETED


def _run_stacks(matrix: Matrix) -> int:
    for stack in matrix.suggested_stacks:
        print(f"{stack.id}: {stack.name}")
        if stack.description:
            print(f"  {stack.description}")
        print(f"  skills: {', '.join(stack.all_skill_ids)}")
    return EXIT_COMPLETED


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)

    try:
        cfg, meta = load_config(config_path=args.config)
        app_config, warnings = AppConfig.from_dict(cfg, base_dir=meta["base_dir"])
        setup_operational_logger(args.log_level or app_config.log_level, app_config.log_dir)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    logger.debug("Loaded config (%s): %s", meta["mode"], ", ".join(meta["paths"]))
    for warning in warnings:
        logger.warning(warning)

    try:
        matrix = _load_matrix(app_config)
    except (FileNotFoundError, ValueError, TypeError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.command == "init":
        return _run_init(args, app_config, matrix)
    if args.command == "validate":
        return _run_validate(args, matrix)
    if args.command == "list":
        return _run_list(args, matrix)
    if args.command == "matrix":
        return _run_matrix(args, matrix)
    if args.command == "stacks":
        return _run_stacks(matrix)

    raise AssertionError(f"Unhandled command: {args.command}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))
