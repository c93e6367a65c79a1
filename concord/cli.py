#!/usr/bin/env python3
"""
concord command line.

Usage:
    concord compute --snapshot diagram.json --responses general.json \\
        --expert-responses expert.json
    concord fetch --survey-id S1 --project-id P1 --api-url https://host/api
    concord --format text --memo-policy acyclic compute --snapshot diagram.json

Response files hold the ``GET /surveys/{id}/responses`` payload
(``{"survey": ..., "questions": [...], "responses": [...]}``). Expert response
files feed both consensus and expert confidence, matching a general/expert
survey pair.

Exit status is 0 on success, 1 on any concord error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

from concord.__version__ import __version__
from concord.config import ClientConfig, EngineConfig, MemoPolicy
from concord.engine.responses import ResponseSet
from concord.engine.roots import AggregationResult
from concord.engine.runner import AggregationEngine
from concord.exceptions import ConcordError, PayloadFormatError
from concord.logging_config import configure_logging, get_logger
from concord.service import ConsensusService
from concord.surveys.client import SurveyClient
from concord.surveys.models import parse_response_set
from concord.surveys.snapshot import parse_snapshot_json

logger = get_logger(__name__)


def _read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise PayloadFormatError(path, f"cannot read file ({e.strerror or e})") from e


def _load_response_set(path: str) -> ResponseSet:
    try:
        data: Any = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise PayloadFormatError(path, f"not valid JSON ({e.msg})") from e
    return parse_response_set(data, survey_id=Path(path).stem)


def _format_number(value: float | None) -> str:
    return "-" if value is None else f"{value:.4f}"


def render_text(result: AggregationResult) -> str:
    """Human-readable summary of an aggregation result."""
    lines = []
    if result.insufficient_data:
        lines.append("Insufficient data")
    lines.append(f"Consensus:  {_format_number(result.consensus)}")
    if result.confidence is None:
        lines.append("Confidence: -")
    else:
        lines.append(
            f"Confidence: {_format_number(result.confidence.mean)} "
            f"(variance {_format_number(result.confidence.variance)})"
        )
    lines.append(f"Root goals: {', '.join(result.root_goals) or '-'}")

    if result.consensus_by_node:
        lines.append("")
        lines.append(f"{'node':<24} {'consensus':>10} {'confidence':>11} {'variance':>10}")
        for node_id, consensus in result.consensus_by_node.items():
            estimate = result.confidence_by_node.get(node_id)
            lines.append(
                f"{node_id:<24} {_format_number(consensus):>10} "
                f"{_format_number(estimate.mean if estimate else None):>11} "
                f"{_format_number(estimate.variance if estimate else None):>10}"
            )
    return "\n".join(lines)


def _emit(result: AggregationResult, output_format: str) -> None:
    if output_format == "text":
        print(render_text(result))
    else:
        print(result.to_json(indent=2))


def _engine_config(args: argparse.Namespace) -> EngineConfig:
    config = EngineConfig.from_env()
    if args.memo_policy:
        config = config.with_overrides(memo_policy=args.memo_policy)
    return config


def cmd_compute(args: argparse.Namespace) -> int:
    snapshot = parse_snapshot_json(_read_text(args.snapshot), source=args.snapshot)
    general = [_load_response_set(path) for path in args.responses]
    expert = [_load_response_set(path) for path in args.expert_responses]

    engine = AggregationEngine(_engine_config(args))
    result = engine.run(snapshot.nodes, snapshot.edges, general + expert, expert)
    _emit(result, args.format)
    return 0


async def _fetch_and_compute(args: argparse.Namespace) -> AggregationResult:
    client_config = ClientConfig.from_env().with_overrides(
        base_url=args.api_url,
        token=args.token,
    )
    client = SurveyClient(client_config)
    service = ConsensusService(client, AggregationEngine(_engine_config(args)))

    selected, surveys = await asyncio.gather(
        client.get_survey(args.survey_id),
        client.list_project_surveys(args.project_id),
    )
    return await service.compute_for_survey(selected, surveys)


def cmd_fetch(args: argparse.Namespace) -> int:
    result = asyncio.run(_fetch_and_compute(args))
    _emit(result, args.format)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="concord",
        description="Consensus and confidence aggregation for GSN survey feedback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"concord {__version__}")
    parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="json",
        help="Output format (default: json)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: CONCORD_LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--memo-policy",
        choices=[p.value for p in MemoPolicy],
        default=None,
        help="Goal memoization policy (default: CONCORD_MEMO_POLICY or per_run)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # compute command
    compute_parser = subparsers.add_parser("compute", help="Aggregate local JSON files")
    compute_parser.add_argument("--snapshot", required=True, help="Diagram or project JSON")
    compute_parser.add_argument(
        "--responses",
        nargs="*",
        default=[],
        help="General survey response files",
    )
    compute_parser.add_argument(
        "--expert-responses",
        nargs="*",
        default=[],
        help="Expert survey response files",
    )

    # fetch command
    fetch_parser = subparsers.add_parser("fetch", help="Fetch surveys from the API and aggregate")
    fetch_parser.add_argument("--survey-id", required=True, help="Survey being viewed")
    fetch_parser.add_argument("--project-id", required=True, help="Project owning the survey")
    fetch_parser.add_argument("--api-url", default=None, help="Survey API base URL")
    fetch_parser.add_argument("--token", default=None, help="Bearer token")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level)

    try:
        if args.command == "compute":
            return cmd_compute(args)
        elif args.command == "fetch":
            return cmd_fetch(args)
        else:
            parser.print_help()
            return 1
    except ConcordError as e:
        logger.error(str(e), error_type=type(e).__name__)
        return 1


if __name__ == "__main__":
    sys.exit(main())
