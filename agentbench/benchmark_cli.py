"""CLI entry point for running bench cases."""

import argparse
import sys
from typing import Optional

from .errors import CaseLoadError
from .benchmark.results import result_reason
from .benchmark.runner import BenchmarkRunner
from .models.config import load_cases, load_config
from .utils.logging_utils import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agentbench",
        description="Run coding-agent bench cases and judge the resulting workspaces.",
    )
    parser.add_argument(
        "cases",
        nargs="+",
        help="Case YAML files or directories containing them",
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to agentbench config YAML (default: built-in defaults)",
    )
    parser.add_argument(
        "--only",
        nargs="*",
        help="Run only these case ids",
    )
    parser.add_argument(
        "--output-dir", "-o",
        help="Override reports directory (default: from config)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Override number of concurrent runs (default: from config)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        help="Override default agent timeout in seconds (default: from config)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(level=args.log_level)

    try:
        config = load_config(args.config)
        cases = load_cases(args.cases)
    except CaseLoadError as e:
        logger.error(str(e))
        return 2
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        return 2

    if args.output_dir:
        config.reports_dir = args.output_dir
    if args.workers:
        config.max_workers = args.workers
    if args.timeout:
        config.agent_timeout_seconds = args.timeout
    if args.only:
        cases = [c for c in cases if c.id in args.only]

    if not cases:
        logger.error("No cases selected. Check the case paths and --only filter.")
        return 2

    results = BenchmarkRunner(config).run(cases)

    print(f"\nBenchmark complete: {len(results.runs)} runs, {len(results.skipped)} skipped")
    for run in results.runs:
        status = "PASS" if run.success else "FAIL"
        reason = "" if run.success else f" | {result_reason(run)}"
        print(f"  {run.id:30s} | {status} | {run.duration_millis / 1000:.1f}s{reason}")
    for skipped in results.skipped:
        print(f"  {skipped.id:30s} | SKIP | {skipped.reason}")

    return 0 if results.all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
