"""Run many bench cases concurrently on one host."""

from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Optional, Union

from ..models.config import BenchConfig, load_cases, load_config
from ..models.schemas import BenchCase, BenchResult, RunStage
from ..utils.logging_utils import get_logger
from .harness import BenchHarness
from .results import BenchmarkResults, ResultsAggregator, SkippedCase

logger = get_logger(__name__)


class BenchmarkRunner:
    """Runs a set of cases, each in its own workspace, on a worker pool.

    Agent backends are probed once per kind before any case starts. Cases
    whose backend is unavailable are recorded as skipped, not failed.
    """

    def __init__(self, config: BenchConfig, harness: Optional[BenchHarness] = None):
        self.config = config
        self.harness = harness or BenchHarness(config)
        self.output_dir = Path(config.reports_dir)

    def available_kinds(self, cases: list[BenchCase]) -> dict[str, bool]:
        """Probe each distinct agent kind once. Unknown kinds count as unavailable."""
        availability: dict[str, bool] = {}
        for kind in sorted({c.agent.kind for c in cases}):
            try:
                runner = self.harness.runner_factory(kind, self.config)
            except ValueError as e:
                logger.warning(str(e))
                availability[kind] = False
                continue
            availability[kind] = runner.is_available()
            if availability[kind]:
                logger.info(f"Agent {kind} available: {runner.version()}")
            else:
                logger.warning(f"Agent {kind} is not available on this host")
        return availability

    def run(self, cases: list[BenchCase]) -> BenchmarkResults:
        """Run all cases and save the summary.

        Args:
            cases: Cases to run.

        Returns:
            BenchmarkResults with one BenchResult per case that was run,
            in the order the cases were given.
        """
        results = BenchmarkResults()
        availability = self.available_kinds(cases)

        runnable = []
        for case in cases:
            if availability.get(case.agent.kind):
                runnable.append(case)
            else:
                results.skipped.append(
                    SkippedCase(
                        id=case.id,
                        agent_kind=case.agent.kind,
                        reason=f"agent {case.agent.kind} not available",
                    )
                )

        logger.info(
            f"Starting benchmark: {len(runnable)} runs, {len(results.skipped)} skipped, "
            f"{self.config.max_workers} workers"
        )

        finished: dict[int, BenchResult] = {}
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            futures = {pool.submit(self.harness.run, case): i for i, case in enumerate(runnable)}
            for future in as_completed(futures):
                index = futures[future]
                try:
                    finished[index] = future.result()
                except Exception as e:
                    # The harness reports failures as results; this is a harness bug
                    case = runnable[index]
                    logger.error(f"Run {case.id} raised: {e}")
                    finished[index] = BenchResult(
                        id=case.id, stage=RunStage.FAILED, error=f"{type(e).__name__}: {e}"
                    )

        results.runs = [finished[i] for i in range(len(runnable))]
        passed = sum(1 for r in results.runs if r.success)
        logger.info(f"Benchmark complete. {passed}/{len(results.runs)} runs succeeded.")

        ResultsAggregator.save_summary(results, cases, self.output_dir)
        return results


def run_benchmark(
    case_paths: Iterable[Union[str, Path]],
    config_path: Optional[str] = None,
    config: Optional[BenchConfig] = None,
) -> BenchmarkResults:
    """Convenience function to run a benchmark.

    Args:
        case_paths: Case files or directories of case files.
        config_path: Path to a YAML config file.
        config: Direct BenchConfig object (takes precedence over config_path).

    Returns:
        BenchmarkResults.
    """
    if config is None:
        config = load_config(config_path)
    cases = load_cases(case_paths)
    if not cases:
        raise ValueError("No cases found")
    return BenchmarkRunner(config).run(cases)
