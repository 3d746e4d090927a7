"""Bench harness: checkout, agent, judge, cleanup.

One call to :meth:`BenchHarness.run` executes one case sequentially:

    INIT -> CHECKED_OUT -> AGENT_RAN -> JUDGED -> DONE
                 \\              \\             \\
                  +--------------+-------------+--> FAILED

The workspace is closed on every path, and every failure ends up on the
returned BenchResult rather than escaping as an exception.
"""

import time
import uuid
from pathlib import Path
from typing import Callable, Optional

from ..agents import AgentRunner, create_agent_runner
from ..errors import AgentBenchError, CheckoutError
from ..models.config import BenchConfig
from ..models.schemas import BenchCase, BenchResult, RunStage
from ..utils.logging_utils import RunLog, get_logger, utc_timestamp
from .checkout import RepoCheckout
from .judge import judge_success
from .results import ResultsAggregator
from .workspace import Workspace, create_workspace

logger = get_logger(__name__)


class BudgetExhaustedError(AgentBenchError):
    """The overall run budget ran out before a phase could start."""

    def __init__(self, phase: str):
        super().__init__(f"timed out: run budget exhausted before {phase}")
        self.phase = phase


class BenchHarness:
    """Runs bench cases end to end."""

    def __init__(
        self,
        config: Optional[BenchConfig] = None,
        checkout: Optional[RepoCheckout] = None,
        runner_factory: Callable[..., AgentRunner] = create_agent_runner,
    ):
        """Initialize the harness.

        Args:
            config: Benchmark configuration. Defaults are used if None.
            checkout: Repository checkout component; built from config if None.
            runner_factory: Maps an agent kind and config to an AgentRunner.
        """
        self.config = config or BenchConfig()
        self.checkout = checkout or RepoCheckout(self.config)
        self.runner_factory = runner_factory

    def run(self, case: BenchCase, workspace: Optional[Workspace] = None) -> BenchResult:
        """Run one case.

        Args:
            case: The case to run.
            workspace: Optional pre-supplied workspace. The run takes ownership
                and closes it like one it created.

        Returns:
            BenchResult; ``success`` holds iff the agent succeeded and the
            judgment passed.
        """
        run_id = str(uuid.uuid4())
        try:
            run_log = RunLog(Path(self.config.reports_dir) / case.id / run_id, run_id)
        except OSError as e:
            if workspace is not None:
                workspace.close()
            logger.error(f"Case {case.id}: cannot create run log: {e}")
            return BenchResult(
                id=case.id,
                run_id=run_id,
                success=False,
                stage=RunStage.FAILED,
                error=f"cannot create run log: {e}",
            )

        started_at = utc_timestamp()
        start = time.monotonic()
        deadline = start + case.timeout_sec if case.timeout_sec else None
        result = BenchResult(id=case.id, run_id=run_id, log_file=str(run_log.path))

        logger.info(f"Running case {case.id} with agent {case.agent.kind} (run {run_id})")
        run_log.log("HARNESS", f"case {case.id} v{case.version} ({case.category}), agent {case.agent.kind}")

        try:
            self._execute(case, workspace, run_log, deadline, result)
        except CheckoutError as e:
            result.error = str(e)
            run_log.log("CHECKOUT", str(e))
            logger.error(f"Case {case.id}: {e}")
        except BudgetExhaustedError as e:
            result.error = str(e)
            run_log.log("HARNESS", str(e))
            logger.warning(f"Case {case.id}: {e}")
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            run_log.log("ERROR", result.error)
            logger.exception(f"Case {case.id} failed unexpectedly")

        result.success = bool(
            result.error is None
            and result.agent_result is not None
            and result.agent_result.succeeded
            and result.judgment is not None
            and result.judgment.passed
        )
        result.stage = RunStage.DONE if result.success else RunStage.FAILED
        result.duration_millis = int((time.monotonic() - start) * 1000)

        run_log.log(
            "RESULT",
            f"success={result.success} duration={result.duration_millis}ms"
            + (f" error={result.error}" if result.error else ""),
        )
        try:
            result.report_path = str(
                ResultsAggregator.write_report(case, result, run_log, started_at)
            )
        except OSError as e:
            logger.warning(f"Could not write report for {case.id}: {e}")
        run_log.finish()

        status = "PASSED" if result.success else "FAILED"
        logger.info(f"Case {case.id} {status} in {result.duration_millis}ms")
        return result

    def _execute(
        self,
        case: BenchCase,
        workspace: Optional[Workspace],
        run_log: RunLog,
        deadline: Optional[float],
        result: BenchResult,
    ) -> None:
        phases = case.phase_timeouts

        if workspace is None:
            workspace = self._acquire_workspace(case, run_log, deadline, result)

        with workspace:
            result.stage = RunStage.CHECKED_OUT
            run_log.log("WORKSPACE", f"using {workspace.dir}")

            runner = self.runner_factory(case.agent.kind, self.config)
            if phases and phases.agent_sec is not None:
                agent_budget = _capped(phases.agent_sec, deadline)
            elif deadline is not None:
                agent_budget = deadline - time.monotonic()
            else:
                agent_budget = self.config.agent_timeout_seconds
            if agent_budget <= 0:
                raise BudgetExhaustedError("agent")

            agent_result = runner.run(workspace.dir, case.agent, agent_budget, run_log=run_log)
            result.agent_result = agent_result
            result.stage = RunStage.AGENT_RAN
            if not agent_result.succeeded:
                run_log.log("HARNESS", f"agent failed ({agent_result.diagnostic}); skipping judge")
                return

            judge_budget = _capped(
                phases.judge_sec if phases and phases.judge_sec else self.config.judge_timeout_seconds,
                deadline,
            )
            if judge_budget <= 0:
                raise BudgetExhaustedError("judge")

            judgment = judge_success(
                workspace.dir, case.success, judge_budget, self.config.max_output_bytes
            )
            result.judgment = judgment
            result.stage = RunStage.JUDGED
            run_log.log("JUDGE", f"{judgment.status.value}: {judgment.reasoning}")

    def _acquire_workspace(
        self,
        case: BenchCase,
        run_log: RunLog,
        deadline: Optional[float],
        result: BenchResult,
    ) -> Workspace:
        if case.repo is None:
            return create_workspace(self.config.workspace_base)

        phases = case.phase_timeouts
        budget = _capped(
            phases.checkout_sec if phases and phases.checkout_sec else self.config.checkout_timeout_seconds,
            deadline,
        )
        if budget <= 0:
            raise BudgetExhaustedError("checkout")

        run_log.log("CHECKOUT", f"{case.repo.slug} (budget {budget:.0f}s)")
        t0 = time.monotonic()
        workspace = self.checkout.checkout(case.repo, budget)
        result.checkout_millis = int((time.monotonic() - t0) * 1000)
        run_log.log("CHECKOUT", f"done in {result.checkout_millis}ms")
        return workspace


def _capped(budget: float, deadline: Optional[float]) -> float:
    """A phase budget, capped by whatever remains of the overall deadline."""
    if deadline is None:
        return budget
    return min(budget, deadline - time.monotonic())
