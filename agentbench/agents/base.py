"""Base classes for agent runners.

An agent runner launches one coding agent against a workspace and reduces
whatever it did to an :class:`AgentResult`. Runners report failures as data;
they never raise for a crashed, missing or slow agent.
"""

import json
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from ..models.config import AgentBackendConfig, BenchConfig
from ..models.schemas import AgentFailure, AgentResult, AgentSpec
from ..utils.logging_utils import RunLog, get_logger
from ..utils.process import ProcessResult, probe_version, run_process

logger = get_logger(__name__)

AVAILABILITY_TIMEOUT_SECONDS = 10.0


def agent_result_from_process(
    result: ProcessResult,
    timeout_seconds: float,
    log_file: Optional[str] = None,
) -> AgentResult:
    """Normalize a finished process into an AgentResult.

    Args:
        result: Outcome of run_process.
        timeout_seconds: Budget the process ran under, for the diagnostic.
        log_file: Run log the output was written to.

    Returns:
        AgentResult with exit code, failure kind and diagnostic filled in.
    """
    failure = None
    diagnostic = None
    if result.spawn_error:
        failure = AgentFailure.SPAWN_FAILED
        diagnostic = f"could not start: {result.spawn_error}"
    elif result.timed_out:
        failure = AgentFailure.TIMEOUT
        diagnostic = f"timed out after {timeout_seconds:g}s"
    elif result.exit_code != 0:
        failure = AgentFailure.NONZERO_EXIT
        diagnostic = f"exited with code {result.exit_code}"

    return AgentResult(
        exit_code=result.exit_code,
        duration_millis=int(result.duration_seconds * 1000),
        log_file=log_file,
        diagnostic=diagnostic,
        failure=failure,
        output=result.output,
    )


class AgentRunner(ABC):
    """Abstract base class for agent backends."""

    kind: str = ""

    def __init__(self, config: Optional[BenchConfig] = None):
        self.config = config or BenchConfig()

    @abstractmethod
    def run(
        self,
        workspace_dir: Union[str, Path],
        spec: AgentSpec,
        timeout_seconds: float,
        run_log: Optional[RunLog] = None,
    ) -> AgentResult:
        """Run the agent in ``workspace_dir`` within ``timeout_seconds``.

        Args:
            workspace_dir: Directory the agent works in (its cwd).
            spec: Agent spec; prompt and parameters are passed through.
            timeout_seconds: Hard deadline for the whole invocation.
            run_log: Log to record the run in. A standalone one is created if None.

        Returns:
            AgentResult; agent failures are reported on it, never raised.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can be launched on this host. Never raises."""

    def version(self) -> str:
        return "unknown"

    def open_run_log(self, run_log: Optional[RunLog] = None) -> RunLog:
        """Return ``run_log`` or a fresh standalone log for this runner."""
        if run_log is not None:
            return run_log
        run_id = str(uuid.uuid4())
        return RunLog(Path(self.config.reports_dir) / "agent-runs" / run_id, run_id)


class CliAgentRunner(AgentRunner):
    """Base class for agents driven through a command-line executable.

    Subclasses only decide the command line. Launching, the deadline,
    output capture and result normalization are shared.
    """

    default_binary: str = ""
    label: str = "AGENT"

    def __init__(self, config: Optional[BenchConfig] = None, binary: Optional[str] = None):
        super().__init__(config)
        self.backend: AgentBackendConfig = self.config.agent_config(self.kind)
        self.binary = binary or self.backend.binary or self.default_binary

    @abstractmethod
    def build_command(self, workspace_dir: Path, spec: AgentSpec) -> list[str]:
        """Command line that runs the agent on ``spec.prompt``."""

    def build_env(self, spec: AgentSpec) -> dict[str, str]:
        """Environment for the agent process.

        ``role`` and ``gen_params`` are exported untouched so that wrapper
        scripts can pick them up.
        """
        env = dict(os.environ)
        env.update(self.backend.env)
        env["AGENTBENCH_ROLE"] = spec.role
        env["AGENTBENCH_GEN_PARAMS"] = json.dumps(spec.gen_params, default=str)
        return env

    def model_for(self, spec: AgentSpec) -> Optional[str]:
        return spec.model or self.backend.default_model

    def format_output(self, result: ProcessResult, spec: AgentSpec) -> str:
        """Render captured output for the run log."""
        return f"=== STDOUT ===\n{result.stdout}\n=== STDERR ===\n{result.stderr}\n"

    def run(
        self,
        workspace_dir: Union[str, Path],
        spec: AgentSpec,
        timeout_seconds: float,
        run_log: Optional[RunLog] = None,
    ) -> AgentResult:
        log = self.open_run_log(run_log)
        workspace = Path(workspace_dir).resolve()
        command = self.build_command(workspace, spec)

        logger.info(
            f"Running {self.kind}: binary={self.binary}, model={self.model_for(spec)}, "
            f"timeout={timeout_seconds:g}s"
        )
        log.log("AGENT", f"{self.kind} starting in {workspace} (timeout {timeout_seconds:g}s)")

        result = run_process(
            command,
            cwd=workspace,
            timeout=timeout_seconds,
            env=self.build_env(spec),
            max_output_bytes=self.config.max_output_bytes,
        )
        agent_result = agent_result_from_process(result, timeout_seconds, str(log.path))

        log.log_block("AGENT", f"=== {self.label} OUTPUT ===", self.format_output(result, spec))
        if agent_result.succeeded:
            log.log("AGENT", f"{self.kind} finished in {agent_result.duration_millis}ms")
            logger.info(f"{self.kind} finished: exit_code=0, duration={result.duration_seconds:.1f}s")
        else:
            log.log("AGENT", f"{self.kind} failed: {agent_result.diagnostic}")
            logger.warning(f"{self.kind} failed: {agent_result.diagnostic}")
        return agent_result

    def is_available(self) -> bool:
        try:
            result = run_process(
                [self.binary, "--version"], timeout=AVAILABILITY_TIMEOUT_SECONDS
            )
        except Exception as e:
            logger.debug(f"Availability probe for {self.binary} failed: {e}")
            return False
        return result.spawn_error is None and not result.timed_out

    def version(self) -> str:
        return probe_version(self.binary)
