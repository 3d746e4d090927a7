"""Agent runner for arbitrary launcher commands."""

from pathlib import Path
from shutil import which
from typing import Optional

from ..models.config import BenchConfig
from ..models.schemas import AgentKind, AgentSpec
from .base import CliAgentRunner


class CommandAgentRunner(CliAgentRunner):
    """Runs a configured command line as the agent.

    The command comes from ``agents.command.command`` in the config (or the
    constructor). Generation parameters are appended as ``key=value``
    arguments and the prompt is exported as ``AGENTBENCH_PROMPT``.
    """

    kind = AgentKind.COMMAND.value
    label = "COMMAND"

    def __init__(self, config: Optional[BenchConfig] = None, command: Optional[list[str]] = None):
        super().__init__(config)
        self.command = list(command or self.backend.command)
        if not self.command and self.backend.binary:
            self.command = [self.backend.binary]
        self.binary = self.command[0] if self.command else ""

    def build_command(self, workspace_dir: Path, spec: AgentSpec) -> list[str]:
        cmd = list(self.command) + list(self.backend.extra_args)
        cmd.extend(f"{k}={v}" for k, v in spec.gen_params.items())
        return cmd

    def build_env(self, spec: AgentSpec) -> dict[str, str]:
        env = super().build_env(spec)
        env["AGENTBENCH_PROMPT"] = spec.prompt
        if spec.model:
            env["AGENTBENCH_MODEL"] = spec.model
        return env

    def is_available(self) -> bool:
        # Launchers need not support --version; existence is what matters
        if not self.command:
            return False
        return which(self.command[0]) is not None
