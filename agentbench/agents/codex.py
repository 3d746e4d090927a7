"""Codex CLI agent runner."""

import json
from pathlib import Path

from ..models.schemas import AgentKind, AgentSpec
from .base import CliAgentRunner


class CodexAgentRunner(CliAgentRunner):
    """Runs ``codex exec`` against the workspace.

    ``gen_params`` become ``-c key=value`` config overrides, the mechanism
    codex offers for per-invocation settings.
    """

    kind = AgentKind.CODEX.value
    default_binary = "codex"
    label = "CODEX"

    def build_command(self, workspace_dir: Path, spec: AgentSpec) -> list[str]:
        cmd = [self.binary, "exec"]
        if spec.auto_approve:
            cmd.append("--full-auto")
        cmd.append("--ephemeral")
        model = self.model_for(spec)
        if model:
            cmd.extend(["-m", model])
        cmd.extend(["-C", str(workspace_dir), "--skip-git-repo-check"])
        for key, value in spec.gen_params.items():
            rendered = value if isinstance(value, str) else json.dumps(value)
            cmd.extend(["-c", f"{key}={rendered}"])
        cmd.extend(self.backend.extra_args)
        cmd.append(spec.prompt)
        return cmd
