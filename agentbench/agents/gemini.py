"""Gemini CLI agent runner."""

from pathlib import Path

from ..models.schemas import AgentKind, AgentSpec
from .base import CliAgentRunner

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash-exp"


class GeminiAgentRunner(CliAgentRunner):
    """Runs ``gemini -p`` non-interactively; ``--yolo`` when auto-approving."""

    kind = AgentKind.GEMINI.value
    default_binary = "gemini"
    label = "GEMINI"

    def build_command(self, workspace_dir: Path, spec: AgentSpec) -> list[str]:
        cmd = [self.binary, "-m", self.model_for(spec) or DEFAULT_GEMINI_MODEL]
        if spec.auto_approve:
            cmd.append("--yolo")
        cmd.extend(self.backend.extra_args)
        cmd.extend(["-p", spec.prompt])
        return cmd
