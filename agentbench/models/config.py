"""Configuration management and case loading for the benchmark."""

import os
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from ..errors import CaseLoadError
from .schemas import AgentKind, BenchCase

DEFAULT_CLONE_URL_TEMPLATE = "https://github.com/{owner}/{name}.git"


class AgentBackendConfig(BaseModel):
    """How to launch one agent backend."""

    binary: Optional[str] = Field(default=None, description="Executable name or path")
    command: list[str] = Field(
        default_factory=list, description="Full command line for 'command' agents"
    )
    extra_args: list[str] = Field(default_factory=list, description="Arguments appended to every call")
    env: dict[str, str] = Field(default_factory=dict, description="Extra environment variables")
    default_model: Optional[str] = Field(default=None, description="Model used when the case omits one")
    max_turns: int = Field(default=50, description="Turn limit for agents that support one")


def _default_agents() -> dict[str, AgentBackendConfig]:
    return {
        AgentKind.CLAUDE_CODE.value: AgentBackendConfig(binary="claude"),
        AgentKind.GEMINI.value: AgentBackendConfig(
            binary="gemini", default_model="gemini-2.0-flash-exp"
        ),
        AgentKind.CODEX.value: AgentBackendConfig(binary="codex"),
    }


class BenchConfig(BaseModel):
    """Benchmark configuration, built once and passed to every component."""

    work_dir: Optional[str] = Field(
        default=None, description="Base directory for workspaces (system temp if unset)"
    )
    reports_dir: str = Field(default="bench-reports", description="Directory for run logs and reports")
    checkout_timeout_seconds: int = Field(default=180, gt=0, description="Default checkout budget")
    agent_timeout_seconds: int = Field(default=300, gt=0, description="Default agent budget")
    judge_timeout_seconds: int = Field(default=120, gt=0, description="Default judge budget")
    max_output_bytes: int = Field(
        default=1024 * 1024, gt=0, description="Cap on captured output per process stream"
    )
    max_workers: int = Field(default=4, gt=0, description="Concurrent runs in one benchmark")
    git_binary: str = Field(default="git", description="git executable")
    clone_url_template: str = Field(
        default=DEFAULT_CLONE_URL_TEMPLATE,
        description="Clone URL with {owner} and {name} placeholders",
    )
    agents: dict[str, AgentBackendConfig] = Field(
        default_factory=_default_agents, description="Per-kind backend settings"
    )

    # Loaded from the environment
    github_token: Optional[str] = Field(default=None, exclude=True, repr=False)

    def agent_config(self, kind: str) -> AgentBackendConfig:
        """Return backend settings for a kind, or defaults if none are configured."""
        return self.agents.get(kind) or AgentBackendConfig()

    @property
    def workspace_base(self) -> Path:
        return Path(self.work_dir) if self.work_dir else Path(tempfile.gettempdir())


def load_config(config_path: Optional[str] = None) -> BenchConfig:
    """Load configuration from file and environment.

    Args:
        config_path: Path to YAML config file. Missing files fall back to defaults.

    Returns:
        Loaded BenchConfig object.
    """
    load_dotenv()

    config_dict = {}
    if config_path:
        config_file = Path(config_path)
        if config_file.exists():
            with open(config_file) as f:
                config_dict = yaml.safe_load(f) or {}

    # Backends named in the file are merged over the built-in defaults
    agents = {k: v.model_dump() for k, v in _default_agents().items()}
    for kind, backend in (config_dict.pop("agents", None) or {}).items():
        agents[kind] = {**agents.get(kind, {}), **(backend or {})}

    config = BenchConfig(**config_dict, agents=agents)
    config.github_token = os.getenv("GITHUB_TOKEN") or config.github_token
    return config


def load_case(case_path: Union[str, Path]) -> BenchCase:
    """Load a single bench case from a YAML file.

    Args:
        case_path: Path to the case file.

    Returns:
        The validated, immutable BenchCase.

    Raises:
        CaseLoadError: If the file cannot be read, parsed or validated.
    """
    path = Path(case_path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise CaseLoadError(f"cannot read case {path}: {e}") from e

    if not isinstance(data, dict):
        raise CaseLoadError(f"case {path} must be a YAML mapping")

    try:
        return BenchCase.model_validate(data)
    except ValidationError as e:
        raise CaseLoadError(f"invalid case {path}: {e}") from e


def load_cases(paths: Iterable[Union[str, Path]]) -> list[BenchCase]:
    """Load cases from files and directories (scanned for *.yaml / *.yml).

    Raises:
        CaseLoadError: On the first unreadable case, or on duplicate ids.
    """
    files: list[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            files.extend(sorted(list(p.glob("*.yaml")) + list(p.glob("*.yml"))))
        else:
            files.append(p)

    cases = [load_case(f) for f in files]
    seen: set[str] = set()
    for case in cases:
        if case.id in seen:
            raise CaseLoadError(f"duplicate case id: {case.id}")
        seen.add(case.id)
    return cases
