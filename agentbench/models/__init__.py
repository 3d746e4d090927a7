"""Data models and configuration for agentbench."""

from .config import AgentBackendConfig, BenchConfig, load_case, load_cases, load_config
from .schemas import (
    AgentFailure,
    AgentKind,
    AgentResult,
    AgentSpec,
    BenchCase,
    BenchResult,
    Check,
    CheckSpec,
    CheckType,
    Judgment,
    JudgmentStatus,
    MatchMode,
    PhaseTimeouts,
    RepoSpec,
    RunStage,
    SuccessSpec,
)

__all__ = [
    "AgentBackendConfig",
    "AgentFailure",
    "AgentKind",
    "AgentResult",
    "AgentSpec",
    "BenchCase",
    "BenchConfig",
    "BenchResult",
    "Check",
    "CheckSpec",
    "CheckType",
    "Judgment",
    "JudgmentStatus",
    "MatchMode",
    "PhaseTimeouts",
    "RepoSpec",
    "RunStage",
    "SuccessSpec",
    "load_case",
    "load_cases",
    "load_config",
]
