"""Run pipeline: workspaces, checkout, judging, harness and benchmark runner."""

from .checkout import RepoCheckout
from .harness import BenchHarness
from .judge import (
    CommandCheck,
    FileContentCheck,
    FileExistsCheck,
    JudgeCheck,
    JudgePipeline,
    build_checks,
    judge_success,
)
from .results import BenchmarkResults, ResultsAggregator
from .runner import BenchmarkRunner, run_benchmark
from .workspace import Workspace, WorkspaceState, create_workspace

__all__ = [
    "BenchHarness",
    "BenchmarkResults",
    "BenchmarkRunner",
    "CommandCheck",
    "FileContentCheck",
    "FileExistsCheck",
    "JudgeCheck",
    "JudgePipeline",
    "RepoCheckout",
    "ResultsAggregator",
    "Workspace",
    "WorkspaceState",
    "build_checks",
    "create_workspace",
    "judge_success",
    "run_benchmark",
]
