"""Shared fixtures for the test suite."""

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from agentbench.agents import hello_world_success
from agentbench.models.config import AgentBackendConfig, BenchConfig
from agentbench.models.schemas import AgentSpec, BenchCase

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires POSIX process groups")
requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


@pytest.fixture
def work_dir(tmp_path):
    """Directory that workspaces are created under."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def bench_config(tmp_path, work_dir):
    """Create a test configuration rooted in tmp_path."""
    return BenchConfig(
        work_dir=str(work_dir),
        reports_dir=str(tmp_path / "reports"),
        checkout_timeout_seconds=30,
        agent_timeout_seconds=30,
        judge_timeout_seconds=30,
        max_workers=2,
    )


def python_agent_config(config: BenchConfig, code: str) -> BenchConfig:
    """Copy of ``config`` whose 'command' agent runs ``python -c code``."""
    agents = dict(config.agents)
    agents["command"] = AgentBackendConfig(command=[sys.executable, "-c", code])
    return config.model_copy(update={"agents": agents})


@pytest.fixture
def hello_case():
    """Create a hello-world BenchCase with the standard success criterion."""
    return BenchCase(
        id="hello-world",
        category="hello-world",
        agent=AgentSpec(kind="hello-world", prompt="Write hello.txt"),
        success=hello_world_success(),
    )


def command_case(case_id: str = "command-case", timeout_sec=None) -> BenchCase:
    return BenchCase(
        id=case_id,
        category="coding",
        agent=AgentSpec(kind="command", prompt="do the thing"),
        success=hello_world_success(),
        timeout_sec=timeout_sec,
    )


def workspace_dirs(work_dir: Path) -> list[Path]:
    return sorted(p for p in work_dir.iterdir() if p.is_dir())


def _git(*args, cwd):
    subprocess.run(
        ["git", "-c", "user.name=Bench", "-c", "user.email=bench@example.com", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture
def origin_repo(tmp_path):
    """A local git repository at <tmp>/origin/octo/demo.

    ``main`` holds two commits; ``first_sha`` names the first one.
    """
    repo = tmp_path / "origin" / "octo" / "demo"
    repo.mkdir(parents=True)
    _git("init", "--quiet", cwd=repo)
    (repo / "README.md").write_text("first\n")
    _git("add", "README.md", cwd=repo)
    _git("commit", "--quiet", "-m", "first", cwd=repo)
    _git("branch", "-M", "main", cwd=repo)
    first_sha = subprocess.run(
        ["git", "rev-parse", "HEAD"], cwd=repo, check=True, capture_output=True, text=True
    ).stdout.strip()
    (repo / "README.md").write_text("second\n")
    _git("commit", "--quiet", "-am", "second", cwd=repo)
    return {
        "path": repo,
        "first_sha": first_sha,
        "url_template": f"file://{tmp_path / 'origin'}/{{owner}}/{{name}}",
    }
