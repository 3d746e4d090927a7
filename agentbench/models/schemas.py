"""Pydantic schemas for bench cases, agent results and judgments.

Case-side models (``BenchCase`` and everything it contains) are frozen and
accept both the camelCase keys used in case files and snake_case names.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel

CASE_MODEL_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "ignore",
}


# =============================================================================
# Bench case
# =============================================================================


class AgentKind(str, Enum):
    """Built-in agent backends. Further kinds can be registered at runtime."""

    HELLO_WORLD = "hello-world"
    CLAUDE_CODE = "claude-code"
    GEMINI = "gemini"
    CODEX = "codex"
    COMMAND = "command"


class MatchMode(str, Enum):
    """How a file-content check compares the file against the expectation."""

    EXACT = "EXACT"
    CONTAINS = "CONTAINS"
    REGEX = "REGEX"


class CheckType(str, Enum):
    """Kinds of structured checks a success criterion can declare."""

    FILE_EXISTS = "file-exists"
    FILE_CONTENT = "file-content"
    COMMAND = "command"


class RepoSpec(BaseModel):
    """Repository state a case starts from."""

    owner: str = Field(..., description="Repository owner or organization")
    name: str = Field(..., description="Repository name")
    ref: str = Field(default="main", description="Branch, tag or commit SHA")

    model_config = CASE_MODEL_CONFIG

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.name}@{self.ref}"


class AgentSpec(BaseModel):
    """Which agent to run and what to hand it. Opaque to the harness."""

    kind: str = Field(..., description="Agent backend key, e.g. 'claude-code'")
    model: Optional[str] = Field(default=None, description="Model identifier passed to the agent")
    auto_approve: bool = Field(default=True, description="Let the agent act without confirmations")
    prompt: str = Field(default="", description="Task prompt given to the agent")
    gen_params: dict[str, Any] = Field(
        default_factory=dict, description="Generation parameters passed through untouched"
    )
    role: str = Field(default="coder", description="Role label passed through to the agent")

    model_config = CASE_MODEL_CONFIG


class CheckSpec(BaseModel):
    """One declared check of a success criterion."""

    type: CheckType = Field(..., description="Check kind")
    path: Optional[str] = Field(default=None, description="Workspace-relative file path")
    expected: Optional[str] = Field(default=None, description="Expected content or pattern")
    mode: MatchMode = Field(default=MatchMode.EXACT, description="Content comparison mode")
    cmd: Optional[str] = Field(default=None, description="Shell command for command checks")
    expected_exit_code: int = Field(default=0, description="Exit code a command check expects")

    model_config = CASE_MODEL_CONFIG

    @model_validator(mode="after")
    def _check_required_fields(self) -> "CheckSpec":
        if self.type in (CheckType.FILE_EXISTS, CheckType.FILE_CONTENT) and not self.path:
            raise ValueError(f"{self.type.value} check requires 'path'")
        if self.type == CheckType.FILE_CONTENT and self.expected is None:
            raise ValueError("file-content check requires 'expected'")
        if self.type == CheckType.COMMAND and not self.cmd:
            raise ValueError("command check requires 'cmd'")
        return self


class SuccessSpec(BaseModel):
    """Success criterion: a shell command, structured checks, or both."""

    cmd: Optional[str] = Field(default=None, description="Shell command run in the workspace")
    expected_exit_code: int = Field(default=0, description="Exit code that counts as success")
    checks: list[CheckSpec] = Field(default_factory=list, description="Ordered structured checks")

    model_config = CASE_MODEL_CONFIG

    @model_validator(mode="after")
    def _require_criterion(self) -> "SuccessSpec":
        if not self.cmd and not self.checks:
            raise ValueError("success requires 'cmd' or at least one check")
        return self


class PhaseTimeouts(BaseModel):
    """Optional per-phase time budgets, in seconds."""

    checkout_sec: Optional[int] = Field(default=None, gt=0)
    agent_sec: Optional[int] = Field(default=None, gt=0)
    judge_sec: Optional[int] = Field(default=None, gt=0)

    model_config = CASE_MODEL_CONFIG


class BenchCase(BaseModel):
    """A declarative benchmark case. Immutable once loaded."""

    id: str = Field(..., description="Unique case identifier")
    category: str = Field(default="coding", description="Case category, e.g. 'coding'")
    version: str = Field(default="1", description="Case definition version")
    repo: Optional[RepoSpec] = Field(
        default=None, description="Repository to check out; None runs in an empty workspace"
    )
    agent: AgentSpec = Field(..., description="Agent to invoke")
    success: SuccessSpec = Field(..., description="Success criterion")
    timeout_sec: Optional[int] = Field(default=None, gt=0, description="Overall run budget")
    phase_timeouts: Optional[PhaseTimeouts] = Field(
        default=None, description="Per-phase budgets, capped by the overall budget"
    )

    model_config = CASE_MODEL_CONFIG


# =============================================================================
# Run outcomes
# =============================================================================


class AgentFailure(str, Enum):
    """Why an agent run did not succeed."""

    SPAWN_FAILED = "SPAWN_FAILED"
    NONZERO_EXIT = "NONZERO_EXIT"
    TIMEOUT = "TIMEOUT"


class AgentResult(BaseModel):
    """Normalized outcome of one agent invocation."""

    exit_code: Optional[int] = Field(
        default=None, description="Process exit code; None if never started or killed"
    )
    duration_millis: int = Field(default=0, description="Wall-clock duration in milliseconds")
    log_file: Optional[str] = Field(default=None, description="Run log the output was written to")
    diagnostic: Optional[str] = Field(default=None, description="Human-readable failure reason")
    failure: Optional[AgentFailure] = Field(default=None, description="Failure class, if any")
    output: str = Field(default="", description="Captured output, possibly truncated")

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class JudgmentStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


class Check(BaseModel):
    """Result of a single judge check."""

    name: str = Field(..., description="Check name")
    passed: bool = Field(..., description="Whether the check passed")
    detail: str = Field(default="", description="Explanation, especially on failure")
    error: bool = Field(default=False, description="True if the check could not be evaluated")


class Judgment(BaseModel):
    """Verdict of the judge pipeline over a workspace."""

    passed: bool = Field(..., alias="pass", description="Overall verdict")
    status: JudgmentStatus = Field(..., description="PASS, FAIL or ERROR")
    score: Union[bool, float] = Field(default=False, description="Boolean or scalar score")
    reasoning: str = Field(default="", description="Summary of why the verdict was reached")
    checks: list[Check] = Field(
        default_factory=list, description="Evaluated checks, up to the first non-passing one"
    )

    model_config = {"populate_by_name": True}


class RunStage(str, Enum):
    """Furthest point a run reached."""

    INIT = "INIT"
    CHECKED_OUT = "CHECKED_OUT"
    AGENT_RAN = "AGENT_RAN"
    JUDGED = "JUDGED"
    DONE = "DONE"
    FAILED = "FAILED"


class BenchResult(BaseModel):
    """Outcome of one bench case run."""

    id: str = Field(..., description="Case identifier")
    run_id: str = Field(default="", description="Unique identifier of this run")
    success: bool = Field(default=False, description="Agent succeeded and judgment passed")
    duration_millis: int = Field(default=0, description="Total duration including checkout")
    checkout_millis: Optional[int] = Field(default=None, description="Time spent checking out")
    log_file: Optional[str] = Field(default=None, description="Path to the run log")
    report_path: Optional[str] = Field(default=None, description="Path to report.json")
    stage: RunStage = Field(default=RunStage.INIT, description="Furthest stage reached")
    agent_result: Optional[AgentResult] = Field(default=None)
    judgment: Optional[Judgment] = Field(default=None)
    error: Optional[str] = Field(default=None, description="Failure cause, if any")
