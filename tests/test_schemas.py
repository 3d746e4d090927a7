"""Tests for the pydantic schemas."""

import pytest
from pydantic import ValidationError

from agentbench.models.schemas import (
    AgentResult,
    AgentSpec,
    BenchCase,
    Check,
    CheckSpec,
    CheckType,
    Judgment,
    JudgmentStatus,
    MatchMode,
    RepoSpec,
    SuccessSpec,
)


class TestRepoSpec:
    def test_slug(self):
        spec = RepoSpec(owner="octo", name="demo", ref="v1.0")
        assert spec.slug == "octo/demo@v1.0"

    def test_ref_defaults_to_main(self):
        assert RepoSpec(owner="octo", name="demo").ref == "main"


class TestAgentSpec:
    def test_defaults(self):
        spec = AgentSpec(kind="claude-code")
        assert spec.role == "coder"
        assert spec.auto_approve is True
        assert spec.gen_params == {}
        assert spec.model is None

    def test_accepts_camel_case(self):
        spec = AgentSpec.model_validate(
            {"kind": "gemini", "autoApprove": False, "genParams": {"temperature": 0.2}}
        )
        assert spec.auto_approve is False
        assert spec.gen_params == {"temperature": 0.2}

    def test_is_frozen(self):
        spec = AgentSpec(kind="codex")
        with pytest.raises(ValidationError):
            spec.prompt = "changed"


class TestCheckSpec:
    def test_file_exists_requires_path(self):
        with pytest.raises(ValidationError):
            CheckSpec(type=CheckType.FILE_EXISTS)

    def test_file_content_requires_expected(self):
        with pytest.raises(ValidationError):
            CheckSpec(type=CheckType.FILE_CONTENT, path="a.txt")

    def test_empty_expected_is_allowed(self):
        spec = CheckSpec(type=CheckType.FILE_CONTENT, path="a.txt", expected="")
        assert spec.expected == ""

    def test_command_requires_cmd(self):
        with pytest.raises(ValidationError):
            CheckSpec(type=CheckType.COMMAND)

    def test_mode_defaults_to_exact(self):
        spec = CheckSpec(type="file-content", path="a.txt", expected="x")
        assert spec.mode == MatchMode.EXACT


class TestSuccessSpec:
    def test_requires_cmd_or_checks(self):
        with pytest.raises(ValidationError):
            SuccessSpec()

    def test_cmd_only(self):
        spec = SuccessSpec(cmd="make test")
        assert spec.expected_exit_code == 0
        assert spec.checks == []

    def test_camel_case_exit_code(self):
        spec = SuccessSpec.model_validate({"cmd": "false", "expectedExitCode": 1})
        assert spec.expected_exit_code == 1


class TestBenchCase:
    def test_minimal(self):
        case = BenchCase(
            id="c1",
            agent=AgentSpec(kind="hello-world"),
            success=SuccessSpec(cmd="true"),
        )
        assert case.repo is None
        assert case.timeout_sec is None
        assert case.category == "coding"

    def test_is_frozen(self):
        case = BenchCase(id="c1", agent={"kind": "hello-world"}, success={"cmd": "true"})
        with pytest.raises(ValidationError):
            case.id = "c2"

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            BenchCase(
                id="c1", agent={"kind": "hello-world"}, success={"cmd": "true"}, timeout_sec=0
            )

    def test_from_camel_case_dict(self):
        case = BenchCase.model_validate({
            "id": "c1",
            "repo": {"owner": "o", "name": "n", "ref": "abc1234"},
            "agent": {"kind": "codex", "model": "gpt-5"},
            "success": {"checks": [{"type": "file-exists", "path": "x"}]},
            "timeoutSec": 60,
            "phaseTimeouts": {"agentSec": 30},
        })
        assert case.timeout_sec == 60
        assert case.phase_timeouts.agent_sec == 30
        assert case.repo.ref == "abc1234"


class TestAgentResult:
    def test_succeeded_only_on_zero(self):
        assert AgentResult(exit_code=0).succeeded
        assert not AgentResult(exit_code=1).succeeded
        assert not AgentResult(exit_code=None).succeeded


class TestJudgment:
    def test_serializes_pass_by_alias(self):
        judgment = Judgment(
            passed=True,
            status=JudgmentStatus.PASS,
            score=True,
            checks=[Check(name="c", passed=True)],
        )
        dumped = judgment.model_dump(by_alias=True)
        assert dumped["pass"] is True
        assert "passed" not in dumped

    def test_accepts_pass_key(self):
        judgment = Judgment.model_validate({"pass": False, "status": "FAIL"})
        assert judgment.passed is False
        assert judgment.status == JudgmentStatus.FAIL

    def test_scalar_score(self):
        judgment = Judgment(passed=True, status=JudgmentStatus.PASS, score=0.75)
        assert judgment.score == 0.75
