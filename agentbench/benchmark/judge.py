"""Deterministic judge pipeline over a workspace.

A pipeline is an ordered list of checks. Evaluation stops at the first check
that does not pass, so later checks may assume earlier ones held (a content
check can rely on the file-exists check before it).
"""

import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from ..errors import VerificationError
from ..models.schemas import (
    Check,
    CheckSpec,
    CheckType,
    Judgment,
    JudgmentStatus,
    MatchMode,
    SuccessSpec,
)
from ..utils.logging_utils import get_logger
from ..utils.process import run_process, shell_command

logger = get_logger(__name__)

_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t", "\\": "\\\\"}


def visible(text: str) -> str:
    """Escape newlines and other non-printable characters for diagnostics."""
    out = []
    for ch in text:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ch.isprintable():
            out.append(ch)
        elif ord(ch) < 0x100:
            out.append(f"\\x{ord(ch):02x}")
        else:
            out.append(f"\\u{ord(ch):04x}")
    return "".join(out)


def resolve_in_workspace(workspace_root: Path, rel_path: str) -> Optional[Path]:
    """Resolve ``rel_path`` under the root, or None if it escapes the root."""
    root = Path(workspace_root).resolve()
    target = (root / rel_path).resolve()
    if target == root or root in target.parents:
        return target
    return None


class JudgeCheck(ABC):
    """A single check the judge can run against a workspace."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Name recorded on the resulting Check."""

    @abstractmethod
    def evaluate(self, workspace_root: Path, timeout_seconds: Optional[float] = None) -> Check:
        """Evaluate the check.

        Returns a passing or failing Check for expected outcomes. Raises
        VerificationError (or returns a Check with ``error=True``) when the
        workspace cannot be inspected.
        """

    def _result(self, passed: bool, detail: str = "", error: bool = False) -> Check:
        return Check(name=self.name, passed=passed, detail=detail, error=error)


class FileExistsCheck(JudgeCheck):
    """Passes iff the path is a regular file inside the workspace."""

    def __init__(self, path: str):
        self.path = path

    @property
    def name(self) -> str:
        return f"file-exists:{self.path}"

    def evaluate(self, workspace_root: Path, timeout_seconds: Optional[float] = None) -> Check:
        target = resolve_in_workspace(workspace_root, self.path)
        if target is None:
            return self._result(False, f"{self.path} is outside the workspace")
        if not target.exists():
            return self._result(False, f"{self.path} does not exist")
        if not target.is_file():
            return self._result(False, f"{self.path} is not a regular file")
        return self._result(True, f"{self.path} exists")


class FileContentCheck(JudgeCheck):
    """Compares a file's content with an expectation.

    EXACT compares the file bytes with the UTF-8 encoding of the expectation:
    no trimming and no newline normalization. CONTAINS and REGEX work on the
    decoded text, with undecodable bytes replaced. REGEX matches anywhere.
    """

    def __init__(self, path: str, expected: str, mode: MatchMode = MatchMode.EXACT):
        self.path = path
        self.expected = expected
        self.mode = MatchMode(mode)

    @property
    def name(self) -> str:
        return f"file-content:{self.path}"

    def evaluate(self, workspace_root: Path, timeout_seconds: Optional[float] = None) -> Check:
        target = resolve_in_workspace(workspace_root, self.path)
        if target is None:
            return self._result(False, f"{self.path} is outside the workspace")
        if not target.is_file():
            return self._result(False, f"{self.path} does not exist")

        try:
            # Bytes, so that \r\n is not translated
            raw = target.read_bytes()
        except OSError as e:
            raise VerificationError(f"error reading file: {e}") from e

        try:
            actual = raw.decode("utf-8")
            got = f"'{visible(actual)}' (len={len(actual)})"
        except UnicodeDecodeError:
            actual = raw.decode("utf-8", errors="replace")
            got = f"'{visible(actual)}' (len={len(actual)}, not valid UTF-8)"

        if self.mode == MatchMode.EXACT:
            if raw == self.expected.encode("utf-8"):
                return self._result(True, "content matches")
            return self._result(
                False,
                f"expected '{visible(self.expected)}' (len={len(self.expected)}) but got {got}",
            )

        if self.mode == MatchMode.CONTAINS:
            if self.expected in actual:
                return self._result(True, "content contains expected text")
            return self._result(
                False, f"expected content containing '{visible(self.expected)}' but got {got}"
            )

        try:
            pattern = re.compile(self.expected)
        except re.error as e:
            raise VerificationError(f"invalid pattern {self.expected!r}: {e}") from e
        if pattern.search(actual):
            return self._result(True, "content matches pattern")
        return self._result(
            False, f"expected content matching /{visible(self.expected)}/ but got {got}"
        )


class CommandCheck(JudgeCheck):
    """Runs a shell command in the workspace and compares its exit code."""

    DEFAULT_TIMEOUT_SECONDS = 120.0
    OUTPUT_TAIL_CHARS = 500

    def __init__(self, cmd: str, expected_exit_code: int = 0, max_output_bytes: Optional[int] = None):
        self.cmd = cmd
        self.expected_exit_code = expected_exit_code
        self.max_output_bytes = max_output_bytes

    @property
    def name(self) -> str:
        return f"command:{self.cmd}"

    def evaluate(self, workspace_root: Path, timeout_seconds: Optional[float] = None) -> Check:
        timeout = timeout_seconds if timeout_seconds is not None else self.DEFAULT_TIMEOUT_SECONDS
        kwargs = {}
        if self.max_output_bytes:
            kwargs["max_output_bytes"] = self.max_output_bytes
        result = run_process(
            shell_command(self.cmd), cwd=workspace_root, timeout=timeout, **kwargs
        )

        if result.spawn_error:
            return self._result(False, f"could not start: {result.spawn_error}", error=True)
        if result.timed_out:
            return self._result(False, f"timed out after {timeout:g}s", error=True)
        if result.exit_code == self.expected_exit_code:
            return self._result(True, f"exit code {result.exit_code}")

        tail = result.output.strip()[-self.OUTPUT_TAIL_CHARS:]
        detail = f"expected exit code {self.expected_exit_code} but got {result.exit_code}"
        if tail:
            detail += f"; output: {tail}"
        return self._result(False, detail)


def check_from_spec(spec: CheckSpec, max_output_bytes: Optional[int] = None) -> JudgeCheck:
    """Build the check a CheckSpec declares."""
    if spec.type == CheckType.FILE_EXISTS:
        return FileExistsCheck(spec.path)
    if spec.type == CheckType.FILE_CONTENT:
        return FileContentCheck(spec.path, spec.expected, spec.mode)
    if spec.type == CheckType.COMMAND:
        return CommandCheck(spec.cmd, spec.expected_exit_code, max_output_bytes)
    raise ValueError(f"Unsupported check type: {spec.type}")


def build_checks(success: SuccessSpec, max_output_bytes: Optional[int] = None) -> list[JudgeCheck]:
    """Checks for a success criterion: declared checks in order, then ``cmd``."""
    checks = [check_from_spec(c, max_output_bytes) for c in success.checks]
    if success.cmd:
        checks.append(CommandCheck(success.cmd, success.expected_exit_code, max_output_bytes))
    return checks


class JudgePipeline:
    """Evaluates checks in order and stops at the first one that does not pass."""

    def __init__(self, checks: list[JudgeCheck]):
        self.checks = list(checks)

    def judge(
        self,
        workspace_root: Union[str, Path],
        timeout_seconds: Optional[float] = None,
    ) -> Judgment:
        """Judge a workspace.

        Args:
            workspace_root: Directory the checks inspect.
            timeout_seconds: Budget shared by all checks; None for no limit.

        Returns:
            Judgment with status PASS, FAIL (a check failed) or ERROR (a check
            could not be evaluated).
        """
        root = Path(workspace_root)
        if not self.checks:
            return Judgment(
                passed=False,
                status=JudgmentStatus.ERROR,
                score=False,
                reasoning="no checks configured",
            )

        deadline = time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        evaluated: list[Check] = []
        for check in self.checks:
            remaining = None
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    evaluated.append(
                        Check(name=check.name, passed=False, detail="judge budget exhausted", error=True)
                    )
                    return self._verdict(evaluated)

            try:
                result = check.evaluate(root, remaining)
            except Exception as e:
                logger.warning(f"Check {check.name} could not be evaluated: {e}")
                result = Check(name=check.name, passed=False, detail=str(e), error=True)

            evaluated.append(result)
            logger.debug(f"Check {result.name}: passed={result.passed} {result.detail}")
            if not result.passed:
                return self._verdict(evaluated)

        return self._verdict(evaluated)

    @staticmethod
    def _verdict(checks: list[Check]) -> Judgment:
        last = checks[-1]
        if last.passed:
            return Judgment(
                passed=True,
                status=JudgmentStatus.PASS,
                score=True,
                reasoning=f"All {len(checks)} checks passed",
                checks=checks,
            )
        if last.error:
            return Judgment(
                passed=False,
                status=JudgmentStatus.ERROR,
                score=False,
                reasoning=f"{last.name} could not be evaluated: {last.detail}",
                checks=checks,
            )
        return Judgment(
            passed=False,
            status=JudgmentStatus.FAIL,
            score=False,
            reasoning=f"{last.name} failed: {last.detail}",
            checks=checks,
        )


def judge_success(
    workspace_root: Union[str, Path],
    success: SuccessSpec,
    timeout_seconds: Optional[float] = None,
    max_output_bytes: Optional[int] = None,
) -> Judgment:
    """Build the pipeline for a success criterion and judge the workspace."""
    return JudgePipeline(build_checks(success, max_output_bytes)).judge(workspace_root, timeout_seconds)
