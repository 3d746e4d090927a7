"""Materialize a repository at a given ref into a fresh workspace."""

import os
import re
import time
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from ..errors import CheckoutError, CheckoutErrorKind
from ..models.config import BenchConfig
from ..models.schemas import RepoSpec
from ..utils.logging_utils import get_logger
from ..utils.process import ProcessResult, run_process
from .workspace import Workspace, create_workspace

logger = get_logger(__name__)

_SHA_RE = re.compile(r"[0-9a-fA-F]{7,40}")

# Checked in order; the first matching kind wins
_FAILURE_PATTERNS = [
    (
        CheckoutErrorKind.AUTH,
        [
            "authentication failed",
            "could not read username",
            "could not read password",
            "terminal prompts disabled",
            "permission denied",
            "invalid username or password",
            "access denied",
            "403",
        ],
    ),
    (
        CheckoutErrorKind.NOT_FOUND,
        [
            "not found",
            "did not match any",
            "unknown revision",
            "does not exist",
            "couldn't find remote ref",
            "does not appear to be a git repository",
            "reference is not a tree",
        ],
    ),
]


def looks_like_sha(ref: str) -> bool:
    return bool(_SHA_RE.fullmatch(ref))


def classify_git_failure(output: str) -> CheckoutErrorKind:
    """Map git's error output to a checkout failure kind."""
    text = output.lower()
    for kind, needles in _FAILURE_PATTERNS:
        if any(n in text for n in needles):
            return kind
    return CheckoutErrorKind.IO


class RepoCheckout:
    """Clones ``owner/name@ref`` into a new workspace within a time budget.

    The returned workspace always holds a complete checkout. On any failure
    the partially populated directory is deleted before CheckoutError is
    raised.
    """

    def __init__(self, config: Optional[BenchConfig] = None):
        self.config = config or BenchConfig()

    def clone_url(self, spec: RepoSpec) -> str:
        """Clone URL for a repo, with credentials embedded when configured."""
        url = self.config.clone_url_template.format(owner=spec.owner, name=spec.name)
        token = self.config.github_token
        if token and url.startswith("https://"):
            parts = urlsplit(url)
            netloc = f"x-access-token:{quote(token, safe='')}@{parts.hostname}"
            if parts.port:
                netloc += f":{parts.port}"
            url = urlunsplit(parts._replace(netloc=netloc))
        return url

    def checkout(self, spec: RepoSpec, timeout_seconds: float) -> Workspace:
        """Clone the repository and check out the requested ref.

        Args:
            spec: Repository owner, name and ref.
            timeout_seconds: Budget shared by every git step.

        Returns:
            An open Workspace containing the checkout.

        Raises:
            CheckoutError: With kind TIMEOUT, AUTH, NOT_FOUND or IO.
        """
        deadline = time.monotonic() + timeout_seconds
        try:
            workspace = create_workspace(self.config.workspace_base)
        except OSError as e:
            raise CheckoutError(CheckoutErrorKind.IO, f"cannot create workspace: {e}") from e

        logger.info(f"Checking out {spec.slug} into {workspace.dir}")
        try:
            url = self.clone_url(spec)
            target = str(workspace.dir)
            git = self.config.git_binary
            if looks_like_sha(spec.ref):
                self._git([git, "clone", "--quiet", url, target], deadline, "git clone")
                self._git([git, "-C", target, "checkout", "--quiet", spec.ref], deadline, "git checkout")
            else:
                self._git(
                    [git, "clone", "--quiet", "--depth", "1", "--branch", spec.ref, url, target],
                    deadline,
                    "git clone",
                )
        except BaseException:
            workspace.close()
            raise

        logger.info(f"Checked out {spec.slug}")
        return workspace

    def _git(self, command: list[str], deadline: float, step: str) -> ProcessResult:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise CheckoutError(CheckoutErrorKind.TIMEOUT, f"budget exhausted before {step}")

        env = dict(os.environ)
        env["GIT_TERMINAL_PROMPT"] = "0"
        result = run_process(command, timeout=remaining, env=env)

        if result.spawn_error:
            raise CheckoutError(CheckoutErrorKind.IO, f"{step} could not start: {result.spawn_error}")
        if result.timed_out:
            raise CheckoutError(CheckoutErrorKind.TIMEOUT, f"{step} timed out")
        if not result.succeeded:
            output = self._redact(result.output.strip())
            kind = classify_git_failure(output)
            raise CheckoutError(kind, f"{step} failed (exit code: {result.exit_code}) output: {output}")
        return result

    def _redact(self, text: str) -> str:
        token = self.config.github_token
        if token:
            text = text.replace(quote(token, safe=""), "***").replace(token, "***")
        return text
