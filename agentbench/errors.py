"""Exception types raised by the benchmark pipeline."""

from enum import Enum


class AgentBenchError(Exception):
    """Base class for all agentbench errors."""


class CheckoutErrorKind(str, Enum):
    """Why a repository checkout failed."""

    TIMEOUT = "TIMEOUT"
    AUTH = "AUTH"
    NOT_FOUND = "NOT_FOUND"
    IO = "IO"


class CheckoutError(AgentBenchError):
    """Raised when a repository could not be materialized into a workspace.

    No workspace is handed back when this is raised; any partially cloned
    directory has already been deleted.
    """

    def __init__(self, kind: CheckoutErrorKind, message: str):
        super().__init__(f"checkout failed ({kind.value}): {message}")
        self.kind = kind
        self.message = message


class VerificationError(AgentBenchError):
    """Raised by a judge check that cannot evaluate the workspace."""


class CaseLoadError(AgentBenchError):
    """Raised when a bench case file cannot be read or validated."""
