"""Deterministic stand-in agent used to exercise the pipeline end to end."""

import time
from pathlib import Path
from typing import Optional, Union

from ..models.config import BenchConfig
from ..models.schemas import (
    AgentFailure,
    AgentKind,
    AgentResult,
    AgentSpec,
    CheckSpec,
    CheckType,
    MatchMode,
    SuccessSpec,
)
from ..utils.logging_utils import RunLog, get_logger
from .base import AgentRunner

logger = get_logger(__name__)

HELLO_FILE = "hello.txt"
HELLO_CONTENT = "Hello World!"


def hello_world_success() -> SuccessSpec:
    """Success criterion for hello-world cases: the file exists with exact content."""
    return SuccessSpec(
        checks=[
            CheckSpec(type=CheckType.FILE_EXISTS, path=HELLO_FILE),
            CheckSpec(
                type=CheckType.FILE_CONTENT,
                path=HELLO_FILE,
                expected=HELLO_CONTENT,
                mode=MatchMode.EXACT,
            ),
        ]
    )


class HelloWorldAgentRunner(AgentRunner):
    """Writes ``hello.txt`` into the workspace without launching a process.

    The content defaults to ``Hello World!`` and can be overridden through the
    constructor or ``gen_params["content"]``.
    """

    kind = AgentKind.HELLO_WORLD.value

    def __init__(self, config: Optional[BenchConfig] = None, content: Optional[str] = None):
        super().__init__(config)
        self.content = content

    def run(
        self,
        workspace_dir: Union[str, Path],
        spec: AgentSpec,
        timeout_seconds: float,
        run_log: Optional[RunLog] = None,
    ) -> AgentResult:
        log = self.open_run_log(run_log)
        start = time.time()
        content = spec.gen_params.get("content", self.content)
        if content is None:
            content = HELLO_CONTENT

        target = Path(workspace_dir) / HELLO_FILE
        try:
            target.write_text(str(content), encoding="utf-8")
        except OSError as e:
            log.log("AGENT", f"hello-world could not write {target}: {e}")
            return AgentResult(
                exit_code=1,
                duration_millis=int((time.time() - start) * 1000),
                log_file=str(log.path),
                diagnostic=f"exited with code 1: {e}",
                failure=AgentFailure.NONZERO_EXIT,
            )

        log.log("AGENT", f"hello-world wrote {HELLO_FILE} ({len(str(content))} chars)")
        logger.info(f"hello-world agent wrote {target}")
        return AgentResult(
            exit_code=0,
            duration_millis=int((time.time() - start) * 1000),
            log_file=str(log.path),
        )

    def is_available(self) -> bool:
        return True

    def version(self) -> str:
        return "hello-world 1.0"
