"""Claude Code CLI agent runner."""

import json
from pathlib import Path

from ..models.schemas import AgentKind, AgentSpec
from ..utils.process import ProcessResult
from .base import CliAgentRunner

TOOL_INPUT_CHARS = 300
TOOL_RESULT_CHARS = 1000


class ClaudeCodeAgentRunner(CliAgentRunner):
    """Runs ``claude -p`` headless in the workspace."""

    kind = AgentKind.CLAUDE_CODE.value
    default_binary = "claude"
    label = "CLAUDE CODE"

    def build_command(self, workspace_dir: Path, spec: AgentSpec) -> list[str]:
        cmd = [
            self.binary, "-p",
            "--output-format", "json",
            "--max-turns", str(self.backend.max_turns),
            "--no-session-persistence",
        ]
        model = self.model_for(spec)
        if model:
            cmd.extend(["--model", model])
        if spec.auto_approve:
            cmd.append("--dangerously-skip-permissions")
        cmd.extend(self.backend.extra_args)
        # -- keeps variadic options in extra_args from swallowing the prompt
        cmd.extend(["--", spec.prompt])
        return cmd

    def build_env(self, spec: AgentSpec) -> dict[str, str]:
        env = super().build_env(spec)
        # A nested claude refuses to start when it sees this
        env.pop("CLAUDECODE", None)
        return env

    def format_output(self, result: ProcessResult, spec: AgentSpec) -> str:
        return format_transcript(result.stdout, result.stderr)


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _block_lines(role: str, block) -> list[str]:
    if not isinstance(block, dict):
        return [f"[{role}] {block}"]
    btype = block.get("type", "")
    if btype == "text":
        return [f"[{role}] {block.get('text', '')}"]
    if btype == "tool_use":
        args = _clip(json.dumps(block.get("input", {}), sort_keys=True), TOOL_INPUT_CHARS)
        return [f"[{role}:tool_use] {block.get('name', '?')}({args})"]
    if btype == "tool_result":
        content = block.get("content", "")
        if isinstance(content, list):
            content = " ".join(b.get("text", "") for b in content if isinstance(b, dict))
        return [f"[{role}:tool_result] {_clip(str(content), TOOL_RESULT_CHARS)}"]
    return [f"[{role}:{btype}]"]


def _event_lines(event: dict) -> list[str]:
    etype = event.get("type", "")
    if etype == "system":
        if event.get("subtype") == "init":
            return [f"[system:init] model={event.get('model', '?')}"]
        return []
    if etype == "result":
        seconds = event.get("duration_ms", 0) / 1000
        return [
            f"[RESULT] turns={event.get('num_turns', '?')}, duration={seconds:.1f}s",
            str(event.get("result", "")),
        ]
    if etype not in ("assistant", "user"):
        return []

    message = event.get("message", event)
    role = message.get("role", etype)
    content = message.get("content", "")
    if isinstance(content, str):
        return [f"[{role}] {content}"] if content else []
    lines = []
    for block in content:
        lines.extend(_block_lines(role, block))
    return lines


def format_transcript(stdout: str, stderr: str) -> str:
    """Render ``--output-format json`` output as one line per message block.

    The CLI prints a single event object or an array of them. Output that is
    not JSON is kept verbatim. Stderr follows under ``[stderr]`` when present.
    """
    try:
        events = json.loads(stdout)
        if not isinstance(events, list):
            events = [events]
        lines = []
        for event in events:
            lines.extend(_event_lines(event))
    except (json.JSONDecodeError, TypeError, AttributeError):
        lines = ["(Could not parse JSON output)", stdout]

    if stderr.strip():
        lines.append(f"[stderr] {stderr.strip()}")
    return "\n".join(lines) + "\n"
