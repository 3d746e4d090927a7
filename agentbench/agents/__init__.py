"""Agent runners and the registry that maps agent kinds to them."""

from enum import Enum
from typing import Callable, Optional, Union

from ..models.config import BenchConfig
from ..models.schemas import AgentKind
from .base import AgentRunner, CliAgentRunner, agent_result_from_process
from .claude_code import ClaudeCodeAgentRunner
from .codex import CodexAgentRunner
from .command import CommandAgentRunner
from .gemini import GeminiAgentRunner
from .hello_world import HelloWorldAgentRunner, hello_world_success

RunnerFactory = Callable[[BenchConfig], AgentRunner]

_REGISTRY: dict[str, RunnerFactory] = {
    AgentKind.HELLO_WORLD.value: HelloWorldAgentRunner,
    AgentKind.CLAUDE_CODE.value: ClaudeCodeAgentRunner,
    AgentKind.GEMINI.value: GeminiAgentRunner,
    AgentKind.CODEX.value: CodexAgentRunner,
    AgentKind.COMMAND.value: CommandAgentRunner,
}


def _key(kind: Union[str, Enum]) -> str:
    return kind.value if isinstance(kind, Enum) else str(kind)


def register_agent_runner(kind: Union[str, Enum], factory: RunnerFactory) -> None:
    """Register (or replace) the runner factory for an agent kind."""
    _REGISTRY[_key(kind)] = factory


def registered_kinds() -> list[str]:
    return sorted(_REGISTRY)


def create_agent_runner(
    kind: Union[str, Enum], config: Optional[BenchConfig] = None
) -> AgentRunner:
    """Factory function to create an agent runner for a kind.

    Raises:
        ValueError: If no runner is registered for the kind.
    """
    key = _key(kind)
    factory = _REGISTRY.get(key)
    if factory is None:
        raise ValueError(
            f"Unknown agent kind: {key!r} (registered: {', '.join(registered_kinds())})"
        )
    return factory(config or BenchConfig())


__all__ = [
    "AgentRunner",
    "ClaudeCodeAgentRunner",
    "CliAgentRunner",
    "CodexAgentRunner",
    "CommandAgentRunner",
    "GeminiAgentRunner",
    "HelloWorldAgentRunner",
    "agent_result_from_process",
    "create_agent_runner",
    "hello_world_success",
    "register_agent_runner",
    "registered_kinds",
]
