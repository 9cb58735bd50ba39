"""
Runner — evaluate a nodnod node graph from injected inputs.

Agents are built once per target node and reused; nodnod discovers the
dependency graph from the target's __compose__ signature.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine, Mapping
from typing import Any, cast

from nodnod import Scope, Value, EventLoopAgent, Node


# ═══════════════════════════════════════════════════════════════════════════════
# TypedScope
# ═══════════════════════════════════════════════════════════════════════════════

class TypedScope:
    """Type-keyed wrapper around nodnod.Scope."""

    __slots__ = ("_scope",)

    def __init__(self, detail: str = "scope") -> None:
        self._scope = Scope(detail=detail)

    @property
    def inner(self) -> Scope:
        return self._scope

    def inject[T](self, typ: type[T], value: T) -> TypedScope:
        self._scope.push(Value(typ, value))
        return self

    def get[T](self, typ: type[T]) -> T:
        found = self._scope.get(typ)
        if found is None:
            raise KeyError(f"{typ.__name__} not found in scope")
        return cast(T, found.value)

    async def __aenter__(self) -> TypedScope:
        await self._scope.__aenter__()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self._scope.__aexit__(*args)


# ═══════════════════════════════════════════════════════════════════════════════
# Agents
# ═══════════════════════════════════════════════════════════════════════════════

_agents: dict[type[Any], EventLoopAgent] = {}


def _agent_for(target: type[Any]) -> EventLoopAgent:
    agent = _agents.get(target)
    if agent is None:
        agent = EventLoopAgent.build({cast(type[Node[Any, Any]], target)})
        _agents[target] = agent
    return agent


# ═══════════════════════════════════════════════════════════════════════════════
# evaluate / compose
# ═══════════════════════════════════════════════════════════════════════════════

async def evaluate[T](target: type[T], inputs: Mapping[type[Any], object]) -> T:
    """
    Run the graph ending at target with explicitly typed inputs.

    Example:
        summary = await evaluate(GrandTotalNode, {SummaryInput: data})
    """
    agent = _agent_for(target)

    async with TypedScope(detail=target.__name__) as scope:
        for typ, value in inputs.items():
            scope.inject(typ, value)

        run_method = cast(
            Callable[[Scope, dict[type[Any], Scope]], Coroutine[Any, Any, None]],
            getattr(agent, "run"),
        )
        await run_method(scope.inner, {})

        return scope.get(target)


async def compose[T](target: type[T], *inputs: object) -> T:
    """
    Inputs keyed by their runtime type.

    Example:
        result = await compose(GrandTotalNode, summary_input)
    """
    return await evaluate(target, {type(value): value for value in inputs})


__all__ = ("TypedScope", "evaluate", "compose")
