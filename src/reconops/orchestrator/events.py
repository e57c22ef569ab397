"""Lifecycle callbacks and event recording for control cycles."""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Literal

import structlog
from pydantic import BaseModel

from reconops.core.models import AgentNode, AgentResponse, IntentProfile

logger = structlog.get_logger(__name__)


@dataclass
class CycleCallbacks:
    """Optional hooks invoked as a control cycle moves through its phases.

    Each hook may be sync or async; async hooks are awaited before the
    cycle proceeds.
    """

    on_planning: Callable[[IntentProfile], Awaitable[None] | None] | None = None
    on_agent_start: Callable[[str, str], Awaitable[None] | None] | None = None
    on_agent_complete: Callable[[str, AgentResponse, AgentNode], Awaitable[None] | None] | None = None
    on_synthesis: Callable[[str], Awaitable[None] | None] | None = None
    on_complete: Callable[[], Awaitable[None] | None] | None = None

    async def emit(self, name: str, *args: Any) -> None:
        """Invoke the named hook if set, awaiting it when it returns an awaitable.

        Args:
            name: Hook attribute name, e.g. ``on_planning``
            *args: Positional arguments for the hook
        """
        callback = getattr(self, name)
        if callback is None:
            return
        result = callback(*args)
        if inspect.isawaitable(result):
            await result


EventKind = Literal["planning", "agent_start", "agent_complete", "synthesis", "complete"]


class CycleEvent(BaseModel):
    """One recorded lifecycle event."""

    kind: EventKind
    agent_id: str | None = None
    display_name: str | None = None
    profile: IntentProfile | None = None
    response: AgentResponse | None = None
    node: AgentNode | None = None
    summary: str | None = None


class EventRecorder:
    """Collects lifecycle events in the order they are emitted.

    Example:
        recorder = EventRecorder()
        await orchestrator.run_cycle(text, recorder.callbacks())
        kinds = [e.kind for e in recorder.events]
    """

    def __init__(self) -> None:
        self.events: list[CycleEvent] = []

    def callbacks(self) -> CycleCallbacks:
        """CycleCallbacks that append to this recorder."""
        return CycleCallbacks(
            on_planning=self._on_planning,
            on_agent_start=self._on_agent_start,
            on_agent_complete=self._on_agent_complete,
            on_synthesis=self._on_synthesis,
            on_complete=self._on_complete,
        )

    def kinds(self) -> list[str]:
        return [event.kind for event in self.events]

    def of_kind(self, kind: EventKind) -> list[CycleEvent]:
        return [event for event in self.events if event.kind == kind]

    def _on_planning(self, profile: IntentProfile) -> None:
        self.events.append(CycleEvent(kind="planning", profile=profile))

    def _on_agent_start(self, display_name: str, agent_id: str) -> None:
        self.events.append(
            CycleEvent(kind="agent_start", agent_id=agent_id, display_name=display_name)
        )

    def _on_agent_complete(
        self, display_name: str, response: AgentResponse, node: AgentNode
    ) -> None:
        self.events.append(
            CycleEvent(
                kind="agent_complete",
                agent_id=response.agent_id,
                display_name=display_name,
                response=response,
                node=node,
            )
        )

    def _on_synthesis(self, summary: str) -> None:
        self.events.append(CycleEvent(kind="synthesis", summary=summary))

    def _on_complete(self) -> None:
        self.events.append(CycleEvent(kind="complete"))
        logger.debug("cycle_events_recorded", count=len(self.events))
