"""Base agent contract for all reconops agents."""

import asyncio
import random
import time
import traceback
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

import structlog

from reconops.core.models import (
    AgentResponse,
    ExecutionStatus,
    ExtractedContext,
    IntentProfile,
    ToolCall,
)
from reconops.domain.catalog import ReferenceCatalog, get_catalog
from reconops.utils.ids import IdGenerator, SequentialIdGenerator

T = TypeVar("T")


class BaseAgent(ABC):
    """Base class for all simulated agents.

    Subclasses implement:
    - agent_id / display_name: how the agent is registered and shown
    - run(): the successful path, producing an AgentResponse

    invoke() never raises. Simulated failures and unexpected exceptions both
    come back as an error response with a single failed tool call.
    """

    # Simulated failure, overridden per agent
    failure_reason: str = "internal_error"
    failure_tool_id: str = "run"
    failure_operation: str = "Execution"
    failure_message: str = "Agent execution failed"
    failure_summary: str = "Agent could not complete."
    failure_duration_ms: int = 500

    # Simulated latency range in ms
    latency_ms: tuple[int, int] = (400, 900)

    def __init__(
        self,
        rng: random.Random | None = None,
        ids: IdGenerator | None = None,
        catalog: ReferenceCatalog | None = None,
        error_rate: float = 0.10,
        latency_scale: float = 1.0,
        clock: Callable[[], float] | None = None,
    ):
        """Initialize base agent.

        Args:
            rng: Randomness source for simulated data
            ids: Id generator for tool calls
            catalog: Reference data for domain-aware behaviour
            error_rate: Probability of a simulated failure per invocation
            latency_scale: Multiplier for simulated latency (0 disables it)
            clock: Returns the current time in seconds
        """
        self.rng = rng or random.Random()
        self.ids = ids or SequentialIdGenerator()
        self.catalog = catalog or get_catalog()
        self.error_rate = error_rate
        self.latency_scale = latency_scale
        self.clock = clock or time.time
        self.logger = structlog.get_logger(self.__module__)

    @property
    @abstractmethod
    def agent_id(self) -> str:
        """Registry identifier (e.g. "monitoring_agent")."""
        pass

    @property
    @abstractmethod
    def display_name(self) -> str:
        """User-facing name (e.g. "Monitoring Agent")."""
        pass

    @abstractmethod
    async def run(self, text: str, profile: IntentProfile | None) -> AgentResponse:
        """Produce a successful response.

        Args:
            text: The user request
            profile: Classification of the request, when available

        Returns:
            AgentResponse with status success
        """
        pass

    async def invoke(self, text: str, profile: IntentProfile | None = None) -> AgentResponse:
        """Run the agent, turning every failure into an error response.

        Args:
            text: The user request
            profile: Classification of the request, when available

        Returns:
            AgentResponse (success or error)
        """
        await self._simulate_latency()

        if self.rng.random() < self.error_rate:
            self.logger.warning("agent_simulated_failure", agent=self.agent_id, reason=self.failure_reason)
            return self.error_response(
                tool_id=self.failure_tool_id,
                operation_label=self.failure_operation,
                tool_input={"text": text},
                message=self.failure_message,
                summary=self.failure_summary,
                reason=self.failure_reason,
                duration_ms=self.failure_duration_ms,
            )

        try:
            return await self.run(text, profile)
        except Exception as e:
            self.logger.error(
                "agent_error",
                agent=self.agent_id,
                error=str(e),
                traceback=traceback.format_exc(),
            )
            return self.error_response(
                tool_id=self.failure_tool_id,
                operation_label=self.failure_operation,
                tool_input={"text": text},
                message=str(e),
                summary=f"{self.display_name} failed unexpectedly.",
                reason="internal_error",
                duration_ms=0,
            )

    async def _simulate_latency(self) -> None:
        low, high = self.latency_ms
        delay_ms = self.rng.uniform(low, high) * self.latency_scale
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    def tool_call(
        self,
        tool_id: str,
        operation_label: str,
        tool_input: dict[str, Any],
        output: dict[str, Any] | None,
        duration_ms: int,
        status: ExecutionStatus = ExecutionStatus.SUCCESS,
    ) -> ToolCall:
        """Record one tool invocation made by this agent."""
        return ToolCall(
            id=self.ids.next(),
            agent_id=self.agent_id,
            agent_display_name=self.display_name,
            tool_id=tool_id,
            operation_label=operation_label,
            input=tool_input,
            output=output,
            status=status,
            started_at=int(self.clock() * 1000),
            duration_ms=duration_ms,
        )

    def success(
        self, tool_calls: list[ToolCall], summary: str, payload: dict[str, Any]
    ) -> AgentResponse:
        """Build a successful response for this agent."""
        return AgentResponse(
            agent_id=self.agent_id,
            display_name=self.display_name,
            status=ExecutionStatus.SUCCESS,
            tool_calls=tool_calls,
            summary=summary,
            payload=payload,
        )

    def error_response(
        self,
        tool_id: str,
        operation_label: str,
        tool_input: dict[str, Any],
        message: str,
        summary: str,
        reason: str,
        duration_ms: int,
    ) -> AgentResponse:
        """Build an error response carrying exactly one failed tool call."""
        failed = self.tool_call(
            tool_id,
            operation_label,
            tool_input,
            {"error": message},
            duration_ms,
            status=ExecutionStatus.ERROR,
        )
        return AgentResponse(
            agent_id=self.agent_id,
            display_name=self.display_name,
            status=ExecutionStatus.ERROR,
            tool_calls=[failed],
            summary=summary,
            payload={"error": True, "reason": reason},
        )

    # Simulation helpers

    def pick(self, items: Sequence[T]) -> T:
        """Random element of a sequence."""
        return self.rng.choice(items)

    def rand(self, low: float, high: float) -> float:
        """Random float in [low, high], rounded to 2 decimal places."""
        return round(self.rng.uniform(low, high), 2)

    def duration(self, base: int, spread: int) -> int:
        """Simulated tool duration in ms."""
        return round(base + self.rng.random() * spread)

    @staticmethod
    def context_of(profile: IntentProfile | None) -> ExtractedContext:
        """Extracted context of the profile, or an empty one."""
        if profile is not None and profile.extracted_context is not None:
            return profile.extracted_context
        return ExtractedContext()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(agent_id={self.agent_id!r})"
