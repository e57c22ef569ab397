"""Control cycle - classify, run agents in order, synthesize the report."""

import asyncio

import structlog

from reconops.agents.registry import AgentRegistry
from reconops.config import Settings, get_settings
from reconops.core.models import (
    AgentNode,
    AgentResponse,
    ExecutionState,
    OrchestrationResult,
)
from reconops.domain.catalog import ReferenceCatalog
from reconops.orchestrator.classifier import IntentClassifier
from reconops.orchestrator.events import CycleCallbacks
from reconops.orchestrator.synthesizer import ReportSynthesizer
from reconops.utils.ids import IdGenerator, SequentialIdGenerator

logger = structlog.get_logger(__name__)


class CycleError(Exception):
    """Base error for control cycle failures."""


class CycleStateError(CycleError):
    """Raised when a cycle is run from a state other than idle."""


class ControlCycle:
    """One-shot state machine for a single request.

    idle -> planning -> executing -> synthesizing -> complete. Any exception
    from classification, agent resolution or synthesis moves the cycle to
    error and is re-raised. Agent failures are data and never abort the
    cycle.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        classifier: IntentClassifier,
        synthesizer: ReportSynthesizer,
        ids: IdGenerator,
        settings: Settings,
    ):
        self.registry = registry
        self.classifier = classifier
        self.synthesizer = synthesizer
        self.ids = ids
        self.settings = settings
        self.state = ExecutionState.IDLE

    def _transition(self, state: ExecutionState) -> None:
        logger.debug("cycle_state_changed", from_state=self.state.value, to_state=state.value)
        self.state = state

    async def _pause(self, delay_ms: int) -> None:
        if delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    async def run(self, text: str, callbacks: CycleCallbacks | None = None) -> OrchestrationResult:
        """Run the cycle to completion.

        Args:
            text: Free-text user request
            callbacks: Lifecycle hooks (none if None)

        Returns:
            OrchestrationResult with responses, nodes and the report

        Raises:
            CycleStateError: If this cycle has already been run
        """
        if self.state != ExecutionState.IDLE:
            raise CycleStateError(f"cycle already ran (state={self.state.value})")

        callbacks = callbacks or CycleCallbacks()

        try:
            return await self._run(text, callbacks)
        except Exception as e:
            logger.error(
                "cycle_failed",
                state=self.state.value,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self.state = ExecutionState.ERROR
            raise

    async def _run(self, text: str, callbacks: CycleCallbacks) -> OrchestrationResult:
        # Planning
        self._transition(ExecutionState.PLANNING)
        profile = self.classifier.classify(text)
        await callbacks.emit("on_planning", profile)
        await self._pause(self.settings.planning_delay_ms)

        # Executing
        self._transition(ExecutionState.EXECUTING)
        responses: list[AgentResponse] = []
        nodes: list[AgentNode] = []

        for idx, agent_id in enumerate(profile.agents_to_invoke):
            agent = self.registry.get(agent_id)
            if agent is None:
                logger.warning("agent_not_registered", agent=agent_id)
                continue

            response = await agent.invoke(text, profile)
            await callbacks.emit("on_agent_start", agent.display_name, agent.agent_id)
            await self._pause(self.settings.agent_delay_ms)

            node = AgentNode(
                id=self.ids.next(),
                agent_id=agent.agent_id,
                label=agent.display_name,
                status=response.status,
                order=idx + 1,
            )
            responses.append(response)
            nodes.append(node)

            logger.info(
                "agent_completed",
                agent=agent.agent_id,
                status=response.status.value,
                order=node.order,
                tool_calls=len(response.tool_calls),
            )
            await callbacks.emit("on_agent_complete", agent.display_name, response, node)

        # Synthesizing
        self._transition(ExecutionState.SYNTHESIZING)
        report = self.synthesizer.synthesize(responses, profile)
        await callbacks.emit("on_synthesis", report.summary)
        await self._pause(self.settings.synthesis_delay_ms)

        # Complete
        await self._pause(self.settings.completion_delay_ms)
        self._transition(ExecutionState.COMPLETE)
        await callbacks.emit("on_complete")

        logger.info(
            "cycle_completed",
            intent=profile.type.value,
            agents=len(responses),
            failed=sum(1 for r in responses if not r.succeeded),
        )

        return OrchestrationResult(
            intent_type=profile.type,
            agent_responses=responses,
            agent_nodes=nodes,
            final_summary=report.summary,
            report_data=report,
        )


class Orchestrator:
    """Entry point for running control cycles against a registry of agents."""

    def __init__(
        self,
        registry: AgentRegistry,
        classifier: IntentClassifier | None = None,
        synthesizer: ReportSynthesizer | None = None,
        ids: IdGenerator | None = None,
        settings: Settings | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            registry: Agents available to cycles
            classifier: Intent classifier (default rules if None)
            synthesizer: Report synthesizer (UTC clock if None)
            ids: Id generator for graph nodes
            settings: Pacing delays (global settings if None)
        """
        self.registry = registry
        self.settings = settings or get_settings()
        if classifier is None:
            catalog = (
                ReferenceCatalog.load(self.settings.catalog_path)
                if self.settings.catalog_path is not None
                else None
            )
            classifier = IntentClassifier(catalog)
        self.classifier = classifier
        self.synthesizer = synthesizer or ReportSynthesizer()
        self.ids = ids or SequentialIdGenerator(prefix="node")

    def new_cycle(self) -> ControlCycle:
        return ControlCycle(
            registry=self.registry,
            classifier=self.classifier,
            synthesizer=self.synthesizer,
            ids=self.ids,
            settings=self.settings,
        )

    async def run_cycle(
        self, text: str, callbacks: CycleCallbacks | None = None
    ) -> OrchestrationResult:
        """Run one full control cycle for a request.

        Args:
            text: Free-text user request
            callbacks: Lifecycle hooks

        Returns:
            OrchestrationResult of the completed cycle
        """
        logger.info("cycle_started", text=text)
        return await self.new_cycle().run(text, callbacks)
