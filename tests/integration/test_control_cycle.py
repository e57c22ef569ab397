"""End-to-end tests for the control cycle."""

import random
from unittest.mock import Mock

import pytest

from reconops.agents import AgentRegistry, BaseAgent, MonitoringAgent, build_default_registry
from reconops.core.models import (
    FULL_AGENT_SET,
    AgentResponse,
    ExecutionState,
    ExecutionStatus,
    FindingStatus,
    IntentProfile,
    IntentType,
    ServerDiagnosisSection,
)
from reconops.orchestrator import (
    ControlCycle,
    CycleCallbacks,
    CycleStateError,
    EventRecorder,
    IntentClassifier,
    Orchestrator,
    ReportSynthesizer,
)
from reconops.utils.ids import SequentialIdGenerator


class BrokenTraceAgent(BaseAgent):
    """Stands in for the dependency agent and always reports an outage."""

    @property
    def agent_id(self) -> str:
        return "dependency_agent"

    @property
    def display_name(self) -> str:
        return "Dependency Intelligence Agent"

    async def run(self, text: str, profile: IntentProfile | None) -> AgentResponse:
        return self.error_response(
            tool_id="correlateSpans",
            operation_label="Span Correlation",
            tool_input={"query": text},
            message="Trace store returned 503",
            summary="Dependency Intelligence could not query trace store.",
            reason="trace_store_unavailable",
            duration_ms=1200,
        )


@pytest.mark.asyncio
class TestControlCycle:
    """Tests for a full control cycle."""

    async def test_event_sequence(self, orchestrator):
        """One planning, synthesis and complete event; agent events per agent."""
        recorder = EventRecorder()

        result = await orchestrator.run_cycle(
            "Why did yesterday's FX reconciliation fail?", recorder.callbacks()
        )

        assert recorder.kinds() == [
            "planning",
            "agent_start",
            "agent_complete",
            "agent_start",
            "agent_complete",
            "agent_start",
            "agent_complete",
            "synthesis",
            "complete",
        ]
        completed = [e.agent_id for e in recorder.of_kind("agent_complete")]
        assert completed == list(FULL_AGENT_SET)
        assert recorder.of_kind("synthesis")[0].summary == result.final_summary
        assert recorder.of_kind("planning")[0].profile.type == IntentType.FULL_ANALYSIS

    async def test_result_shape(self, orchestrator):
        """Responses, nodes and report line up with the plan."""
        result = await orchestrator.run_cycle("Why did yesterday's FX reconciliation fail?")

        assert result.intent_type == IntentType.FULL_ANALYSIS
        assert [r.agent_id for r in result.agent_responses] == list(FULL_AGENT_SET)
        assert [n.order for n in result.agent_nodes] == [1, 2, 3]
        assert len({n.id for n in result.agent_nodes}) == 3
        for node, response in zip(result.agent_nodes, result.agent_responses):
            assert node.status == response.status
            assert node.label == response.display_name

        report = result.report_data
        assert report.key_findings[0].label == "Intent"
        assert report.key_findings[1].label == "Severity"
        assert report.domain == "FX Operations"
        assert result.final_summary == report.summary

    async def test_delayed_recon_scenario(self, orchestrator):
        """A delayed recon request runs only the monitoring agent."""
        result = await orchestrator.run_cycle("Show me delayed recon jobs for INV")

        assert result.intent_type == IntentType.DELAYED_RECON_QUERY
        assert [r.agent_id for r in result.agent_responses] == ["monitoring_agent"]
        section = result.report_data.domain_section
        assert section.type == "delayed_recon"
        assert section.instance_id == "INV"

    async def test_server_diagnosis_scenario(self, orchestrator):
        result = await orchestrator.run_cycle("Check CPU on ICGRECON6P")

        assert [r.agent_id for r in result.agent_responses] == [
            "server_health_agent",
            "dependency_agent",
        ]
        section = result.report_data.domain_section
        assert isinstance(section, ServerDiagnosisSection)
        assert section.server_id == "ICGRECON6P"
        assert len(section.dependencies) == 6

    async def test_incident_scenario(self, orchestrator):
        result = await orchestrator.run_cycle("P0 incident: settlement engine is down.")

        assert result.intent_type == IntentType.INCIDENT_RESPONSE
        assert result.report_data.severity.value == "critical"
        assert [r.agent_id for r in result.agent_responses] == list(FULL_AGENT_SET)

    async def test_agent_error_does_not_abort(self, settings, catalog, ids, classifier, synthesizer):
        """A failing agent yields an error node and one error finding."""
        registry = build_default_registry(
            settings=settings, rng=random.Random(7), ids=ids, catalog=catalog, clock=lambda: 0
        )
        registry.register(
            BrokenTraceAgent(
                rng=random.Random(1), ids=ids, catalog=catalog, error_rate=0.0, latency_scale=0.0
            )
        )
        orchestrator = Orchestrator(
            registry, classifier=classifier, synthesizer=synthesizer, settings=settings
        )

        result = await orchestrator.run_cycle("trace the upstream chain")

        assert [r.agent_id for r in result.agent_responses] == [
            "dependency_agent",
            "validation_agent",
        ]
        assert result.agent_nodes[0].status == ExecutionStatus.ERROR
        assert result.agent_nodes[1].status == ExecutionStatus.SUCCESS

        errors = [
            f
            for f in result.report_data.key_findings
            if f.status == FindingStatus.ERROR and f.label == "Dependency Intelligence Agent"
        ]
        assert len(errors) == 1
        assert errors[0].value == "Error: agent unavailable"
        assert result.report_data.recommended_actions[0].startswith("Retry failed agents")

    async def test_unknown_agent_skipped(self, settings, catalog, ids, classifier, synthesizer):
        """Planned agents missing from the registry are skipped; order keeps plan positions."""
        registry = AgentRegistry(
            [
                MonitoringAgent(
                    rng=random.Random(1), ids=ids, catalog=catalog, error_rate=0.0, latency_scale=0.0
                )
            ]
        )
        orchestrator = Orchestrator(
            registry, classifier=classifier, synthesizer=synthesizer, settings=settings
        )
        recorder = EventRecorder()

        result = await orchestrator.run_cycle("what happened", recorder.callbacks())

        assert [r.agent_id for r in result.agent_responses] == ["monitoring_agent"]
        assert [n.order for n in result.agent_nodes] == [1]
        assert len(recorder.of_kind("agent_complete")) == 1
        assert recorder.kinds()[-2:] == ["synthesis", "complete"]

    async def test_async_callbacks_awaited(self, orchestrator):
        """Coroutine callbacks run before the cycle moves on."""
        seen = []

        async def on_planning(profile):
            seen.append("planning")

        async def on_agent_complete(name, response, node):
            seen.append(node.order)

        def on_complete():
            seen.append("complete")

        await orchestrator.run_cycle(
            "unusual drift in signals",
            CycleCallbacks(
                on_planning=on_planning,
                on_agent_complete=on_agent_complete,
                on_complete=on_complete,
            ),
        )

        assert seen == ["planning", 1, 2, "complete"]

    async def test_seeded_cycles_are_reproducible(self, settings, catalog, classifier, fixed_now):
        """Two cycles with the same seed produce the same responses."""

        async def run_once():
            ids = SequentialIdGenerator(clock=lambda: 0)
            registry = build_default_registry(
                settings=settings, rng=random.Random(99), ids=ids, catalog=catalog, clock=lambda: 0
            )
            orchestrator = Orchestrator(
                registry,
                classifier=classifier,
                synthesizer=ReportSynthesizer(clock=lambda: fixed_now),
                ids=SequentialIdGenerator(prefix="node", clock=lambda: 0),
                settings=settings,
            )
            return await orchestrator.run_cycle("P0 incident: settlement engine is down.")

        first = await run_once()
        second = await run_once()

        assert first.model_dump() == second.model_dump()


@pytest.mark.asyncio
class TestCycleFailure:
    """Tests for cycle-level failures."""

    async def test_synthesis_failure_propagates(self, registry, classifier, ids, settings):
        """An exception in synthesis moves the cycle to error and re-raises."""
        synthesizer = Mock(spec=ReportSynthesizer)
        synthesizer.synthesize.side_effect = RuntimeError("synthesis broke")
        cycle = ControlCycle(registry, classifier, synthesizer, ids, settings)
        recorder = EventRecorder()

        with pytest.raises(RuntimeError, match="synthesis broke"):
            await cycle.run("what happened", recorder.callbacks())

        assert cycle.state == ExecutionState.ERROR
        assert "synthesis" not in recorder.kinds()
        assert "complete" not in recorder.kinds()

    async def test_classifier_failure_propagates(self, registry, synthesizer, ids, settings):
        classifier = Mock(spec=IntentClassifier)
        classifier.classify.side_effect = ValueError("bad input")
        cycle = ControlCycle(registry, classifier, synthesizer, ids, settings)

        with pytest.raises(ValueError):
            await cycle.run("anything")

        assert cycle.state == ExecutionState.ERROR

    async def test_cycle_is_one_shot(self, registry, classifier, synthesizer, ids, settings):
        """A cycle that has run refuses to run again."""
        cycle = ControlCycle(registry, classifier, synthesizer, ids, settings)

        await cycle.run("what happened")
        assert cycle.state == ExecutionState.COMPLETE

        with pytest.raises(CycleStateError):
            await cycle.run("what happened")

    async def test_orchestrator_runs_fresh_cycles(self, orchestrator):
        """Each run_cycle call gets its own cycle."""
        await orchestrator.run_cycle("what happened")
        result = await orchestrator.run_cycle("what happened")

        assert result.intent_type == IntentType.FULL_ANALYSIS
