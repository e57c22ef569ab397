"""Dependency Intelligence Agent - trace correlation and root cause analysis."""

from reconops.agents.base import BaseAgent
from reconops.core.models import AgentId, AgentResponse, IntentProfile, UseCase

ROOT_CAUSES = (
    "db_connection_pool_exhaustion",
    "cache_invalidation_storm",
    "network_partition_detected",
    "thread_deadlock_in_worker",
    "memory_leak_in_allocator",
    "downstream_service_timeout",
    "kafka_consumer_group_lag",
    "gc_pause_cascade",
    "rate_limit_breach",
    "stale_reference_data",
)

AFFECTED_SERVICES = (
    "payment-svc", "recon-engine", "fx-gateway", "settlement-svc",
    "position-mgr", "order-router", "matching-engine", "report-svc",
    "market-data-feed", "risk-calculator",
)

# (trace ids, correlated span count)
TRACE_POOLS = (
    (("trc-8a1f", "trc-c203", "trc-e7b4"), 12),
    (("trc-4d92", "trc-f015", "trc-a3b8"), 9),
    (("trc-bb21", "trc-07c6", "trc-5e33"), 17),
    (("trc-2a8f", "trc-d49e"), 5),
    (("trc-9c1b", "trc-e7f0", "trc-3d44", "trc-a61c"), 23),
)


class DependencyAgent(BaseAgent):
    """Correlates distributed traces to find the root cause of a problem.

    For server diagnosis it also maps the upstream jobs feeding the server's
    delayed recons, using the shared reference catalog.
    """

    failure_reason = "trace_store_unavailable"
    failure_tool_id = "correlateSpans"
    failure_operation = "Span Correlation"
    failure_message = "Trace store returned 503: distributed tracing unavailable"
    failure_summary = "Dependency Intelligence could not query trace store. Service degraded."
    failure_duration_ms = 1200

    latency_ms = (700, 1400)

    @property
    def agent_id(self) -> str:
        return AgentId.DEPENDENCY.value

    @property
    def display_name(self) -> str:
        return "Dependency Intelligence Agent"

    async def run(self, text: str, profile: IntentProfile | None) -> AgentResponse:
        root_cause = self.pick(ROOT_CAUSES)
        affected_service = self.pick(AFFECTED_SERVICES)
        confidence = self.rand(0.67, 0.97)
        trace_ids, spans = self.pick(TRACE_POOLS)
        trace_ids = list(trace_ids)

        tool_calls = [
            self.tool_call(
                "correlateSpans",
                "Span Correlation",
                {"query": text},
                {"trace_ids": trace_ids, "correlated_spans": spans},
                self.duration(260, 200),
            ),
            self.tool_call(
                "identifyRoot",
                "Root Cause Identification",
                {"trace_ids": trace_ids},
                {"root_cause": root_cause, "confidence": confidence, "affected_service": affected_service},
                self.duration(130, 120),
            ),
        ]
        payload = {
            "root_cause": root_cause,
            "confidence": confidence,
            "affected_service": affected_service,
            "trace_ids": trace_ids,
            "correlated_spans": spans,
        }
        summary = (
            f"Root cause: {root_cause.replace('_', ' ')} in {affected_service} "
            f"(confidence {round(confidence * 100)}%)."
        )

        context = self.context_of(profile)
        if context.use_case == UseCase.SERVER_DIAGNOSIS:
            server = self.catalog.servers.get(context.server_id or "") or self.catalog.resolve_server(text)
            if server is not None:
                instance = self.catalog.instances[server.instance_ref]
                dependencies = self.catalog.get_dependencies(instance.delayed_recons)
                tool_calls.append(
                    self.tool_call(
                        "mapDependencies",
                        "Dependency Mapping",
                        {"server_id": server.id, "recons": list(instance.delayed_recons)},
                        {"dependencies": dependencies},
                        self.duration(90, 80),
                    )
                )
                payload.update(
                    domain=UseCase.SERVER_DIAGNOSIS.value,
                    server_id=server.id,
                    instance_id=instance.id,
                    dependencies=dependencies,
                )
                summary += f" {len(dependencies)} upstream job(s) feed {server.id}."

        return self.success(tool_calls, summary, payload)
