"""Server Health Agent - resource telemetry for recon servers."""

from reconops.agents.base import BaseAgent
from reconops.core.models import AgentId, AgentResponse, IntentProfile, UseCase

# Utilisation (%) above which a gauge raises an alert
RESOURCE_THRESHOLDS = {
    "cpu": 75.0,
    "memory": 80.0,
    "connection_pool": 85.0,
}

RESOURCE_LABELS = {
    "cpu": "CPU",
    "memory": "Memory",
    "connection_pool": "Connection pool",
}


def resource_warnings(gauges: dict[str, float]) -> list[str]:
    """One alert line per gauge above its threshold, in threshold order."""
    warnings = []
    for key, limit in RESOURCE_THRESHOLDS.items():
        value = gauges.get(key, 0) or 0
        if value > limit:
            warnings.append(f"{RESOURCE_LABELS[key]} at {value:g}% (limit {limit:g}%)")
    return warnings


class ServerHealthAgent(BaseAgent):
    """Reads host gauges for the server a request refers to."""

    failure_reason = "telemetry_unavailable"
    failure_tool_id = "snapshotTelemetry"
    failure_operation = "Telemetry Snapshot"
    failure_message = "Telemetry collector unavailable: host metrics not reported"
    failure_summary = "Server Health Agent could not read host telemetry."
    failure_duration_ms = 600

    latency_ms = (300, 700)

    @property
    def agent_id(self) -> str:
        return AgentId.SERVER_HEALTH.value

    @property
    def display_name(self) -> str:
        return "Server Health Agent"

    async def run(self, text: str, profile: IntentProfile | None) -> AgentResponse:
        context = self.context_of(profile)
        server = self.catalog.servers.get(context.server_id or "") or self.catalog.resolve_server(text)

        if server is None:
            self.logger.info("server_not_resolved")
            return self.error_response(
                tool_id=self.failure_tool_id,
                operation_label=self.failure_operation,
                tool_input={"text": text},
                message="No known server or instance mentioned in the request",
                summary="Server Health Agent could not identify a server in the request.",
                reason="server_not_resolved",
                duration_ms=0,
            )

        gauges = {
            "cpu": server.cpu,
            "memory": server.memory,
            "connection_pool": server.connection_pool,
        }
        warnings = resource_warnings(gauges)

        snapshot = self.tool_call(
            "snapshotTelemetry",
            "Telemetry Snapshot",
            {"server_id": server.id},
            {**gauges, "active_jobs": server.active_jobs},
            self.duration(120, 100),
        )
        evaluate = self.tool_call(
            "evaluateThresholds",
            "Threshold Evaluation",
            {"server_id": server.id, "thresholds": dict(RESOURCE_THRESHOLDS)},
            {"warnings": warnings},
            self.duration(40, 40),
        )

        summary = (
            f"{server.id}: CPU {server.cpu:g}%, memory {server.memory:g}%, "
            f"connection pool {server.connection_pool:g}%, {server.active_jobs} active jobs."
        )
        if warnings:
            summary += f" {len(warnings)} resource alert(s)."

        return self.success(
            [snapshot, evaluate],
            summary,
            {
                "domain": UseCase.SERVER_DIAGNOSIS.value,
                "server_id": server.id,
                "instance_id": server.instance_ref,
                **gauges,
                "active_jobs": server.active_jobs,
                "warnings": warnings,
            },
        )
