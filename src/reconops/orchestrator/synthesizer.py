"""Report synthesis - merges agent responses into one decision report.

The report is built in a fixed shape:
- Summary: every agent's summary (or its error) joined into one paragraph
- Findings: intent, severity, domain, then one finding per agent response
- Impact scope: from the dependency agent, else server health, else the plan
- Domain section: structured data for domain-specific requests
- Recommended actions: one per condition that fired, or a fallback
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from pydantic import ValidationError

from reconops.agents.server_health import RESOURCE_THRESHOLDS
from reconops.core.models import (
    AgentId,
    AgentResponse,
    DelayedReconSection,
    FindingStatus,
    HighMtpSection,
    IntentProfile,
    MtpAccount,
    ReportData,
    ReportFinding,
    ServerDiagnosisSection,
    SeverityLevel,
    UseCase,
)
from reconops.orchestrator.classifier import DEFAULT_DOMAIN

logger = structlog.get_logger(__name__)

# Root causes at or above this confidence are treated as confirmed
ROOT_CAUSE_CONFIDENCE_THRESHOLD = 0.85

# High-MTP accounts above this many minutes are escalated by name
MTP_ESCALATION_THRESHOLD = 180.0

EMPTY_SUMMARY = "Analysis complete."
AGENT_UNAVAILABLE = "Error: agent unavailable"

ACTION_RETRY = "Retry failed agents; the upstream service may be recovering."
ACTION_INVESTIGATE = "Investigate anomalous signals; run a targeted trace to confirm the root cause."
ACTION_REMEDIATE = "Remediate the identified root cause with the owning service team."
ACTION_GOVERNANCE = "Resolve governance violations before proceeding and escalate to the compliance team."
ACTION_DELAYED_RECON = "Investigate delayed recon jobs; check upstream job completion and data feed latency."
ACTION_DEPENDENCIES = "Review upstream job dependencies and consider re-scheduling delayed jobs."
ACTION_NONE = "No immediate action required. Continue standard monitoring."

SEVERITY_STATUS = {
    SeverityLevel.CRITICAL: FindingStatus.ERROR,
    SeverityLevel.HIGH: FindingStatus.WARN,
}

MONITORING = AgentId.MONITORING.value
DEPENDENCY = AgentId.DEPENDENCY.value
VALIDATION = AgentId.VALIDATION.value
SERVER_HEALTH = AgentId.SERVER_HEALTH.value


def _first_success(responses: list[AgentResponse], agent_id: str) -> AgentResponse | None:
    for response in responses:
        if response.agent_id == agent_id and response.succeeded:
            return response
    return None


def _pipeline_label(agent_id: str) -> str:
    """``dependency_agent`` -> ``dependency pipeline``."""
    return agent_id.removesuffix("_agent").replace("_", " ") + " pipeline"


class ReportSynthesizer:
    """Builds ReportData from agent responses and the intent profile."""

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        """Initialize the synthesizer.

        Args:
            clock: Returns the report timestamp (UTC now if None)
        """
        self.clock = clock or (lambda: datetime.now(UTC))

    def summarize(self, responses: list[AgentResponse], profile: IntentProfile) -> str:
        """One-paragraph narrative of every agent's outcome.

        Args:
            responses: Agent responses in execution order
            profile: Intent profile of the cycle

        Returns:
            Summary text, never empty
        """
        lines = []
        for response in responses:
            if response.succeeded:
                lines.append(response.summary)
            else:
                lines.append(f"{response.display_name} encountered an error: {response.summary}")

        summary = " ".join(lines)
        if profile.domain != DEFAULT_DOMAIN:
            summary = f"{summary} ({profile.domain})"
        return summary.strip() or EMPTY_SUMMARY

    def synthesize(self, responses: list[AgentResponse], profile: IntentProfile) -> ReportData:
        """Build the full report.

        Args:
            responses: Agent responses in execution order
            profile: Intent profile of the cycle

        Returns:
            ReportData for the caller
        """
        report = ReportData(
            title=f"Analysis Report: {profile.type.label}",
            executed_at=self.clock(),
            intent_type=profile.type,
            severity=profile.severity,
            domain=profile.domain,
            summary=self.summarize(responses, profile),
            key_findings=self.build_findings(responses, profile),
            impact_scope=self.build_impact_scope(responses, profile),
            recommended_actions=self.build_actions(responses),
            domain_section=self.build_domain_section(responses, profile),
        )

        logger.info(
            "report_synthesized",
            intent=profile.type.value,
            findings=len(report.key_findings),
            actions=len(report.recommended_actions),
            domain_section=report.domain_section.type if report.domain_section else None,
        )
        return report

    def build_findings(
        self, responses: list[AgentResponse], profile: IntentProfile
    ) -> list[ReportFinding]:
        """Intent, severity and domain findings followed by one per response."""
        findings = [
            ReportFinding(label="Intent", value=profile.type.label, status=FindingStatus.INFO),
            ReportFinding(
                label="Severity",
                value=profile.severity.value,
                status=SEVERITY_STATUS.get(profile.severity, FindingStatus.INFO),
            ),
        ]
        if profile.domain != DEFAULT_DOMAIN:
            findings.append(
                ReportFinding(label="Domain", value=profile.domain, status=FindingStatus.INFO)
            )

        for response in responses:
            findings.append(self._agent_finding(response))

        return findings

    def _agent_finding(self, response: AgentResponse) -> ReportFinding:
        if not response.succeeded:
            return ReportFinding(
                label=response.display_name, value=AGENT_UNAVAILABLE, status=FindingStatus.ERROR
            )

        payload = response.payload

        if response.agent_id == MONITORING:
            if payload.get("domain") == UseCase.DELAYED_RECON.value:
                recons = payload.get("delayed_recons") or []
                return ReportFinding(
                    label="Delayed Recons",
                    value=f"{len(recons)} delayed on {payload.get('instance_name', '-')}",
                    status=FindingStatus.WARN if recons else FindingStatus.OK,
                )
            if payload.get("domain") == UseCase.HIGH_MTP.value:
                accounts = payload.get("accounts") or []
                return ReportFinding(
                    label="High MTP Accounts",
                    value=(
                        f"{len(accounts)} above {payload.get('threshold', 0):g} min "
                        f"on {payload.get('instance_name', '-')}"
                    ),
                    status=FindingStatus.WARN if accounts else FindingStatus.OK,
                )
            return ReportFinding(
                label="Anomaly Score",
                value=f"{payload.get('anomaly_score', 0)} (threshold {payload.get('threshold', 0)})",
                status=FindingStatus.WARN if payload.get("anomaly_detected") else FindingStatus.OK,
            )

        if response.agent_id == DEPENDENCY:
            root_cause = str(payload.get("root_cause") or "-").replace("_", " ")
            confidence = payload.get("confidence") or 0
            return ReportFinding(
                label="Root Cause",
                value=f"{root_cause} ({round(confidence * 100)}% confidence)",
                status=(
                    FindingStatus.ERROR
                    if confidence >= ROOT_CAUSE_CONFIDENCE_THRESHOLD
                    else FindingStatus.WARN
                ),
            )

        if response.agent_id == VALIDATION:
            approved = bool(payload.get("approved"))
            return ReportFinding(
                label="Governance",
                value="Passed" if approved else f"{payload.get('violations', 0)} violation(s) detected",
                status=FindingStatus.OK if approved else FindingStatus.ERROR,
            )

        if response.agent_id == SERVER_HEALTH:
            cpu = payload.get("cpu") or 0
            memory = payload.get("memory") or 0
            pool = payload.get("connection_pool") or 0
            over = (
                cpu > RESOURCE_THRESHOLDS["cpu"]
                or memory > RESOURCE_THRESHOLDS["memory"]
                or pool > RESOURCE_THRESHOLDS["connection_pool"]
            )
            return ReportFinding(
                label="Server Health",
                value=f"CPU {cpu:g}% | Mem {memory:g}% | Pool {pool:g}%",
                status=FindingStatus.WARN if over else FindingStatus.OK,
            )

        return ReportFinding(label=response.display_name, value=response.summary, status=FindingStatus.INFO)

    def build_impact_scope(
        self, responses: list[AgentResponse], profile: IntentProfile
    ) -> list[str]:
        """Affected service from tracing, else server load, else the planned pipelines."""
        trace = _first_success(responses, DEPENDENCY)
        if trace is not None:
            trace_ids = trace.payload.get("trace_ids")
            return [
                f"Service: {trace.payload.get('affected_service') or '-'}",
                f"Traces correlated: {len(trace_ids) if trace_ids is not None else '-'}",
            ]

        server = _first_success(responses, SERVER_HEALTH)
        if server is not None:
            return [
                f"Server: {server.payload.get('server_id') or '-'}",
                f"Active jobs: {server.payload.get('active_jobs', '-')}",
            ]

        return [_pipeline_label(agent_id) for agent_id in profile.agents_to_invoke]

    def build_domain_section(
        self, responses: list[AgentResponse], profile: IntentProfile
    ) -> DelayedReconSection | HighMtpSection | ServerDiagnosisSection | None:
        """Structured section for domain-specific requests.

        Only built when the expected agent succeeded and tagged its payload
        with the matching domain marker. A tagged payload that is missing
        fields or fails validation yields no section.
        """
        use_case = profile.use_case
        if use_case is None:
            return None

        source = MONITORING if use_case in (UseCase.DELAYED_RECON, UseCase.HIGH_MTP) else SERVER_HEALTH
        signal = _first_success(responses, source)
        if signal is None or signal.payload.get("domain") != use_case.value:
            return None

        try:
            if use_case == UseCase.DELAYED_RECON:
                return DelayedReconSection(
                    instance_id=signal.payload["instance_id"],
                    instance_name=signal.payload["instance_name"],
                    recons=list(signal.payload.get("delayed_recons") or []),
                )
            if use_case == UseCase.HIGH_MTP:
                return HighMtpSection(
                    instance_id=signal.payload["instance_id"],
                    instance_name=signal.payload["instance_name"],
                    accounts=[MtpAccount(**a) for a in signal.payload.get("accounts") or []],
                    threshold=signal.payload["threshold"],
                )

            trace = _first_success(responses, DEPENDENCY)
            dependencies: list[str] = []
            if trace is not None and trace.payload.get("domain") == UseCase.SERVER_DIAGNOSIS.value:
                dependencies = list(trace.payload.get("dependencies") or [])

            return ServerDiagnosisSection(
                server_id=signal.payload["server_id"],
                cpu=signal.payload["cpu"],
                memory=signal.payload["memory"],
                active_jobs=signal.payload["active_jobs"],
                connection_pool=signal.payload["connection_pool"],
                dependencies=dependencies,
            )
        except (KeyError, TypeError, ValidationError) as e:
            logger.warning(
                "domain_section_invalid",
                use_case=use_case.value,
                agent=signal.agent_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    def build_actions(self, responses: list[AgentResponse]) -> list[str]:
        """Recommended actions in fixed priority order."""
        succeeded = [r for r in responses if r.succeeded]

        has_error = any(not r.succeeded for r in responses)
        has_anomaly = any(
            r.agent_id == MONITORING and r.payload.get("anomaly_detected") for r in succeeded
        )
        has_confirmed_root_cause = any(
            r.agent_id == DEPENDENCY
            and (r.payload.get("confidence") or 0) >= ROOT_CAUSE_CONFIDENCE_THRESHOLD
            for r in succeeded
        )
        has_violation = any(
            r.agent_id == VALIDATION and not r.payload.get("approved") for r in succeeded
        )

        actions = []
        if has_error:
            actions.append(ACTION_RETRY)
        if has_anomaly:
            actions.append(ACTION_INVESTIGATE)
        if has_confirmed_root_cause:
            actions.append(ACTION_REMEDIATE)
        if has_violation:
            actions.append(ACTION_GOVERNANCE)

        signal = _first_success(responses, MONITORING)
        if signal is not None:
            if signal.payload.get("domain") == UseCase.DELAYED_RECON.value:
                actions.append(ACTION_DELAYED_RECON)
            elif signal.payload.get("domain") == UseCase.HIGH_MTP.value:
                breached = [
                    a.get("name", "unknown")
                    for a in signal.payload.get("accounts") or []
                    if isinstance(a, dict) and (a.get("mtp") or 0) > MTP_ESCALATION_THRESHOLD
                ]
                if breached:
                    actions.append(f"Escalate high-MTP accounts for review: {', '.join(breached)}.")

        server = _first_success(responses, SERVER_HEALTH)
        if server is not None and server.payload.get("domain") == UseCase.SERVER_DIAGNOSIS.value:
            warnings = server.payload.get("warnings") or []
            if warnings:
                actions.append(f"Server resource alerts require attention: {'; '.join(warnings)}.")
            actions.append(ACTION_DEPENDENCIES)

        return actions or [ACTION_NONE]
