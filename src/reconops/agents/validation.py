"""Release Validation Agent - governance and policy checks."""

from reconops.agents.base import BaseAgent
from reconops.core.models import AgentId, AgentResponse, IntentProfile

POLICY_POOL = (
    "data-retention-30d", "pii-mask", "audit-log",
    "sox-segregation", "gdpr-article-30", "mifid-best-execution",
    "trade-surveillance", "risk-limit-check", "counterparty-exposure",
    "change-freeze-window",
)

VIOLATION_PROBABILITY = 0.18


class ValidationAgent(BaseAgent):
    """Evaluates governance policies and issues an approval decision."""

    failure_reason = "policy_engine_timeout"
    failure_tool_id = "evaluatePolicy"
    failure_operation = "Policy Evaluation"
    failure_message = "Policy engine returned timeout: governance check incomplete"
    failure_summary = "Release Validation could not complete: policy engine unavailable."
    failure_duration_ms = 450

    latency_ms = (400, 900)

    @property
    def agent_id(self) -> str:
        return AgentId.VALIDATION.value

    @property
    def display_name(self) -> str:
        return "Release Validation Agent"

    async def run(self, text: str, profile: IntentProfile | None) -> AgentResponse:
        policies = self.rng.sample(POLICY_POOL, self.rng.randint(3, 5))
        violations = self.rng.randint(1, 2) if self.rng.random() < VIOLATION_PROBABILITY else 0
        approved = violations == 0
        violating = policies[:violations]

        if approved:
            notes = "All governance checks passed."
        else:
            notes = f"Policy violations detected: {', '.join(violating)}. Escalation required."

        evaluate = self.tool_call(
            "evaluatePolicy",
            "Policy Evaluation",
            {"action": text},
            {"policies": policies, "violations": violations, "violating_policies": violating},
            self.duration(80, 80),
        )
        approval = self.tool_call(
            "generateApproval",
            "Approval Generation",
            {"violations": violations},
            {"approved": approved, "notes": notes},
            self.duration(50, 60),
        )

        if approved:
            summary = f"Governance checks passed: {len(policies)} policies evaluated, 0 violations."
        else:
            summary = (
                f"Governance check failed: {violations} violation(s) detected. "
                "Escalation recommended."
            )

        return self.success(
            [evaluate, approval],
            summary,
            {
                "approved": approved,
                "violations": violations,
                "policies": policies,
                "violating_policies": violating,
            },
        )
