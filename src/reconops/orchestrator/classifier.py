"""Rule-based intent classification.

Turns a free-text request into an IntentProfile:
- Domain-specific rules (delayed recons, high MTP, server diagnosis)
- General intent rules (incident, anomaly, trace, compliance, performance)
- Severity scoring (low -> critical)
- Agent plan composition (critical override, validation agent last)
- Business domain labelling

Keyword matching is plain substring containment on the lowercased text, so
"down" also matches inside "shutdown". Domain labels are matched with
regular expressions against the original text.
"""

import re
from dataclasses import dataclass

import structlog

from reconops.core.models import (
    FULL_AGENT_SET,
    AgentId,
    ExtractedContext,
    IntentProfile,
    IntentType,
    SeverityLevel,
    UseCase,
)
from reconops.domain.catalog import ReferenceCatalog, get_catalog

logger = structlog.get_logger(__name__)

MONITORING = AgentId.MONITORING.value
DEPENDENCY = AgentId.DEPENDENCY.value
VALIDATION = AgentId.VALIDATION.value
SERVER_HEALTH = AgentId.SERVER_HEALTH.value

DEFAULT_DOMAIN = "Operations"


@dataclass(frozen=True)
class IntentRule:
    """Keyword rule mapping a request to an intent and its agent plan."""

    type: IntentType
    agents: tuple[str, ...]
    keywords: tuple[str, ...]
    use_case: UseCase | None = None


@dataclass(frozen=True)
class DomainRule:
    """Regex rule mapping a request to a business domain label."""

    pattern: re.Pattern
    domain: str


# Checked first; a hit here skips the general rules entirely
DOMAIN_INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        type=IntentType.DELAYED_RECON_QUERY,
        agents=(MONITORING,),
        use_case=UseCase.DELAYED_RECON,
        keywords=(
            "delayed recon", "recon delay", "late recon", "stuck recon",
            "pending recon", "delayed job", "recon backlog",
        ),
    ),
    IntentRule(
        type=IntentType.HIGH_MTP_QUERY,
        agents=(MONITORING,),
        use_case=UseCase.HIGH_MTP,
        keywords=("high mtp", "high-mtp", "mtp", "mean time to process", "time to process"),
    ),
    IntentRule(
        type=IntentType.SERVER_DIAGNOSIS,
        agents=(SERVER_HEALTH, DEPENDENCY),
        use_case=UseCase.SERVER_DIAGNOSIS,
        keywords=(
            "server", "recon3p", "recon2p", "recon4p", "recon6p", "cpu",
            "memory usage", "connection pool", "host health",
        ),
    ),
)

INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule(
        type=IntentType.INCIDENT_RESPONSE,
        agents=FULL_AGENT_SET,
        keywords=(
            "incident", "outage", "down", "offline", "p0", "p1", "sev1", "sev2",
            "production down", "service down", "system down",
        ),
    ),
    IntentRule(
        type=IntentType.ANOMALY_DETECTION,
        agents=(MONITORING, VALIDATION),
        keywords=(
            "anomal", "spike", "surge", "drift", "signal", "alert",
            "threshold exceeded", "unusual", "deviation",
        ),
    ),
    IntentRule(
        type=IntentType.ROOT_CAUSE_TRACE,
        agents=(DEPENDENCY, VALIDATION),
        keywords=(
            "trace", "root cause", "chain", "dependency", "span", "upstream",
            "downstream", "propagat",
        ),
    ),
    IntentRule(
        type=IntentType.COMPLIANCE_CHECK,
        agents=(VALIDATION,),
        keywords=(
            "compliance", "policy", "governance", "audit", "regulation", "sox",
            "gdpr", "mifid", "approved", "violation",
        ),
    ),
    IntentRule(
        type=IntentType.PERFORMANCE_ANALYSIS,
        agents=(MONITORING, DEPENDENCY),
        keywords=(
            "performance", "latency", "throughput", "slow", "timeout", "capacity",
            "bottleneck", "degraded", "lag",
        ),
    ),
)

# Checked in this order; the first level with any hit wins
SEVERITY_KEYWORDS: tuple[tuple[SeverityLevel, tuple[str, ...]], ...] = (
    (
        SeverityLevel.CRITICAL,
        ("critical", "p0", "sev1", "production down", "total failure", "all services", "outage", "down"),
    ),
    (
        SeverityLevel.HIGH,
        ("p1", "sev2", "production", "fail", "failed", "failing", "incident", "broken", "offline"),
    ),
    (
        SeverityLevel.LOW,
        ("check", "review", "audit", "yesterday", "historical", "previous", "last week", "scheduled"),
    ),
)

DOMAIN_RULES: tuple[DomainRule, ...] = tuple(
    DomainRule(re.compile(pattern, re.IGNORECASE), domain)
    for pattern, domain in (
        (r"fx|foreign.?exchange|forex", "FX Operations"),
        (r"recon|reconcil", "Reconciliation"),
        (r"payment|settle|clearing", "Payment & Settlement"),
        (r"equity|blotter|trade execution", "Equity Operations"),
        (r"position|portfolio|pnl", "Portfolio Management"),
        (r"batch|overnight|scheduled|end.of.day", "Batch Processing"),
        (r"deploy|release|version|pipeline|build", "Release Engineering"),
        (r"order|routing|matching|exchange", "Order Management"),
        (r"report|feed|data|market.data", "Data Services"),
    )
)


def extract_keywords(lower: str, candidates: tuple[str, ...]) -> list[str]:
    """Candidates contained in the text, in candidate order."""
    return [kw for kw in candidates if kw in lower]


class IntentClassifier:
    """Deterministic keyword classifier.

    Always returns a profile; unmatched requests become a full analysis with
    every general agent.
    """

    def __init__(
        self,
        catalog: ReferenceCatalog | None = None,
        domain_intent_rules: tuple[IntentRule, ...] = DOMAIN_INTENT_RULES,
        intent_rules: tuple[IntentRule, ...] = INTENT_RULES,
    ) -> None:
        """Initialize the classifier.

        Args:
            catalog: Reference data used to resolve instances and servers
            domain_intent_rules: Domain-specific rules, checked first
            intent_rules: General rules, checked when no domain rule hits
        """
        self.catalog = catalog or get_catalog()
        self.domain_intent_rules = domain_intent_rules
        self.intent_rules = intent_rules

    def classify(self, text: str) -> IntentProfile:
        """Classify a request.

        Args:
            text: Free-text user request

        Returns:
            IntentProfile driving the rest of the control cycle
        """
        lower = text.lower()

        matched_type = IntentType.FULL_ANALYSIS
        agents = list(FULL_AGENT_SET)
        keywords: list[str] = []
        context: ExtractedContext | None = None

        # 1. Domain-specific rules take precedence over everything else
        rule, hits = self._first_match(lower, self.domain_intent_rules)
        if rule is not None:
            matched_type, agents, keywords = rule.type, list(rule.agents), hits
            context = self._extract_context(text, rule.use_case)
        else:
            # 2. General rules
            rule, hits = self._first_match(lower, self.intent_rules)
            if rule is not None:
                matched_type, agents, keywords = rule.type, list(rule.agents), hits

        # 3. Severity is independent of the matched intent
        severity = self.detect_severity(lower)

        # 4. Critical requests always get full coverage
        if severity == SeverityLevel.CRITICAL and matched_type != IntentType.FULL_ANALYSIS:
            agents = list(FULL_AGENT_SET)

        # 5. Validation runs after every other finding is in
        if VALIDATION in agents and len(agents) > 1:
            agents.remove(VALIDATION)
            agents.append(VALIDATION)

        profile = IntentProfile(
            type=matched_type,
            severity=severity,
            agents_to_invoke=tuple(agents),
            primary_keywords=tuple(keywords),
            domain=self.detect_domain(text),
            extracted_context=context,
        )

        logger.info(
            "intent_classified",
            intent=profile.type.value,
            severity=profile.severity.value,
            agents=list(profile.agents_to_invoke),
            keywords=list(profile.primary_keywords),
            domain=profile.domain,
        )
        return profile

    @staticmethod
    def _first_match(
        lower: str, rules: tuple[IntentRule, ...]
    ) -> tuple[IntentRule | None, list[str]]:
        for rule in rules:
            hits = extract_keywords(lower, rule.keywords)
            if hits:
                return rule, hits
        return None, []

    def _extract_context(self, text: str, use_case: UseCase | None) -> ExtractedContext:
        """Resolve the instance and server a domain-specific request refers to.

        Server diagnosis resolves the server first and derives the instance
        from it; the other use cases go the other way round.
        """
        instance_id = server_id = None

        if use_case == UseCase.SERVER_DIAGNOSIS:
            server = self.catalog.resolve_server(text)
            if server:
                server_id = server.id
                instance_id = server.instance_ref
        else:
            instance = self.catalog.resolve_instance(text)
            if instance:
                instance_id = instance.id
                server_id = instance.server_ref

        return ExtractedContext(use_case=use_case, instance_id=instance_id, server_id=server_id)

    @staticmethod
    def detect_severity(lower: str) -> SeverityLevel:
        """Severity from the first keyword level with a hit, medium otherwise."""
        for level, candidates in SEVERITY_KEYWORDS:
            if extract_keywords(lower, candidates):
                return level
        return SeverityLevel.MEDIUM

    @staticmethod
    def detect_domain(text: str) -> str:
        """Business domain label; matched against the text as typed."""
        for rule in DOMAIN_RULES:
            if rule.pattern.search(text):
                return rule.domain
        return DEFAULT_DOMAIN
