"""Core data models for reconops.

Everything here is created fresh for each control cycle. Models that are
written once and then only read (intent profiles, tool calls) are frozen.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class IntentType(str, Enum):
    """Intent categories produced by the classifier."""

    INCIDENT_RESPONSE = "incident_response"
    ANOMALY_DETECTION = "anomaly_detection"
    ROOT_CAUSE_TRACE = "root_cause_trace"
    COMPLIANCE_CHECK = "compliance_check"
    PERFORMANCE_ANALYSIS = "performance_analysis"
    FULL_ANALYSIS = "full_analysis"
    DELAYED_RECON_QUERY = "delayed_recon_query"
    HIGH_MTP_QUERY = "high_mtp_query"
    SERVER_DIAGNOSIS = "server_diagnosis"

    @property
    def label(self) -> str:
        """Human-readable form, e.g. ``root cause trace``."""
        return self.value.replace("_", " ")


class SeverityLevel(str, Enum):
    """Severity, ordered from least to most severe."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AgentId(str, Enum):
    """Stable identifiers of the built-in agents."""

    MONITORING = "monitoring_agent"
    DEPENDENCY = "dependency_agent"
    VALIDATION = "validation_agent"
    SERVER_HEALTH = "server_health_agent"


# Agents invoked for a full analysis, in execution order
FULL_AGENT_SET: tuple[str, ...] = (
    AgentId.MONITORING.value,
    AgentId.DEPENDENCY.value,
    AgentId.VALIDATION.value,
)


class UseCase(str, Enum):
    """Domain-specific use cases that carry a structured report section."""

    DELAYED_RECON = "delayed_recon"
    HIGH_MTP = "high_mtp"
    SERVER_DIAGNOSIS = "server_diagnosis"


class ExecutionStatus(str, Enum):
    """Execution state of an agent, tool call or graph node."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"


# Finished tool calls and agent responses carry one of these
TERMINAL_STATUSES = (ExecutionStatus.SUCCESS, ExecutionStatus.ERROR)


def _require_terminal(status: ExecutionStatus) -> ExecutionStatus:
    if status not in TERMINAL_STATUSES:
        raise ValueError(f"status must be success or error, got {status.value}")
    return status


class ExecutionState(str, Enum):
    """Phase of a control cycle.

    idle -> planning -> executing -> synthesizing -> complete, with error
    reachable from any phase after idle.
    """

    IDLE = "idle"
    PLANNING = "planning"
    EXECUTING = "executing"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


class FindingStatus(str, Enum):
    """Status badge of a report finding."""

    OK = "ok"
    WARN = "warn"
    ERROR = "error"
    INFO = "info"


class ExtractedContext(BaseModel):
    """Structured context pulled from the request for domain-specific intents."""

    model_config = ConfigDict(frozen=True)

    use_case: UseCase | None = None
    instance_id: str | None = None
    server_id: str | None = None


class IntentProfile(BaseModel):
    """Classification of a request: what it is about and which agents run."""

    model_config = ConfigDict(frozen=True)

    type: IntentType
    severity: SeverityLevel
    agents_to_invoke: tuple[str, ...] = Field(..., min_length=1)
    primary_keywords: tuple[str, ...] = ()
    domain: str
    extracted_context: ExtractedContext | None = None

    @model_validator(mode="after")
    def _agents_unique(self) -> "IntentProfile":
        if len(set(self.agents_to_invoke)) != len(self.agents_to_invoke):
            raise ValueError(f"duplicate agents in plan: {list(self.agents_to_invoke)}")
        return self

    @property
    def use_case(self) -> UseCase | None:
        return self.extracted_context.use_case if self.extracted_context else None


class ToolCall(BaseModel):
    """A single simulated operation performed by an agent."""

    model_config = ConfigDict(frozen=True)

    id: str
    agent_id: str
    agent_display_name: str
    tool_id: str
    operation_label: str
    input: dict[str, Any] = Field(default_factory=dict)
    output: dict[str, Any] | None = None
    status: ExecutionStatus = ExecutionStatus.SUCCESS
    started_at: int = Field(..., description="Unix ms when the call started")
    duration_ms: int | None = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ExecutionStatus) -> ExecutionStatus:
        return _require_terminal(v)


class AgentResponse(BaseModel):
    """Structured response returned by every agent."""

    agent_id: str
    display_name: str
    status: ExecutionStatus
    tool_calls: list[ToolCall] = Field(default_factory=list)
    summary: str
    payload: dict[str, Any] = Field(default_factory=dict)

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ExecutionStatus) -> ExecutionStatus:
        return _require_terminal(v)

    @model_validator(mode="after")
    def _error_shape(self) -> "AgentResponse":
        if self.status == ExecutionStatus.ERROR:
            if len(self.tool_calls) != 1 or self.tool_calls[0].status != ExecutionStatus.ERROR:
                raise ValueError("an error response carries exactly one failed tool call")
        return self

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS


class AgentNode(BaseModel):
    """Node in the agent execution graph."""

    id: str
    agent_id: str
    label: str
    status: ExecutionStatus
    order: int = Field(..., ge=1, description="1-based position in the execution plan")


class ReportFinding(BaseModel):
    """One labelled line of the report."""

    label: str
    value: str
    status: FindingStatus


class MtpAccount(BaseModel):
    """Account with its mean time to process, in minutes."""

    model_config = ConfigDict(frozen=True)

    name: str
    mtp: float


class DelayedReconSection(BaseModel):
    """Delayed reconciliation jobs for one instance."""

    type: Literal["delayed_recon"] = "delayed_recon"
    instance_id: str
    instance_name: str
    recons: list[str]


class HighMtpSection(BaseModel):
    """Accounts whose mean time to process exceeds the threshold."""

    type: Literal["high_mtp"] = "high_mtp"
    instance_id: str
    instance_name: str
    accounts: list[MtpAccount]
    threshold: float


class ServerDiagnosisSection(BaseModel):
    """Resource gauges and upstream dependencies for one server."""

    type: Literal["server_diagnosis"] = "server_diagnosis"
    server_id: str
    cpu: float
    memory: float
    active_jobs: int
    connection_pool: float
    dependencies: list[str] = Field(default_factory=list)


DomainSection = Annotated[
    DelayedReconSection | HighMtpSection | ServerDiagnosisSection,
    Field(discriminator="type"),
]


class ReportData(BaseModel):
    """Synthesized decision report."""

    title: str
    executed_at: datetime
    intent_type: IntentType
    severity: SeverityLevel
    domain: str
    summary: str
    key_findings: list[ReportFinding] = Field(default_factory=list)
    impact_scope: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)
    domain_section: DomainSection | None = None


class OrchestrationResult(BaseModel):
    """Everything a completed control cycle hands back to its caller."""

    intent_type: IntentType
    agent_responses: list[AgentResponse] = Field(default_factory=list)
    agent_nodes: list[AgentNode] = Field(default_factory=list)
    final_summary: str
    report_data: ReportData
