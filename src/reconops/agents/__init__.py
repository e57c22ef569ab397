"""reconops agents."""

from reconops.agents.base import BaseAgent
from reconops.agents.dependency import DependencyAgent
from reconops.agents.monitoring import MonitoringAgent
from reconops.agents.registry import AgentRegistry, build_default_registry
from reconops.agents.server_health import ServerHealthAgent
from reconops.agents.validation import ValidationAgent

__all__ = [
    "AgentRegistry",
    "BaseAgent",
    "DependencyAgent",
    "MonitoringAgent",
    "ServerHealthAgent",
    "ValidationAgent",
    "build_default_registry",
]
