"""Agent registry: agents looked up by their stable id."""

import random
from collections.abc import Callable, Iterable, Iterator

import structlog

from reconops.agents.base import BaseAgent
from reconops.agents.dependency import DependencyAgent
from reconops.agents.monitoring import MonitoringAgent
from reconops.agents.server_health import ServerHealthAgent
from reconops.agents.validation import ValidationAgent
from reconops.config import Settings, get_settings
from reconops.domain.catalog import ReferenceCatalog
from reconops.utils.ids import IdGenerator, SequentialIdGenerator

logger = structlog.get_logger(__name__)

DEFAULT_AGENT_CLASSES: tuple[type[BaseAgent], ...] = (
    MonitoringAgent,
    DependencyAgent,
    ValidationAgent,
    ServerHealthAgent,
)


class AgentRegistry:
    """Holds agent instances keyed by agent id.

    Lookups of unknown ids return None rather than raising; the control
    cycle skips agents it cannot resolve.
    """

    def __init__(self, agents: Iterable[BaseAgent] = ()):
        self._agents: dict[str, BaseAgent] = {}
        for agent in agents:
            self.register(agent)

    def register(self, agent: BaseAgent) -> None:
        """Add an agent, replacing any agent already registered under its id."""
        if agent.agent_id in self._agents:
            logger.warning("agent_replaced", agent=agent.agent_id)
        self._agents[agent.agent_id] = agent

    def get(self, agent_id: str) -> BaseAgent | None:
        """Agent registered under the id, if any."""
        return self._agents.get(agent_id)

    def list_agent_ids(self) -> list[str]:
        """Registered ids in registration order."""
        return list(self._agents)

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __iter__(self) -> Iterator[BaseAgent]:
        return iter(self._agents.values())

    def __len__(self) -> int:
        return len(self._agents)


def build_default_registry(
    settings: Settings | None = None,
    rng: random.Random | None = None,
    ids: IdGenerator | None = None,
    catalog: ReferenceCatalog | None = None,
    clock: Callable[[], float] | None = None,
) -> AgentRegistry:
    """Registry with the four built-in agents sharing one randomness source.

    Args:
        settings: Supplies error rate, latency scale and seed (global settings if None)
        rng: Randomness source (seeded from settings.random_seed if None)
        ids: Id generator shared by all agents
        catalog: Reference catalog shared by all agents
        clock: Time source for tool call timestamps

    Returns:
        AgentRegistry with monitoring, dependency, validation and server health agents
    """
    settings = settings or get_settings()
    rng = rng or random.Random(settings.random_seed)
    ids = ids or SequentialIdGenerator()
    if catalog is None and settings.catalog_path is not None:
        catalog = ReferenceCatalog.load(settings.catalog_path)

    registry = AgentRegistry(
        cls(
            rng=rng,
            ids=ids,
            catalog=catalog,
            error_rate=settings.agent_error_rate,
            latency_scale=settings.agent_latency_scale,
            clock=clock,
        )
        for cls in DEFAULT_AGENT_CLASSES
    )
    logger.debug("registry_built", agents=registry.list_agent_ids(), seed=settings.random_seed)
    return registry
