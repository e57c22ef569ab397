"""Pytest configuration and shared fixtures."""

import random
from datetime import UTC, datetime

import pytest

from reconops.agents.registry import AgentRegistry, build_default_registry
from reconops.config import Settings
from reconops.domain.catalog import ReferenceCatalog
from reconops.orchestrator.classifier import IntentClassifier
from reconops.orchestrator.control_cycle import Orchestrator
from reconops.orchestrator.synthesizer import ReportSynthesizer
from reconops.utils.ids import SequentialIdGenerator

FIXED_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def settings() -> Settings:
    """Settings with no pacing, no simulated failures and a fixed seed."""
    return Settings(_env_file=None, random_seed=7, agent_error_rate=0.0).without_pacing()


@pytest.fixture
def rng() -> random.Random:
    """Seeded randomness source."""
    return random.Random(7)


@pytest.fixture
def ids() -> SequentialIdGenerator:
    """Id generator independent of wall-clock time."""
    return SequentialIdGenerator(clock=lambda: 0)


@pytest.fixture
def catalog() -> ReferenceCatalog:
    """The packaged reference catalog."""
    return ReferenceCatalog.load()


@pytest.fixture
def classifier(catalog: ReferenceCatalog) -> IntentClassifier:
    """Classifier with the default rules."""
    return IntentClassifier(catalog)


@pytest.fixture
def fixed_now() -> datetime:
    """Timestamp used for synthesized reports."""
    return FIXED_NOW


@pytest.fixture
def synthesizer() -> ReportSynthesizer:
    """Synthesizer with a fixed clock."""
    return ReportSynthesizer(clock=lambda: FIXED_NOW)


@pytest.fixture
def registry(
    settings: Settings,
    rng: random.Random,
    ids: SequentialIdGenerator,
    catalog: ReferenceCatalog,
) -> AgentRegistry:
    """Registry with the built-in agents, deterministic and never failing."""
    return build_default_registry(
        settings=settings, rng=rng, ids=ids, catalog=catalog, clock=lambda: 0
    )


@pytest.fixture
def orchestrator(
    registry: AgentRegistry,
    classifier: IntentClassifier,
    synthesizer: ReportSynthesizer,
    settings: Settings,
) -> Orchestrator:
    """Orchestrator wired with deterministic collaborators."""
    return Orchestrator(
        registry,
        classifier=classifier,
        synthesizer=synthesizer,
        ids=SequentialIdGenerator(prefix="node", clock=lambda: 0),
        settings=settings,
    )
