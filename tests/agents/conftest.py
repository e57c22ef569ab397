"""Fixtures for agent tests."""

import random

import pytest

from reconops.orchestrator.classifier import IntentClassifier


@pytest.fixture
def agent_factory(catalog, ids):
    """Factory building agents with zero latency and no simulated failures."""

    def _create_agent(agent_class, **kwargs):
        defaults = {
            "rng": random.Random(11),
            "ids": ids,
            "catalog": catalog,
            "error_rate": 0.0,
            "latency_scale": 0.0,
            "clock": lambda: 0,
        }
        defaults.update(kwargs)
        return agent_class(**defaults)

    return _create_agent


@pytest.fixture
def classify(catalog):
    """Classify text with the default rules."""
    classifier = IntentClassifier(catalog)
    return classifier.classify
