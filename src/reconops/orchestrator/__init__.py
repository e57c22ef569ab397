"""reconops orchestrator."""

from reconops.orchestrator.classifier import IntentClassifier
from reconops.orchestrator.control_cycle import (
    ControlCycle,
    CycleError,
    CycleStateError,
    Orchestrator,
)
from reconops.orchestrator.events import CycleCallbacks, CycleEvent, EventRecorder
from reconops.orchestrator.synthesizer import ReportSynthesizer

__all__ = [
    "ControlCycle",
    "CycleCallbacks",
    "CycleError",
    "CycleEvent",
    "CycleStateError",
    "EventRecorder",
    "IntentClassifier",
    "Orchestrator",
    "ReportSynthesizer",
]
