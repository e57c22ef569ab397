"""Core data models shared by the classifier, agents, orchestrator and synthesizer."""
