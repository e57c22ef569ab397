"""reconops - intent-driven control cycle for reconciliation operations agents."""

__version__ = "0.1.0"
