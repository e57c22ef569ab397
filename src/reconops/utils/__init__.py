"""Shared utilities."""

from reconops.utils.ids import IdGenerator, SequentialIdGenerator
from reconops.utils.log_config import configure_logging

__all__ = ["IdGenerator", "SequentialIdGenerator", "configure_logging"]
