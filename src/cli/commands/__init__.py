"""CLI command modules."""

from .bootstrap import bootstrap
from .memory import memory

__all__ = [
    "bootstrap",
    "memory",
]
