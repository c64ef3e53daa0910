"""
Tools module for sqlgate (MCP boundary).
"""

from .executor import DirectToolExecutor

__all__ = [
    "DirectToolExecutor",
]
