"""
Router initialization module.

Exports all API routers for the gateway.
"""
from shellgate.server.routers import system, tools

__all__ = [
    "system",
    "tools",
]
