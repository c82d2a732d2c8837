"""Bounded subprocess execution."""

from shellgate.engine.executor import ExecutionEngine, ExecutionRecord

__all__ = ["ExecutionEngine", "ExecutionRecord"]
