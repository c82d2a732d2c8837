"""Pytest configuration for shellgate."""
import os
from datetime import datetime, timedelta, timezone

import pytest

from shellgate.base.config import ExecutionConfig
from shellgate.base.execution_policy import AllowlistPolicy
from shellgate.data.history import HistoryLog
from shellgate.engine.executor import ExecutionEngine, ExecutionRecord
from shellgate.gateway import CommandGateway


def pytest_configure():
    # Tests must not inherit an operator's allowlist from the environment.
    os.environ.pop("SHELLGATE_ALLOWED_COMMANDS", None)


@pytest.fixture
def make_record():
    """Factory for ExecutionRecords that never touch a real process."""
    def _make(command: str = "echo hi", exit_code: int = 0, output: str = "hi\n", shell: str = "bash"):
        started = datetime(2024, 1, 1, tzinfo=timezone.utc)
        return ExecutionRecord(
            command=command,
            shell=shell,
            output=output,
            exit_code=exit_code,
            started_at=started,
            finished_at=started + timedelta(milliseconds=5),
            duration_ms=5,
        )
    return _make


@pytest.fixture
def engine():
    return ExecutionEngine(ExecutionConfig(command_timeout=10.0))


@pytest.fixture
def gateway(engine):
    return CommandGateway(
        policy=AllowlistPolicy.parse("ls,echo,cat,sleep,exit"),
        engine=engine,
        history=HistoryLog(capacity=100),
    )
