"""
Pytest configuration for funseq tests.

Puts the repository root on the Python path so the tests run against the
working tree, and resets global settings and metrics around every test.
"""

import logging
import sys
from pathlib import Path

# Add the repository root to the Python path
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

import pytest

from funseq import sequence
from funseq.utils import clear_performance_metrics, reset_settings


@pytest.fixture(autouse=True)
def clean_state(monkeypatch):
    """Each test starts from default settings and an empty metrics registry"""
    for name in ("FUNSEQ_LOG_LEVEL", "FUNSEQ_TRACE_PULLS", "FUNSEQ_MATERIALIZE_LIMIT", "FUNSEQ_DEFAULT_DELIMITER"):
        monkeypatch.delenv(name, raising=False)
    package_logger = logging.getLogger("funseq")
    saved_level = package_logger.level
    saved_handlers = list(package_logger.handlers)
    reset_settings()
    clear_performance_metrics()
    yield
    reset_settings()
    clear_performance_metrics()
    package_logger.setLevel(saved_level)
    package_logger.handlers[:] = saved_handlers


@sequence
def _fib():
    a, b = 1, 2
    while True:
        yield a
        a, b = b, a + b


@pytest.fixture
def fib():
    """Factory of the infinite Fibonacci sequence 1, 2, 3, 5, 8, ..."""
    return _fib
