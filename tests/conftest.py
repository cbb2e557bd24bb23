"""
Configuration for pytest: import path setup and settings isolation.
"""

import sys
from pathlib import Path
import pytest


# Add the project root to Python path so `lazyseq` imports without installation
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

# Import after path setup
from lazyseq import reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Every test starts from default settings, unaffected by the environment."""
    for name in ("LAZYSEQ_MAX_PULLS", "LAZYSEQ_ENFORCE_BOUNDS", "LAZYSEQ_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def naturals():
    """Supplier counting 1, 2, 3, ... and recording how often it was called."""

    class Counter:
        def __init__(self):
            self.calls = 0

        def __call__(self):
            self.calls += 1
            return self.calls

    return Counter()


def is_prime(n):
    if n < 2:
        return False
    i = 2
    while i * i <= n:
        if n % i == 0:
            return False
        i += 1
    return True


@pytest.fixture
def prime_test():
    return is_prime
