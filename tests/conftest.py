# Veil Test Configuration
# This file contains test settings and shared fixtures

import pytest
import sys
import os

# Add python-core to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'python-core'))

# Test fixtures and configuration
pytest_plugins = ['pytest_asyncio']

# 32 bytes of 0x41 ("AAAA...") as padded base64
SAMPLE_KEY = "QUFBQUFBQUFBQUFBQUFBQUFBQUFBQUFBQUFBQUFBQUE="


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.fixture
def sample_key():
    """A well-formed 44 character public key."""
    return SAMPLE_KEY


@pytest.fixture
def stego():
    """Create a tag codec with the default configuration."""
    from stego import TagStego
    return TagStego()


@pytest.fixture
def analyzer(stego):
    """Create an input analyzer sharing the codec fixture."""
    from veil.analyzer import InputAnalyzer
    return InputAnalyzer(stego)


@pytest.fixture
def service():
    """Create a worker service and close it after the test."""
    from veil.service import WorkerService
    from veil.worker import WorkerConfig

    svc = WorkerService(WorkerConfig(max_concurrent_tasks=2, poll_interval=0.05))
    yield svc
    svc.close()
