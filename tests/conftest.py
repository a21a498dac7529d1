"""Shared pytest fixtures for proxywire tests."""

import pytest

from proxywire.lock_mode import LockMode
from proxywire.synthesizer import ProxySynthesizer


@pytest.fixture()
def synthesizer() -> ProxySynthesizer:
    """Default synthesizer with thread locking."""
    return ProxySynthesizer()


@pytest.fixture()
def unlocked_synthesizer() -> ProxySynthesizer:
    """Synthesizer with locking disabled."""
    return ProxySynthesizer(lock_mode=LockMode.NONE)
