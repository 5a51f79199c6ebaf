"""Shared fixtures for the SecureVault test suite.

Key derivation runs with a reduced iteration count so the suite stays fast;
``test_crypto`` pins the production default separately.
"""
import pytest

from securevault.storage import MemoryBlobStore
from securevault.sync import SyncCoordinator
from securevault.vault import VaultConfig, VaultStore

FAST_ITERATIONS = 1000

EMAIL = "a@x.com"
PASSWORD = "correcthorse1"


@pytest.fixture
def config():
    """Vault configuration with a cheap KDF."""
    return VaultConfig(kdf_iterations=FAST_ITERATIONS)


@pytest.fixture
def blob_store():
    return MemoryBlobStore()


@pytest.fixture
def coordinator():
    return SyncCoordinator()


@pytest.fixture
def store(blob_store, coordinator, config):
    """A locked VaultStore wired to the coordinator."""
    return VaultStore(blob_store, coordinator=coordinator, config=config)


@pytest.fixture
async def unlocked_store(store):
    """A VaultStore with EMAIL registered and logged in."""
    await store.register(EMAIL, PASSWORD)
    await store.login(EMAIL, PASSWORD)
    return store


@pytest.fixture
def received(coordinator):
    """List collecting every snapshot broadcast by the coordinator."""
    snapshots = []
    coordinator.subscribe(snapshots.append)
    return snapshots
