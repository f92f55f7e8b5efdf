import pytest

from bridgewatch.store import BridgeStore


@pytest.fixture
def store(tmp_path):
    return BridgeStore(tmp_path / "config")
