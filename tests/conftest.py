"""Shared test fixtures for HealthPath vitals tests."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from healthpath.domains.vitals.connectors import BleDevice  # noqa: E402


# ---------------------------------------------------------------------------
# Fake BLE transport
# ---------------------------------------------------------------------------

class FakeHeartRateTransport:
    """In-process stand-in for a BLE adapter.

    Tests push raw Heart Rate Measurement packets with :meth:`notify`.
    """

    def __init__(
        self,
        devices: list[BleDevice] | None = None,
        *,
        connect_error: Exception | None = None,
        notify_error: Exception | None = None,
        connect_delay_s: float = 0.0,
    ) -> None:
        self.devices = devices if devices is not None else [
            BleDevice(address="AA:BB:CC:DD:EE:01", name="Polar H10", rssi=-60),
            BleDevice(address="AA:BB:CC:DD:EE:02", name="", rssi=-80),
        ]
        self.connect_error = connect_error
        self.notify_error = notify_error
        self.connect_delay_s = connect_delay_s
        self.connected_to: str | None = None
        self.subscriptions: list[tuple[str, str]] = []
        self.disconnect_count = 0
        self._callback = None

    async def scan(self, timeout: float) -> list[BleDevice]:
        return list(self.devices)

    async def connect(self, address: str) -> None:
        if self.connect_delay_s:
            await asyncio.sleep(self.connect_delay_s)
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_to = address

    async def start_notify(self, service_uuid, characteristic_uuid, callback) -> None:
        if self.notify_error is not None:
            raise self.notify_error
        self.subscriptions.append((service_uuid, characteristic_uuid))
        self._callback = callback

    async def disconnect(self) -> None:
        self.disconnect_count += 1
        self.connected_to = None
        self._callback = None

    def is_connected(self) -> bool:
        return self.connected_to is not None

    def notify(self, data: bytes) -> None:
        assert self._callback is not None, "not subscribed"
        self._callback(data)


@pytest.fixture
def fake_transport() -> FakeHeartRateTransport:
    return FakeHeartRateTransport()


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from healthpath.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def record_cipher():
    """Create a RecordCipher with a fresh test key."""
    from healthpath.core.storage.encryption import RecordCipher

    return RecordCipher(RecordCipher.generate_key())


@pytest.fixture
def vitals_repository(health_db, record_cipher):
    """Create a VitalsRepository backed by in-memory SQLite."""
    from healthpath.core.storage.repository import VitalsRepository

    return VitalsRepository(health_db, record_cipher)


@pytest.fixture
def transport_factory():
    """Build FakeHeartRateTransport instances with custom failure modes."""
    return FakeHeartRateTransport
