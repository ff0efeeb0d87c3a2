"""Vitals connectors — BLE heart-rate transport interface and document extraction."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

NotificationCallback = Callable[[bytes], None]


@dataclass(frozen=True)
class BleDevice:
    """A peripheral seen during a scan."""

    address: str
    name: str
    rssi: int | None = None


@runtime_checkable
class HeartRateTransport(Protocol):
    """Abstract BLE link to a single heart-rate peripheral.

    ``HeartRateSession`` drives this without knowing whether the link is a
    real adapter (bleak) or a test double.
    """

    async def scan(self, timeout: float) -> list[BleDevice]:
        """Discover nearby peripherals."""
        ...

    async def connect(self, address: str) -> None:
        """Connect and discover services on the given peripheral."""
        ...

    async def start_notify(
        self, service_uuid: str, characteristic_uuid: str, callback: NotificationCallback
    ) -> None:
        """Subscribe to notifications of one characteristic."""
        ...

    async def disconnect(self) -> None:
        ...

    def is_connected(self) -> bool:
        ...
