"""Bluetooth LE heart-rate streaming.

``HeartRateSession`` owns one connection at a time and turns Heart Rate
Measurement notifications into a bounded queue of readings. Readings reach
storage through the same ``record_vitals`` path as manual and imported data.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from healthpath.core.storage.models import VitalRecord
from healthpath.core.storage.repository import VitalsRepository
from healthpath.domains.vitals.connectors import (
    BleDevice,
    HeartRateTransport,
    NotificationCallback,
)

logger = logging.getLogger(__name__)

HEART_RATE_SERVICE_UUID = "0000180d-0000-1000-8000-00805f9b34fb"
HEART_RATE_MEASUREMENT_UUID = "00002a37-0000-1000-8000-00805f9b34fb"

_FLAG_UINT16 = 0x01

# Queued on disconnect to wake waiting consumers.
_DISCONNECTED = None

HeartRateListener = Callable[[int], None]


class DeviceError(Exception):
    """Raised when a BLE scan, connect or subscribe fails."""


class DeviceNotConnectedError(DeviceError):
    """Raised when a reading is requested without a connected device."""


def parse_heart_rate_measurement(data: bytes) -> int | None:
    """Decode a GATT Heart Rate Measurement value.

    Byte 0 holds flags. With flag bit 0 clear the rate is a uint8 at offset 1;
    with it set the rate is a little-endian uint16 at offsets 1-2.

    Returns:
        Beats per minute, or None if the buffer is too short.
    """
    if len(data) < 2:
        return None
    if data[0] & _FLAG_UINT16:
        if len(data) < 3:
            return None
        return int.from_bytes(data[1:3], "little")
    return data[1]


class HeartRateSession:
    """One BLE heart-rate connection and its reading stream.

    Notifications are expected on the event-loop thread. When the queue is
    full the oldest reading is dropped.

    Usage::

        session = HeartRateSession(BleakHeartRateTransport())
        devices = await session.scan()
        await session.connect(devices[0].address)
        bpm = await session.next_reading(timeout=10)
        await session.disconnect()
    """

    def __init__(
        self,
        transport: HeartRateTransport,
        *,
        queue_size: int = 32,
        connect_timeout_s: float = 15.0,
        scan_timeout_s: float = 5.0,
    ) -> None:
        self._transport = transport
        self._queue: asyncio.Queue[int | None] = asyncio.Queue(maxsize=queue_size)
        self._listeners: list[HeartRateListener] = []
        self._connect_timeout_s = connect_timeout_s
        self._scan_timeout_s = scan_timeout_s
        self.devices: list[BleDevice] = []
        self.connected_address: str | None = None
        self.last_heart_rate: int | None = None

    @property
    def is_connected(self) -> bool:
        return self.connected_address is not None and self._transport.is_connected()

    # ------------------------------------------------------------------
    # Discovery and connection
    # ------------------------------------------------------------------

    async def scan(self, timeout: float | None = None) -> list[BleDevice]:
        """Scan for named peripherals, keeping each address once."""
        try:
            found = await self._transport.scan(timeout or self._scan_timeout_s)
        except Exception as exc:
            logger.error("BLE scan failed: %s", exc)
            raise DeviceError("Bluetooth scan failed") from exc

        known = {d.address for d in self.devices}
        for device in found:
            if device.name and device.address not in known:
                self.devices.append(device)
                known.add(device.address)
        logger.info("BLE scan found %d named devices", len(self.devices))
        return list(self.devices)

    async def connect(self, address: str) -> None:
        """Connect to ``address`` and subscribe to heart-rate notifications.

        An existing connection is closed first.

        Raises:
            DeviceError: On timeout or any transport failure.
        """
        if self.connected_address is not None:
            await self.disconnect()
        self._drain()

        try:
            await asyncio.wait_for(
                self._transport.connect(address), timeout=self._connect_timeout_s
            )
        except asyncio.TimeoutError as exc:
            logger.warning("BLE connect to %s timed out", address)
            raise DeviceError(f"Connection to {address} timed out") from exc
        except Exception as exc:
            logger.error("BLE connect to %s failed: %s", address, exc)
            raise DeviceError(f"Failed to connect to {address}") from exc

        self.connected_address = address
        try:
            await self._transport.start_notify(
                HEART_RATE_SERVICE_UUID,
                HEART_RATE_MEASUREMENT_UUID,
                self._on_notification,
            )
        except Exception as exc:
            logger.error("Heart-rate subscription on %s failed: %s", address, exc)
            await self.disconnect()
            raise DeviceError("Device does not provide heart-rate measurements") from exc
        logger.info("Streaming heart rate from %s", address)

    async def disconnect(self) -> None:
        """Close the connection and reset stream state."""
        if self.connected_address is None:
            return
        address = self.connected_address
        try:
            await self._transport.disconnect()
        except Exception as exc:
            logger.warning("BLE disconnect from %s failed: %s", address, exc)
        finally:
            self.connected_address = None
            self.last_heart_rate = None
            self._drain()
            self._queue.put_nowait(_DISCONNECTED)
        logger.info("Disconnected from %s", address)

    def _drain(self) -> None:
        while not self._queue.empty():
            self._queue.get_nowait()

    # ------------------------------------------------------------------
    # Stream
    # ------------------------------------------------------------------

    def subscribe(self, listener: HeartRateListener) -> Callable[[], None]:
        """Register a callback for each reading; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: HeartRateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _on_notification(self, data: bytes) -> None:
        bpm = parse_heart_rate_measurement(bytes(data))
        if bpm is None:
            logger.debug("Ignoring short heart-rate packet (%d bytes)", len(data))
            return
        if bpm == 0:
            # Straps report 0 bpm while they have no skin contact.
            logger.debug("Ignoring zero heart-rate reading")
            return
        self.last_heart_rate = bpm
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(bpm)
        for listener in list(self._listeners):
            try:
                listener(bpm)
            except Exception:
                logger.exception("Heart-rate listener failed")

    async def next_reading(self, timeout: float | None = None) -> int:
        """Wait for the next reading.

        Raises:
            DeviceNotConnectedError: No device is connected and nothing is queued.
            DeviceError: No reading arrived within ``timeout``.
        """
        if self._queue.empty() and not self.is_connected:
            raise DeviceNotConnectedError("No heart-rate device connected")
        try:
            bpm = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise DeviceError("No heart-rate reading received") from exc
        if bpm is _DISCONNECTED:
            raise DeviceNotConnectedError("Heart-rate device disconnected")
        return bpm

    async def readings(self) -> AsyncIterator[int]:
        """Yield readings until the device disconnects."""
        while self.is_connected or not self._queue.empty():
            bpm = await self._queue.get()
            if bpm is _DISCONNECTED:
                return
            yield bpm


async def record_heart_rate(
    session: HeartRateSession,
    repository: VitalsRepository,
    user_id: str,
    *,
    timeout: float | None = None,
) -> tuple[VitalRecord, str]:
    """Take the next streamed reading and record it with ``source="device"``."""
    bpm = await session.next_reading(timeout=timeout)
    return repository.record_vitals(user_id, VitalRecord(heart_rate=bpm), source="device")


class BleakHeartRateTransport:
    """``HeartRateTransport`` backed by the bleak BLE library."""

    def __init__(self) -> None:
        self._client = None

    async def scan(self, timeout: float) -> list[BleDevice]:
        from bleak import BleakScanner

        discovered = await BleakScanner.discover(timeout=timeout, return_adv=True)
        return [
            BleDevice(address=device.address, name=device.name or "", rssi=adv.rssi)
            for device, adv in discovered.values()
        ]

    async def connect(self, address: str) -> None:
        from bleak import BleakClient

        client = BleakClient(address)
        await client.connect()
        self._client = client

    async def start_notify(
        self, service_uuid: str, characteristic_uuid: str, callback: NotificationCallback
    ) -> None:
        if self._client is None:
            raise DeviceNotConnectedError("No heart-rate device connected")
        if self._client.services.get_service(service_uuid) is None:
            raise DeviceError(f"Service {service_uuid} not found")
        await self._client.start_notify(
            characteristic_uuid, lambda _sender, data: callback(bytes(data))
        )

    async def disconnect(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.disconnect()

    def is_connected(self) -> bool:
        return self._client is not None and self._client.is_connected
