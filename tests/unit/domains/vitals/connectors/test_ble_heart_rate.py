"""Tests for BLE heart-rate parsing and session handling."""

from __future__ import annotations

import asyncio

import pytest

from healthpath.domains.vitals.connectors import HeartRateTransport
from healthpath.domains.vitals.connectors.ble_heart_rate import (
    HEART_RATE_MEASUREMENT_UUID,
    HEART_RATE_SERVICE_UUID,
    BleakHeartRateTransport,
    DeviceError,
    DeviceNotConnectedError,
    HeartRateSession,
    parse_heart_rate_measurement,
    record_heart_rate,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestParseHeartRateMeasurement:
    def test_uint8(self):
        assert parse_heart_rate_measurement(bytes([0x00, 72])) == 72

    def test_uint16_little_endian(self):
        assert parse_heart_rate_measurement(bytes([0x01, 0x2C, 0x01])) == 300

    def test_other_flag_bits_ignored_for_width(self):
        # Sensor-contact and energy-expended bits set, 8-bit value.
        assert parse_heart_rate_measurement(bytes([0x0E, 65, 0x10, 0x00])) == 65

    @pytest.mark.parametrize("data", [b"", bytes([0x00]), bytes([0x01, 0x2C])])
    def test_short_buffer(self, data):
        assert parse_heart_rate_measurement(data) is None


class TestTransportProtocol:
    def test_bleak_transport_satisfies_protocol(self):
        assert isinstance(BleakHeartRateTransport(), HeartRateTransport)

    def test_fake_transport_satisfies_protocol(self, fake_transport):
        assert isinstance(fake_transport, HeartRateTransport)


class TestHeartRateSession:
    def test_scan_keeps_named_devices_once(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _scan():
            await session.scan()
            return await session.scan()

        devices = _run(_scan())
        assert [d.name for d in devices] == ["Polar H10"]

    def test_connect_subscribes_to_heart_rate(self, fake_transport):
        session = HeartRateSession(fake_transport)
        _run(session.connect("AA:BB:CC:DD:EE:01"))
        assert session.is_connected
        assert fake_transport.subscriptions == [
            (HEART_RATE_SERVICE_UUID, HEART_RATE_MEASUREMENT_UUID)
        ]

    def test_notifications_become_readings(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _stream():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x00, 70]))
            fake_transport.notify(bytes([0x01, 0x4B, 0x00]))
            return [await session.next_reading(timeout=1), await session.next_reading(timeout=1)]

        assert _run(_stream()) == [70, 75]
        assert session.last_heart_rate == 75

    def test_short_packets_ignored(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _stream():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x00]))
            fake_transport.notify(bytes([0x00, 66]))
            return await session.next_reading(timeout=1)

        assert _run(_stream()) == 66

    def test_zero_bpm_ignored(self, fake_transport):
        session = HeartRateSession(fake_transport)
        seen: list[int] = []
        session.subscribe(seen.append)

        async def _stream():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x06, 0]))
            fake_transport.notify(bytes([0x01, 0x00, 0x00]))
            fake_transport.notify(bytes([0x06, 64]))
            return await session.next_reading(timeout=1)

        assert _run(_stream()) == 64
        assert seen == [64]
        assert session.last_heart_rate == 64

    def test_full_queue_drops_oldest(self, fake_transport):
        session = HeartRateSession(fake_transport, queue_size=2)

        async def _stream():
            await session.connect("AA:BB:CC:DD:EE:01")
            for bpm in (60, 61, 62):
                fake_transport.notify(bytes([0x00, bpm]))
            return [await session.next_reading(timeout=1), await session.next_reading(timeout=1)]

        assert _run(_stream()) == [61, 62]

    def test_listeners_and_unsubscribe(self, fake_transport):
        session = HeartRateSession(fake_transport)
        seen: list[int] = []
        unsubscribe = session.subscribe(seen.append)

        async def _stream():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x00, 80]))
            unsubscribe()
            fake_transport.notify(bytes([0x00, 81]))

        _run(_stream())
        assert seen == [80]

    def test_next_reading_without_device(self, fake_transport):
        session = HeartRateSession(fake_transport)
        with pytest.raises(DeviceNotConnectedError):
            _run(session.next_reading(timeout=0.1))

    def test_next_reading_timeout(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _wait():
            await session.connect("AA:BB:CC:DD:EE:01")
            await session.next_reading(timeout=0.05)

        with pytest.raises(DeviceError, match="No heart-rate reading"):
            _run(_wait())

    def test_connect_timeout(self, transport_factory):
        session = HeartRateSession(transport_factory(connect_delay_s=1.0), connect_timeout_s=0.05)
        with pytest.raises(DeviceError, match="timed out"):
            _run(session.connect("AA:BB:CC:DD:EE:01"))
        assert not session.is_connected

    def test_connect_failure(self, transport_factory):
        session = HeartRateSession(transport_factory(connect_error=OSError("adapter off")))
        with pytest.raises(DeviceError, match="Failed to connect"):
            _run(session.connect("AA:BB:CC:DD:EE:01"))

    def test_missing_heart_rate_service_disconnects(self, transport_factory):
        transport = transport_factory(notify_error=RuntimeError("no such characteristic"))
        session = HeartRateSession(transport)
        with pytest.raises(DeviceError, match="heart-rate measurements"):
            _run(session.connect("AA:BB:CC:DD:EE:01"))
        assert transport.disconnect_count == 1
        assert session.connected_address is None

    def test_one_device_at_a_time(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _switch():
            await session.connect("AA:BB:CC:DD:EE:01")
            await session.connect("AA:BB:CC:DD:EE:03")

        _run(_switch())
        assert fake_transport.disconnect_count == 1
        assert session.connected_address == "AA:BB:CC:DD:EE:03"

    def test_disconnect_clears_state(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _cycle():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x00, 90]))
            await session.disconnect()

        _run(_cycle())
        assert session.last_heart_rate is None
        assert not session.is_connected
        with pytest.raises(DeviceNotConnectedError):
            _run(session.next_reading(timeout=0.1))


class TestRecordHeartRate:
    def test_reading_recorded_as_device_source(self, fake_transport, vitals_repository):
        session = HeartRateSession(fake_transport)

        async def _record():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x00, 68]))
            return await record_heart_rate(session, vitals_repository, "u1", timeout=1)

        latest, entry_id = _run(_record())
        assert latest.heart_rate == 68
        assert latest.source == "device"
        history = vitals_repository.get_vitals_history("u1")
        assert history[0].id == entry_id
        assert history[0].source == "device"

    def test_lost_contact_reading_not_recorded(self, fake_transport, vitals_repository):
        session = HeartRateSession(fake_transport)

        async def _record():
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x06, 0]))
            await record_heart_rate(session, vitals_repository, "u1", timeout=0.05)

        with pytest.raises(DeviceError, match="No heart-rate reading"):
            _run(_record())
        assert vitals_repository.get_latest_vitals("u1").is_empty()
        assert vitals_repository.count_history("u1") == 0


class TestReadingsStream:
    def test_async_iteration(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _collect():
            await session.connect("AA:BB:CC:DD:EE:01")
            for bpm in (71, 72, 73):
                fake_transport.notify(bytes([0x00, bpm]))
            seen = []
            async for bpm in session.readings():
                seen.append(bpm)
                if len(seen) == 3:
                    break
            return seen

        assert _run(_collect()) == [71, 72, 73]

    def test_disconnect_ends_waiting_iteration(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _collect():
            await session.connect("AA:BB:CC:DD:EE:01")
            seen = []

            async def _consume():
                async for bpm in session.readings():
                    seen.append(bpm)

            consumer = asyncio.ensure_future(_consume())
            fake_transport.notify(bytes([0x00, 70]))
            await asyncio.sleep(0.01)
            await session.disconnect()
            await asyncio.wait_for(consumer, timeout=1)
            return seen

        assert _run(_collect()) == [70]

    def test_disconnect_wakes_pending_next_reading(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _wait():
            await session.connect("AA:BB:CC:DD:EE:01")
            pending = asyncio.ensure_future(session.next_reading(timeout=1))
            await asyncio.sleep(0.01)
            await session.disconnect()
            await pending

        with pytest.raises(DeviceNotConnectedError):
            _run(_wait())

    def test_reconnect_starts_fresh_stream(self, fake_transport):
        session = HeartRateSession(fake_transport)

        async def _cycle():
            await session.connect("AA:BB:CC:DD:EE:01")
            await session.disconnect()
            await session.connect("AA:BB:CC:DD:EE:01")
            fake_transport.notify(bytes([0x00, 88]))
            return await session.next_reading(timeout=1)

        assert _run(_cycle()) == 88
