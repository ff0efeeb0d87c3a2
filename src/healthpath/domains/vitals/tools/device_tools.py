"""MCP tools for streaming heart rate from a Bluetooth LE monitor."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from healthpath.core.storage.repository import PersistenceError
from healthpath.domains.vitals.connectors.ble_heart_rate import (
    DeviceError,
    DeviceNotConnectedError,
    record_heart_rate,
)

if TYPE_CHECKING:
    from healthpath.core.storage.repository import VitalsRepository
    from healthpath.domains.vitals.connectors.ble_heart_rate import HeartRateSession

logger = logging.getLogger(__name__)


def register_device_tools(
    mcp: FastMCP,
    session: HeartRateSession,
    repository: VitalsRepository,
) -> None:
    """Register BLE heart-rate device tools on the MCP server."""

    @mcp.tool
    async def scan_heart_rate_devices(ctx: Context, timeout_s: float = 0) -> str:
        """Scan for nearby Bluetooth heart-rate monitors.

        Args:
            timeout_s: Scan duration in seconds (default: 5).
        """
        try:
            devices = await session.scan(timeout_s or None)
        except DeviceError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({
            "status": "ok",
            "count": len(devices),
            "devices": [asdict(d) for d in devices],
        })

    @mcp.tool
    async def connect_heart_rate_device(ctx: Context, address: str) -> str:
        """Connect to a heart-rate monitor and start streaming readings.

        Any previously connected device is disconnected first.

        Args:
            address: Device address from scan_heart_rate_devices.
        """
        try:
            await session.connect(address)
        except DeviceError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "connected", "address": address})

    @mcp.tool
    async def record_device_heart_rate(
        ctx: Context,
        user_id: str,
        timeout_s: float = 10.0,
    ) -> str:
        """Save the next heart-rate reading from the connected monitor.

        Args:
            user_id: Account id returned by sign_in.
            timeout_s: How long to wait for a reading.
        """
        try:
            latest, entry_id = await record_heart_rate(
                session, repository, user_id, timeout=timeout_s
            )
        except DeviceNotConnectedError as exc:
            return json.dumps({"status": "not_connected", "message": str(exc)})
        except (DeviceError, PersistenceError) as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({
            "status": "saved",
            "entry_id": entry_id,
            "heart_rate": latest.heart_rate,
            "address": session.connected_address,
        })

    @mcp.tool
    async def disconnect_heart_rate_device(ctx: Context) -> str:
        """Disconnect from the current heart-rate monitor."""
        address = session.connected_address
        await session.disconnect()
        return json.dumps({
            "status": "disconnected" if address else "not_connected",
            "address": address,
        })
