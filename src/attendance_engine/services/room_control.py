"""Room activator flow: toggle every device in the activator's room."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from attendance_engine.adapters.device_client import DeviceClient
from attendance_engine.domain.models import ActivatorIdentity, IotDevice
from attendance_engine.services.audit import AuditService

_logger = logging.getLogger(__name__)

ROOM_ON = "on"
ROOM_OFF = "off"
ROOM_UNCHANGED = "unchanged"


class DeviceRepository(Protocol):
    """Persistence interface for room IoT devices."""

    def list_room_devices(self, room_id: UUID) -> list[IotDevice]:
        """Return all devices installed in a room."""

    def set_current_state(self, device_id: str, state: bool) -> None:
        """Persist the last commanded state of a device."""

    def record_device_log(  # noqa: PLR0913
        self,
        device_id: str,
        code: str,
        value: bool,
        room_id: UUID,
        triggered_by: UUID | None,
        source: str,
    ) -> None:
        """Append a row to the device command log."""


@dataclass
class RoomControlService:
    """Flips a room's devices all-off to on, or any-on to off."""

    device_repository: DeviceRepository
    device_client: DeviceClient
    audit_service: AuditService

    async def toggle_room(self, activator: ActivatorIdentity) -> str:
        """Toggle the activator's bound room and return the resulting state."""
        if activator.room_id is None:
            _logger.warning(
                "Activator device is not bound to a room",
                extra={"device_id": activator.device_id},
            )
            return ROOM_UNCHANGED
        devices = self.device_repository.list_room_devices(activator.room_id)
        if not devices:
            return ROOM_UNCHANGED
        target = not any(device.current_state for device in devices)
        switched = 0
        for device in devices:
            if await self._switch(device, target, activator):
                switched += 1
        self.audit_service.record_event(
            actor_id=activator.instructor_id,
            action="room_toggle",
            target_type="room",
            target_id=str(activator.room_id),
            details={
                "state": ROOM_ON if target else ROOM_OFF,
                "devices": len(devices),
                "switched": switched,
                "kiosk": activator.device_id,
            },
        )
        return ROOM_ON if target else ROOM_OFF

    async def _switch(
        self, device: IotDevice, value: bool, activator: ActivatorIdentity
    ) -> bool:
        try:
            ok = await self.device_client.set_device_state(
                physical_device_id(device.id), device.dp_code, value
            )
        except Exception:
            _logger.exception(
                "Device command failed", extra={"device_id": device.id}
            )
            return False
        if not ok:
            _logger.warning("Device rejected command", extra={"device_id": device.id})
            return False
        try:
            self.device_repository.set_current_state(device.id, value)
            self.device_repository.record_device_log(
                device_id=device.id,
                code=device.dp_code,
                value=value,
                room_id=device.room_id,
                triggered_by=activator.instructor_id,
                source="activator",
            )
        except Exception:
            _logger.exception(
                "Failed to persist device state", extra={"device_id": device.id}
            )
        return True


def physical_device_id(device_id: str) -> str:
    """Strip the ``_chN`` channel suffix used for multi-gang switches."""
    base, sep, channel = device_id.rpartition("_ch")
    if sep and base and channel.isdigit():
        return base
    return device_id
