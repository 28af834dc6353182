"""Supabase repository for room IoT devices."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from attendance_engine.domain.models import IotDevice
from attendance_engine.services.room_control import DeviceRepository


@dataclass
class SupabaseDeviceRepository(DeviceRepository):
    """Supabase-backed device repository."""

    client: Client

    def list_room_devices(self, room_id: UUID) -> list[IotDevice]:
        """Return the devices installed in a room."""
        response = (
            self.client.table("iot_devices")
            .select("id, room_id, dp_code, current_state")
            .eq("room_id", str(room_id))
            .execute()
        )
        return [
            IotDevice(
                id=str(row["id"]),
                room_id=UUID(str(row["room_id"])),
                dp_code=str(row.get("dp_code") or "switch_1"),
                current_state=bool(row.get("current_state")),
            )
            for row in response.data or []
        ]

    def set_current_state(self, device_id: str, state: bool) -> None:
        """Store the last commanded state."""
        self.client.table("iot_devices").update(
            {
                "current_state": state,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).eq("id", device_id).execute()

    def record_device_log(  # noqa: PLR0913
        self,
        device_id: str,
        code: str,
        value: bool,
        room_id: UUID,
        triggered_by: UUID | None,
        source: str,
    ) -> None:
        """Append a device command log row."""
        self.client.table("iot_device_logs").insert(
            {
                "device_id": device_id,
                "code": code,
                "value": value,
                "room_id": str(room_id),
                "triggered_by": str(triggered_by) if triggered_by else None,
                "source": source,
            }
        ).execute()
