"""Supabase repository for room occupancy counters."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from postgrest.exceptions import APIError
from supabase import Client

from attendance_engine.services.side_effects import OccupancyRepository

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseOccupancyRepository(OccupancyRepository):
    """Supabase-backed occupancy counter."""

    client: Client

    def adjust_occupancy(self, room_id: UUID, delta: int) -> None:
        """Apply delta atomically, falling back to read-modify-write."""
        try:
            self.client.rpc(
                "update_room_occupancy",
                {"p_room_id": str(room_id), "p_delta": delta},
            ).execute()
            return
        except APIError as exc:
            _logger.warning(
                "Occupancy function unavailable, updating directly: %s", exc.message
            )
        now = datetime.now(tz=UTC).isoformat()
        response = (
            self.client.table("room_occupancy")
            .select("current_count")
            .eq("room_id", str(room_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            self.client.table("room_occupancy").insert(
                {
                    "room_id": str(room_id),
                    "current_count": max(0, delta),
                    "last_updated": now,
                }
            ).execute()
            return
        current = int(response.data[0].get("current_count") or 0)
        self.client.table("room_occupancy").update(
            {"current_count": max(0, current + delta), "last_updated": now}
        ).eq("room_id", str(room_id)).execute()
