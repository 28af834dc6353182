"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from attendance_engine.adapters.device_client import HttpxDeviceClient
from attendance_engine.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from attendance_engine.adapters.supabase_audit_repository import (
    SupabaseAuditRepository,
)
from attendance_engine.adapters.supabase_device_repository import (
    SupabaseDeviceRepository,
)
from attendance_engine.adapters.supabase_legacy_gateway import SupabaseLegacyGateway
from attendance_engine.adapters.supabase_notification_repository import (
    SupabaseNotificationRepository,
)
from attendance_engine.adapters.supabase_occupancy_repository import (
    SupabaseOccupancyRepository,
)
from attendance_engine.adapters.supabase_roster_repository import (
    SupabaseRosterRepository,
)
from attendance_engine.config import Settings
from attendance_engine.services.annotations import AnnotationService
from attendance_engine.services.audit import AuditService
from attendance_engine.services.corrections import CorrectionManager
from attendance_engine.services.identity import IdentityResolver
from attendance_engine.services.ledger import SessionLedger
from attendance_engine.services.notifications import NotificationService
from attendance_engine.services.room_control import RoomControlService
from attendance_engine.services.router import EventRouter
from attendance_engine.services.side_effects import SideEffectDispatcher


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ledger: SessionLedger
    router: EventRouter
    annotation_service: AnnotationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    zone = resolved_settings.zone
    roster_repository = SupabaseRosterRepository(supabase_client)
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    ledger = SessionLedger(
        repository=SupabaseAttendanceRepository(supabase_client),
        timezone=zone,
        retry_delay_seconds=resolved_settings.storage_retry_delay_seconds,
    )
    device_client = HttpxDeviceClient.create(
        base_url=resolved_settings.device_gateway_url,
        access_token=resolved_settings.device_gateway_token,
    )
    router = EventRouter(
        identity_resolver=IdentityResolver(roster_repository, audit_service),
        class_directory=roster_repository,
        ledger=ledger,
        correction_manager=CorrectionManager(
            ledger=ledger,
            audit_service=audit_service,
            window=resolved_settings.correction_window,
        ),
        room_control=RoomControlService(
            device_repository=SupabaseDeviceRepository(supabase_client),
            device_client=device_client,
            audit_service=audit_service,
        ),
        side_effects=SideEffectDispatcher(
            occupancy_repository=SupabaseOccupancyRepository(supabase_client),
            notification_service=NotificationService(
                SupabaseNotificationRepository(supabase_client)
            ),
        ),
        timezone=zone,
        legacy_gateway=(
            SupabaseLegacyGateway(supabase_client)
            if resolved_settings.legacy_rpc_enabled
            else None
        ),
    )
    annotation_service = AnnotationService(
        ledger=ledger,
        audit_service=audit_service,
        frozen_after=resolved_settings.frozen_after,
    )

    async def close_resources() -> None:
        await device_client.close()

    return AppContainer(
        settings=resolved_settings,
        ledger=ledger,
        router=router,
        annotation_service=annotation_service,
        close_resources=close_resources,
    )
