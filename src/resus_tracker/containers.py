"""Dependency container wiring for the application."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from resus_tracker.adapters.file_summary_exporter import FileSummaryExporter
from resus_tracker.adapters.supabase_arrest_repository import (
    SupabaseArrestRepository,
)
from resus_tracker.adapters.supabase_preferences_repository import (
    SupabasePreferencesRepository,
)
from resus_tracker.config import Settings, load_device_id
from resus_tracker.services.clock import SystemClock
from resus_tracker.services.cues import LoggingCueSink
from resus_tracker.services.logbook import LogbookService
from resus_tracker.services.newborn import NewbornSessionService
from resus_tracker.services.persistence import PersistenceQueue
from resus_tracker.services.preferences import PreferencesService, ProtocolSettings
from resus_tracker.services.sessions import ArrestSessionService
from resus_tracker.services.ticker import AsyncioTicker


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    arrest_service: ArrestSessionService
    preferences_service: PreferencesService
    logbook_service: LogbookService
    newborn_service: NewbornSessionService
    close_resources: Callable[[], Awaitable[None]]


def default_protocol_settings(settings: Settings) -> ProtocolSettings:
    """Return protocol defaults taken from the environment."""
    return ProtocolSettings(
        cpr_cycle_duration_seconds=settings.cpr_cycle_duration_seconds,
        adrenaline_interval_seconds=settings.adrenaline_interval_seconds,
        show_dosage_prompts=settings.show_dosage_prompts,
        metronome_bpm=settings.metronome_bpm,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    device_id = resolved_settings.device_id or load_device_id(
        resolved_settings.device_id_path
    )
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    arrest_repository = SupabaseArrestRepository(supabase_client, device_id)
    preferences_repository = SupabasePreferencesRepository(supabase_client, device_id)
    preferences_service = PreferencesService(
        repository=preferences_repository,
        defaults=default_protocol_settings(resolved_settings),
    )
    clock = SystemClock()
    cues = LoggingCueSink()
    exporter = FileSummaryExporter(resolved_settings.summary_export_dir)
    ticker = AsyncioTicker(resolved_settings.tick_interval_seconds)
    newborn_ticker = AsyncioTicker(resolved_settings.tick_interval_seconds)
    persistence = PersistenceQueue.create()
    arrest_service = ArrestSessionService(
        repository=arrest_repository,
        clock=clock,
        ticker=ticker,
        persistence=persistence,
        cues=cues,
        exporter=exporter,
        settings=preferences_service.defaults,
        undo_limit=resolved_settings.undo_limit,
    )
    newborn_service = NewbornSessionService(
        clock=clock,
        ticker=newborn_ticker,
        persistence=persistence,
        cues=cues,
        exporter=FileSummaryExporter(
            resolved_settings.summary_export_dir, prefix="newborn-summary"
        ),
    )
    logbook_service = LogbookService(arrest_repository)

    async def close_resources() -> None:
        await ticker.aclose()
        await newborn_ticker.aclose()
        await asyncio.to_thread(persistence.close)

    return AppContainer(
        settings=resolved_settings,
        arrest_service=arrest_service,
        preferences_service=preferences_service,
        logbook_service=logbook_service,
        newborn_service=newborn_service,
        close_resources=close_resources,
    )
