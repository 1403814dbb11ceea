"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from resus_tracker.config import Settings
from resus_tracker.containers import AppContainer
from resus_tracker.domain.documents import ArchivedArrest
from resus_tracker.services.clock import Clock
from resus_tracker.services.cues import CueSink, ImpactStyle, NotificationKind
from resus_tracker.services.logbook import LogbookService
from resus_tracker.services.newborn import NewbornSessionService
from resus_tracker.services.persistence import PersistenceQueue
from resus_tracker.services.preferences import (
    PreferencesRepository,
    PreferencesService,
    ProtocolSettings,
)
from resus_tracker.services.sessions import ArrestRepository, ArrestSessionService
from resus_tracker.services.summary import SummaryExporter
from resus_tracker.services.ticker import TickCallback, Ticker

START = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@dataclass
class FakeClock(Clock):
    """Manually advanced clock for tests."""

    current: datetime = START

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@dataclass
class FakeTicker(Ticker):
    """Ticker that only fires when the test asks it to."""

    callback: TickCallback | None = None
    starts: int = 0
    stops: int = 0

    @property
    def running(self) -> bool:
        return self.callback is not None

    def start(self, callback: TickCallback) -> None:
        if self.callback is not None:
            return
        self.callback = callback
        self.starts += 1

    def stop(self) -> None:
        if self.callback is None:
            return
        self.callback = None
        self.stops += 1

    def fire(self) -> None:
        assert self.callback is not None
        self.callback()

    async def aclose(self) -> None:
        self.stop()


@dataclass
class RecordingCueSink(CueSink):
    """Cue sink that records every cue."""

    impacts: list[str] = field(default_factory=list)
    notifications: list[str] = field(default_factory=list)

    def impact(self, style: ImpactStyle = "light") -> None:
        self.impacts.append(style)

    def notification(self, kind: NotificationKind) -> None:
        self.notifications.append(kind)


@dataclass
class InMemoryArrestRepository(ArrestRepository):
    """In-memory arrest repository for tests."""

    state: dict[str, object] | None = None
    saves: list[dict[str, object]] = field(default_factory=list)
    archived: list[dict[str, object]] = field(default_factory=list)
    archives: list[ArchivedArrest] = field(default_factory=list)
    deletes: int = 0
    loads: int = 0

    def save_state(self, document: dict[str, object]) -> None:
        self.saves.append(document)
        self.state = document

    def load_state(self) -> dict[str, object] | None:
        self.loads += 1
        return self.state

    def delete_state(self) -> None:
        self.deletes += 1
        self.state = None

    def archive(self, document: dict[str, object]) -> None:
        self.archived.append(document)

    def list_archives(self, limit: int) -> list[ArchivedArrest]:
        return self.archives[:limit]


@dataclass
class FailingArrestRepository(ArrestRepository):
    """Repository whose every call fails."""

    calls: list[str] = field(default_factory=list)

    def save_state(self, document: dict[str, object]) -> None:
        self.calls.append("save_state")
        raise RuntimeError("network down")

    def load_state(self) -> dict[str, object] | None:
        self.calls.append("load_state")
        raise RuntimeError("network down")

    def delete_state(self) -> None:
        self.calls.append("delete_state")
        raise RuntimeError("network down")

    def archive(self, document: dict[str, object]) -> None:
        self.calls.append("archive")
        raise RuntimeError("network down")

    def list_archives(self, limit: int) -> list[ArchivedArrest]:
        self.calls.append("list_archives")
        raise RuntimeError("network down")


@dataclass
class InMemoryPreferencesRepository(PreferencesRepository):
    """In-memory preferences repository for tests."""

    values: dict[str, object] | None = None

    def get_preferences(self) -> dict[str, object] | None:
        return self.values

    def save_preferences(self, values: dict[str, object]) -> None:
        self.values = dict(values)


@dataclass
class RecordingSummaryExporter(SummaryExporter):
    """Exporter that keeps exported summaries in memory."""

    exported: list[str] = field(default_factory=list)

    def export(self, text: str) -> None:
        self.exported.append(text)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        device_id="device-1",
        summary_export_dir=tmp_path / "summaries",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ticker() -> FakeTicker:
    return FakeTicker()


@pytest.fixture
def cues() -> RecordingCueSink:
    return RecordingCueSink()


@pytest.fixture
def repository() -> InMemoryArrestRepository:
    return InMemoryArrestRepository()


@pytest.fixture
def exporter() -> RecordingSummaryExporter:
    return RecordingSummaryExporter()


@pytest.fixture
def service(
    repository: InMemoryArrestRepository,
    clock: FakeClock,
    ticker: FakeTicker,
    cues: RecordingCueSink,
    exporter: RecordingSummaryExporter,
) -> ArrestSessionService:
    return ArrestSessionService(
        repository=repository,
        clock=clock,
        ticker=ticker,
        persistence=PersistenceQueue(),
        cues=cues,
        exporter=exporter,
    )


@pytest.fixture
def newborn_ticker() -> FakeTicker:
    return FakeTicker()


@pytest.fixture
def newborn_exporter() -> RecordingSummaryExporter:
    return RecordingSummaryExporter()


@pytest.fixture
def newborn_service(
    clock: FakeClock,
    newborn_ticker: FakeTicker,
    cues: RecordingCueSink,
    newborn_exporter: RecordingSummaryExporter,
) -> NewbornSessionService:
    return NewbornSessionService(
        clock=clock,
        ticker=newborn_ticker,
        persistence=PersistenceQueue(),
        cues=cues,
        exporter=newborn_exporter,
    )


@pytest.fixture
def container(
    settings: Settings,
    service: ArrestSessionService,
    newborn_service: NewbornSessionService,
    repository: InMemoryArrestRepository,
    ticker: FakeTicker,
    newborn_ticker: FakeTicker,
) -> AppContainer:
    preferences_service = PreferencesService(
        repository=InMemoryPreferencesRepository(),
        defaults=ProtocolSettings(),
    )

    async def close_resources() -> None:
        await ticker.aclose()
        await newborn_ticker.aclose()

    return AppContainer(
        settings=settings,
        arrest_service=service,
        preferences_service=preferences_service,
        logbook_service=LogbookService(repository),
        newborn_service=newborn_service,
        close_resources=close_resources,
    )
