"""Tests for container wiring."""

import asyncio
import threading

import pytest

from resus_tracker.containers import build_container, default_protocol_settings
from resus_tracker.services.persistence import PersistenceQueue


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.arrest_service is not None
    assert container.logbook_service.repository is container.arrest_service.repository
    assert container.newborn_service.clock is container.arrest_service.clock
    assert container.arrest_service.settings == default_protocol_settings(settings)
    asyncio.run(container.close_resources())


def test_close_resources_drains_queue_off_the_event_loop(
    settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    closed_on: list[int] = []
    original_close = PersistenceQueue.close

    def recording_close(self: PersistenceQueue) -> None:
        closed_on.append(threading.get_ident())
        original_close(self)

    monkeypatch.setattr(PersistenceQueue, "close", recording_close)
    container = build_container(settings)

    async def close_and_report() -> int:
        await container.close_resources()
        return threading.get_ident()

    loop_thread = asyncio.run(close_and_report())

    assert len(closed_on) == 1
    assert closed_on[0] != loop_thread
