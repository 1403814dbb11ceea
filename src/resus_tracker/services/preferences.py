"""Protocol preferences service."""

from dataclasses import dataclass, replace
from typing import Protocol

MIN_METRONOME_BPM = 60
MAX_METRONOME_BPM = 200


@dataclass(frozen=True)
class ProtocolSettings:
    """Live-reloadable parameters read by the arrest engine."""

    cpr_cycle_duration_seconds: int = 120
    adrenaline_interval_seconds: int = 240
    show_dosage_prompts: bool = False
    metronome_bpm: int = 110


class PreferencesRepository(Protocol):
    """Persistence interface for per-device preferences."""

    def get_preferences(self) -> dict[str, object] | None:
        """Return stored preference values, if any."""

    def save_preferences(self, values: dict[str, object]) -> None:
        """Persist preference values."""


@dataclass
class PreferencesService:
    """Service for reading and updating protocol preferences."""

    repository: PreferencesRepository
    defaults: ProtocolSettings

    def get(self) -> ProtocolSettings:
        """Return stored preferences layered over the defaults."""
        stored = self.repository.get_preferences() or {}
        known = {
            key: value
            for key, value in stored.items()
            if key in ProtocolSettings.__dataclass_fields__ and value is not None
        }
        return replace(self.defaults, **known)

    def update(self, **changes: object) -> ProtocolSettings:
        """Validate and persist changed preferences."""
        updated = replace(self.get(), **changes)
        _validate(updated)
        self.repository.save_preferences(
            {
                "cpr_cycle_duration_seconds": updated.cpr_cycle_duration_seconds,
                "adrenaline_interval_seconds": updated.adrenaline_interval_seconds,
                "show_dosage_prompts": updated.show_dosage_prompts,
                "metronome_bpm": updated.metronome_bpm,
            }
        )
        return updated


def _validate(settings: ProtocolSettings) -> None:
    if settings.cpr_cycle_duration_seconds <= 0:
        raise ValueError("cpr_cycle_duration_seconds must be > 0")
    if settings.adrenaline_interval_seconds <= 0:
        raise ValueError("adrenaline_interval_seconds must be > 0")
    if not MIN_METRONOME_BPM <= settings.metronome_bpm <= MAX_METRONOME_BPM:
        raise ValueError(
            f"metronome_bpm must be between {MIN_METRONOME_BPM} and {MAX_METRONOME_BPM}"
        )
