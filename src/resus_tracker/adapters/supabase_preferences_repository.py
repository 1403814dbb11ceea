"""Supabase repository for device preferences."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from resus_tracker.services.preferences import PreferencesRepository

_COLUMNS = {
    "cpr_cycle_duration": "cpr_cycle_duration_seconds",
    "adrenaline_interval": "adrenaline_interval_seconds",
    "show_dosage_prompts": "show_dosage_prompts",
    "metronome_bpm": "metronome_bpm",
}


@dataclass
class SupabasePreferencesRepository(PreferencesRepository):
    """Supabase implementation for per-device preferences."""

    client: Client
    device_id: str

    def get_preferences(self) -> dict[str, object] | None:
        """Return stored preferences for this device."""
        response = (
            self.client.table("device_preferences")
            .select(", ".join(_COLUMNS))
            .eq("device_id", self.device_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return {field: row.get(column) for column, field in _COLUMNS.items()}

    def save_preferences(self, values: dict[str, object]) -> None:
        """Upsert preferences for this device."""
        payload: dict[str, object] = {
            column: values[field]
            for column, field in _COLUMNS.items()
            if field in values
        }
        payload["device_id"] = self.device_id
        payload["updated_at"] = datetime.now(tz=UTC).isoformat()
        self.client.table("device_preferences").upsert(
            payload, on_conflict="device_id"
        ).execute()
