"""Supabase-backed arrest log repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from resus_tracker.domain.documents import ArchivedArrest
from resus_tracker.services.sessions import ArrestRepository

_LIVE_TABLE = "arrest_logs"
_ARCHIVE_TABLE = "arrest_log_archive"


@dataclass
class SupabaseArrestRepository(ArrestRepository):
    """Supabase implementation keyed by the installation's device id."""

    client: Client
    device_id: str

    def save_state(self, document: dict[str, object]) -> None:
        """Upsert the live arrest document for this device."""
        self.client.table(_LIVE_TABLE).upsert(
            {
                "device_id": self.device_id,
                "state_json": document,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="device_id",
        ).execute()

    def load_state(self) -> dict[str, object] | None:
        """Return the live arrest document, if present."""
        response = (
            self.client.table(_LIVE_TABLE)
            .select("state_json")
            .eq("device_id", self.device_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("state_json")

    def delete_state(self) -> None:
        """Delete the live arrest document."""
        self.client.table(_LIVE_TABLE).delete().eq(
            "device_id", self.device_id
        ).execute()

    def archive(self, document: dict[str, object]) -> None:
        """Insert a finished arrest into the archive."""
        start_time = document.get("start_time")
        response = (
            self.client.table(_ARCHIVE_TABLE)
            .insert(
                {
                    "device_id": self.device_id,
                    "start_time": (
                        datetime.fromtimestamp(float(start_time), tz=UTC).isoformat()
                        if isinstance(start_time, int | float)
                        else None
                    ),
                    "total_duration": document.get("total_duration", 0),
                    "final_outcome": document.get("final_outcome", "Incomplete"),
                    "document_json": document,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to archive arrest log")

    def list_archives(self, limit: int) -> list[ArchivedArrest]:
        """Return archived arrests for this device, newest first."""
        response = (
            self.client.table(_ARCHIVE_TABLE)
            .select("id, start_time, total_duration, final_outcome, document_json")
            .eq("device_id", self.device_id)
            .order("start_time", desc=True)
            .limit(limit)
            .execute()
        )
        archives = []
        for row in response.data or []:
            start_time = row.get("start_time")
            archives.append(
                ArchivedArrest(
                    id=UUID(row["id"]),
                    start_time=(
                        datetime.fromisoformat(start_time)
                        if isinstance(start_time, str) and start_time
                        else None
                    ),
                    total_duration=int(row.get("total_duration") or 0),
                    final_outcome=row.get("final_outcome") or "Incomplete",
                    document=row.get("document_json") or {},
                )
            )
        return archives
