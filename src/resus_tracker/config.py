"""Application configuration."""

import os
import uuid
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    device_id: str | None = None
    device_id_path: Path = Path.home() / ".resus_tracker" / "device_id"
    summary_export_dir: Path = Path("summaries")
    cpr_cycle_duration_seconds: int = 120
    adrenaline_interval_seconds: int = 240
    show_dosage_prompts: bool = False
    metronome_bpm: int = 110
    undo_limit: int | None = None
    tick_interval_seconds: float = 1.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def load_device_id(path: Path) -> str:
    """Return the installation's device id, creating it on first use."""
    if path.exists():
        stored = path.read_text(encoding="utf-8").strip()
        if stored:
            return stored
    path.parent.mkdir(parents=True, exist_ok=True)
    device_id = str(uuid.uuid4())
    path.write_text(device_id, encoding="utf-8")
    return device_id
