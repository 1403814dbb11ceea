"""Summary exporter that writes text files."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from resus_tracker.services.summary import SummaryExporter

logger = logging.getLogger(__name__)


@dataclass
class FileSummaryExporter(SummaryExporter):
    """Writes each summary to a timestamped file in ``directory``."""

    directory: Path
    now: Callable[[], datetime] = field(default=lambda: datetime.now(tz=UTC))
    prefix: str = "arrest-summary"

    def export(self, text: str) -> None:
        """Write the summary and log where it went."""
        self.directory.mkdir(parents=True, exist_ok=True)
        stamp = self.now().strftime("%Y%m%d-%H%M%S")
        path = self.directory / f"{self.prefix}-{stamp}.txt"
        path.write_text(text + "\n", encoding="utf-8")
        logger.info("Summary written to %s", path)
