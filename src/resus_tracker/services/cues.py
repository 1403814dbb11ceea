"""Haptic and audio cue interfaces."""

import logging
from dataclasses import dataclass
from typing import Literal, Protocol

ImpactStyle = Literal["light", "medium", "heavy"]
NotificationKind = Literal["success", "warning", "error"]

logger = logging.getLogger(__name__)


class CueSink(Protocol):
    """Receiver for cues emitted by the arrest engine."""

    def impact(self, style: ImpactStyle = "light") -> None:
        """Emit a short tactile tap."""

    def notification(self, kind: NotificationKind) -> None:
        """Emit a patterned alert."""


@dataclass
class LoggingCueSink(CueSink):
    """Cue sink for headless hosts that only logs cues."""

    def impact(self, style: ImpactStyle = "light") -> None:
        """Log a tactile tap."""
        logger.debug("Cue impact: %s", style)

    def notification(self, kind: NotificationKind) -> None:
        """Log a patterned alert."""
        logger.debug("Cue notification: %s", kind)
