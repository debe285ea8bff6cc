"""
Alert Channels

Concrete sound, vibration and desktop channels. Actual device output is
delegated to an injectable callable so the console can run headless; by
default each channel just logs what it would emit.

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from staff_console.models import NotificationPriority, NotificationType
from staff_console.schemas import NotificationData
from staff_console.services.alerts.base import BaseAlertChannel, ChannelPermissionError

logger = logging.getLogger(__name__)


# =============================================================================
# SOUND
# =============================================================================

SOUND_FILES = {
    NotificationType.NEW_ORDER: "/sounds/new-order.mp3",
    NotificationType.ORDER_OVERDUE: "/sounds/urgent-alert.mp3",
    NotificationType.EMERGENCY: "/sounds/urgent-alert.mp3",
    NotificationType.ORDER_STATUS_CHANGE: "/sounds/order-ready.mp3",
}
DEFAULT_SOUND = "/sounds/notification.mp3"


def sound_for(notification_type: NotificationType) -> str:
    return SOUND_FILES.get(notification_type, DEFAULT_SOUND)


def _log_player(sound_file: str, volume: float) -> None:
    logger.info(f"🔊 Playing {sound_file} (volume={volume:.1f})")


class SoundChannel(BaseAlertChannel):
    """Audible cue keyed by notification type."""

    def __init__(
        self,
        enabled: bool = True,
        volume: float = 0.7,
        player: Optional[Callable[[str, float], None]] = None,
    ):
        super().__init__(enabled)
        self.volume = volume
        self._player = player or _log_player

    @property
    def name(self) -> str:
        return "sound"

    async def deliver(self, notification: NotificationData) -> None:
        self._player(sound_for(notification.type), self.volume)


# =============================================================================
# VIBRATION
# =============================================================================

VIBRATION_PATTERNS = {
    NotificationPriority.LOW: [100],
    NotificationPriority.NORMAL: [100],
    NotificationPriority.HIGH: [100, 50, 100],
    NotificationPriority.URGENT: [200, 100, 200, 100, 200],
    NotificationPriority.EMERGENCY: [200, 100, 200, 100, 200],
}


def vibration_pattern_for(priority: NotificationPriority) -> list[int]:
    """Pulse/pause durations in milliseconds."""
    return list(VIBRATION_PATTERNS.get(priority, [100]))


def _log_vibrator(pattern: list[int]) -> None:
    logger.info(f"📳 Vibrating {pattern}")


class VibrationChannel(BaseAlertChannel):
    """Device vibration whose intensity follows notification priority."""

    def __init__(
        self,
        enabled: bool = True,
        supported: bool = True,
        vibrator: Optional[Callable[[list[int]], None]] = None,
    ):
        super().__init__(enabled)
        self.supported = supported
        self._vibrator = vibrator or _log_vibrator

    @property
    def name(self) -> str:
        return "vibration"

    async def deliver(self, notification: NotificationData) -> None:
        if not self.supported:
            raise ChannelPermissionError("Vibration is not supported on this device")
        self._vibrator(vibration_pattern_for(notification.priority))


# =============================================================================
# DESKTOP
# =============================================================================

PERSISTENT_PRIORITIES = {NotificationPriority.URGENT, NotificationPriority.EMERGENCY}


@dataclass
class DesktopAlert:
    """A desktop-style alert currently on screen."""
    tag: str
    title: str
    body: str
    require_interaction: bool
    auto_dismiss_seconds: Optional[float]


class DesktopChannel(BaseAlertChannel):
    """
    Desktop alert, tagged by notification id.

    Normal alerts close themselves after ``auto_dismiss_seconds``; URGENT and
    EMERGENCY alerts stay until dismissed.
    """

    def __init__(
        self,
        enabled: bool = True,
        permission: str = "granted",
        auto_dismiss_seconds: float = 5.0,
    ):
        super().__init__(enabled)
        self.permission = permission
        self.auto_dismiss_seconds = auto_dismiss_seconds
        self.visible: dict[str, DesktopAlert] = {}

    @property
    def name(self) -> str:
        return "desktop"

    def build_alert(self, notification: NotificationData) -> DesktopAlert:
        persistent = notification.priority in PERSISTENT_PRIORITIES
        return DesktopAlert(
            tag=notification.notification_id,
            title=notification.title,
            body=notification.message,
            require_interaction=persistent,
            auto_dismiss_seconds=None if persistent else self.auto_dismiss_seconds,
        )

    async def deliver(self, notification: NotificationData) -> None:
        if self.permission != "granted":
            raise ChannelPermissionError(f"Desktop alerts permission is '{self.permission}'")

        alert = self.build_alert(notification)
        # Same tag replaces the previous alert
        self.visible[alert.tag] = alert
        logger.info(f"🖥️ Desktop alert: {alert.title}")

        if alert.auto_dismiss_seconds is not None:
            asyncio.get_running_loop().call_later(
                alert.auto_dismiss_seconds, self.dismiss, alert.tag
            )

    def dismiss(self, tag: str) -> None:
        self.visible.pop(tag, None)
