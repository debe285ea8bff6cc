"""
Alert Dispatcher

Fans a notification out to every configured channel. Disabled channels are
skipped; a channel that raises is logged and reported, and the remaining
channels still fire.
"""

import logging
from typing import Optional

from staff_console.core.config import Settings
from staff_console.schemas import NotificationData
from staff_console.services.alerts.base import (
    BaseAlertChannel,
    ChannelDelivery,
    ChannelPermissionError,
)
from staff_console.services.alerts.channels import DesktopChannel, SoundChannel, VibrationChannel

logger = logging.getLogger(__name__)


class AlertDispatcher:
    """Pushes notifications through independent, toggleable channels."""

    def __init__(self, channels: list[BaseAlertChannel]):
        self.channels = {channel.name: channel for channel in channels}

    def channel(self, name: str) -> Optional[BaseAlertChannel]:
        return self.channels.get(name)

    def set_enabled(self, name: str, enabled: bool) -> None:
        channel = self.channels.get(name)
        if channel is None:
            raise KeyError(f"Unknown alert channel: {name}")
        channel.enabled = enabled
        logger.info(f"Alert channel '{name}' {'enabled' if enabled else 'disabled'}")

    def settings(self) -> dict[str, bool]:
        return {name: channel.enabled for name, channel in self.channels.items()}

    async def dispatch(self, notification: NotificationData) -> list[ChannelDelivery]:
        deliveries = []
        for name, channel in self.channels.items():
            if not channel.enabled:
                deliveries.append(ChannelDelivery(channel=name, delivered=False, skipped=True))
                continue
            try:
                await channel.deliver(notification)
                deliveries.append(ChannelDelivery(channel=name, delivered=True))
            except ChannelPermissionError as e:
                logger.warning(f"Alert channel '{name}' skipped: {e}")
                deliveries.append(
                    ChannelDelivery(channel=name, delivered=False, skipped=True, error_message=str(e))
                )
            except Exception as e:
                logger.exception(f"Alert channel '{name}' failed for {notification.notification_id}")
                deliveries.append(
                    ChannelDelivery(channel=name, delivered=False, error_message=str(e))
                )
        return deliveries


def build_alert_dispatcher(settings: Settings) -> AlertDispatcher:
    """Create the default sound / vibration / desktop dispatcher."""
    return AlertDispatcher([
        SoundChannel(enabled=settings.sound_enabled, volume=settings.sound_volume),
        VibrationChannel(enabled=settings.vibration_enabled),
        DesktopChannel(
            enabled=settings.desktop_enabled,
            auto_dismiss_seconds=settings.desktop_auto_dismiss_seconds,
        ),
    ])
