"""
Alert channels package.
Exports the dispatcher, the concrete channels and their result types.
"""

from staff_console.services.alerts.base import (
    BaseAlertChannel,
    ChannelDelivery,
    ChannelPermissionError,
)
from staff_console.services.alerts.channels import (
    DesktopAlert,
    DesktopChannel,
    SoundChannel,
    VibrationChannel,
    sound_for,
    vibration_pattern_for,
)
from staff_console.services.alerts.dispatcher import AlertDispatcher, build_alert_dispatcher

__all__ = [
    "AlertDispatcher",
    "build_alert_dispatcher",
    "BaseAlertChannel",
    "ChannelDelivery",
    "ChannelPermissionError",
    "DesktopAlert",
    "DesktopChannel",
    "SoundChannel",
    "VibrationChannel",
    "sound_for",
    "vibration_pattern_for",
]
