"""
Alert Channel Abstract Base Class

Defines the interface for the side channels a new notification is pushed
through (sound, vibration, desktop alert). Each channel can be toggled
independently and a failing channel never blocks the others.

Author: Khalil Bannouri
Version: 1.0.0
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from staff_console.schemas import NotificationData


class ChannelPermissionError(Exception):
    """The device or user denied access to an alert channel."""


@dataclass
class ChannelDelivery:
    """Result from pushing one notification through one channel."""
    channel: str
    delivered: bool
    skipped: bool = False
    error_message: Optional[str] = None


class BaseAlertChannel(ABC):
    """Abstract base class for alert side channels."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the channel name."""
        pass

    @abstractmethod
    async def deliver(self, notification: NotificationData) -> None:
        """
        Emit the notification on this channel.

        Raises:
            ChannelPermissionError: If the channel is not permitted
        """
        pass
