"""Exception types raised across the relay."""

from __future__ import annotations

from typing import Optional


class RelayError(Exception):
    """Base class for relay errors."""


class ConfigError(RelayError):
    """Configuration could not be loaded or failed validation."""


class ServiceError(RelayError):
    """An external service call failed, timed out, or returned an unusable payload."""

    def __init__(self, service: str, message: str, *, status: Optional[int] = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status = status


class AudioDeliveryError(RelayError):
    """Sending reply audio to the device failed part way through."""

    def __init__(self, message: str, *, frames_sent: int = 0):
        super().__init__(message)
        self.frames_sent = frames_sent
