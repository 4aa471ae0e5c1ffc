#!/usr/bin/env python3
"""
ridprobe Platform Errors
Failures raised while detecting the host platform or resolving its runtime id
"""

from typing import List, Optional


class RidprobeError(Exception):
    """Base class for all ridprobe failures."""
    pass


class UnsupportedPlatformError(RidprobeError):
    """Raised when the host operating system is not windows, macos or linux."""

    def __init__(self, platform_name: str):
        super().__init__(f"Unsupported platform: {platform_name}")
        self.platform_name = platform_name


class ExternalCommandError(RidprobeError):
    """Raised when the architecture command cannot be run at all."""

    def __init__(self, command: List[str], reason: str):
        super().__init__(f"Failed to run '{' '.join(command)}': {reason}")
        self.command = command
        self.reason = reason


class CompatibilityTableError(RidprobeError):
    """Raised when the runtime id compatibility table cannot be loaded."""
    pass


class RuntimeIdError(RidprobeError):
    """Base class for runtime id resolution failures (non-fatal to detection)."""
    pass


class UnsupportedArchitectureError(RuntimeIdError):
    """Raised when the architecture has no runtime id for the operating system."""

    def __init__(self, os_kind: str, architecture: Optional[str]):
        super().__init__(f"Unsupported {os_kind} architecture: {architecture}")
        self.os_kind = os_kind
        self.architecture = architecture


class UnsupportedDistributionError(RuntimeIdError):
    """Raised when no table tier matches the Linux distribution and version."""

    def __init__(self, name: str, version: str, architecture: Optional[str]):
        super().__init__(f"Unsupported Linux distro: {name}, {version}, {architecture}")
        self.name = name
        self.version = version
        self.architecture = architecture
