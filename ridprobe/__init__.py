"""
ridprobe - Platform Runtime Id Detection
Identifies the host OS, architecture and Linux distribution and maps them to
a runtime identifier for selecting platform-specific packages.
"""

__version__ = "1.0.0"
__license__ = "MIT"

__all__ = ["__version__"]
