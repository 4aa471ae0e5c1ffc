"""
ridprobe Platform Detection
OS, architecture and Linux distribution detection with runtime id resolution
"""

from ridprobe.platform.detector import (
    PlatformDetector,
    PlatformIdentity,
    detect_current_platform,
)
from ridprobe.platform.errors import (
    CompatibilityTableError,
    ExternalCommandError,
    RidprobeError,
    RuntimeIdError,
    UnsupportedArchitectureError,
    UnsupportedDistributionError,
    UnsupportedPlatformError,
)
from ridprobe.platform.fallback import RuntimeIdFallback, StaticRuntimeIdFallback
from ridprobe.platform.release_info import (
    DistributionIdentity,
    get_current_distribution,
    parse_release_info,
)
from ridprobe.platform.runtime_ids import (
    CompatibilityTable,
    LookupResult,
    LookupStatus,
    OSKind,
    get_default_table,
    resolve_runtime_id,
)

__all__ = [
    'PlatformDetector',
    'PlatformIdentity',
    'detect_current_platform',
    'CompatibilityTableError',
    'ExternalCommandError',
    'RidprobeError',
    'RuntimeIdError',
    'UnsupportedArchitectureError',
    'UnsupportedDistributionError',
    'UnsupportedPlatformError',
    'RuntimeIdFallback',
    'StaticRuntimeIdFallback',
    'DistributionIdentity',
    'get_current_distribution',
    'parse_release_info',
    'CompatibilityTable',
    'LookupResult',
    'LookupStatus',
    'OSKind',
    'get_default_table',
    'resolve_runtime_id',
]
