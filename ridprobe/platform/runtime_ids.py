#!/usr/bin/env python3
"""
ridprobe Runtime Id Resolution
Maps an operating system, architecture and Linux distribution to a .NET-style
runtime id (RID) using the compatibility table in runtime_ids.toml

Linux lookups run in tiers:
  1. exact table on the distro id
  2. caller fallback, if the exact table was inconclusive
  3. exact table, then the fuzzy (derivative distro) table
  4. the same fuzzy lookup for each ID_LIKE ancestor, with the distro's own version
"""

import toml
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, NamedTuple, Optional, Tuple, Union

from ridprobe.platform.errors import (
    CompatibilityTableError,
    UnsupportedArchitectureError,
    UnsupportedDistributionError,
    UnsupportedPlatformError,
)
from ridprobe.platform.fallback import RuntimeIdFallback
from ridprobe.platform.release_info import DistributionIdentity

DEFAULT_TABLE_PATH = Path(__file__).parent / "runtime_ids.toml"


class OSKind(Enum):
    """Supported operating system kinds"""
    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"


class LookupStatus(Enum):
    """Outcome of a distro table lookup"""
    MATCH = "match"
    UNKNOWN_DISTRIBUTION = "unknown_distribution"  # distro id not in table
    UNKNOWN_VERSION = "unknown_version"            # distro known, version not


class LookupResult(NamedTuple):
    status: LookupStatus
    runtime_id: Optional[str] = None

    @property
    def is_match(self) -> bool:
        return self.status is LookupStatus.MATCH


UNKNOWN_DISTRIBUTION = LookupResult(LookupStatus.UNKNOWN_DISTRIBUTION)
UNKNOWN_VERSION = LookupResult(LookupStatus.UNKNOWN_VERSION)


@dataclass(frozen=True)
class VersionRule:
    """A version predicate and the runtime id it maps to"""
    runtime_id: str
    equals: Optional[str] = None
    prefix: Optional[str] = None

    def matches(self, version: str) -> bool:
        if self.equals is not None and version != self.equals:
            return False
        if self.prefix is not None and not version.startswith(self.prefix):
            return False
        return True

    def describe(self) -> str:
        """Human readable predicate, e.g. '== 16.04' or '18*'"""
        parts = []
        if self.equals is not None:
            parts.append(f"== {self.equals}")
        if self.prefix is not None:
            parts.append(f"{self.prefix}*")
        return ", ".join(parts) if parts else "any"


@dataclass(frozen=True)
class CompatibilityTable:
    """Read-only runtime id compatibility table"""
    windows: Mapping[str, str] = field(default_factory=dict)
    macos: Mapping[str, str] = field(default_factory=dict)
    linux_architectures: Tuple[str, ...] = ()
    exact: Mapping[str, Tuple[VersionRule, ...]] = field(default_factory=dict)
    fuzzy: Mapping[str, Tuple[VersionRule, ...]] = field(default_factory=dict)

    def __post_init__(self):
        # Mappings are exposed as read-only views
        for name in ('windows', 'macos', 'exact', 'fuzzy'):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        object.__setattr__(self, 'linux_architectures', tuple(self.linux_architectures))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CompatibilityTable':
        """
        Build a table from its TOML-shaped dictionary

        Raises:
            CompatibilityTableError: If an entry is malformed
        """
        try:
            return cls(
                windows=dict(data.get('windows', {})),
                macos=dict(data.get('macos', {})),
                linux_architectures=tuple(data.get('linux', {}).get('architectures', [])),
                exact=_parse_entries(data.get('exact', [])),
                fuzzy=_parse_entries(data.get('fuzzy', [])),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CompatibilityTableError(f"Malformed compatibility table: {e}") from e

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> 'CompatibilityTable':
        """
        Load a table from a TOML file (default: the packaged runtime_ids.toml)

        Raises:
            CompatibilityTableError: If the file is missing or not valid TOML
        """
        path = Path(path) if path is not None else DEFAULT_TABLE_PATH
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = toml.load(f)
        except (OSError, toml.TomlDecodeError) as e:
            raise CompatibilityTableError(f"Failed to load compatibility table {path}: {e}") from e

        return cls.from_dict(data)

    def lookup_exact(self, name: str, version: str) -> LookupResult:
        """Look up a distro id in the exact table only"""
        return _match_rules(self.exact.get(name), version)

    def lookup_fuzzy(self, name: str, version: str) -> LookupResult:
        """Look up a distro id in the exact table, then in the derivative table"""
        result = self.lookup_exact(name, version)
        if result.status is not LookupStatus.UNKNOWN_DISTRIBUTION:
            return result

        return _match_rules(self.fuzzy.get(name), version)

    def rows(self) -> Iterator[Tuple[str, str, str, str]]:
        """Yield (tier, key, predicate, runtime_id) for display"""
        for arch, rid in self.windows.items():
            yield ('windows', arch, 'any', rid)
        for arch, rid in self.macos.items():
            yield ('macos', arch, 'any', rid)
        for tier, entries in (('exact', self.exact), ('fuzzy', self.fuzzy)):
            for name, rules in entries.items():
                for rule in rules:
                    yield (tier, name, rule.describe(), rule.runtime_id)


def _parse_entries(entries) -> Dict[str, Tuple[VersionRule, ...]]:
    parsed: Dict[str, Tuple[VersionRule, ...]] = {}
    for entry in entries:
        rules = tuple(
            VersionRule(
                runtime_id=rule['runtime_id'],
                equals=rule.get('equals'),
                prefix=rule.get('prefix'),
            )
            for rule in entry['rules']
        )
        for distro_id in entry['ids']:
            parsed[distro_id] = rules
    return parsed


def _match_rules(rules: Optional[Tuple[VersionRule, ...]], version: str) -> LookupResult:
    if rules is None:
        return UNKNOWN_DISTRIBUTION

    for rule in rules:
        if rule.matches(version):
            return LookupResult(LookupStatus.MATCH, rule.runtime_id)

    return UNKNOWN_VERSION


# Packaged table, loaded on first use
_default_table: Optional[CompatibilityTable] = None


def get_default_table() -> CompatibilityTable:
    """Get the cached packaged compatibility table"""
    global _default_table
    if _default_table is None:
        _default_table = CompatibilityTable.load()
    return _default_table


def resolve_runtime_id(os_kind: Union[OSKind, str],
                       architecture: Optional[str],
                       distribution: Optional[DistributionIdentity] = None,
                       fallback: Optional[RuntimeIdFallback] = None,
                       table: Optional[CompatibilityTable] = None) -> str:
    """
    Resolve the runtime id for a platform

    Args:
        os_kind: OSKind or its string value
        architecture: 'x86', 'x86_64' or raw `uname -m` output
        distribution: Linux distribution (ignored on other platforms)
        fallback: Optional override consulted for unrecognized Linux distros
        table: Compatibility table (default: packaged table)

    Returns:
        Runtime id, e.g. 'ubuntu.16.04-x64'

    Raises:
        UnsupportedPlatformError: Unknown operating system kind
        UnsupportedArchitectureError: Architecture not supported on this OS
        UnsupportedDistributionError: No tier matched the Linux distribution
    """
    if table is None:
        table = get_default_table()

    try:
        kind = OSKind(os_kind)
    except ValueError:
        raise UnsupportedPlatformError(str(os_kind)) from None

    if kind is OSKind.WINDOWS:
        if architecture in table.windows:
            return table.windows[architecture]
        raise UnsupportedArchitectureError('Windows', architecture)

    if kind is OSKind.MACOS:
        if architecture in table.macos:
            return table.macos[architecture]
        raise UnsupportedArchitectureError('macOS', architecture)

    if architecture not in table.linux_architectures:
        raise UnsupportedArchitectureError('Linux', architecture)

    if distribution is None:
        distribution = DistributionIdentity()

    return _resolve_linux(table, architecture, distribution, fallback)


def _resolve_linux(table: CompatibilityTable,
                   architecture: str,
                   distribution: DistributionIdentity,
                   fallback: Optional[RuntimeIdFallback]) -> str:
    result = table.lookup_exact(distribution.name, distribution.version)

    # Caller override for anything the exact table could not place
    if not result.is_match and fallback is not None:
        fallback_id = fallback.get_fallback_runtime_id()
        if fallback_id:
            result = LookupResult(LookupStatus.MATCH, fallback_id)

    if result.status is LookupStatus.UNKNOWN_DISTRIBUTION:
        result = table.lookup_fuzzy(distribution.name, distribution.version)

    # ID_LIKE carries no version, so the distro's own VERSION_ID is reused
    if result.status is LookupStatus.UNKNOWN_DISTRIBUTION and distribution.id_like:
        for ancestor in distribution.id_like:
            result = table.lookup_fuzzy(ancestor, distribution.version)
            if result.status is not LookupStatus.UNKNOWN_DISTRIBUTION:
                break

    if result.is_match:
        return result.runtime_id

    raise UnsupportedDistributionError(distribution.name, distribution.version, architecture)
