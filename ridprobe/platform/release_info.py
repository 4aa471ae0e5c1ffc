#!/usr/bin/env python3
"""
ridprobe Release Info
Parses os-release files into a Linux distribution identity

There is no standard way on Linux to find the distribution name and version.
systemd's os-release file is the closest thing to one and is shipped by all
major distributions:
https://www.freedesktop.org/software/systemd/man/os-release.html
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple, Union

UNKNOWN = "unknown"

# Probed in order, per the os-release synopsis
DEFAULT_RELEASE_FILES: Tuple[str, ...] = ("/etc/os-release", "/usr/lib/os-release")


@dataclass(frozen=True)
class DistributionIdentity:
    """Linux distribution name, version and 'like' ancestors"""
    name: str = UNKNOWN
    version: str = UNKNOWN
    id_like: Optional[Tuple[str, ...]] = None

    def __str__(self) -> str:
        return f"name={self.name}, version={self.version}"

    def to_dict(self) -> Dict:
        """Convert to dictionary for display"""
        return {
            'name': self.name,
            'version': self.version,
            'id_like': list(self.id_like) if self.id_like is not None else None,
        }

    @classmethod
    def from_release_info(cls, release_info: str, eol: str = os.linesep) -> 'DistributionIdentity':
        return parse_release_info(release_info, eol)


def parse_release_info(release_info: str, eol: str = os.linesep) -> DistributionIdentity:
    """
    Parse the contents of an os-release file

    Lines without '=' are skipped. Only ID, VERSION_ID and ID_LIKE are read;
    scanning stops as soon as all three have been seen.

    Args:
        release_info: Raw file contents
        eol: Line separator used by the contents

    Returns:
        DistributionIdentity, with 'unknown' for any missing name or version
    """
    name = UNKNOWN
    version = UNKNOWN
    id_like: Optional[Tuple[str, ...]] = None

    for line in release_info.split(eol):
        line = line.strip()

        equals_index = line.find('=')
        if equals_index < 0:
            continue

        key = line[:equals_index]
        value = line[equals_index + 1:]

        # Strip one pair of double quotes, contents are not unescaped
        if len(value) > 1 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]

        if key == 'ID':
            name = value
        elif key == 'VERSION_ID':
            version = value
        elif key == 'ID_LIKE':
            id_like = tuple(value.split(" "))

        if name != UNKNOWN and version != UNKNOWN and id_like is not None:
            break

    return DistributionIdentity(name, version, id_like)


def read_release_file(path: Union[str, Path], eol: str = os.linesep) -> DistributionIdentity:
    """
    Read and parse a single os-release file

    Raises:
        OSError: If the file cannot be read
    """
    # newline='' keeps the file's own line endings so eol can match them
    with open(path, 'r', encoding='utf-8', newline='') as f:
        return parse_release_info(f.read(), eol)


def get_current_distribution(paths: Iterable[Union[str, Path]] = DEFAULT_RELEASE_FILES,
                             eol: str = os.linesep) -> DistributionIdentity:
    """
    Detect the running Linux distribution

    Each path is tried in order; the first readable one wins. If none can be
    read the result is unknown/unknown rather than an error.
    """
    distribution, _ = read_first_release_file(paths, eol)
    return distribution


def read_first_release_file(paths: Iterable[Union[str, Path]],
                            eol: str = os.linesep) -> Tuple[DistributionIdentity, Optional[str]]:
    """Return the parsed distribution and the path it came from (None if none were readable)"""
    for path in paths:
        try:
            return read_release_file(path, eol), str(path)
        except (OSError, UnicodeDecodeError):
            # Missing or unreadable - try the next candidate
            continue

    return DistributionIdentity(UNKNOWN, UNKNOWN), None
