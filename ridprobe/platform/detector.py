#!/usr/bin/env python3
"""
ridprobe Platform Detection
Detects operating system, architecture and Linux distribution, and resolves
the runtime id used to pick a platform-specific package
"""

import os
import subprocess
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

from rich.console import Console
from rich.markup import escape

from ridprobe.platform.errors import ExternalCommandError, RuntimeIdError, UnsupportedPlatformError
from ridprobe.platform.fallback import RuntimeIdFallback
from ridprobe.platform.release_info import (
    DEFAULT_RELEASE_FILES,
    DistributionIdentity,
    read_first_release_file,
)
from ridprobe.platform.runtime_ids import CompatibilityTable, OSKind, resolve_runtime_id

# Diagnostics go to stderr so `ridprobe detect --json` stays parseable
console = Console(stderr=True)

ARCHITECTURE_COMMAND = ('uname', '-m')

PLATFORM_NAMES = {
    'win32': OSKind.WINDOWS,
    'darwin': OSKind.MACOS,
    'linux': OSKind.LINUX,
}


@dataclass(frozen=True)
class PlatformIdentity:
    """Complete platform information"""
    os_kind: OSKind
    architecture: Optional[str]
    distribution: Optional[DistributionIdentity] = None
    runtime_id: Optional[str] = None

    @classmethod
    def create(cls,
               os_kind: OSKind,
               architecture: Optional[str],
               distribution: Optional[DistributionIdentity] = None,
               fallback: Optional[RuntimeIdFallback] = None,
               table: Optional[CompatibilityTable] = None) -> 'PlatformIdentity':
        """
        Build a PlatformIdentity, resolving its runtime id

        An unsupported architecture or distribution leaves runtime_id as None
        instead of failing; the rest of the identity is still useful.
        """
        try:
            runtime_id = resolve_runtime_id(os_kind, architecture, distribution, fallback, table)
        except RuntimeIdError:
            runtime_id = None

        return cls(os_kind, architecture, distribution, runtime_id)

    def is_windows(self) -> bool:
        return self.os_kind is OSKind.WINDOWS

    def is_macos(self) -> bool:
        return self.os_kind is OSKind.MACOS

    def is_linux(self) -> bool:
        return self.os_kind is OSKind.LINUX

    def __str__(self) -> str:
        parts = [self.os_kind.value]
        if self.architecture:
            parts.append(self.architecture)
        if self.distribution:
            parts.append(str(self.distribution))
        return ", ".join(parts)

    def to_dict(self) -> Dict:
        """Convert to dictionary for display"""
        return {
            'os_kind': self.os_kind.value,
            'architecture': self.architecture,
            'distribution': self.distribution.to_dict() if self.distribution else None,
            'runtime_id': self.runtime_id,
        }


def run_architecture_command(command: Sequence[str] = ARCHITECTURE_COMMAND) -> str:
    """
    Run the machine hardware name command and return its raw stdout

    Raises:
        ExternalCommandError: If the command is missing or exits non-zero
    """
    command = list(command)
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=True, shell=False)
    except (OSError, subprocess.SubprocessError) as e:
        raise ExternalCommandError(command, str(e)) from e
    return result.stdout


class PlatformDetector:
    """
    Detect platform details: OS kind, architecture, Linux distribution
    """

    def __init__(self,
                 platform_name: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None,
                 run_command: Optional[Callable[[], Optional[str]]] = None,
                 release_files: Iterable[Union[str, Path]] = DEFAULT_RELEASE_FILES,
                 eol: Optional[str] = None,
                 table: Optional[CompatibilityTable] = None,
                 verbose: bool = False):
        """
        Args:
            platform_name: Host platform string (default: sys.platform)
            environ: Environment mapping (default: os.environ)
            run_command: Callable returning `uname -m` output
            release_files: os-release paths, probed in order
            eol: Line separator of the release files (default: os.linesep)
            table: Compatibility table (default: packaged table)
            verbose: Print diagnostics to stderr
        """
        self.platform_name = platform_name if platform_name is not None else sys.platform
        self.environ = environ if environ is not None else os.environ
        self.run_command = run_command or run_architecture_command
        self.release_files = tuple(release_files)
        self.eol = eol if eol is not None else os.linesep
        self.table = table
        self.verbose = verbose
        self.info: Optional[PlatformIdentity] = None

    def detect(self, fallback: Optional[RuntimeIdFallback] = None) -> PlatformIdentity:
        """
        Perform full platform detection

        Args:
            fallback: Optional runtime id override for unrecognized Linux distros

        Returns:
            PlatformIdentity with all detected details

        Raises:
            UnsupportedPlatformError: Host OS is not windows, macos or linux
            ExternalCommandError: The architecture command could not run
        """
        os_kind = self.detect_os()

        if os_kind is OSKind.LINUX:
            # Independent I/O - run both and join before resolving
            with ThreadPoolExecutor(max_workers=2) as pool:
                arch_future = pool.submit(self.detect_architecture, os_kind)
                distro_future = pool.submit(self.detect_distribution)
                architecture = arch_future.result()
                distribution = distro_future.result()
        else:
            architecture = self.detect_architecture(os_kind)
            distribution = None

        self.info = PlatformIdentity.create(os_kind, architecture, distribution, fallback, self.table)

        if self.verbose and self.info.runtime_id is None:
            self._debug(f"No runtime id for {self.info}")

        return self.info

    def detect_os(self) -> OSKind:
        """Detect operating system kind"""
        try:
            return PLATFORM_NAMES[self.platform_name]
        except KeyError:
            raise UnsupportedPlatformError(self.platform_name) from None

    def detect_architecture(self, os_kind: OSKind) -> Optional[str]:
        """Detect CPU architecture for the given OS kind"""
        if os_kind is OSKind.WINDOWS:
            return self._windows_architecture()
        return self._unix_architecture()

    def _windows_architecture(self) -> str:
        # A 32-bit process on 64-bit Windows (WOW64) reports x86 but sets PROCESSOR_ARCHITEW6432
        if (self.environ.get('PROCESSOR_ARCHITECTURE') == 'x86'
                and 'PROCESSOR_ARCHITEW6432' not in self.environ):
            return 'x86'
        return 'x86_64'

    def _unix_architecture(self) -> Optional[str]:
        try:
            output = self.run_command()
        except (OSError, subprocess.SubprocessError) as e:
            raise ExternalCommandError(list(ARCHITECTURE_COMMAND), str(e)) from e

        if self.verbose:
            self._debug(f"{' '.join(ARCHITECTURE_COMMAND)} -> {output!r}")

        if output:
            return output.strip()
        return None

    def detect_distribution(self) -> DistributionIdentity:
        """Detect Linux distribution from the first readable os-release file"""
        distribution, source = read_first_release_file(self.release_files, self.eol)

        if self.verbose:
            if source:
                self._debug(f"Read distribution from {source}: {distribution}")
            else:
                self._debug("No readable os-release file, distribution unknown")

        return distribution

    def _debug(self, message: str):
        console.print(f"[dim]{escape(message)}[/dim]", highlight=False)


def detect_current_platform(fallback: Optional[RuntimeIdFallback] = None,
                            *,
                            config=None,
                            verbose: bool = False) -> PlatformIdentity:
    """
    Detect the current platform and its runtime id

    Args:
        fallback: Runtime id override (default: from config, if given)
        config: Optional RidprobeConfig supplying release files, eol and table
        verbose: Print diagnostics to stderr
    """
    if config is None:
        return PlatformDetector(verbose=verbose).detect(fallback)

    if fallback is None:
        fallback = config.fallback_provider()

    detector = PlatformDetector(
        release_files=config.release_files,
        eol=config.line_separator,
        table=config.load_table(),
        verbose=verbose,
    )
    return detector.detect(fallback)
