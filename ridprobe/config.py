#!/usr/bin/env python3
"""
ridprobe Configuration Management
Handles .ridprobe.yml configuration files
"""

import yaml
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass, field
from rich.console import Console
from rich.markup import escape

from ridprobe.platform.fallback import StaticRuntimeIdFallback
from ridprobe.platform.release_info import DEFAULT_RELEASE_FILES
from ridprobe.platform.runtime_ids import CompatibilityTable, get_default_table

console = Console(stderr=True)

# YAML can't carry raw control characters comfortably, so separators are named
LINE_SEPARATORS = {
    'lf': '\n',
    'crlf': '\r\n',
    'cr': '\r',
}


@dataclass
class RidprobeConfig:
    """ridprobe configuration structure"""

    # Version
    version: str = "1.0"

    # Runtime id to use when the compatibility table can't place the Linux distro
    fallback_runtime_id: Optional[str] = None

    # os-release files, probed in order
    release_files: List[str] = field(default_factory=lambda: list(DEFAULT_RELEASE_FILES))

    # 'lf', 'crlf', 'cr' or None for the host's native line ending
    line_separator_name: Optional[str] = None

    # Alternative compatibility table (None = packaged runtime_ids.toml)
    table_path: Optional[str] = None

    @property
    def line_separator(self) -> Optional[str]:
        """Resolved separator string, or None for os.linesep"""
        if self.line_separator_name is None:
            return None
        return LINE_SEPARATORS[self.line_separator_name]

    def fallback_provider(self) -> Optional[StaticRuntimeIdFallback]:
        """Fallback built from fallback_runtime_id, or None if unset"""
        if not self.fallback_runtime_id:
            return None
        return StaticRuntimeIdFallback(self.fallback_runtime_id)

    def load_table(self) -> CompatibilityTable:
        """Load the configured compatibility table"""
        if self.table_path is None:
            return get_default_table()
        return CompatibilityTable.load(self.table_path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RidprobeConfig':
        """Create config from dictionary"""
        config = cls()

        config.version = str(data.get('version', config.version))

        fallback_runtime_id = data.get('fallback_runtime_id')
        config.fallback_runtime_id = str(fallback_runtime_id) if fallback_runtime_id else None

        release_files = data.get('release_files')
        if isinstance(release_files, list) and release_files and all(isinstance(p, str) for p in release_files):
            config.release_files = release_files
        elif release_files is not None:
            console.print(f"[yellow]Warning: ignoring invalid release_files: {escape(repr(release_files))}[/yellow]")

        line_separator = data.get('line_separator')
        if line_separator is None or line_separator == 'native':
            config.line_separator_name = None
        elif isinstance(line_separator, str) and line_separator in LINE_SEPARATORS:
            config.line_separator_name = line_separator
        else:
            console.print(f"[yellow]Warning: unknown line_separator '{escape(str(line_separator))}', using native[/yellow]")

        table_path = data.get('table_path')
        config.table_path = str(table_path) if table_path else None

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for YAML export"""
        return {
            'version': self.version,
            'fallback_runtime_id': self.fallback_runtime_id,
            'release_files': list(self.release_files),
            'line_separator': self.line_separator_name or 'native',
            'table_path': self.table_path,
        }


class ConfigManager:
    """Locate, read and write .ridprobe.yml"""

    DEFAULT_CONFIG_NAME = ".ridprobe.yml"

    @staticmethod
    def find_config(start_path: Optional[Path] = None) -> Optional[Path]:
        """Nearest .ridprobe.yml in start_path (default: cwd) or any parent"""
        start = (start_path or Path.cwd()).absolute()

        for directory in (start, *start.parents):
            candidate = directory / ConfigManager.DEFAULT_CONFIG_NAME
            if candidate.is_file():
                return candidate

        return None

    @staticmethod
    def load_config(config_path: Optional[Path] = None) -> RidprobeConfig:
        """
        Load the effective configuration

        A missing, unreadable or non-mapping file yields the defaults; bad
        individual values are dropped with a warning by RidprobeConfig.from_dict.
        """
        path = config_path or ConfigManager.find_config()
        if path is None or not path.exists():
            return RidprobeConfig()

        try:
            data = yaml.safe_load(path.read_text(encoding='utf-8'))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            console.print(f"[yellow]Warning: ignoring config {escape(str(path))}: {escape(str(e))}[/yellow]")
            return RidprobeConfig()

        if not isinstance(data, dict):
            return RidprobeConfig()

        return RidprobeConfig.from_dict(data)

    @staticmethod
    def save_config(config: RidprobeConfig, config_path: Path) -> bool:
        """Write config as YAML; False (with an error printed) if it can't be written"""
        document = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False, indent=2)

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(document, encoding='utf-8')
        except OSError as e:
            console.print(f"[red]Error: could not write {escape(str(config_path))}: {escape(str(e))}[/red]")
            return False

        return True

    @staticmethod
    def create_default_config(project_root: Path) -> Path:
        config_path = project_root / ConfigManager.DEFAULT_CONFIG_NAME
        ConfigManager.save_config(RidprobeConfig(), config_path)
        return config_path
