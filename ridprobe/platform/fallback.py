#!/usr/bin/env python3
"""
ridprobe Runtime Id Fallbacks
Caller-supplied overrides consulted when the table cannot identify a Linux distro
"""

from abc import ABC, abstractmethod
from typing import Optional


class RuntimeIdFallback(ABC):
    """
    Abstract provider of an override runtime id
    """

    @abstractmethod
    def get_fallback_runtime_id(self) -> Optional[str]:
        """
        Get the runtime id to use for an unrecognized distribution or version

        Returns:
            Runtime id string, or None/empty to keep the table's answer
        """
        pass


class StaticRuntimeIdFallback(RuntimeIdFallback):
    """Fallback that always answers with the same runtime id"""

    def __init__(self, runtime_id: Optional[str]):
        self.runtime_id = runtime_id

    def get_fallback_runtime_id(self) -> Optional[str]:
        return self.runtime_id

    def __repr__(self) -> str:
        return f"StaticRuntimeIdFallback({self.runtime_id!r})"
