"""
Kernel configuration.

Flags only switch the recording layers (event log, audit, metrics) on
or off. Kernel semantics are not configurable.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Mapping, Optional
import os

from .observability import ObservabilityConfig


ENV_PREFIX = "ABSENCE_KERNEL_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_flag(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


@dataclass
class KernelConfig:
    """Configuration for a Kernel instance."""
    enable_event_log: bool = True
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'KernelConfig':
        """
        Build configuration from environment variables.

        Recognised variables (unset means default):
            ABSENCE_KERNEL_EVENT_LOG
            ABSENCE_KERNEL_AUDIT
            ABSENCE_KERNEL_METRICS
        """
        env = os.environ if environ is None else environ

        def flag(suffix: str, default: bool) -> bool:
            name = ENV_PREFIX + suffix
            raw = env.get(name)
            if raw is None:
                return default
            return _parse_flag(name, raw)

        return cls(
            enable_event_log=flag("EVENT_LOG", True),
            observability=ObservabilityConfig(
                enable_audit=flag("AUDIT", True),
                enable_metrics=flag("METRICS", True),
            )
        )
