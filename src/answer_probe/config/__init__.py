"""Configuration package for Answer Probe.

Re-exports the settings symbols so that callers can write::

    from answer_probe.config import get_settings
"""

from __future__ import annotations

from answer_probe.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
