"""
Utilities for assembling the settings used to configure the Vipps clients.

Settings come from three layers: a base mapping (``os.environ`` by default), an
optional ``.env`` file that only fills in missing keys, and explicit overrides
that always win. The result is a plain mapping that can be fed into
:meth:`vipps_payments.core.config.ClientConfig.from_mapping`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

__all__ = [
    "SettingsEnvironment",
    "build_environment",
    "load_env_file",
    "parse_env_text",
]

_QUOTES = ("'", '"')


def _parse_value(raw: str) -> str:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] in _QUOTES and raw[-1] == raw[0]:
        return raw[1:-1]
    # Unquoted values may carry a trailing comment: KEY=value  # note
    head, sep, _ = raw.partition(" #")
    return head.rstrip() if sep else raw


def _assignments(text: str) -> Iterator[Tuple[str, str]]:
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        yield key, _parse_value(value)


def parse_env_text(text: str) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` lines in ``.env`` syntax; later keys win."""
    return dict(_assignments(text))


def _read_env_file(path: Optional[str]) -> Dict[str, str]:
    if path is None:
        return {}
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    return parse_env_text(text)


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Load variables from ``path`` into ``environ`` without replacing existing keys.

    Returns a copy of the merged mapping.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for key, value in _read_env_file(path).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class SettingsEnvironment:
    """A resolved set of ``VIPPS_*`` settings."""

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> SettingsEnvironment:
    """
    Layer ``base`` (default :data:`os.environ`), the ``.env`` file and
    ``overrides`` into a :class:`SettingsEnvironment`.

    Pass ``env_file=None`` to skip reading a file.
    """
    merged: Dict[str, str] = dict(os.environ if base is None else base)
    for key, value in _read_env_file(env_file).items():
        merged.setdefault(key, value)
    merged.update(overrides or {})
    return SettingsEnvironment(variables=merged)
