"""Stable identifiers for pipeline configurations."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Mapping


def _normalise(value):
    if isinstance(value, Mapping):
        return {str(k): _normalise(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalise(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    return value


def config_hash(config: Mapping[str, object]) -> str:
    """Return a stable 12-character hash for ``config``, independent of key order."""

    canonical = json.dumps(_normalise(config), sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
    return digest[:12]


def run_dir_for(config: Mapping[str, object], root: str | Path = ".artifacts") -> Path:
    """Directory under ``root`` named after :func:`config_hash` of ``config``."""

    return Path(root) / config_hash(config)


__all__ = ["config_hash", "run_dir_for"]
