"""
YAML reading for ``paytrack_config``.

Only ``get_active_config()`` calls into this module.  A paytrack
configuration document is a mapping of sections (today only
``reporting:``); each section is a flat mapping handed to the matching
module config's ``from_dict``.

Failure modes
-------------
* ``FileNotFoundError`` and ``yaml.YAMLError`` propagate unchanged.
* A document or section that is not a mapping raises ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Parse ``path`` with ``yaml.safe_load``.  An empty file is an empty mapping."""
    document = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(document).__name__}")
    return document


def section(document: dict[str, Any], name: str) -> dict[str, Any]:
    """Copy of section ``name``; a missing or null section is empty."""
    value = document.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"section {name!r} must be a mapping")
    return dict(value)


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of ``data`` as key-sorted JSON.  Key order does not matter."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
