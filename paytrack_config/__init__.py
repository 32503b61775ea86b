"""
paytrack_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``paytrack_kernel`` and builds the
    module-level config objects (``ReportingConfig``).  The kernel MUST
    NEVER import from ``paytrack_config``.

Failure modes:
    - ``FileNotFoundError`` -- the resolved configuration file is missing.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYTRACK_CONFIG_TRACE`` log entry with the source path and checksum,
    tying each generated report to the configuration that shaped it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from paytrack_config.loader import compute_checksum, load_yaml_file, section
from paytrack_modules.reporting.config import ReportingConfig

_logger = logging.getLogger("paytrack.config")

CONFIG_ENV_VAR = "PAYTRACK_CONFIG"

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def resolve_config_path(config_path: Path | str | None = None) -> Path:
    """Explicit path, else ``$PAYTRACK_CONFIG``, else the packaged defaults."""
    if config_path is not None:
        return Path(config_path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return _DEFAULT_CONFIG_PATH


def get_active_config(config_path: Path | str | None = None) -> ReportingConfig:
    """The ONLY public configuration entrypoint.

    Guarantees:
        - A ``PAYTRACK_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - Does NOT cache; callers hold the returned config for as long as
          they need it.

    Args:
        config_path: Override path to a YAML file with a ``reporting:``
            mapping.

    Returns:
        ReportingConfig parsed from the resolved file.
    """
    path = resolve_config_path(config_path)
    document = load_yaml_file(path)
    reporting = section(document, "reporting")

    config = ReportingConfig.from_dict(reporting)
    checksum = compute_checksum(reporting)

    _logger.info(
        "PAYTRACK_CONFIG_TRACE",
        extra={
            "trace_type": "PAYTRACK_CONFIG_TRACE",
            "source": str(path),
            "checksum": checksum,
            "default_currency": config.default_currency,
            "snapshot_version": config.snapshot_version,
        },
    )

    return config


__all__ = [
    "CONFIG_ENV_VAR",
    "ReportingConfig",
    "get_active_config",
    "resolve_config_path",
]
