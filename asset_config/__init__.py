"""
asset_config -- single public entrypoint for asset desk configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a frozen ``AssetDeskConfig``.

Architecture position:
    Configuration -- YAML-driven.  This package sits above
    ``asset_kernel``.  The kernel MUST NEVER import from ``asset_config``;
    ``asset_config.bridges`` translates the config into the kernel's
    ``DeskSettings``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` -- a required key is missing.
    - ``ValueError`` -- a value is malformed.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``ASSET_CONFIG_TRACE`` log entry with the config_id, version and
    checksum, tying desk behaviour to an exact configuration version.
"""

from __future__ import annotations

import logging
from pathlib import Path

from asset_config.loader import load_yaml_file, parse_config
from asset_config.schema import AssetDeskConfig

_logger = logging.getLogger("asset_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | None = None) -> AssetDeskConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Override path to a configuration YAML file.  Defaults to
            ``asset_config/sets/default.yaml``.

    Raises:
        FileNotFoundError, KeyError, ValueError.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(config_path))

    _logger.info(
        "ASSET_CONFIG_TRACE",
        extra={
            "trace_type": "ASSET_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "sequence_count": len(config.sequences),
        },
    )
    return config


__all__ = ["AssetDeskConfig", "DEFAULT_CONFIG_PATH", "get_active_config"]
