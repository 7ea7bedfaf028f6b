"""
blindbox_config -- catalog seed and process settings.

Responsibility:
    ``get_catalog()`` is the entrypoint for the catalog seed: it loads and
    validates a catalog YAML file and emits a ``BLINDBOX_CONFIG_TRACE``
    log record carrying the catalog name, version and checksum.
    ``AppSettings`` holds the environment-derived process settings.

Architecture position:
    Configuration -- sits above ``blindbox_kernel`` and below
    ``blindbox_services`` / ``blindbox_api``.  The kernel MUST NEVER
    import from ``blindbox_config``.

Failure modes:
    - ``FileNotFoundError`` -- the catalog file does not exist.
    - ``CatalogValidationError`` -- structural problems in the catalog.
"""

from __future__ import annotations

import logging
from pathlib import Path

from blindbox_config.loader import (
    DEFAULT_CATALOG_PATH,
    CatalogDefinition,
    compute_checksum,
    load_catalog,
    parse_catalog,
)
from blindbox_config.settings import AppSettings

_logger = logging.getLogger("blindbox.config")


def get_catalog(path: Path | str | None = None) -> CatalogDefinition:
    """Load the catalog seed and emit a BLINDBOX_CONFIG_TRACE record."""
    catalog = load_catalog(path)
    _logger.info(
        "BLINDBOX_CONFIG_TRACE",
        extra={
            "trace_type": "BLINDBOX_CONFIG_TRACE",
            "catalog_name": catalog.name,
            "catalog_version": catalog.version,
            "checksum": catalog.checksum,
            "product_count": len(catalog.products),
            "source": catalog.source,
        },
    )
    return catalog


__all__ = [
    "AppSettings",
    "CatalogDefinition",
    "DEFAULT_CATALOG_PATH",
    "compute_checksum",
    "get_catalog",
    "load_catalog",
    "parse_catalog",
]
