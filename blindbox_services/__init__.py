"""
blindbox_services -- imperative shell around the draw engines.

Exposes the three services (probability config, inventory, backpack)
and the composition root that wires them to a set of stores.
"""

from blindbox_services.backpack import BackpackService
from blindbox_services.inventory import InventoryService
from blindbox_services.probability_config import ProbabilityConfigService
from blindbox_services.wiring import (
    BlindBoxSystem,
    BootstrapReport,
    bootstrap,
    build_memory_system,
    build_sql_system,
    build_system,
)

__all__ = [
    "BackpackService",
    "BlindBoxSystem",
    "BootstrapReport",
    "InventoryService",
    "ProbabilityConfigService",
    "bootstrap",
    "build_memory_system",
    "build_sql_system",
    "build_system",
]
