"""Store contracts and their in-memory and SQLAlchemy implementations."""

from blindbox_kernel.stores.base import BackpackStore, CatalogStore, ConfigStore
from blindbox_kernel.stores.memory import (
    InMemoryBackpackStore,
    InMemoryCatalogStore,
    InMemoryConfigStore,
)
from blindbox_kernel.stores.sql import SqlBackpackStore, SqlCatalogStore, SqlConfigStore

__all__ = [
    "BackpackStore",
    "CatalogStore",
    "ConfigStore",
    "InMemoryBackpackStore",
    "InMemoryCatalogStore",
    "InMemoryConfigStore",
    "SqlBackpackStore",
    "SqlCatalogStore",
    "SqlConfigStore",
]
