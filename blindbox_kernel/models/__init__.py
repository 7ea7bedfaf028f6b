"""ORM models for the blind box kernel."""

from blindbox_kernel.models.backpack import BackpackEntryModel
from blindbox_kernel.models.catalog import CollectibleItemModel, ProductModel, StockLevelModel
from blindbox_kernel.models.settings import ProbabilitySettingModel

__all__ = [
    "BackpackEntryModel",
    "CollectibleItemModel",
    "ProbabilitySettingModel",
    "ProductModel",
    "StockLevelModel",
]
