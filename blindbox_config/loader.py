"""
Catalog Loader (``blindbox_config.loader``).

Responsibility
--------------
Loads a catalog YAML file and parses it into frozen domain values: the
products (items, price, image, initial stock) and the default
probability weights.

Architecture position
---------------------
**Config layer** -- startup tooling.  Consumed by ``blindbox_config``
(``get_catalog``) and by the startup bootstrap.  Depends on
``blindbox_kernel.domain`` for the value types only.

Invariants enforced
-------------------
* Every item tier is one of common / rare / secret, and every product
  defines at least one item per tier (a draw can land on any tier).
* Product ids and item ids (within a product) are unique.
* Stock counts are non-negative integers; prices are exact decimals.
* Probability weights are valid (see ``ProbabilityConfig``).
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  document for change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid catalog  -> ``CatalogValidationError`` listing
  every problem found, not just the first.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from blindbox_kernel.domain.values import (
    DEFAULT_PROBABILITIES,
    CollectibleItem,
    ProbabilityConfig,
    Product,
    StockLevels,
    Tier,
)
from blindbox_kernel.exceptions import BlindBoxError, CatalogValidationError

DEFAULT_CATALOG_PATH = Path(__file__).parent / "sets" / "default_catalog.yaml"


@dataclass(frozen=True)
class CatalogDefinition:
    """A parsed catalog file."""

    name: str
    version: int
    probabilities: ProbabilityConfig
    products: tuple[Product, ...]
    checksum: str
    source: str


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Compute SHA-256 checksum of canonical JSON serialization."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_price(value: Any) -> Decimal:
    """Parse a price; floats go through ``str`` so 999.0 stays exact."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid price: {value!r}")
    try:
        price = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {value!r}") from None
    if not price.is_finite() or price < 0:
        raise ValueError(f"Invalid price: {value!r}")
    return price


def parse_item(data: dict[str, Any]) -> CollectibleItem:
    """Parse a CollectibleItem from a dict."""
    return CollectibleItem(
        item_id=str(data["id"]),
        name=str(data["name"]),
        tier=Tier.parse(data["tier"]),
    )


def parse_product(data: dict[str, Any]) -> Product:
    """
    Parse a Product from a dict.

    Raises:
        KeyError: a required key is missing.
        ValueError / BlindBoxError: a value is malformed.
    """
    product_id = data["id"]
    if isinstance(product_id, bool) or not isinstance(product_id, int):
        raise ValueError(f"Product id must be an integer, got {product_id!r}")
    return Product(
        product_id=product_id,
        name=str(data["name"]),
        price=parse_price(data["price"]),
        image=data.get("image"),
        items=tuple(parse_item(item) for item in data.get("items") or ()),
        stocks=StockLevels.from_mapping(data.get("stocks")),
    )


def parse_catalog(data: dict[str, Any], source: str = "<memory>") -> CatalogDefinition:
    """
    Parse and validate a whole catalog document.

    Every product is checked; all problems are reported together in one
    CatalogValidationError.
    """
    errors: list[str] = []

    header = data.get("catalog") or {}
    raw_weights = data.get("probabilities")
    probabilities = DEFAULT_PROBABILITIES
    if raw_weights is not None:
        try:
            probabilities = ProbabilityConfig.from_mapping(raw_weights)
        except BlindBoxError as exc:
            errors.append(f"probabilities: {exc}")

    raw_products = data.get("products")
    if not isinstance(raw_products, list) or not raw_products:
        errors.append("products: at least one product is required")
        raw_products = []

    products: list[Product] = []
    seen_ids: set[int] = set()
    for index, raw in enumerate(raw_products):
        label = f"products[{index}]"
        if not isinstance(raw, dict):
            errors.append(f"{label}: must be a mapping")
            continue
        try:
            product = parse_product(raw)
        except KeyError as exc:
            errors.append(f"{label}: missing key {exc}")
            continue
        except (ValueError, TypeError, AttributeError, BlindBoxError) as exc:
            errors.append(f"{label}: {exc}")
            continue
        if product.product_id in seen_ids:
            errors.append(f"{label}: duplicate product id {product.product_id}")
            continue
        missing_tiers = [t.value for t in Tier if not product.items_of(t)]
        if missing_tiers:
            errors.append(
                f"{label}: no items for tier(s) {', '.join(missing_tiers)}"
            )
        seen_ids.add(product.product_id)
        products.append(product)

    if errors:
        raise CatalogValidationError(source, errors)

    return CatalogDefinition(
        name=str(header.get("name", Path(source).stem)),
        version=int(header.get("version", 1)),
        probabilities=probabilities,
        products=tuple(products),
        checksum=compute_checksum(data),
        source=source,
    )


def load_catalog(path: Path | str | None = None) -> CatalogDefinition:
    """Load and validate the catalog file at ``path`` (default catalog if None)."""
    catalog_path = Path(path) if path is not None else DEFAULT_CATALOG_PATH
    return parse_catalog(load_yaml_file(catalog_path), source=str(catalog_path))
