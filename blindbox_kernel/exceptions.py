"""
Typed Exception Hierarchy for the Blind Box Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the HTTP layer, scripts, tests) must react to outcomes precisely.
An unknown backpack entry and an entry that was already opened are both
routine, while an empty rarity tier means the catalog itself is broken.
Parsing message strings to tell these apart is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        rarity = backpack.open(entry_id)
    except AlreadyOpenedError as e:
        return {"error": str(e), "code": e.code, "entry_id": e.entry_id}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BlindBoxError:

    BlindBoxError (base)
    |
    +-- ValidationError
    |   +-- InvalidProbabilityConfigError
    |   +-- UnknownTierError
    |   +-- InvalidCheckoutError
    |   +-- CatalogValidationError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- BackpackEntryNotFoundError
    |
    +-- AlreadyOpenedError
    +-- EmptyTierError
    +-- StoreUnavailableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_PROBABILITY_CONFIG  | Weights missing, negative, sum != 100
                | UNKNOWN_TIER                | Tier name outside common/rare/secret
                | INVALID_CHECKOUT            | Empty checkout or quantity < 1
                | INVALID_CATALOG             | Seed catalog breaks an invariant
----------------|-----------------------------|-----------------------------------------
Not found       | PRODUCT_NOT_FOUND           | Product id doesn't exist
                | BACKPACK_ENTRY_NOT_FOUND    | Backpack entry id doesn't exist
----------------|-----------------------------|-----------------------------------------
State           | ALREADY_OPENED              | Entry already transitioned to opened
----------------|-----------------------------|-----------------------------------------
Integrity       | EMPTY_TIER                  | Product has zero items of a rolled tier
----------------|-----------------------------|-----------------------------------------
Collaborator    | STORE_UNAVAILABLE           | Underlying store call failed

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ROUTINE OUTCOMES (NotFoundError, AlreadyOpenedError):
   The request is invalid or stale. Report it, never retry.

2. CATALOG INTEGRITY (EmptyTierError):
   Non-recoverable until the catalog is fixed. Surface loudly.

3. COLLABORATOR FAILURE (StoreUnavailableError):
   Not the core's fault. The boundary decides whether to retry.
"""


class BlindBoxError(Exception):
    """
    Base exception for all blind box kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BLINDBOX_ERROR"


# Validation exceptions


class ValidationError(BlindBoxError):
    """Base exception for bad input shape or values."""

    code: str = "VALIDATION_ERROR"


class InvalidProbabilityConfigError(ValidationError):
    """Probability weights are incomplete, out of range, or do not sum to 100."""

    code: str = "INVALID_PROBABILITY_CONFIG"

    def __init__(self, reason: str, weights: dict | None = None):
        self.reason = reason
        self.weights = dict(weights) if weights else {}
        super().__init__(reason)


class UnknownTierError(ValidationError):
    """Tier name is not one of common, rare, secret."""

    code: str = "UNKNOWN_TIER"

    def __init__(self, tier: object):
        self.tier = tier
        super().__init__(f"Invalid rarity: {tier!r}")


class InvalidCheckoutError(ValidationError):
    """Checkout request is empty or carries an unusable quantity."""

    code: str = "INVALID_CHECKOUT"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class CatalogValidationError(ValidationError):
    """
    Seed catalog violates a catalog invariant.

    Raised while loading the catalog, never on the draw path.
    """

    code: str = "INVALID_CATALOG"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = list(errors)
        super().__init__(
            f"Invalid catalog {source}: {len(self.errors)} error(s): "
            + "; ".join(self.errors)
        )


# Not-found exceptions


class NotFoundError(BlindBoxError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product with given id was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: object):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class BackpackEntryNotFoundError(NotFoundError):
    """Backpack entry with given id was not found."""

    code: str = "BACKPACK_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: object):
        self.entry_id = str(entry_id)
        super().__init__(f"Backpack item not found: {entry_id}")


# State exceptions


class AlreadyOpenedError(BlindBoxError):
    """
    Backpack entry has already been opened.

    Raised both when the entry is seen as opened up front and when a
    concurrent open wins the conditional transition first.
    """

    code: str = "ALREADY_OPENED"

    def __init__(self, entry_id: object):
        self.entry_id = str(entry_id)
        super().__init__("Item already opened")


# Integrity exceptions


class EmptyTierError(BlindBoxError):
    """
    Product defines zero items for a tier that was rolled.

    This is a catalog-authoring bug, not a runtime condition: fix the
    catalog rather than retrying.
    """

    code: str = "EMPTY_TIER"

    def __init__(self, product_id: int, tier: str):
        self.product_id = product_id
        self.tier = tier
        super().__init__(f"Product {product_id} has no items of tier '{tier}'")


# Collaborator exceptions


class StoreUnavailableError(BlindBoxError):
    """Underlying store failed while serving a request."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store unavailable during {operation}: {reason}")
