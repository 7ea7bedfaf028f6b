"""
BackpackService -- checkout into the backpack and opening of blind boxes.

Responsibility:
    ``checkout`` turns purchased units into unopened backpack entries;
    ``open`` performs the stock-aware draw for one entry and transitions
    it to opened.

Architecture position:
    Services -- imperative shell.  Orchestrates the draw engine, the
    allocation resolver, the probability config service and the
    backpack / catalog stores.

Invariants enforced:
    B1 -- Checkout is all-or-nothing: every product is resolved before any
          roll, and entries are written with a single ``insert_many``.
    B2 -- An entry is opened at most once.  The entry is claimed with a
          conditional ``unopened -> opened`` update BEFORE stock is
          touched, so a caller that loses the claim never consumes stock.
          If resolving or recording fails after the claim, the claim is
          released and any consumed unit restocked, so the entry stays
          openable.
    B3 -- The checkout-time ``rarity`` is never consulted by ``open`` and
          never rewritten; the resolved tier is recorded as
          ``opened_rarity``.
    S1 -- Stock is consumed only through AllocationResolver.

Failure modes:
    - InvalidCheckoutError: empty checkout, or a quantity below one or
      above MAX_QUANTITY_PER_LINE.
    - ProductNotFoundError: unknown product in a checkout (whole batch
      rejected) or an entry whose product no longer exists.
    - BackpackEntryNotFoundError: unknown (or malformed) entry id.
    - AlreadyOpenedError: the entry was opened before, or concurrently.
    - EmptyTierError: a product defines no items for a rolled tier.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from blindbox_engines.allocation import AllocationOutcome, AllocationResolver
from blindbox_engines.draw import DrawEngine
from blindbox_kernel.domain.clock import Clock, SystemClock
from blindbox_kernel.domain.values import (
    BackpackEntry,
    BackpackEntryDraft,
    CheckoutLine,
    EntryState,
    Product,
    Tier,
)
from blindbox_kernel.exceptions import (
    AlreadyOpenedError,
    BackpackEntryNotFoundError,
    BlindBoxError,
    InvalidCheckoutError,
    ProductNotFoundError,
    StoreUnavailableError,
)
from blindbox_kernel.logging_config import LogContext, get_logger
from blindbox_kernel.stores.base import BackpackStore, CatalogStore
from blindbox_services.probability_config import ProbabilityConfigService

logger = get_logger("services.backpack")

MAX_QUANTITY_PER_LINE = 100


def _coerce_entry_id(entry_id: UUID | str) -> UUID:
    if isinstance(entry_id, UUID):
        return entry_id
    try:
        return UUID(str(entry_id))
    except ValueError:
        raise BackpackEntryNotFoundError(entry_id) from None


class BackpackService:
    """
    The backpack ledger.

    Contract:
        ``checkout`` never consults stock.  ``open`` consumes at most one
        unit of stock per entry, and none when every tier is exhausted.
    Guarantees:
        - Of N concurrent ``open`` calls on one entry, exactly one returns
          a tier; the others raise AlreadyOpenedError.
    Non-goals:
        - No payment, no per-user backpacks.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        backpack: BackpackStore,
        probabilities: ProbabilityConfigService,
        draw: DrawEngine,
        resolver: AllocationResolver | None = None,
        clock: Clock | None = None,
    ):
        self._catalog = catalog
        self._backpack = backpack
        self._probabilities = probabilities
        self._draw = draw
        self._resolver = resolver or AllocationResolver(catalog)
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Checkout
    # ------------------------------------------------------------------

    def checkout(self, lines: Sequence[CheckoutLine]) -> int:
        """
        Append one unopened entry per purchased unit.

        Preconditions:
            ``lines`` is non-empty and every quantity is an int between 1
            and ``MAX_QUANTITY_PER_LINE``.

        Postconditions:
            Either every unit got an entry or none did.

        Returns:
            The number of entries appended.
        """
        if not lines:
            raise InvalidCheckoutError("No items provided")
        for line in lines:
            quantity = line.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise InvalidCheckoutError(
                    f"Quantity for product {line.product_id} must be a positive integer"
                )
            if quantity > MAX_QUANTITY_PER_LINE:
                raise InvalidCheckoutError(
                    f"Quantity for product {line.product_id} exceeds {MAX_QUANTITY_PER_LINE}"
                )

        products: dict[int, Product] = {}
        for line in lines:
            if line.product_id not in products:
                product = self._catalog.find_product(line.product_id)
                if product is None:
                    raise ProductNotFoundError(line.product_id)
                products[line.product_id] = product

        config = self._probabilities.get()
        now = self._clock.now()
        drafts: list[BackpackEntryDraft] = []
        for line in lines:
            product = products[line.product_id]
            for _ in range(line.quantity):
                tier = self._draw.roll_tier(config)
                item = self._draw.roll_item(product, tier)
                drafts.append(BackpackEntryDraft(
                    product_id=product.product_id,
                    product_name=product.name,
                    item_id=item.item_id,
                    item_name=item.name,
                    rarity=tier,
                    created_at=now,
                ))

        created = self._backpack.insert_many(drafts)
        logger.info("checkout_completed", extra={
            "line_count": len(lines),
            "items_added": len(created),
        })
        return len(created)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_all(self) -> list[BackpackEntry]:
        return self._backpack.find_all()

    def get(self, entry_id: UUID | str) -> BackpackEntry:
        entry = self._backpack.find_by_id(_coerce_entry_id(entry_id))
        if entry is None:
            raise BackpackEntryNotFoundError(entry_id)
        return entry

    # ------------------------------------------------------------------
    # Open
    # ------------------------------------------------------------------

    def open(self, entry_id: UUID | str) -> Tier:
        """
        Open one unopened entry and return the tier granted by stock.

        Steps:
            1. Look up the entry and its product.
            2. Roll a fresh tier from the current config.
            3. Claim the entry (conditional unopened -> opened update).
            4. Resolve the rolled tier against stock.
            5. Record the resolved tier on the entry.

        A BlindBoxError in steps 4-5 releases the claim before propagating.
        """
        entry = self.get(entry_id)
        with LogContext.bind(entry_id=entry.entry_id, product_id=entry.product_id):
            if entry.is_opened:
                raise AlreadyOpenedError(entry.entry_id)
            if self._catalog.find_product(entry.product_id) is None:
                raise ProductNotFoundError(entry.product_id)

            rolled = self._draw.roll_tier(self._probabilities.get())

            # INVARIANT B2: claim before consuming stock
            claimed = self._backpack.conditional_update(
                entry.entry_id,
                EntryState.UNOPENED,
                {"state": EntryState.OPENED, "opened_at": self._clock.now()},
            )
            if not claimed:
                logger.info("entry_open_lost_race")
                raise AlreadyOpenedError(entry.entry_id)

            outcome = None
            try:
                outcome = self._resolver.resolve(entry.product_id, rolled)
                recorded = self._backpack.conditional_update(
                    entry.entry_id,
                    EntryState.OPENED,
                    {"opened_rarity": outcome.resolved},
                )
                if not recorded:
                    raise StoreUnavailableError(
                        "record_opened_rarity",
                        f"entry {entry.entry_id} left the opened state",
                    )
            except BlindBoxError:
                logger.warning("entry_open_failed", exc_info=True)
                self._release_claim(entry, outcome)
                raise

            logger.info("entry_opened", extra={
                "rolled_tier": rolled.value,
                "resolved_tier": outcome.resolved.value,
                "degraded": outcome.degraded,
            })
        return outcome.resolved

    def _release_claim(self, entry: BackpackEntry, outcome: AllocationOutcome | None) -> None:
        """Return a claimed entry to unopened, restocking a consumed unit."""
        try:
            if outcome is not None and outcome.decremented:
                self._catalog.adjust_stock(entry.product_id, outcome.resolved, 1)
            released = self._backpack.conditional_update(
                entry.entry_id,
                EntryState.OPENED,
                {"state": EntryState.UNOPENED, "opened_at": None},
            )
        except BlindBoxError:
            logger.error("entry_claim_release_failed", exc_info=True)
            return
        if not released:
            logger.error("entry_claim_release_failed")
