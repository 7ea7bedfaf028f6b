"""
ProbabilityConfigService -- the live tier weights used by every draw.

Responsibility:
    Owns the currently installed ``ProbabilityConfig``.  Validates and
    persists updates through the ConfigStore and swaps the in-process copy
    atomically, so a reader sees either the old or the new weights and
    never a mix of the two.

Architecture position:
    Services -- imperative shell.  Depends on blindbox_kernel only.

Invariants enforced:
    P1 -- Installed weights always sum to 100 (validated by the value type).
    P2 -- All three tiers are required on update; no partial merges.
    P3 -- Persist first, swap second: on any failure the previous config
          stays installed and persisted.

Failure modes:
    - InvalidProbabilityConfigError (ValidationError) on bad weights.
    - StoreUnavailableError from the config store; the old config stays.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from typing import Any

from blindbox_kernel.domain.values import DEFAULT_PROBABILITIES, ProbabilityConfig
from blindbox_kernel.logging_config import get_logger
from blindbox_kernel.stores.base import ConfigStore

logger = get_logger("services.probability_config")


class ProbabilityConfigService:
    """
    Injected holder of the current probability config.

    Contract:
        ``get`` is lock-free and returns an immutable snapshot.  ``set``
        and ``load`` are serialized by a single-writer lock.
    Non-goals:
        Does not notify draws already in flight; they finish with the
        snapshot they read.
    """

    def __init__(
        self,
        store: ConfigStore,
        default: ProbabilityConfig = DEFAULT_PROBABILITIES,
    ):
        self._store = store
        self._default = default
        self._current = default
        self._write_lock = threading.Lock()

    def get(self) -> ProbabilityConfig:
        return self._current

    def set(self, weights: ProbabilityConfig | Mapping[str, Any]) -> ProbabilityConfig:
        """
        Validate, persist and install new weights.

        Args:
            weights: A ProbabilityConfig or a mapping holding all of
                ``common``, ``rare`` and ``secret``.

        Returns:
            The installed config.

        Raises:
            InvalidProbabilityConfigError: missing tier, non-integer,
                out-of-range weight, or a total other than 100.
        """
        config = (
            weights
            if isinstance(weights, ProbabilityConfig)
            else ProbabilityConfig.from_mapping(weights)
        )
        with self._write_lock:
            previous = self._current
            self._store.set_config(config)
            self._current = config
        logger.info("probability_config_updated", extra={
            "previous": previous.as_dict(),
            "current": config.as_dict(),
        })
        return config

    def load(self) -> ProbabilityConfig:
        """Install the persisted weights, persisting the default if none exist."""
        with self._write_lock:
            stored = self._store.get_config()
            if stored is None:
                self._store.set_config(self._default)
                stored = self._default
                logger.info("probability_config_defaulted", extra={
                    "current": stored.as_dict(),
                })
            else:
                logger.info("probability_config_loaded", extra={
                    "current": stored.as_dict(),
                })
            self._current = stored
        return stored
