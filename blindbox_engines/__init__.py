"""
Module: blindbox_engines
Responsibility:
    Package entrypoint re-exporting the draw and allocation engines.

Architecture position:
    Engines -- between the kernel (domain values, store contracts) and the
    services.  MUST NOT import blindbox_services or blindbox_api.

Usage:
    from blindbox_engines import AllocationResolver, DrawEngine
"""

from blindbox_engines.allocation import AllocationOutcome, AllocationResolver
from blindbox_engines.draw import DrawEngine, tier_for_draw
from blindbox_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "AllocationOutcome",
    "AllocationResolver",
    "DrawEngine",
    "tier_for_draw",
    "compute_input_fingerprint",
    "traced_engine",
]
