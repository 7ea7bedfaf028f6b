"""
Blind Box Kernel

Core of the blind box allocation system:
- Typed rarity tiers and immutable catalog values
- Atomic per-tier stock decrements
- Backpack entries with a single unopened -> opened transition
- Injectable clock and random source for reproducible draws
"""

__version__ = "0.1.0"
