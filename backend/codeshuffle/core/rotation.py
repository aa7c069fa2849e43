"""Rotation Rules - problem selection per tier and slot permutation on timeout.

Invariants:
    - pick_problems returns exactly one problem id per tier, in TIER_ORDER
    - rotate_slot_indices is a pure permutation: same multiset in, same multiset out
    - Fewer than two slots never permute (a lone straggler keeps their problem)

Design Decisions:
    - Slots rotate, code does not: code is keyed by problem id, so a member
      inherits whatever was written on the problem they rotate onto
    - Randomness injected (random.Random) so tests can pin the draw
"""

import random
from collections.abc import Mapping, Sequence

from codeshuffle.core.domain_types import Difficulty, TIER_ORDER
from codeshuffle.core.errors import InsufficientCatalogError


def missing_tiers(catalog: Mapping[Difficulty, Sequence[str]]) -> list[str]:
    return [tier.value for tier in TIER_ORDER if not catalog.get(tier)]


def pick_problems(
    catalog: Mapping[Difficulty, Sequence[str]], rng: random.Random,
) -> list[str]:
    """Pick one problem uniformly at random from each tier.

    Raises InsufficientCatalogError when any tier is empty; nothing is picked
    in that case, so callers can abort before touching team state.
    """
    missing = missing_tiers(catalog)
    if missing:
        raise InsufficientCatalogError(missing)
    return [rng.choice(list(catalog[tier])) for tier in TIER_ORDER]


def rotate_slot_indices(slots: Sequence[int]) -> list[int]:
    """Rotate left by one: position i receives the slot held at position i+1."""
    if len(slots) <= 1:
        return list(slots)
    return list(slots[1:]) + [slots[0]]
