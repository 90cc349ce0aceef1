"""Lineup slot taxonomy.

Raw slot tokens ("QB", "FLEX", "SFLX", "IDP_FLEX", "BN", ...) are classified
exactly once at the boundary into a Slot with a closed SlotCategory and the
set of positions it admits. Nothing downstream looks at the raw token again.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Iterable, Mapping, Optional, Sequence

from .constants import (
    ALL_STAT_POSITIONS,
    IDP_FLEX_PREFERENCE,
    IDP_FLEX_SLOTS,
    NON_STARTING_SLOT_TOKENS,
    OFFENSIVE_FLEX_PREFERENCE,
    REGULAR_FLEX_SLOTS,
    SUPER_FLEX_SLOTS,
)
from .positions import Position, normalize_position


class SlotCategory(str, Enum):
    STRICT = 'strict'
    REGULAR_FLEX = 'regular_flex'
    SUPER_FLEX = 'super_flex'
    IDP_FLEX = 'idp_flex'
    EXCLUDED = 'excluded'


_CATEGORY_ELIGIBILITY = {
    SlotCategory.REGULAR_FLEX: frozenset({Position.RB, Position.WR, Position.TE}),
    SlotCategory.SUPER_FLEX: frozenset({Position.QB, Position.RB, Position.WR, Position.TE}),
    SlotCategory.IDP_FLEX: frozenset({Position.DL, Position.LB, Position.DB}),
    SlotCategory.EXCLUDED: frozenset(),
}


@dataclass(frozen=True)
class Slot:
    """A classified lineup slot."""

    token: str
    category: SlotCategory
    eligible: frozenset
    position: Optional[Position] = None  # set for strict slots only

    @property
    def is_strict(self) -> bool:
        return self.category is SlotCategory.STRICT

    @property
    def is_flex(self) -> bool:
        return self.category in (
            SlotCategory.REGULAR_FLEX,
            SlotCategory.SUPER_FLEX,
            SlotCategory.IDP_FLEX,
        )

    def admits(self, positions: Iterable[Position]) -> bool:
        """True when any of the given positions may fill this slot."""
        return any(p in self.eligible for p in positions)


def is_excluded_slot(raw: Optional[str]) -> bool:
    """True for bench / IR / taxi style tokens."""
    return (raw or '').strip().upper() in NON_STARTING_SLOT_TOKENS


@lru_cache(maxsize=256)
def classify_slot(raw: Optional[str]) -> Slot:
    """
    Classify a raw lineup-slot token.

    Total function: unrecognized tokens become strict slots for their own
    normalized position. A strict slot whose position normalizes to UNKNOWN
    admits nobody.

    Args:
        raw: Raw slot token (e.g. 'QB', 'FLEX', 'QBSF', 'IDP_FLEX', 'BN')

    Returns:
        Slot with category and eligible-position set
    """
    token = (raw or '').strip().upper()

    if token in NON_STARTING_SLOT_TOKENS:
        category = SlotCategory.EXCLUDED
    elif token in REGULAR_FLEX_SLOTS:
        category = SlotCategory.REGULAR_FLEX
    elif token in SUPER_FLEX_SLOTS:
        category = SlotCategory.SUPER_FLEX
    elif token in IDP_FLEX_SLOTS or 'IDP' in token:
        category = SlotCategory.IDP_FLEX
    else:
        position = normalize_position(token)
        eligible = frozenset() if position is Position.UNKNOWN else frozenset({position})
        return Slot(token=token, category=SlotCategory.STRICT, eligible=eligible, position=position)

    return Slot(token=token, category=category, eligible=_CATEGORY_ELIGIBILITY[category])


def sanitize_slots(tokens: Optional[Iterable[str]]) -> list[str]:
    """Drop bench/IR/taxi tokens from a starting-lineup token list."""
    return [t for t in (tokens or []) if not is_excluded_slot(t)]


def build_slots(tokens: Optional[Iterable[str]]) -> list[Slot]:
    """Classify a token list into starting Slots, excluded tokens removed."""
    return [classify_slot(t) for t in sanitize_slots(tokens)]


def expand_lineup_config(config: Optional[Mapping[str, int]]) -> list[str]:
    """
    Expand a {slot_token: count} lineup config into an ordered token list.

    Excluded tokens are removed and counts for duplicate tokens (after
    case-folding) are merged. Order follows the mapping's insertion order.
    """
    merged: dict[str, int] = {}
    for token, count in (config or {}).items():
        if is_excluded_slot(token) or not count or count < 0:
            continue
        key = token.strip().upper()
        merged[key] = merged.get(key, 0) + int(count)

    tokens: list[str] = []
    for token, count in merged.items():
        tokens.extend([token] * count)
    return tokens


def infer_lineup_config(raw_positions: Iterable[Optional[str]], cap: int) -> dict[str, int]:
    """
    Infer a lineup config from a roster's positions.

    Each normalized position is counted and capped at ``cap``: a team's
    historical roster composition upper-bounds the lineup it needed.
    Unknown positions are ignored.

    Args:
        raw_positions: Raw position of every rostered player
        cap: Maximum slots per position

    Returns:
        Dict of position token -> slot count, in canonical position order
    """
    counts: dict[str, int] = {}
    for raw in raw_positions:
        position = normalize_position(raw)
        if position is Position.UNKNOWN:
            continue
        counts[position.value] = counts.get(position.value, 0) + 1

    return {
        pos: min(counts[pos], cap)
        for pos in ALL_STAT_POSITIONS
        if pos in counts
    }


def credited_position(slot: Slot, positions: Sequence[Position]) -> Position:
    """
    Position a pick is credited to for offense/defense sub-totals.

    Strict slots credit their own position. Flex slots credit the first
    position of the fixed preference order (QB, RB, WR, TE for offensive
    flex; DL, LB, DB for IDP flex) found among the player's positions.

    Args:
        slot: The slot the player fills
        positions: Player's normalized base position followed by alternates

    Returns:
        Credited Position (falls back to the player's base position)
    """
    if slot.is_strict and slot.position is not None:
        return slot.position

    if slot.category is SlotCategory.IDP_FLEX:
        preference = IDP_FLEX_PREFERENCE
    else:
        preference = OFFENSIVE_FLEX_PREFERENCE

    for pos in preference:
        if Position(pos) in positions:
            return Position(pos)
    return positions[0] if positions else Position.UNKNOWN
