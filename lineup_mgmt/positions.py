"""Canonical fantasy positions and raw-position normalization."""

from enum import Enum
from typing import Iterable, Optional

from .constants import DEFENSIVE_POSITIONS, OFFENSIVE_POSITIONS, POSITION_SYNONYMS


class Position(str, Enum):
    """Canonical position set used by every calculation."""

    QB = 'QB'
    RB = 'RB'
    WR = 'WR'
    TE = 'TE'
    K = 'K'
    DL = 'DL'
    LB = 'LB'
    DB = 'DB'
    UNKNOWN = 'UNK'

    @property
    def is_offense(self) -> bool:
        return self.value in OFFENSIVE_POSITIONS

    @property
    def is_defense(self) -> bool:
        return self.value in DEFENSIVE_POSITIONS


OFFENSE = frozenset(Position(p) for p in OFFENSIVE_POSITIONS)
DEFENSE = frozenset(Position(p) for p in DEFENSIVE_POSITIONS)


def normalize_position(raw: Optional[str]) -> Position:
    """
    Map any raw position string to its canonical Position.

    Case-insensitive; handles historical synonyms (DE/DT/NT/EDGE -> DL,
    OLB/MLB/ILB -> LB, CB/S/FS/SS -> DB). Empty, None or unrecognized
    input maps to Position.UNKNOWN.

    Args:
        raw: Raw position string from a roster, player cache or slot token

    Returns:
        Canonical Position
    """
    if isinstance(raw, Position):
        return raw
    if not raw:
        return Position.UNKNOWN
    canonical = POSITION_SYNONYMS.get(raw.strip().upper())
    if canonical is None:
        return Position.UNKNOWN
    return Position(canonical)


def normalize_positions(raw_positions: Optional[Iterable[str]]) -> tuple[Position, ...]:
    """Normalize a list of raw positions, preserving order."""
    return tuple(normalize_position(p) for p in (raw_positions or ()))
