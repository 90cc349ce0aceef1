"""Greedy optimal-lineup assignment."""

import logging
from typing import Sequence

from .models import Assignment, PlayerCandidate, SlotPick
from .positions import normalize_position
from .slots import Slot, SlotCategory, credited_position

logger = logging.getLogger('lineup_mgmt.optimizer')


def fill_order(slots: Sequence[Slot]) -> list[tuple[int, Slot]]:
    """
    Order in which slots are filled: strict slots first, then flex slots.

    Each partition keeps its original relative order. Excluded slots are
    dropped. Pairs carry the slot's index in the input list.
    """
    strict = [(i, s) for i, s in enumerate(slots) if s.category is SlotCategory.STRICT]
    flex = [
        (i, s) for i, s in enumerate(slots)
        if s.category not in (SlotCategory.STRICT, SlotCategory.EXCLUDED)
    ]
    return strict + flex


def optimal_assignment(candidates: Sequence[PlayerCandidate], slots: Sequence[Slot]) -> Assignment:
    """
    Assign at most one candidate per slot, greedily maximizing total score.

    Strict slots are filled before flex slots. Each slot takes the highest
    scoring unused candidate whose base or alternate position it admits;
    exact ties go to the candidate that appears first in ``candidates``.
    Slots with no eligible candidate are left empty.

    The result depends only on the order of the inputs, so repeated calls
    with the same lists return identical assignments.

    Args:
        candidates: Candidate pool, in a caller-defined deterministic order
        slots: Classified starting slots

    Returns:
        Assignment with total, offense/defense sub-totals and picks in slot order
    """
    positions = [
        tuple(normalize_position(p) for p in c.positions)
        for c in candidates
    ]
    used: set[int] = set()
    picks: list[SlotPick] = []

    for slot_index, slot in fill_order(slots):
        best = None
        for ci, cand in enumerate(candidates):
            if ci in used or not slot.admits(positions[ci]):
                continue
            if best is None or cand.score > candidates[best].score:
                best = ci

        if best is None:
            logger.debug(f'No eligible candidate for slot {slot.token} (index {slot_index})')
            continue

        used.add(best)
        chosen = candidates[best]
        picks.append(SlotPick(
            slot_index=slot_index,
            slot=slot,
            player_id=chosen.player_id,
            score=chosen.score,
            credited_position=credited_position(slot, positions[best]),
        ))

    picks.sort(key=lambda p: p.slot_index)

    total = 0.0
    offense = 0.0
    defense = 0.0
    for pick in picks:
        total += pick.score
        if pick.credited_position.is_offense:
            offense += pick.score
        elif pick.credited_position.is_defense:
            defense += pick.score

    return Assignment(total=total, offense=offense, defense=defense, picks=tuple(picks))
