"""Unit tests for the slot taxonomy."""

import pytest

from lineup_mgmt.positions import Position
from lineup_mgmt.slots import (
    SlotCategory,
    build_slots,
    classify_slot,
    credited_position,
    expand_lineup_config,
    infer_lineup_config,
    is_excluded_slot,
    sanitize_slots,
)


class TestClassifySlot:
    """Tests for classify_slot."""

    @pytest.mark.parametrize('token,position', [
        ('QB', Position.QB),
        ('rb', Position.RB),
        ('K', Position.K),
        ('DE', Position.DL),
        ('CB', Position.DB),
    ])
    def test_strict_slots(self, token, position):
        """Test that single-position tokens are strict slots for their position."""
        slot = classify_slot(token)
        assert slot.category is SlotCategory.STRICT
        assert slot.position is position
        assert slot.eligible == {position}

    @pytest.mark.parametrize('token', ['FLEX', 'flex', 'WRRB', 'WRRB_FLEX', 'REC_FLEX', 'RBWRTE'])
    def test_regular_flex(self, token):
        """Test that regular flex aliases admit RB/WR/TE."""
        slot = classify_slot(token)
        assert slot.category is SlotCategory.REGULAR_FLEX
        assert slot.eligible == {Position.RB, Position.WR, Position.TE}

    @pytest.mark.parametrize('token', ['SUPER_FLEX', 'SUPERFLEX', 'QBSF', 'SFLX', 'QBRBWRTE'])
    def test_super_flex(self, token):
        """Test that super flex aliases add QB."""
        slot = classify_slot(token)
        assert slot.category is SlotCategory.SUPER_FLEX
        assert slot.eligible == {Position.QB, Position.RB, Position.WR, Position.TE}

    @pytest.mark.parametrize('token', ['IDP_FLEX', 'IDPFLEX', 'DL_LB', 'LB_DB', 'DFLEX', 'IDP_DL', 'my_idp'])
    def test_idp_flex(self, token):
        """Test that IDP aliases and any token containing IDP admit DL/LB/DB."""
        slot = classify_slot(token)
        assert slot.category is SlotCategory.IDP_FLEX
        assert slot.eligible == {Position.DL, Position.LB, Position.DB}

    @pytest.mark.parametrize('token', ['BN', 'bench', 'IR', 'TAXI', 'Taxi Slot', 'RESERVE', 'PUP'])
    def test_excluded(self, token):
        """Test that bench/IR/taxi tokens are excluded."""
        assert is_excluded_slot(token)
        slot = classify_slot(token)
        assert slot.category is SlotCategory.EXCLUDED
        assert slot.eligible == frozenset()

    @pytest.mark.parametrize('token', ['DEF', 'D/ST', '', None, '???'])
    def test_unrecognized_token_is_total(self, token):
        """Test that unknown tokens become strict slots that admit nobody."""
        slot = classify_slot(token)
        assert slot.category is SlotCategory.STRICT
        assert slot.position is Position.UNKNOWN
        assert slot.eligible == frozenset()

    def test_admits(self):
        """Test that a slot admits a player through any of their positions."""
        flex = classify_slot('FLEX')
        assert flex.admits([Position.QB, Position.WR])
        assert not flex.admits([Position.QB])
        assert not flex.admits([])


class TestSlotLists:
    """Tests for slot list helpers."""

    def test_sanitize_removes_excluded(self):
        """Test that bench-like tokens are dropped and order is kept."""
        assert sanitize_slots(['QB', 'BN', 'RB', 'IR', 'FLEX', 'TAXI']) == ['QB', 'RB', 'FLEX']
        assert sanitize_slots(None) == []

    def test_build_slots(self):
        """Test that build_slots classifies starting tokens only."""
        slots = build_slots(['QB', 'BN', 'IDP_FLEX'])
        assert [s.category for s in slots] == [SlotCategory.STRICT, SlotCategory.IDP_FLEX]

    def test_expand_lineup_config(self):
        """Test expansion keeps insertion order, merges case variants and drops bench."""
        config = {'QB': 1, 'RB': 2, 'rb': 1, 'FLEX': 1, 'BN': 6, 'K': 0}
        assert expand_lineup_config(config) == ['QB', 'RB', 'RB', 'RB', 'FLEX']
        assert expand_lineup_config(None) == []

    def test_infer_lineup_config_caps_counts(self):
        """Test that inferred counts are capped and unknown positions ignored."""
        positions = ['QB', 'QB', 'WR', 'WR', 'WR', 'WR', 'WR', 'CB', 'OLB', 'DEF', None]
        config = infer_lineup_config(positions, cap=3)
        assert config == {'QB': 2, 'WR': 3, 'LB': 1, 'DB': 1}
        assert list(config) == ['QB', 'WR', 'LB', 'DB']

    def test_infer_from_empty_roster(self):
        """Test that an empty roster infers nothing."""
        assert infer_lineup_config([], cap=3) == {}


class TestCreditedPosition:
    """Tests for credited_position."""

    def test_strict_slot_credits_slot_position(self):
        """Test that strict slots credit their own position."""
        assert credited_position(classify_slot('WR'), (Position.RB, Position.WR)) is Position.WR

    def test_flex_uses_offense_preference(self):
        """Test that flex credit follows QB, RB, WR, TE order."""
        flex = classify_slot('FLEX')
        assert credited_position(flex, (Position.TE, Position.WR)) is Position.WR
        assert credited_position(classify_slot('SUPER_FLEX'), (Position.WR, Position.QB)) is Position.QB

    def test_idp_flex_uses_defense_preference(self):
        """Test that IDP flex credit follows DL, LB, DB order."""
        idp = classify_slot('IDP_FLEX')
        assert credited_position(idp, (Position.DB, Position.LB)) is Position.LB
        assert credited_position(idp, (Position.LB, Position.DL)) is Position.DL

    def test_falls_back_to_base(self):
        """Test fallback to the first listed position when nothing preferred matches."""
        assert credited_position(classify_slot('FLEX'), (Position.K,)) is Position.K
        assert credited_position(classify_slot('FLEX'), ()) is Position.UNKNOWN
