"""
Tests for the tournament lifecycle and its persisted form.
"""
import pytest
import random
import sys
import os
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import (
    PHASE_DRAFT, PHASE_PLAY, MATCH_BEST_OF_3, SEED_STANDARD, SEED_COMPACT, LAYOUT_SINGLE,
    LAYOUT_DOUBLE, MAX_COMPETITORS, SIDE1, SIDE2,
)
from brackets.tournament import Tournament, TournamentStateError


def tournament_with(count, **settings):
    tournament = Tournament.create("Summer Smash")
    if settings:
        tournament.update_settings(**settings)
    for i in range(count):
        tournament.add_competitor(f"Team {i + 1}")
    return tournament


def started(count, rng=None, **settings):
    tournament = tournament_with(count, **settings)
    tournament.auto_fill(rng=rng or random.Random(42))
    tournament.start(confirm_byes=True)
    return tournament


class TestCreate:
    """Tests for new tournaments."""

    def test_defaults(self):
        tournament = Tournament.create("  Office Open ")
        assert tournament.name == "Office Open"
        assert tournament.phase == PHASE_DRAFT
        assert tournament.seed_mode == SEED_COMPACT
        assert tournament.layout == LAYOUT_DOUBLE
        assert tournament.roster == []
        assert tournament.seed_slots == [None, None]
        assert len(tournament.bracket) == 1
        assert tournament.champion is None
        assert tournament.last_modified > 0

    def test_blank_name(self):
        with pytest.raises(ValueError):
            Tournament.create("   ")


class TestRoster:
    """Tests for adding and removing competitors."""

    def test_add_grows_slots(self):
        tournament = tournament_with(3)
        assert len(tournament.seed_slots) == 4
        assert [len(r) for r in tournament.bracket] == [2, 1]
        assert len(tournament.unassigned()) == 3

    def test_add_keeps_existing_placements(self):
        tournament = tournament_with(2)
        a, b = tournament.roster
        tournament.place_in_slot(b.id, 0)
        tournament.place_in_slot(a.id, 1)
        tournament.add_competitor("Team 3")
        assert tournament.seed_slots == [b, a, None, None]

    def test_roster_limit(self):
        tournament = tournament_with(MAX_COMPETITORS)
        with pytest.raises(ValueError, match="Maximum"):
            tournament.add_competitor("One too many")

    def test_blank_competitor_name(self):
        with pytest.raises(ValueError):
            tournament_with(0).add_competitor("")

    def test_remove_clears_slot_and_shrinks(self):
        tournament = tournament_with(3)
        tournament.auto_fill(rng=random.Random(1))
        removed = tournament.seed_slots[2]
        tournament.remove_competitor(removed.id)
        assert removed not in tournament.roster
        assert len(tournament.seed_slots) == 2
        assert removed not in tournament.seed_slots

    def test_shrink_returns_trailing_occupant_to_pool(self):
        tournament = tournament_with(3)
        a, b, c = tournament.roster
        tournament.place_in_slot(c.id, 3)
        tournament.remove_competitor(a.id)
        assert tournament.seed_slots == [None, None]
        assert set(tournament.unassigned()) == {b, c}

    def test_remove_unknown(self):
        with pytest.raises(ValueError):
            tournament_with(2).remove_competitor("nope")


class TestSlots:
    """Tests for manual slot edits (drag and drop)."""

    def test_place_from_pool(self):
        tournament = tournament_with(3)
        a = tournament.roster[0]
        tournament.place_in_slot(a.id, 3)
        assert tournament.seed_slots[3] == a
        assert tournament.bracket[0][1]['side2'] == a
        assert a not in tournament.unassigned()

    def test_place_from_pool_displaces_occupant(self):
        tournament = tournament_with(3)
        a, b, c = tournament.roster
        tournament.place_in_slot(a.id, 0)
        tournament.place_in_slot(b.id, 0)
        assert tournament.seed_slots[0] == b
        assert a in tournament.unassigned()

    def test_place_from_other_slot_swaps(self):
        tournament = tournament_with(3)
        a, b, c = tournament.roster
        tournament.place_in_slot(a.id, 0)
        tournament.place_in_slot(b.id, 2)
        tournament.place_in_slot(a.id, 2)
        assert tournament.seed_slots[:3] == [b, None, a]

    def test_swap_and_clear(self):
        tournament = tournament_with(2)
        a, b = tournament.roster
        tournament.place_in_slot(a.id, 0)
        tournament.swap_slots(0, 1)
        assert tournament.seed_slots == [None, a]
        assert tournament.bracket[0][0]['side2'] == a
        tournament.clear_slot(1)
        assert tournament.seed_slots == [None, None]
        assert tournament.unassigned() == [a, b]

    def test_slot_out_of_range(self):
        tournament = tournament_with(2)
        with pytest.raises(IndexError):
            tournament.swap_slots(0, 5)
        with pytest.raises(IndexError):
            tournament.place_in_slot(tournament.roster[0].id, 2)

    def test_auto_fill_places_everyone(self):
        tournament = tournament_with(6, seed_mode=SEED_STANDARD)
        tournament.auto_fill(rng=random.Random(3))
        assert tournament.unassigned() == []
        assert len(tournament.seed_slots) == 8

    def test_auto_fill_empty_roster_is_noop(self):
        tournament = tournament_with(0)
        tournament.auto_fill()
        assert tournament.seed_slots == [None, None]


class TestSettings:
    """Tests for draft settings."""

    def test_update(self):
        tournament = tournament_with(0, match_type=MATCH_BEST_OF_3, seed_mode=SEED_STANDARD,
                                     layout=LAYOUT_SINGLE)
        assert tournament.match_type == MATCH_BEST_OF_3
        assert tournament.seed_mode == SEED_STANDARD
        assert tournament.layout == LAYOUT_SINGLE

    def test_partial_update_keeps_rest(self):
        tournament = tournament_with(0)
        tournament.update_settings(layout=LAYOUT_SINGLE)
        assert tournament.seed_mode == SEED_COMPACT
        assert tournament.layout == LAYOUT_SINGLE

    @pytest.mark.parametrize("settings", [
        {'match_type': 'bestOf5'}, {'seed_mode': 'ranked'}, {'layout': 'triple'},
    ])
    def test_invalid(self, settings):
        with pytest.raises(ValueError):
            tournament_with(0).update_settings(**settings)


class TestPhases:
    """Tests for starting, playing and unlocking."""

    def test_start_needs_two(self):
        tournament = tournament_with(1)
        tournament.auto_fill()
        with pytest.raises(TournamentStateError, match="at least 2"):
            tournament.start()

    def test_start_needs_everyone_assigned(self):
        tournament = tournament_with(2)
        with pytest.raises(TournamentStateError, match="assign all"):
            tournament.start()
        assert tournament.phase == PHASE_DRAFT

    def test_compact_bye_warning(self):
        tournament = tournament_with(3)
        tournament.auto_fill(rng=random.Random(1))
        assert tournament.needs_bye_warning()
        with pytest.raises(TournamentStateError, match="confirm"):
            tournament.start()
        tournament.start(confirm_byes=True)
        assert tournament.phase == PHASE_PLAY

    def test_standard_no_bye_warning(self):
        tournament = tournament_with(3, seed_mode=SEED_STANDARD)
        tournament.auto_fill(rng=random.Random(1))
        assert not tournament.needs_bye_warning()
        tournament.start()
        assert tournament.phase == PHASE_PLAY

    def test_start_resolves_byes(self):
        tournament = started(3, layout=LAYOUT_SINGLE)
        unpaired = tournament.seed_slots[2]
        assert tournament.bracket[0][1]['winner'] == unpaired
        assert tournament.bracket[1][0]['side2'] == unpaired

    def test_draft_operations_locked_in_play(self):
        tournament = started(4)
        with pytest.raises(TournamentStateError):
            tournament.add_competitor("Late")
        with pytest.raises(TournamentStateError):
            tournament.swap_slots(0, 1)
        with pytest.raises(TournamentStateError):
            tournament.update_settings(layout=LAYOUT_SINGLE)
        with pytest.raises(TournamentStateError):
            tournament.auto_fill()

    def test_record_win_requires_play(self):
        tournament = tournament_with(2)
        with pytest.raises(TournamentStateError):
            tournament.record_win(0, 0, SIDE1)

    def test_play_to_champion(self):
        tournament = started(4)
        slots = tournament.seed_slots
        assert tournament.record_win(0, 0, SIDE1) is None
        assert tournament.record_win(0, 1, SIDE2) is None
        champion = tournament.record_win(1, 0, SIDE1)
        assert champion == slots[0]
        assert tournament.champion == slots[0]

    def test_best_of_three_increments(self):
        tournament = started(2, match_type=MATCH_BEST_OF_3)
        tournament.record_win(0, 0, SIDE2)
        assert tournament.bracket[0][0]['wins2'] == 1
        assert tournament.champion is None
        tournament.record_win(0, 0, SIDE2)
        assert tournament.champion == tournament.seed_slots[1]

    def test_decided_match_rejected(self):
        tournament = started(4)
        tournament.record_win(0, 0, SIDE1)
        with pytest.raises(TournamentStateError, match="already decided"):
            tournament.record_win(0, 0, SIDE2)

    def test_empty_side_rejected(self):
        tournament = started(4)
        with pytest.raises(TournamentStateError, match="waiting"):
            tournament.record_win(1, 0, SIDE1)

    def test_win_rejected_while_opponent_pending(self):
        tournament = started(4)
        tournament.record_win(0, 0, SIDE1)
        final = tournament.bracket[1][0]
        assert final['side1'] == tournament.seed_slots[0]
        assert final['side2'] is None
        with pytest.raises(TournamentStateError, match="waiting"):
            tournament.record_win(1, 0, SIDE1)
        assert tournament.champion is None
        assert tournament.bracket[1][0]['wins1'] == 0

        tournament.record_win(0, 1, SIDE2)
        assert tournament.record_win(1, 0, SIDE2) == tournament.seed_slots[3]

    def test_record_out_of_range(self):
        tournament = started(4)
        with pytest.raises(IndexError):
            tournament.record_win(5, 0, SIDE1)

    def test_edit_discards_results(self):
        tournament = started(4)
        slots = list(tournament.seed_slots)
        tournament.record_win(0, 0, SIDE1)
        tournament.edit()
        assert tournament.phase == PHASE_DRAFT
        assert tournament.seed_slots == slots
        assert all(m['winner'] is None for r in tournament.bracket for m in r)
        assert all(m['wins1'] == 0 for r in tournament.bracket for m in r)

    def test_edit_after_champion_rejected(self):
        tournament = started(2)
        tournament.record_win(0, 0, SIDE1)
        with pytest.raises(TournamentStateError):
            tournament.edit()

    def test_rename(self):
        tournament = tournament_with(0)
        tournament.rename("Winter Cup")
        assert tournament.name == "Winter Cup"


class TestSerialization:
    """Tests for the persisted dict form."""

    def test_field_names(self):
        data = tournament_with(2).to_dict()
        assert set(data) == {
            'id', 'name', 'phase', 'matchType', 'seedMode', 'layout', 'roster',
            'seedSlots', 'bracket', 'champion', 'lastModified',
        }
        match = data['bracket'][0][0]
        assert set(match) == {
            'id', 'side1', 'side2', 'sourceSlot1', 'sourceSlot2', 'wins1', 'wins2', 'winner',
        }

    def test_round_trip_in_play(self):
        tournament = started(5, seed_mode=SEED_STANDARD, match_type=MATCH_BEST_OF_3)
        tournament.record_win(0, 0, SIDE1)
        tournament.record_win(0, 0, SIDE1)
        data = tournament.to_dict()

        restored = Tournament.from_dict(data)
        assert restored.bracket == tournament.bracket
        assert restored.seed_slots == tournament.seed_slots
        assert restored.roster == tournament.roster
        assert restored.to_dict() == data

    def test_round_trip_through_yaml(self):
        tournament = started(6)
        tournament.record_win(0, 0, SIDE2)
        text = yaml.dump(tournament.to_dict(), default_flow_style=False)
        restored = Tournament.from_dict(yaml.safe_load(text))
        assert restored.to_dict() == tournament.to_dict()
        assert restored.bracket[0][0]['winner'].id == tournament.bracket[0][0]['winner'].id

    def test_source_slots_none_for_later_rounds(self):
        data = tournament_with(4).to_dict()
        assert data['bracket'][0][1]['sourceSlot1'] == 2
        assert data['bracket'][1][0]['sourceSlot1'] == -1
        restored = Tournament.from_dict(data)
        assert restored.bracket[1][0]['source_slot1'] is None

    def test_champion_round_trip(self):
        tournament = started(2)
        tournament.record_win(0, 0, SIDE2)
        restored = Tournament.from_dict(tournament.to_dict())
        assert restored.champion == tournament.champion
        assert restored.phase == PHASE_PLAY
