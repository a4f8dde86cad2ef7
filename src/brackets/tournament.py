"""
Tournament lifecycle: roster and slot editing in draft, results in play.

While drafting, the bracket is always rebuilt from the seed slots and never
edited directly. Starting play freezes the slots and makes the bracket the
record of results; going back to draft throws those results away.
"""
import random
import time
from typing import List, Dict, Optional

from brackets.bracket import (
    Bracket, Slots, build_bracket, clear_slot, get_match, is_power_of_two,
    resize_slots, swap_slots, check_side,
)
from brackets.models import (
    Competitor, new_id, PHASE_DRAFT, PHASE_PLAY, MATCH_SINGLE, MATCH_TYPES,
    SEED_COMPACT, SEED_MODES, LAYOUT_DOUBLE, LAYOUTS, MAX_COMPETITORS, SIDE1,
)
from brackets.progression import record_result, resolve_byes
from brackets.seeding import generate_assignments


class TournamentStateError(ValueError):
    """An operation was requested in a phase that does not allow it."""


def _now_ms() -> int:
    return int(time.time() * 1000)


def _clean_name(name: str, what: str) -> str:
    name = (name or '').strip()
    if not name:
        raise ValueError(f"{what} name cannot be empty")
    return name


class Tournament:
    def __init__(self, name: str, id: str = None, phase: str = PHASE_DRAFT,
                 match_type: str = MATCH_SINGLE, seed_mode: str = SEED_COMPACT,
                 layout: str = LAYOUT_DOUBLE, roster: List[Competitor] = None,
                 seed_slots: Slots = None, bracket: Bracket = None,
                 champion: Optional[Competitor] = None, last_modified: int = None):
        self.id = id if id else new_id()
        self.name = name
        self.phase = phase
        self.match_type = match_type
        self.seed_mode = seed_mode
        self.layout = layout
        self.roster = roster if roster else []
        self.seed_slots = seed_slots if seed_slots else [None, None]
        self.bracket = bracket if bracket is not None else build_bracket(self.seed_slots)
        self.champion = champion
        self.last_modified = last_modified if last_modified else _now_ms()

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, phase={self.phase})"

    @classmethod
    def create(cls, name: str) -> 'Tournament':
        return cls(name=_clean_name(name, 'Tournament'))

    # --- helpers ---

    def _touch(self):
        self.last_modified = _now_ms()

    def _require_phase(self, phase: str, action: str):
        if self.phase != phase:
            raise TournamentStateError(f"Cannot {action} while tournament is in {self.phase} phase")

    def _set_slots(self, slots: Slots):
        self.seed_slots = slots
        self.bracket = build_bracket(slots)
        self._touch()

    def find_competitor(self, competitor_id: str) -> Competitor:
        for competitor in self.roster:
            if competitor.id == competitor_id:
                return competitor
        raise ValueError(f"Unknown competitor {competitor_id!r}")

    def unassigned(self) -> List[Competitor]:
        """Roster members that do not occupy any seed slot."""
        placed = {slot.id for slot in self.seed_slots if slot is not None}
        return [c for c in self.roster if c.id not in placed]

    # --- draft phase ---

    def rename(self, name: str):
        self.name = _clean_name(name, 'Tournament')
        self._touch()

    def add_competitor(self, name: str) -> Competitor:
        self._require_phase(PHASE_DRAFT, 'add competitors')
        if len(self.roster) >= MAX_COMPETITORS:
            raise ValueError(f"Maximum limit of {MAX_COMPETITORS} competitors reached")
        competitor = Competitor(name=_clean_name(name, 'Competitor'))
        self.roster = self.roster + [competitor]
        self._set_slots(resize_slots(self.seed_slots, len(self.roster)))
        return competitor

    def remove_competitor(self, competitor_id: str):
        self._require_phase(PHASE_DRAFT, 'remove competitors')
        competitor = self.find_competitor(competitor_id)
        self.roster = [c for c in self.roster if c.id != competitor.id]
        slots = [None if slot == competitor else slot for slot in self.seed_slots]
        self._set_slots(resize_slots(slots, len(self.roster)))

    def update_settings(self, match_type: str = None, seed_mode: str = None, layout: str = None):
        self._require_phase(PHASE_DRAFT, 'change settings')
        if match_type is not None and match_type not in MATCH_TYPES:
            raise ValueError(f"Unknown match type {match_type!r}, expected one of {MATCH_TYPES}")
        if seed_mode is not None and seed_mode not in SEED_MODES:
            raise ValueError(f"Unknown seed mode {seed_mode!r}, expected one of {SEED_MODES}")
        if layout is not None and layout not in LAYOUTS:
            raise ValueError(f"Unknown layout {layout!r}, expected one of {LAYOUTS}")
        self.match_type = match_type or self.match_type
        self.seed_mode = seed_mode or self.seed_mode
        self.layout = layout or self.layout
        self._touch()

    def auto_fill(self, rng: Optional[random.Random] = None):
        self._require_phase(PHASE_DRAFT, 'auto fill')
        if not self.roster:
            return
        self._set_slots(generate_assignments(
            self.roster, len(self.seed_slots), self.seed_mode, self.layout, rng=rng))

    def swap_slots(self, first: int, second: int):
        self._require_phase(PHASE_DRAFT, 'move competitors')
        self._set_slots(swap_slots(self.seed_slots, first, second))

    def clear_slot(self, index: int):
        self._require_phase(PHASE_DRAFT, 'move competitors')
        self._set_slots(clear_slot(self.seed_slots, index))

    def place_in_slot(self, competitor_id: str, index: int):
        """
        Drop a competitor onto a slot.

        From another slot the two occupants swap; from the pool the target's
        previous occupant returns to the pool.
        """
        self._require_phase(PHASE_DRAFT, 'move competitors')
        competitor = self.find_competitor(competitor_id)
        if competitor in self.seed_slots:
            self.swap_slots(self.seed_slots.index(competitor), index)
            return
        slots = clear_slot(self.seed_slots, index)
        slots[index] = competitor
        self._set_slots(slots)

    # --- phase changes ---

    def start_problems(self) -> List[str]:
        problems = []
        if len(self.roster) < 2:
            problems.append("You need at least 2 competitors to start a tournament.")
        elif self.unassigned():
            problems.append("Please assign all competitors before starting.")
        return problems

    def needs_bye_warning(self) -> bool:
        return self.seed_mode == SEED_COMPACT and not is_power_of_two(len(self.roster))

    def start(self, confirm_byes: bool = False):
        self._require_phase(PHASE_DRAFT, 'start')
        problems = self.start_problems()
        if problems:
            raise TournamentStateError(problems[0])
        if self.needs_bye_warning() and not confirm_byes:
            raise TournamentStateError(
                "Roster size is not a power of two; byes must be confirmed before starting.")
        self.phase = PHASE_PLAY
        self.bracket, self.champion = resolve_byes(build_bracket(self.seed_slots))
        self._touch()

    def edit(self):
        """Return to draft, discarding every recorded result."""
        self._require_phase(PHASE_PLAY, 'edit the bracket')
        if self.champion is not None:
            raise TournamentStateError("Cannot edit a finished tournament")
        self.phase = PHASE_DRAFT
        self.champion = None
        self.bracket = build_bracket(self.seed_slots)
        self._touch()

    # --- play phase ---

    def record_win(self, round_index: int, match_index: int, side: str) -> Optional[Competitor]:
        """Add one win for a side of an undecided match."""
        self._require_phase(PHASE_PLAY, 'record results')
        check_side(side)
        match = get_match(self.bracket, round_index, match_index)
        if match['winner'] is not None:
            raise TournamentStateError(f"Match {round_index}/{match_index} is already decided")
        if match['side1'] is None or match['side2'] is None:
            raise TournamentStateError(
                f"Match {round_index}/{match_index} is still waiting for a competitor")
        previous = match['wins1'] if side == SIDE1 else match['wins2']
        self.bracket, champion = record_result(
            self.bracket, round_index, match_index, side, previous + 1, self.match_type)
        if champion is not None:
            self.champion = champion
        self._touch()
        return champion

    # --- persistence ---

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'phase': self.phase,
            'matchType': self.match_type,
            'seedMode': self.seed_mode,
            'layout': self.layout,
            'roster': [c.to_dict() for c in self.roster],
            'seedSlots': [_competitor_to_dict(slot) for slot in self.seed_slots],
            'bracket': [[_match_to_dict(m) for m in round_matches] for round_matches in self.bracket],
            'champion': _competitor_to_dict(self.champion),
            'lastModified': self.last_modified,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        seed_slots = [Competitor.from_dict(slot) for slot in data.get('seedSlots') or [None, None]]
        bracket = None
        if data.get('bracket'):
            bracket = [[_match_from_dict(m) for m in round_matches] for round_matches in data['bracket']]
        return cls(
            name=data['name'],
            id=data['id'],
            phase=data.get('phase', PHASE_DRAFT),
            match_type=data.get('matchType', MATCH_SINGLE),
            seed_mode=data.get('seedMode', SEED_COMPACT),
            layout=data.get('layout', LAYOUT_DOUBLE),
            roster=[Competitor.from_dict(c) for c in data.get('roster') or []],
            seed_slots=seed_slots,
            bracket=bracket,
            champion=Competitor.from_dict(data.get('champion')),
            last_modified=data.get('lastModified'),
        )


def _competitor_to_dict(competitor: Optional[Competitor]) -> Optional[Dict]:
    return competitor.to_dict() if competitor is not None else None


def _match_to_dict(match: Dict) -> Dict:
    return {
        'id': match['id'],
        'side1': _competitor_to_dict(match['side1']),
        'side2': _competitor_to_dict(match['side2']),
        'sourceSlot1': -1 if match['source_slot1'] is None else match['source_slot1'],
        'sourceSlot2': -1 if match['source_slot2'] is None else match['source_slot2'],
        'wins1': match['wins1'],
        'wins2': match['wins2'],
        'winner': _competitor_to_dict(match['winner']),
    }


def _match_from_dict(data: Dict) -> Dict:
    source_slot1 = data.get('sourceSlot1', -1)
    source_slot2 = data.get('sourceSlot2', -1)
    return {
        'id': data['id'],
        'side1': Competitor.from_dict(data.get('side1')),
        'side2': Competitor.from_dict(data.get('side2')),
        'source_slot1': None if source_slot1 < 0 else source_slot1,
        'source_slot2': None if source_slot2 < 0 else source_slot2,
        'wins1': data.get('wins1', 0),
        'wins2': data.get('wins2', 0),
        'winner': Competitor.from_dict(data.get('winner')),
    }
