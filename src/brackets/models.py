import uuid

PHASE_DRAFT = 'draft'
PHASE_PLAY = 'play'

MATCH_SINGLE = 'single'
MATCH_BEST_OF_3 = 'bestOf3'
MATCH_TYPES = (MATCH_SINGLE, MATCH_BEST_OF_3)

SEED_STANDARD = 'standard'
SEED_COMPACT = 'compact'
SEED_MODES = (SEED_STANDARD, SEED_COMPACT)

LAYOUT_DOUBLE = 'double'
LAYOUT_SINGLE = 'single'
LAYOUTS = (LAYOUT_DOUBLE, LAYOUT_SINGLE)

SIDE1 = 'side1'
SIDE2 = 'side2'
SIDES = (SIDE1, SIDE2)

MAX_COMPETITORS = 16
MAX_TOURNAMENTS = 10


def new_id():
    return uuid.uuid4().hex


class Competitor:
    def __init__(self, name, id=None):
        self.id = id if id else new_id()
        self.name = name

    def __eq__(self, other):
        if not isinstance(other, Competitor):
            return NotImplemented
        return self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Competitor(id={self.id}, name={self.name})"

    def to_dict(self):
        return {'id': self.id, 'name': self.name}

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return None
        return cls(name=data['name'], id=data['id'])
