"""
Data model for the 32-entrant double elimination bracket.

Slots reference each other by id only; the ordered slot list plus an
id -> index lookup is the whole graph.
"""
import json
from typing import Dict, List, Optional, Tuple

# Segment tags
WINNERS = 'wb'
LOSERS = 'lb'
GRAND_FINAL = 'gf'
CONSOLATION = 'cf'

# Placement segment tag -> (first place, last place) it decides
PLACEMENT_RANGES = {
    'p5': (5, 8),
    'p7': (7, 8),
    'p9': (9, 12),
    'p11': (11, 12),
    'p13': (13, 16),
    'p15': (15, 16),
    'p17': (17, 24),
    'p19': (19, 20),
    'p21': (21, 24),
    'p23': (23, 24),
    'p25': (25, 32),
    'p27': (27, 28),
    'p29': (29, 32),
    'p31': (31, 32),
}

# Source kinds
WINNER = 'winner'
LOSER = 'loser'

# Lifecycle
STATUS_AWAITING_SEED = 'awaiting_seed'
STATUS_READY = 'ready'
STATUS_IN_PROGRESS = 'in_progress'
STATUS_DECIDED = 'decided'

STATUSES = (STATUS_AWAITING_SEED, STATUS_READY, STATUS_IN_PROGRESS, STATUS_DECIDED)

BYE_NAME = 'BYE'


def is_placement_segment(segment: str) -> bool:
    return segment in PLACEMENT_RANGES


def placement_place(segment: str) -> int:
    """Best place a placement segment decides (p17 -> 17)."""
    return PLACEMENT_RANGES[segment][0]


class Entrant:
    def __init__(self, entrant_id, name, ranking=0, is_placeholder=False):
        self.id = entrant_id
        self.name = name
        self.ranking = ranking
        self.is_placeholder = is_placeholder

    @classmethod
    def placeholder(cls, index: int) -> 'Entrant':
        return cls(f'bye-{index}', BYE_NAME, ranking=0, is_placeholder=True)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Entrant':
        """Build an entrant from a plain mapping (YAML / JSON input).

        Accepts ``id`` and ``name`` (``full_name`` and ``display_name`` are
        also understood), ``ranking`` (or ``elo``) and ``is_placeholder``.
        """
        if not isinstance(data, dict):
            raise ValueError(f'Entrant must be a mapping, got {type(data).__name__}')
        entrant_id = data.get('id')
        if entrant_id is None or entrant_id == '':
            raise ValueError(f'Entrant is missing an id: {data!r}')
        name = data.get('name') or data.get('full_name') or data.get('display_name') or str(entrant_id)
        ranking = data.get('ranking', data.get('elo', 0))
        return cls(entrant_id, name, ranking=ranking,
                   is_placeholder=bool(data.get('is_placeholder', False)))

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'ranking': self.ranking,
            'is_placeholder': self.is_placeholder,
        }

    def __eq__(self, other):
        if not isinstance(other, Entrant):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Entrant(id={self.id}, name={self.name}, ranking={self.ranking}, is_placeholder={self.is_placeholder})"


class Slot:
    """A single match position in the bracket.

    Sources are ``(source_slot_id, WINNER | LOSER)`` tuples or ``None``.
    Occupants are entrant ids, set only once resolved.
    """

    def __init__(self, slot_id: str, segment: str, round_num: int, match_number: int = 1,
                 source1: Optional[Tuple[str, str]] = None,
                 source2: Optional[Tuple[str, str]] = None,
                 best_of: int = 3, label: str = ''):
        self.id = slot_id
        self.segment = segment
        self.round = round_num
        self.match_number = match_number
        self.source1 = source1
        self.source2 = source2
        self.winner_target = None
        self.loser_target = None
        self.best_of = best_of
        self.label = label

        self.entrant1_id = None
        self.entrant2_id = None
        self.score1 = None
        self.score2 = None
        self.winner_id = None
        self.sub_games = []
        self.status = STATUS_AWAITING_SEED

        self.court = None
        self.manual_order = None
        self.finished_at = None

    @property
    def sources(self) -> List[Tuple[str, str]]:
        return [s for s in (self.source1, self.source2) if s is not None]

    @property
    def loser_id(self):
        if self.winner_id is None:
            return None
        if self.winner_id == self.entrant1_id:
            return self.entrant2_id
        if self.winner_id == self.entrant2_id:
            return self.entrant1_id
        return None

    def copy_topology(self) -> 'Slot':
        """Fresh slot with the same wiring and no state."""
        slot = Slot(self.id, self.segment, self.round, self.match_number,
                    source1=self.source1, source2=self.source2,
                    best_of=self.best_of, label=self.label)
        slot.winner_target = self.winner_target
        slot.loser_target = self.loser_target
        return slot

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'segment': self.segment,
            'round': self.round,
            'match_number': self.match_number,
            'label': self.label,
            'best_of': self.best_of,
            'source1': list(self.source1) if self.source1 else None,
            'source2': list(self.source2) if self.source2 else None,
            'winner_target': self.winner_target,
            'loser_target': self.loser_target,
            'entrant1_id': self.entrant1_id,
            'entrant2_id': self.entrant2_id,
            'score1': self.score1,
            'score2': self.score2,
            'winner_id': self.winner_id,
            'sub_games': [dict(g) if isinstance(g, dict) else g for g in self.sub_games],
            'status': self.status,
            'court': self.court,
            'manual_order': self.manual_order,
            'finished_at': self.finished_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'Slot':
        if not isinstance(data, dict):
            raise ValueError(f'Match must be a mapping, got {type(data).__name__}')
        if not data.get('id'):
            raise ValueError(f'Match is missing an id: {data!r}')
        source1 = tuple(data['source1']) if data.get('source1') else None
        source2 = tuple(data['source2']) if data.get('source2') else None
        slot = cls(data['id'], data.get('segment', ''), data.get('round', 1),
                   data.get('match_number', 1), source1=source1, source2=source2,
                   best_of=data.get('best_of', 3), label=data.get('label', ''))
        slot.winner_target = data.get('winner_target')
        slot.loser_target = data.get('loser_target')
        slot.entrant1_id = data.get('entrant1_id')
        slot.entrant2_id = data.get('entrant2_id')
        slot.score1 = data.get('score1')
        slot.score2 = data.get('score2')
        slot.winner_id = data.get('winner_id')
        slot.sub_games = list(data.get('sub_games') or [])
        slot.status = data.get('status', STATUS_AWAITING_SEED)
        slot.court = data.get('court')
        slot.manual_order = data.get('manual_order')
        slot.finished_at = data.get('finished_at')
        return slot

    def __eq__(self, other):
        if not isinstance(other, Slot):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"Slot(id={self.id}, entrants=({self.entrant1_id}, {self.entrant2_id}), "
                f"score={self.score1}-{self.score2}, winner={self.winner_id}, status={self.status})")


def slot_to_record(slot: Slot, tournament_id=None) -> Dict:
    """Flatten a slot into the record shape stored by the persistence layer."""
    return {
        'id': slot.id,
        'tournament_id': tournament_id,
        'bracket_type': slot.segment,
        'round_id': slot.round,
        'player1_id': slot.entrant1_id,
        'player2_id': slot.entrant2_id,
        'score1': slot.score1,
        'score2': slot.score2,
        'micro_points': json.dumps(slot.sub_games),
        'winner_id': slot.winner_id,
        'status': slot.status,
        'court': slot.court or '',
        'manual_order': slot.manual_order,
        'finished_at': slot.finished_at,
    }


def slot_from_record(record: Dict) -> Slot:
    """Inverse of slot_to_record. Only state is restored; wiring comes from the blueprint."""
    micro_points = record.get('micro_points')
    if isinstance(micro_points, str):
        try:
            sub_games = json.loads(micro_points) if micro_points else []
        except ValueError:
            sub_games = []
    else:
        sub_games = list(micro_points or [])

    slot = Slot(record['id'], record.get('bracket_type', ''), record.get('round_id', 1))
    slot.entrant1_id = record.get('player1_id')
    slot.entrant2_id = record.get('player2_id')
    slot.score1 = record.get('score1')
    slot.score2 = record.get('score2')
    slot.sub_games = sub_games if isinstance(sub_games, list) else []
    slot.winner_id = record.get('winner_id')
    slot.status = record.get('status') or STATUS_AWAITING_SEED
    slot.court = record.get('court') or None
    slot.manual_order = record.get('manual_order')
    slot.finished_at = record.get('finished_at')
    return slot
