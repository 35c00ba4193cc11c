"""
Seeding: rank entrants, pad the field with BYEs and place seeds into
Winners Round 1.
"""
import math
from typing import List

from .models import Entrant, Slot, WINNERS

FIELD_SIZE = 32

# Winners R1 slot k (1-indexed) plays SEEDING_PAIRS[k - 1]
SEEDING_PAIRS = [
    (1, 32),
    (16, 17),
    (9, 24),
    (8, 25),
    (5, 28),
    (12, 21),
    (13, 20),
    (4, 29),
    (3, 30),
    (14, 19),
    (11, 22),
    (6, 27),
    (7, 26),
    (10, 23),
    (15, 18),
    (2, 31),
]


def _ranking_value(entrant: Entrant) -> float:
    """Numeric ranking; anything unparseable ranks as 0."""
    value = entrant.ranking
    if isinstance(value, bool) or value is None:
        return 0
    try:
        ranking = float(value)
    except (TypeError, ValueError):
        return 0
    return ranking if math.isfinite(ranking) else 0


def rank_entrants(entrants: List[Entrant]) -> List[Entrant]:
    """
    Return the full seed list of FIELD_SIZE entrants.

    Entrants are ordered by ranking (highest first), ties broken by name,
    and the tail is padded with BYE placeholders. Seed n is seeds[n - 1].

    Raises:
        ValueError: more entrants than the bracket holds
    """
    if len(entrants) > FIELD_SIZE:
        raise ValueError(f'Bracket holds {FIELD_SIZE} entrants, got {len(entrants)}')

    seeds = sorted(entrants, key=lambda e: (-_ranking_value(e), str(e.name or '')))
    while len(seeds) < FIELD_SIZE:
        seeds.append(Entrant.placeholder(len(seeds)))
    return seeds


def seed_first_round(slots: List[Slot], seeds: List[Entrant]) -> None:
    """Place seeds into the Winners Round 1 slots, in slot order."""
    first_round = [s for s in slots if s.segment == WINNERS and s.round == 1]
    first_round.sort(key=lambda s: s.match_number)
    for slot, (seed1, seed2) in zip(first_round, SEEDING_PAIRS):
        slot.entrant1_id = seeds[seed1 - 1].id
        slot.entrant2_id = seeds[seed2 - 1].id
