"""
Static topology of the 32-entrant double elimination bracket.

Layout:
- Winners Bracket (wb): 5 rounds, 16 -> 8 -> 4 -> 2 -> 1 matches
- Losers Bracket (lb): 7 rounds, 8 -> 8 -> 4 -> 4 -> 2 -> 2 -> 1 matches
- Grand Final (gf): Winners champion vs Losers champion
- Consolation Final (cf): Winners Final loser vs Losers Final loser (3rd/4th)
- Placement ladders for 5th-32nd, fed by eliminated entrants

The drop patterns between winners and losers bracket are rules of this
format and are kept as lookup tables below.
"""
from typing import Dict, List, Optional, Tuple

from .models import (
    Slot, WINNERS, LOSERS, GRAND_FINAL, CONSOLATION, PLACEMENT_RANGES,
    WINNER, LOSER, is_placement_segment, placement_place,
)

BRACKET_SIZE = 32
WINNERS_ROUNDS = 5
LOSERS_ROUNDS = 7

GRAND_FINAL_ID = 'gf-m1'
CONSOLATION_ID = 'cf-m1'

# Losers R1 slot i <- losers of Winners R1 slots (i, 17 - i)
LOSERS_R1_PAIRS = [(1, 16), (2, 15), (3, 14), (4, 13), (5, 12), (6, 11), (7, 10), (8, 9)]

# Losers R2 slot i <- loser of Winners R2 slot LOSERS_R2_DROPS[i - 1]
LOSERS_R2_DROPS = [8, 7, 6, 5, 4, 3, 2, 1]

# Losers R4 slot i <- loser of Winners R3 slot LOSERS_R4_DROPS[i - 1]
LOSERS_R4_DROPS = [3, 4, 1, 2]

# Losers R6 slot i <- loser of Winners R4 slot LOSERS_R6_DROPS[i - 1]
LOSERS_R6_DROPS = [1, 2]

SEGMENT_PRIORITY = {WINNERS: 10, LOSERS: 20, GRAND_FINAL: 90, CONSOLATION: 95}


def get_winners_round_name(teams_in_round: int) -> str:
    """Get the name for a winners bracket round."""
    if teams_in_round == 2:
        return "Winners Final"
    elif teams_in_round == 4:
        return "Winners Semifinal"
    elif teams_in_round == 8:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round of {teams_in_round}"


def get_losers_round_name(round_num: int, total_losers_rounds: int = LOSERS_ROUNDS) -> str:
    """Get the name for a losers bracket round (1-indexed)."""
    rounds_from_end = total_losers_rounds - round_num
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num}"


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')
    return f"{n}{suffix}"


def get_placement_round_name(segment: str, round_num: int, is_final: bool = False) -> str:
    """Get the name for a placement ladder round, e.g. 'Places 17-24 Round 1'."""
    first, last = PLACEMENT_RANGES[segment]
    if is_final:
        return f"Match for {_ordinal(first)} Place"
    return f"Places {first}-{last} Round {round_num}"


def _pair(round_slots: List[str], i: int) -> Tuple[str, str]:
    """Source ids for a pairwise merge: slot i takes slots 2i-1 and 2i."""
    return round_slots[2 * i - 2], round_slots[2 * i - 1]


def _winners_bracket() -> List[Slot]:
    slots = []
    for round_num in range(1, WINNERS_ROUNDS + 1):
        num_matches = BRACKET_SIZE >> round_num
        label = get_winners_round_name(num_matches * 2)
        for n in range(1, num_matches + 1):
            source1 = source2 = None
            if round_num > 1:
                source1 = (f'wb-r{round_num - 1}-m{2 * n - 1}', WINNER)
                source2 = (f'wb-r{round_num - 1}-m{2 * n}', WINNER)
            slots.append(Slot(f'wb-r{round_num}-m{n}', WINNERS, round_num, n,
                              source1=source1, source2=source2, best_of=5, label=label))
    return slots


def _losers_bracket() -> List[Slot]:
    """
    Losers bracket alternates between drop-in rounds and merge rounds:
    - R1: Winners R1 losers, cross paired
    - R2, R4, R6: previous losers round winners vs dropped Winners bracket losers
    - R3, R5, R7: winners of the previous losers round pair off
    """
    slots = []

    def add(round_num, n, source1, source2):
        slots.append(Slot(f'lb-r{round_num}-m{n}', LOSERS, round_num, n,
                          source1=source1, source2=source2, best_of=3,
                          label=get_losers_round_name(round_num)))

    for n, (a, b) in enumerate(LOSERS_R1_PAIRS, start=1):
        add(1, n, (f'wb-r1-m{a}', LOSER), (f'wb-r1-m{b}', LOSER))

    for n, wb_match in enumerate(LOSERS_R2_DROPS, start=1):
        add(2, n, (f'lb-r1-m{n}', WINNER), (f'wb-r2-m{wb_match}', LOSER))

    for n in range(1, 5):
        add(3, n, (f'lb-r2-m{2 * n - 1}', WINNER), (f'lb-r2-m{2 * n}', WINNER))

    for n, wb_match in enumerate(LOSERS_R4_DROPS, start=1):
        add(4, n, (f'lb-r3-m{n}', WINNER), (f'wb-r3-m{wb_match}', LOSER))

    for n in range(1, 3):
        add(5, n, (f'lb-r4-m{2 * n - 1}', WINNER), (f'lb-r4-m{2 * n}', WINNER))

    for n, wb_match in enumerate(LOSERS_R6_DROPS, start=1):
        add(6, n, (f'lb-r5-m{n}', WINNER), (f'wb-r4-m{wb_match}', LOSER))

    add(7, 1, ('lb-r6-m1', WINNER), ('lb-r6-m2', WINNER))
    return slots


def _finals() -> List[Slot]:
    return [
        Slot(GRAND_FINAL_ID, GRAND_FINAL, 1, 1,
             source1=('wb-r5-m1', WINNER), source2=('lb-r7-m1', WINNER),
             best_of=5, label="Grand Final"),
        Slot(CONSOLATION_ID, CONSOLATION, 1, 1,
             source1=('wb-r5-m1', LOSER), source2=('lb-r7-m1', LOSER),
             best_of=3, label="Third Place Match"),
    ]


def _placement_final(segment: str, round_num: int, source_ids: Tuple[str, str], kind: str) -> Slot:
    return Slot(f'{segment}-f', segment, round_num, 1,
                source1=(source_ids[0], kind), source2=(source_ids[1], kind),
                best_of=3, label=get_placement_round_name(segment, round_num, is_final=True))


def _four_place_ladder(segment: str, loser_segment: str, feeders: List[str]) -> List[Slot]:
    """Two first-round matches; winners play for the better place, losers for the worse."""
    slots = []
    first_round = []
    for n in range(1, 3):
        slot_id = f'{segment}-r1-m{n}'
        a, b = _pair(feeders, n)
        slots.append(Slot(slot_id, segment, 1, n, source1=(a, LOSER), source2=(b, LOSER),
                          best_of=3, label=get_placement_round_name(segment, 1)))
        first_round.append(slot_id)
    slots.append(_placement_final(segment, 2, (first_round[0], first_round[1]), WINNER))
    slots.append(_placement_final(loser_segment, 2, (first_round[0], first_round[1]), LOSER))
    return slots


def _eight_place_ladder(segment: str, lower_segment: str, final_segments: Tuple[str, str, str, str],
                        feeders: List[str]) -> List[Slot]:
    """
    Eight entrants: 4 -> 2 -> 1 for the upper half, with first-round losers
    running the mirrored ladder for the lower half.

    final_segments: segments of the four finals, best place first
    (e.g. p17, p19, p21, p23 for places 17-24).
    """
    slots = []
    first_round = []
    for n in range(1, 5):
        slot_id = f'{segment}-r1-m{n}'
        a, b = _pair(feeders, n)
        slots.append(Slot(slot_id, segment, 1, n, source1=(a, LOSER), source2=(b, LOSER),
                          best_of=3, label=get_placement_round_name(segment, 1)))
        first_round.append(slot_id)

    upper, lower = [], []
    for n in range(1, 3):
        a, b = _pair(first_round, n)
        upper_id = f'{segment}-r2-m{n}'
        lower_id = f'{lower_segment}-r2-m{n}'
        slots.append(Slot(upper_id, segment, 2, n, source1=(a, WINNER), source2=(b, WINNER),
                          best_of=3, label=get_placement_round_name(segment, 2)))
        slots.append(Slot(lower_id, lower_segment, 2, n, source1=(a, LOSER), source2=(b, LOSER),
                          best_of=3, label=get_placement_round_name(lower_segment, 2)))
        upper.append(upper_id)
        lower.append(lower_id)

    first, second, third, fourth = final_segments
    slots.append(_placement_final(first, 3, (upper[0], upper[1]), WINNER))
    slots.append(_placement_final(second, 3, (upper[0], upper[1]), LOSER))
    slots.append(_placement_final(third, 3, (lower[0], lower[1]), WINNER))
    slots.append(_placement_final(fourth, 3, (lower[0], lower[1]), LOSER))
    return slots


def _placement_brackets() -> List[Slot]:
    wb_r3 = [f'wb-r3-m{n}' for n in range(1, 5)]
    lb_r4 = [f'lb-r4-m{n}' for n in range(1, 5)]
    lb_r3 = [f'lb-r3-m{n}' for n in range(1, 5)]
    lb_r2 = [f'lb-r2-m{n}' for n in range(1, 9)]
    lb_r1 = [f'lb-r1-m{n}' for n in range(1, 9)]

    slots = []
    slots += _four_place_ladder('p5', 'p7', wb_r3)
    slots += _four_place_ladder('p9', 'p11', lb_r4)
    slots += _four_place_ladder('p13', 'p15', lb_r3)
    slots += _eight_place_ladder('p17', 'p21', ('p17', 'p19', 'p21', 'p23'), lb_r2)
    slots += _eight_place_ladder('p25', 'p29', ('p25', 'p27', 'p29', 'p31'), lb_r1)
    return slots


def _segment_rank(segment: str) -> int:
    if segment in SEGMENT_PRIORITY:
        return SEGMENT_PRIORITY[segment]
    if is_placement_segment(segment):
        return 100 + placement_place(segment)
    return 1000


def processing_order(slots: List[Slot]) -> List[Slot]:
    """
    Order slots so that every slot comes after all of its sources:
    winners by round, losers by round, grand final, consolation final,
    then placement segments by the place they decide, by round.
    Blueprint order is kept within a round.
    """
    return sorted(slots, key=lambda s: (_segment_rank(s.segment), s.round))


def index_slots(slots: List[Slot]) -> Dict[str, int]:
    """Map slot id -> position in the list."""
    return {slot.id: i for i, slot in enumerate(slots)}


def _wire_targets(slots: List[Slot]) -> None:
    """Fill winner_target / loser_target from the sources of downstream slots.

    A slot whose loser is consumed twice (Winners R3) keeps the first
    consumer in processing order as its loser target.
    """
    by_id = {slot.id: slot for slot in slots}
    for slot in slots:
        for source_id, kind in slot.sources:
            source = by_id.get(source_id)
            if source is None:
                continue
            if kind == WINNER and source.winner_target is None:
                source.winner_target = slot.id
            elif kind == LOSER and source.loser_target is None:
                source.loser_target = slot.id


def build_blueprint() -> List[Slot]:
    """
    Build the complete, fixed list of match slots in processing order.

    Every slot is inert: no occupants, no scores, status awaiting_seed.
    """
    slots = processing_order(
        _winners_bracket() + _losers_bracket() + _finals() + _placement_brackets()
    )
    _wire_targets(slots)
    return slots


def slot_sort_key(slot_id: str) -> Tuple[int, int, int]:
    """
    Sort key for a bare slot id: segment priority, round, match number.
    Placement finals sort after the rounds of their segment; unknown ids last.
    """
    parts = slot_id.split('-') if isinstance(slot_id, str) else []
    if len(parts) == 2 and parts[1] == 'f' and is_placement_segment(parts[0]):
        return (_segment_rank(parts[0]), 99, 1)
    if len(parts) == 2 and parts[0] in SEGMENT_PRIORITY and parts[1].startswith('m'):
        number = _to_int(parts[1][1:])
        if number is not None:
            return (_segment_rank(parts[0]), 1, number)
    if len(parts) == 3 and parts[1].startswith('r') and parts[2].startswith('m'):
        segment_known = parts[0] in SEGMENT_PRIORITY or is_placement_segment(parts[0])
        round_num = _to_int(parts[1][1:])
        number = _to_int(parts[2][1:])
        if segment_known and round_num is not None and number is not None:
            return (_segment_rank(parts[0]), round_num, number)
    return (10000, 999, 999)


def _to_int(text: str) -> Optional[int]:
    return int(text) if text.isdigit() else None
