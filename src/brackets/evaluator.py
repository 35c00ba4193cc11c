"""
Bracket state evaluation.

evaluate() derives the whole tournament from the entrant list and a sparse
map of recorded results, keyed by slot id. Each override is a dict with any of:

- score1, score2: games won by each side
- sub_games: list of per-game point records, stored as given
- winner_id: explicit winner, otherwise taken from the scores
- status: caller's view of the status, kept but never trusted
- court, manual_order: scheduling data, passed through
- finished_at: completion marker, kept while the slot stays decided

Nothing is stored between calls. A retracted result disappears from the
overrides and every slot that depended on it simply fails to resolve.
"""
import logging
import math
from typing import Dict, List, Optional

from .blueprint import build_blueprint, index_slots
from .models import (
    Entrant, Slot, WINNERS, GRAND_FINAL, CONSOLATION, WINNER, LOSER,
    STATUS_AWAITING_SEED, STATUS_READY, STATUS_IN_PROGRESS, STATUS_DECIDED,
    is_placement_segment, placement_place,
)
from .seeding import rank_entrants, seed_first_round

logger = logging.getLogger(__name__)


def get_best_of(segment: str) -> int:
    """Best-of-5 for the winners bracket and grand final, best-of-3 elsewhere."""
    if segment in (WINNERS, GRAND_FINAL):
        return 5
    return 3


def win_threshold(best_of: int) -> int:
    """Games needed to take a best-of-N match."""
    if best_of < 1:
        raise ValueError(f'best_of must be positive, got {best_of}')
    return math.ceil(best_of / 2)


def _coerce_score(value) -> int:
    """Games won as a non-negative int; anything unusable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        score = int(value)
    except (TypeError, ValueError, OverflowError):
        logger.debug('Ignoring non-numeric score %r', value)
        return 0
    if score < 0:
        logger.debug('Ignoring negative score %r', value)
        return 0
    return score


def is_match_finished(score1, score2, best_of: int) -> bool:
    threshold = win_threshold(best_of)
    return _coerce_score(score1) >= threshold or _coerce_score(score2) >= threshold


def _has_scores(override: Optional[Dict]) -> bool:
    return bool(override) and (override.get('score1') is not None or override.get('score2') is not None)


def _manual_order_value(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        key = float(value)
    except (TypeError, ValueError):
        return None
    return key if math.isfinite(key) else None


def _first_queue_key(overrides: Dict[str, Dict]) -> int:
    """Auto-assigned ordering keys start after the largest key already in use."""
    keys = [_manual_order_value(o.get('manual_order')) for o in overrides.values() if isinstance(o, dict)]
    keys = [k for k in keys if k is not None]
    return int(math.floor(max(keys))) + 1 if keys else 1


def _resolve_source(source, slots: List[Slot], index: Dict[str, int]):
    """Entrant id a source reference points at, or None while undecided."""
    if source is None:
        return None
    source_id, kind = source
    position = index.get(source_id)
    if position is None:
        logger.debug('Unresolvable source slot %r', source_id)
        return None
    src = slots[position]
    if src.winner_id is None:
        return None
    if kind == WINNER:
        return src.winner_id
    if kind == LOSER:
        return src.loser_id
    return None


def score_winner(slot: Slot):
    """Occupant whose score reaches the threshold, or None."""
    threshold = win_threshold(slot.best_of)
    if _coerce_score(slot.score1) >= threshold:
        return slot.entrant1_id
    if _coerce_score(slot.score2) >= threshold:
        return slot.entrant2_id
    return None


def _apply_result(slot: Slot, override: Dict) -> None:
    slot.score1 = _coerce_score(override.get('score1'))
    slot.score2 = _coerce_score(override.get('score2'))
    sub_games = override.get('sub_games')
    slot.sub_games = list(sub_games) if isinstance(sub_games, (list, tuple)) else []

    winner_id = override.get('winner_id')
    if winner_id is None or winner_id == '':
        winner_id = score_winner(slot)
    slot.winner_id = winner_id
    slot.status = STATUS_DECIDED if winner_id is not None else STATUS_IN_PROGRESS


def evaluate(entrants: List[Entrant], overrides: Optional[Dict[str, Dict]] = None) -> List[Slot]:
    """
    Derive the full, consistent match list from entrants and recorded results.

    Args:
        entrants: Entrant objects, any order, at most 32
        overrides: slot id -> partial result (see module docstring); never mutated

    Returns:
        Every slot of the bracket, in processing order (winners, losers,
        grand final, consolation final, placement ladders)
    """
    if overrides is None:
        overrides = {}

    seeds = rank_entrants(entrants)
    by_entrant = {e.id: e for e in seeds}

    slots = build_blueprint()
    index = index_slots(slots)
    seed_first_round(slots, seeds)

    next_queue_key = _first_queue_key(overrides)

    for slot in slots:
        if slot.source1 is not None:
            slot.entrant1_id = _resolve_source(slot.source1, slots, index)
        if slot.source2 is not None:
            slot.entrant2_id = _resolve_source(slot.source2, slots, index)

        override = overrides.get(slot.id)
        if not isinstance(override, dict):
            override = {}

        entrant1 = by_entrant.get(slot.entrant1_id)
        entrant2 = by_entrant.get(slot.entrant2_id)
        both_present = slot.entrant1_id is not None and slot.entrant2_id is not None
        bye1 = entrant1 is not None and entrant1.is_placeholder
        bye2 = entrant2 is not None and entrant2.is_placeholder

        if both_present and (bye1 or bye2):
            if bye1 and bye2:
                slot.status = STATUS_AWAITING_SEED
            else:
                slot.winner_id = slot.entrant2_id if bye1 else slot.entrant1_id
                slot.score1 = 0 if bye1 else 1
                slot.score2 = 1 if bye1 else 0
                slot.status = STATUS_DECIDED
        elif both_present and _has_scores(override):
            _apply_result(slot, override)
        else:
            slot.status = STATUS_READY if both_present else STATUS_AWAITING_SEED

        slot.court = override.get('court')
        slot.manual_order = override.get('manual_order')
        if slot.status == STATUS_DECIDED:
            slot.finished_at = override.get('finished_at')
        if slot.status == STATUS_READY and slot.manual_order is None:
            slot.manual_order = next_queue_key
            next_queue_key += 1

    return slots


def generate_bracket(entrants: List[Entrant]) -> List[Slot]:
    """Fresh bracket with only seeding and BYEs applied."""
    return evaluate(entrants, {})


def can_edit_match(slot: Slot, entrants: List[Entrant]) -> bool:
    """Whether a result can be entered: two real entrants on the slot."""
    if slot.entrant1_id is None or slot.entrant2_id is None:
        return False
    placeholders = {e.id for e in rank_entrants(entrants) if e.is_placeholder}
    return slot.entrant1_id not in placeholders and slot.entrant2_id not in placeholders


def final_placements(slots: List[Slot]) -> Dict[int, object]:
    """
    Places decided so far, read from decided finals.

    Returns:
        place -> entrant id, e.g. {1: 'player-3', 2: 'player-9', 3: ...}
    """
    placements = {}
    for slot in slots:
        if slot.status != STATUS_DECIDED or slot.winner_id is None:
            continue
        if slot.segment == GRAND_FINAL:
            best = 1
        elif slot.segment == CONSOLATION:
            best = 3
        elif is_placement_segment(slot.segment) and slot.id == f'{slot.segment}-f':
            best = placement_place(slot.segment)
        else:
            continue
        placements[best] = slot.winner_id
        if slot.loser_id is not None:
            placements[best + 1] = slot.loser_id
    return dict(sorted(placements.items()))
