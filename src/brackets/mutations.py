"""
Result entry and retraction.

Both operations rebuild the override map from the current match list,
apply the change and re-evaluate the whole bracket.
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from .evaluator import evaluate, score_winner
from .models import Entrant, Slot, STATUS_DECIDED, STATUS_IN_PROGRESS

SlotLike = Union[Slot, Dict]


def _as_slot(item: SlotLike) -> Slot:
    return item if isinstance(item, Slot) else Slot.from_dict(item)


def _schedule_fields(slot: Slot) -> Dict:
    return {
        'court': slot.court,
        'manual_order': slot.manual_order,
        'finished_at': slot.finished_at,
    }


def _explicit_winner(slot: Slot):
    """The winner, unless the scores already name it; those are re-derived on every evaluation."""
    if slot.winner_id is None or slot.winner_id == score_winner(slot):
        return None
    return slot.winner_id


def _result_fields(slot: Slot) -> Dict:
    return {
        'score1': slot.score1,
        'score2': slot.score2,
        'sub_games': list(slot.sub_games),
        'winner_id': _explicit_winner(slot),
        'status': slot.status,
    }


def overrides_from_slots(slots: List[SlotLike], exclude: Optional[str] = None) -> Dict[str, Dict]:
    """
    Collect the override map that reproduces the given match list.

    Slots with scores keep their result, winner and status; slots with a
    court or manual ordering key keep that scheduling data. For the slot id
    given as ``exclude`` only the scheduling data is kept.
    """
    overrides = {}
    for item in slots:
        slot = _as_slot(item)
        has_result = slot.score1 is not None or slot.score2 is not None
        has_schedule = bool(slot.court) or slot.manual_order is not None

        if slot.id == exclude:
            if has_schedule:
                entry = _schedule_fields(slot)
                entry['finished_at'] = None
                overrides[slot.id] = entry
            continue

        if has_result or has_schedule:
            entry = _schedule_fields(slot)
            if has_result:
                entry.update(_result_fields(slot))
            overrides[slot.id] = entry
    return overrides


def _find(slots: List[Slot], slot_id: str) -> Optional[Slot]:
    for slot in slots:
        if slot.id == slot_id:
            return slot
    return None


def record_result(current: List[SlotLike], slot_id: str, score1, score2,
                  sub_games: Optional[List] = None, entrants: Optional[List[Entrant]] = None,
                  winner_id=None, status: str = STATUS_IN_PROGRESS,
                  finished_at: Optional[str] = None) -> List[Slot]:
    """
    Record a (possibly partial) result and re-evaluate the bracket.

    Args:
        current: the match list from the previous evaluation
        slot_id: slot receiving the result
        score1, score2: games won by each side
        sub_games: per-game point records, stored as given
        entrants: the entrant list the bracket was built from
        winner_id: explicit winner; derived from the scores when None
        status: caller's status, kept on the override only
        finished_at: completion marker used when the slot ends up decided,
            defaults to the current UTC time

    Returns:
        The re-evaluated match list. The target slot carries a completion
        marker when decided and none otherwise.
    """
    overrides = overrides_from_slots(current)
    entry = dict(overrides.get(slot_id, {}))
    entry.update({
        'score1': score1,
        'score2': score2,
        'sub_games': list(sub_games or []),
        'winner_id': winner_id,
        'status': status,
        'finished_at': None,
    })
    overrides[slot_id] = entry

    slots = evaluate(entrants or [], overrides)
    slot = _find(slots, slot_id)
    if slot is not None and slot.status == STATUS_DECIDED:
        slot.finished_at = finished_at or datetime.now(timezone.utc).isoformat()
    return slots


def clear_result(current: List[SlotLike], slot_id: str,
                 entrants: Optional[List[Entrant]] = None) -> List[Slot]:
    """
    Retract the result of one slot and re-evaluate the bracket.

    Everything downstream of the slot is retracted with it: those slots
    were fed by the cleared winner and no longer resolve.
    """
    overrides = overrides_from_slots(current, exclude=slot_id)
    return evaluate(entrants or [], overrides)
