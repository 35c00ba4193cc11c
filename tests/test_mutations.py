"""
Tests for recording and clearing results.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.evaluator import evaluate, generate_bracket
from brackets.mutations import record_result, clear_result, overrides_from_slots
from brackets.models import STATUS_READY, STATUS_IN_PROGRESS, STATUS_DECIDED, STATUS_AWAITING_SEED
from conftest import find, play_out

STAMP = '2026-10-17T09:30:00+00:00'


class TestRecordResult:
    """Tests for record_result."""

    def test_decisive_result(self, entrants_32):
        """A winning score decides the slot and stamps it."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 3, 1, [], entrants_32)
        m1 = find(slots, 'wb-r1-m1')
        assert m1.status == STATUS_DECIDED
        assert m1.winner_id == 'player-1'
        assert m1.finished_at is not None

    def test_given_finished_at(self, entrants_32):
        """An explicit completion marker is used as given."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 3, 1, [], entrants_32,
                              finished_at=STAMP)
        assert find(slots, 'wb-r1-m1').finished_at == STAMP

    def test_partial_result(self, entrants_32):
        """A partial score leaves the slot in progress without a marker."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 2, 1, [], entrants_32,
                              finished_at=STAMP)
        m1 = find(slots, 'wb-r1-m1')
        assert m1.status == STATUS_IN_PROGRESS
        assert m1.winner_id is None
        assert m1.finished_at is None

    def test_sub_games_stored(self, entrants_32):
        """Per-game points survive the round trip through overrides."""
        games = [{'game': 1, 'a': 11, 'b': 7}, {'game': 2, 'a': 11, 'b': 9}]
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 2, 0, games, entrants_32)
        slots = record_result(slots, 'wb-r1-m2', 3, 0, [], entrants_32)
        assert find(slots, 'wb-r1-m1').sub_games == games

    def test_previous_results_kept(self, entrants_32):
        """Recording one slot keeps every other result."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 3, 0, [], entrants_32,
                              finished_at=STAMP)
        slots = record_result(slots, 'wb-r1-m2', 1, 3, [], entrants_32)
        assert find(slots, 'wb-r1-m1').finished_at == STAMP
        r2 = find(slots, 'wb-r2-m1')
        assert (r2.entrant1_id, r2.entrant2_id) == ('player-1', 'player-17')
        assert r2.status == STATUS_READY

    def test_schedule_kept(self, entrants_32):
        """The slot keeps its court and queue position when a result arrives."""
        slots = evaluate(entrants_32, {'wb-r1-m1': {'court': 'Court 3', 'manual_order': 7}})
        slots = record_result(slots, 'wb-r1-m1', 1, 0, [], entrants_32)
        m1 = find(slots, 'wb-r1-m1')
        assert (m1.court, m1.manual_order) == ('Court 3', 7)

    def test_correction_rederives_downstream_winner(self, entrants_32):
        """Correcting an early result re-derives later winners from their scores."""
        slots = generate_bracket(entrants_32)
        for slot_id in ('wb-r1-m1', 'wb-r1-m2', 'wb-r2-m1'):
            slots = record_result(slots, slot_id, 3, 0, [], entrants_32)
        assert find(slots, 'wb-r2-m1').winner_id == 'player-1'

        slots = record_result(slots, 'wb-r1-m1', 0, 3, [], entrants_32)
        r2 = find(slots, 'wb-r2-m1')
        assert (r2.entrant1_id, r2.entrant2_id) == ('player-32', 'player-16')
        assert r2.winner_id == 'player-32'
        assert find(slots, 'lb-r2-m8').entrant2_id == 'player-16'
        assert find(slots, 'lb-r1-m1').entrant1_id == 'player-1'

    def test_explicit_winner_survives_rescan(self, entrants_32):
        """A winner the scores do not give is kept across later records."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 1, 1, [], entrants_32,
                              winner_id='player-32')
        slots = record_result(slots, 'wb-r1-m2', 3, 0, [], entrants_32)
        assert find(slots, 'wb-r1-m1').winner_id == 'player-32'
        assert overrides_from_slots(slots)['wb-r1-m1']['winner_id'] == 'player-32'
        assert overrides_from_slots(slots)['wb-r1-m2']['winner_id'] is None

    def test_correcting_a_result(self, entrants_32):
        """Re-recording replaces the previous score and re-derives the winner."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 3, 0, [], entrants_32)
        slots = record_result(slots, 'wb-r1-m1', 1, 3, [], entrants_32)
        assert find(slots, 'wb-r1-m1').winner_id == 'player-32'
        assert find(slots, 'lb-r1-m1').entrant1_id == 'player-1'

    def test_explicit_winner(self, entrants_32):
        """A caller-given winner wins regardless of score."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 0, 0, [], entrants_32,
                              winner_id='player-32')
        assert find(slots, 'wb-r1-m1').winner_id == 'player-32'

    def test_accepts_dicts(self, entrants_32):
        """The current match list may be plain dicts (e.g. from JSON)."""
        current = [s.to_dict() for s in generate_bracket(entrants_32)]
        slots = record_result(current, 'wb-r1-m1', 3, 0, [], entrants_32)
        assert find(slots, 'wb-r1-m1').status == STATUS_DECIDED


class TestClearResult:
    """Tests for clear_result."""

    def test_clear_restores_ready(self, entrants_32):
        """Clearing a result puts the slot back to ready."""
        slots = record_result(generate_bracket(entrants_32), 'wb-r1-m1', 3, 0, [], entrants_32)
        slots = clear_result(slots, 'wb-r1-m1', entrants_32)
        m1 = find(slots, 'wb-r1-m1')
        assert m1.status == STATUS_READY
        assert m1.score1 is None
        assert m1.winner_id is None
        assert m1.finished_at is None
        assert m1.sub_games == []

    def test_record_then_clear_is_identity(self, entrants_32):
        """Recording then clearing gives back the original list."""
        original = generate_bracket(entrants_32)
        slots = record_result(original, 'wb-r1-m1', 3, 0, [{'a': 11, 'b': 3}], entrants_32)
        assert clear_result(slots, 'wb-r1-m1', entrants_32) == original

    def test_clear_keeps_schedule(self, entrants_32):
        """Court and queue position survive the retraction."""
        slots = evaluate(entrants_32, {'wb-r1-m4': {'court': 'Court 1', 'manual_order': 50}})
        slots = record_result(slots, 'wb-r1-m4', 3, 0, [], entrants_32)
        slots = clear_result(slots, 'wb-r1-m4', entrants_32)
        m4 = find(slots, 'wb-r1-m4')
        assert (m4.court, m4.manual_order) == ('Court 1', 50)

    def test_retraction_cascades(self, entrants_32):
        """Clearing an early result retracts everything fed by it."""
        slots = generate_bracket(entrants_32)
        for slot_id in ('wb-r1-m1', 'wb-r1-m2', 'wb-r1-m15', 'wb-r1-m16'):
            slots = record_result(slots, slot_id, 3, 0, [], entrants_32)
        slots = record_result(slots, 'wb-r2-m1', 3, 2, [], entrants_32)
        slots = record_result(slots, 'lb-r1-m1', 2, 0, [], entrants_32)

        slots = clear_result(slots, 'wb-r1-m1', entrants_32)
        r2 = find(slots, 'wb-r2-m1')
        assert r2.entrant1_id is None
        assert r2.status == STATUS_AWAITING_SEED
        assert r2.winner_id is None
        assert r2.score1 is None
        lb = find(slots, 'lb-r1-m1')
        assert lb.entrant1_id is None
        assert lb.winner_id is None
        assert find(slots, 'wb-r1-m2').winner_id == 'player-16'

    def test_clear_unplayed_slot(self, entrants_32):
        """Clearing a slot without a result changes nothing."""
        original = generate_bracket(entrants_32)
        assert clear_result(original, 'wb-r1-m3', entrants_32) == original

    def test_clear_whole_bracket(self, entrants_32):
        """Clearing the first match of a finished bracket unwinds its whole path."""
        slots, _ = play_out(entrants_32)
        slots = clear_result(slots, 'wb-r1-m1', entrants_32)
        assert find(slots, 'gf-m1').status == STATUS_AWAITING_SEED
        assert find(slots, 'wb-r1-m2').status == STATUS_DECIDED


class TestOverridesFromSlots:
    """Tests for overrides_from_slots."""

    def test_fresh_bracket(self, entrants_32):
        """Only the queued first-round slots carry data."""
        overrides = overrides_from_slots(generate_bracket(entrants_32))
        assert sorted(overrides) == sorted(f'wb-r1-m{n}' for n in range(1, 17))
        assert overrides['wb-r1-m1'] == {'court': None, 'manual_order': 1, 'finished_at': None}

    def test_reproduces_evaluation(self, entrants_32):
        """Evaluating the collected overrides gives the same list."""
        slots = evaluate(entrants_32, {
            'wb-r1-m1': {'score1': 3, 'score2': 0, 'finished_at': STAMP},
            'wb-r1-m2': {'score1': 1, 'score2': 1, 'court': 'Court 4'},
        })
        assert evaluate(entrants_32, overrides_from_slots(slots)) == slots

    def test_exclude_keeps_schedule_only(self, entrants_32):
        """The excluded slot keeps court and order, nothing else."""
        slots = evaluate(entrants_32, {
            'wb-r1-m1': {'score1': 3, 'score2': 0, 'court': 'Court 1', 'manual_order': 9},
        })
        overrides = overrides_from_slots(slots, exclude='wb-r1-m1')
        assert overrides['wb-r1-m1'] == {'court': 'Court 1', 'manual_order': 9, 'finished_at': None}

    def test_plain_dicts(self):
        """Dict input is accepted."""
        overrides = overrides_from_slots([
            {'id': 'wb-r1-m1', 'score1': 3, 'score2': 1, 'winner_id': 'a', 'status': 'decided'},
            {'id': 'wb-r1-m2'},
        ])
        assert list(overrides) == ['wb-r1-m1']
        assert overrides['wb-r1-m1']['winner_id'] == 'a'

    def test_rejects_bad_items(self):
        """Entries without an id are a caller error."""
        with pytest.raises(ValueError):
            overrides_from_slots([{'score1': 1}])
