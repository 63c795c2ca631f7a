"""
Tests for converting sessions to and from plain records.
"""

import json

import pytest

from go_board import BLACK, WHITE
from go_errors import CorruptRecordError
from go_game import GameSession, MoveRecord, deserialize, serialize


class TestSerialize:

    @pytest.mark.unit
    def test_record_layout(self, played_capture_game):
        record = serialize(played_capture_game)
        assert set(record) == {'board', 'turn', 'moveNumber', 'passCount', 'gameOver',
                               'moveList', 'captures'}
        assert record['turn'] == 'white'
        assert record['moveNumber'] == 8
        assert record['passCount'] == 0
        assert record['gameOver'] is False
        assert record['moveList'][0] == {'moveNumber': 1, 'player': 'black', 'coord': 'C4'}
        assert record['captures'] == {'black': 1, 'white': 0}
        assert record['board'][1][2] == [1, 1]

    @pytest.mark.unit
    def test_record_is_json_serializable(self, played_capture_game):
        record = serialize(played_capture_game)
        assert json.loads(json.dumps(record)) == record


class TestRoundTrip:

    @pytest.mark.unit
    def test_empty_session(self):
        session = GameSession(9)
        assert deserialize(serialize(session)) == session

    @pytest.mark.unit
    def test_session_with_captures_and_passes(self, played_capture_game):
        session = played_capture_game
        session.pass_turn()
        restored = deserialize(json.loads(json.dumps(serialize(session))))
        assert restored == session
        assert restored.turn == BLACK
        assert restored.pass_count == 1
        assert restored.move_list[-1] == MoveRecord(7, BLACK, (2, 3))
        # Undo history is not part of the record
        assert restored.history == []

    @pytest.mark.unit
    def test_finished_game(self, empty_session_9x9):
        session = empty_session_9x9
        session.play((4, 4))
        session.pass_turn()
        session.pass_turn()
        restored = deserialize(serialize(session))
        assert restored == session
        assert restored.game_over

    @pytest.mark.unit
    def test_restored_session_keeps_playing(self, played_capture_game):
        restored = deserialize(serialize(played_capture_game))
        restored.play((4, 4))
        assert restored.board.cell(4, 4).move_number == 8
        assert restored.turn == BLACK


class TestDeserializeValidation:

    @pytest.fixture
    def record(self, played_capture_game):
        return serialize(played_capture_game)

    @pytest.mark.unit
    @pytest.mark.parametrize("key", ['board', 'turn', 'moveNumber'])
    def test_required_fields(self, record, key):
        del record[key]
        with pytest.raises(CorruptRecordError) as exc_info:
            deserialize(record)
        assert key in exc_info.value.context['missing']

    @pytest.mark.unit
    def test_optional_fields_default(self, record):
        for key in ('passCount', 'gameOver', 'moveList', 'captures'):
            del record[key]
        session = deserialize(record)
        assert session.pass_count == 0
        assert not session.game_over
        assert session.move_list == []
        assert session.captures == {BLACK: 0, WHITE: 0}

    @pytest.mark.unit
    def test_legacy_move_num_key(self, record):
        record['moveNum'] = record.pop('moveNumber')
        assert deserialize(record).move_number == 8

    @pytest.mark.unit
    def test_integer_turn_is_accepted(self, record):
        record['turn'] = 2
        assert deserialize(record).turn == WHITE

    @pytest.mark.unit
    @pytest.mark.parametrize("key,value", [
        ('turn', 'purple'),
        ('turn', 0),
        ('moveNumber', 0),
        ('moveNumber', '8'),
        ('moveNumber', 2**40),
        ('passCount', 3),
        ('passCount', -1),
        ('gameOver', 'yes'),
        ('gameOver', True),
        ('passCount', 2),
        ('board', [[[0, 0]]]),
        ('board', 'board'),
        ('moveList', [{'moveNumber': 1, 'player': 'black'}]),
        ('moveList', [{'moveNumber': 1, 'player': 'black', 'coord': 'Z9'}]),
        ('moveList', ['C4']),
        ('moveList', [{'moveNumber': 2**40, 'player': 'black', 'coord': 'A1'}]),
        ('captures', {'black': -1}),
        ('captures', [1, 2]),
    ])
    def test_invalid_values(self, record, key, value):
        record[key] = value
        with pytest.raises(CorruptRecordError):
            deserialize(record)

    @pytest.mark.unit
    @pytest.mark.parametrize("record", [None, [], 'game'])
    def test_non_mapping_record(self, record):
        with pytest.raises(CorruptRecordError):
            deserialize(record)

    @pytest.mark.unit
    def test_cell_move_number_too_large_for_board(self, record):
        record['board'][0][0] = [1, 2**40]
        with pytest.raises(CorruptRecordError):
            deserialize(record)

    @pytest.mark.unit
    def test_finished_game_needs_both_flags(self, record):
        record['passCount'] = 2
        record['gameOver'] = True
        assert deserialize(record).game_over
