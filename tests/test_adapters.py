"""Tests for the contest data adapters."""

import json
import os
import sys

import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from leaderboard.core.models import WeighIn
from leaderboard.adapters.json_adapter import JsonAdapter
from leaderboard.adapters.tsv_adapter import TsvAdapter


TSV_SHEET = (
    'Name\tDate\tWeight (kg)\tTeam\n'
    'Alice\t2025-01-08\t97.5\tTeam Red 🔥\n'
    'Alice\t2025-01-01\t100\t\n'
    'Bob\t01/01/2025\t120\tTeam Blue\n'
    'Bob\tyesterday\t118\t\n'
    'Bob\t2025-01-08\tn/a\t\n'
    '\t2025-01-08\t80\t\n'
)


@pytest.fixture
def tsv_path(tmp_path):
    path = tmp_path / 'weigh_ins.tsv'
    path.write_text(TSV_SHEET, encoding='utf-8')
    return str(path)


class TestTsvAdapter:
    def test_groups_rows_by_name(self, tsv_path):
        competitors = TsvAdapter().parse(tsv_path)
        assert [c['name'] for c in competitors] == ['Alice', 'Bob']

    def test_first_cheerer_wins(self, tsv_path):
        alice, bob = TsvAdapter().parse(tsv_path)
        assert alice['cheerer'] == 'Team Red 🔥'
        assert bob['cheerer'] == 'Team Blue'

    def test_bad_rows_skipped(self, tsv_path, capsys):
        _, bob = TsvAdapter().parse(tsv_path)
        assert bob['weigh_ins'] == [{'date': '2025-01-01', 'weight': 120.0}]
        out = capsys.readouterr().out
        assert out.count('Warning') == 2

    def test_entries_use_earliest_and_latest(self, tsv_path):
        alice, bob = TsvAdapter().parse_entries(tsv_path)
        assert alice.baseline_weight == 100
        assert alice.current_weight == 97.5
        assert alice.weigh_ins == [WeighIn('2025-01-08', 97.5), WeighIn('2025-01-01', 100)]
        assert bob.baseline_weight == bob.current_weight == 120

    def test_comma_separated(self, tmp_path):
        path = tmp_path / 'sheet.csv'
        path.write_text('competitor,day,kg\nCara,2025-02-01,80 kg\nCara,2025-02-08,79\n',
                        encoding='utf-8')
        (cara,) = TsvAdapter().parse(str(path))
        assert cara['weigh_ins'] == [{'date': '2025-02-01', 'weight': 80.0},
                                     {'date': '2025-02-08', 'weight': 79.0}]

    def test_header_only(self, tmp_path):
        path = tmp_path / 'empty.tsv'
        path.write_text('name\tdate\tweight\n', encoding='utf-8')
        assert TsvAdapter().parse(str(path)) == []


class TestJsonAdapter:
    def test_backup_export(self, tmp_path):
        path = tmp_path / 'backup.json'
        path.write_text(json.dumps({
            'competitors': [{
                'name': 'Alice', 'baselineWeight': 100, 'currentWeight': 92,
                'cheerer': 'Team Red', 'profilePic': 'pic.jpg',
                'weighIns': [{'date': '2025-01-01', 'weight': 100},
                             {'date': '2025-01-08', 'weight': 92}],
                'waApplied': True,
            }],
            'images': {},
            'exportDate': '2025-01-09T00:00:00.000Z',
        }), encoding='utf-8')
        (alice,) = JsonAdapter().parse_entries(str(path))
        assert alice.name == 'Alice'
        assert alice.baseline_weight == 100
        assert alice.profile_pic == 'pic.jpg'
        assert alice.wa_applied is True
        assert len(alice.weigh_ins) == 2

    def test_plain_array_with_snake_case(self, tmp_path):
        path = tmp_path / 'competitors.json'
        path.write_text(json.dumps([
            {'name': 'Bob', 'team': 'Blue',
             'weigh_ins': [{'date': '2025-01-01', 'weight': '120'},
                           {'date': 'soon', 'weight': 110}]},
            {'name': '', 'weigh_ins': []},
            'junk',
        ]), encoding='utf-8')
        (bob,) = JsonAdapter().parse(str(path))
        assert bob['cheerer'] == 'Blue'
        assert bob['weigh_ins'] == [{'date': '2025-01-01', 'weight': 120.0}]
        assert bob['baseline_weight'] is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            JsonAdapter().parse(str(tmp_path / 'missing.json'))
