"""Tests for the SQLite record store and image handling."""

import base64
import json
import os
import sys

import fitz  # PyMuPDF
import pytest

# Add project root to path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from leaderboard.core.models import CompetitorEntry, WeighIn
from leaderboard.core import record_store
from leaderboard.core.record_store import DEFAULT_PROFILE_PIC, RecordStore
from leaderboard.core.image_tools import compress_image


@pytest.fixture
def store(tmp_path):
    s = RecordStore(str(tmp_path / 'contest.db'))
    s.add_competitor(CompetitorEntry(
        name='Alice', baseline_weight=100, current_weight=100, cheerer='Team Red',
        weigh_ins=[WeighIn('2025-01-01', 100)]))
    s.add_competitor(CompetitorEntry(
        name='Bob', baseline_weight=120, current_weight=120, cheerer='Team Blue'))
    return s


@pytest.fixture
def image_path(tmp_path):
    """An 800x600 RGB PNG."""
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, 800, 600), False)
    pix.clear_with(180)
    path = str(tmp_path / 'photo.png')
    pix.save(path)
    return path


class TestCompetitors:
    def test_creation_order(self, store):
        names = [c.name for c in store.get_all_competitors()]
        assert names == ['Alice', 'Bob']

    def test_duplicate_name_rejected(self, store):
        with pytest.raises(ValueError):
            store.add_competitor(CompetitorEntry(name='Alice', baseline_weight=1,
                                                 current_weight=1))

    def test_save_all_rejects_duplicates(self, store):
        twin = CompetitorEntry(name='Cy', baseline_weight=90, current_weight=90)
        with pytest.raises(ValueError):
            store.save_all_competitors([twin, twin])
        assert [c.name for c in store.get_all_competitors()] == ['Alice', 'Bob']

    def test_unknown_competitor(self, store):
        with pytest.raises(KeyError):
            store.get_competitor('Nobody')
        with pytest.raises(KeyError):
            store.add_weigh_in('Nobody', '2025-01-01', 80)
        with pytest.raises(KeyError):
            store.delete_competitor('Nobody')
        assert len(store.get_all_competitors()) == 2

    def test_rename_moves_weigh_ins(self, store):
        store.update_competitor('Alice', name='Alicia')
        alicia = store.get_competitor('Alicia')
        assert alicia.cheerer == 'Team Red'
        assert alicia.weigh_ins == [WeighIn('2025-01-01', 100)]
        with pytest.raises(KeyError):
            store.get_competitor('Alice')

    def test_empty_update_keeps_values(self, store):
        store.update_competitor('Bob', name='', cheerer='')
        bob = store.get_competitor('Bob')
        assert bob.cheerer == 'Team Blue'

    def test_update_cheerer(self, store):
        store.update_competitor('Bob', cheerer='Team Green')
        assert store.get_competitor('Bob').cheerer == 'Team Green'

    def test_rename_onto_existing_rejected(self, store):
        with pytest.raises(ValueError):
            store.update_competitor('Alice', name='Bob')

    def test_delete_competitor(self, store):
        store.delete_competitor('Alice')
        assert [c.name for c in store.get_all_competitors()] == ['Bob']

    def test_merge_adds_and_skips(self, store):
        report = store.merge_competitors([
            CompetitorEntry(name='Alice', baseline_weight=100, current_weight=95,
                            weigh_ins=[WeighIn('2025-01-01', 100),
                                       WeighIn('2025-01-08', 95)]),
            CompetitorEntry(name='Cara', baseline_weight=80, current_weight=80,
                            weigh_ins=[WeighIn('2025-01-01', 80)]),
        ])
        assert report == {'added_competitors': 1, 'added_weigh_ins': 2,
                          'skipped_weigh_ins': 1}
        assert store.get_competitor('Alice').current_weight == 95
        assert len(store.get_competitor('Cara').weigh_ins) == 1


class TestWeighIns:
    def test_add_sets_current_to_latest_date(self, store):
        store.add_weigh_in('Alice', '2025-01-15', 94)
        store.add_weigh_in('Alice', '2025-01-08', 97)
        alice = store.get_competitor('Alice')
        assert alice.current_weight == 94
        # Insertion order is kept
        assert [w.date for w in alice.weigh_ins] == ['2025-01-01', '2025-01-15', '2025-01-08']

    def test_update_weigh_in(self, store):
        store.add_weigh_in('Alice', '2025-01-08', 97)
        store.update_weigh_in('Alice', '2025-01-08', '2025-01-09', 96)
        alice = store.get_competitor('Alice')
        assert WeighIn('2025-01-09', 96) in alice.weigh_ins
        assert alice.current_weight == 96

    def test_delete_first_match_only(self, store):
        store.add_weigh_in('Alice', '2025-01-08', 97)
        store.add_weigh_in('Alice', '2025-01-08', 96)
        store.delete_weigh_in('Alice', '2025-01-08')
        dates = [(w.date, w.weight) for w in store.get_competitor('Alice').weigh_ins]
        assert dates == [('2025-01-01', 100), ('2025-01-08', 96)]

    def test_delete_with_weight(self, store):
        store.add_weigh_in('Alice', '2025-01-08', 97)
        store.add_weigh_in('Alice', '2025-01-08', 96)
        store.delete_weigh_in('Alice', '2025-01-08', 96)
        dates = [(w.date, w.weight) for w in store.get_competitor('Alice').weigh_ins]
        assert dates == [('2025-01-01', 100), ('2025-01-08', 97)]

    def test_delete_last_falls_back_to_baseline(self, store):
        store.delete_weigh_in('Alice', '2025-01-01')
        alice = store.get_competitor('Alice')
        assert alice.weigh_ins == []
        assert alice.current_weight == alice.baseline_weight == 100


class TestExportImport:
    def test_round_trip(self, store, tmp_path):
        store.add_weigh_in('Alice', '2025-01-08', 95)
        exported = store.export_data()
        data = json.loads(exported)
        assert set(data) == {'competitors', 'images', 'exportDate'}
        assert data['competitors'][0]['weighIns'][1] == {'date': '2025-01-08', 'weight': 95}

        other = RecordStore(str(tmp_path / 'other.db'))
        other.import_data(exported)
        assert other.get_all_competitors() == store.get_all_competitors()

    def test_import_replaces_competitors(self, store):
        store.import_data(json.dumps({'competitors': [
            {'name': 'Zoe', 'baselineWeight': 70, 'currentWeight': 68,
             'cheerer': 'Team Z', 'profilePic': '',
             'weighIns': [{'date': '2025-01-01', 'weight': 70}]},
        ]}))
        assert [c.name for c in store.get_all_competitors()] == ['Zoe']

    @pytest.mark.parametrize('payload', ['not json', '[1, 2]',
                                         '{"competitors": [{"weighIns": []}]}',
                                         '{"competitors": [{"name": "A"}, {"name": "A"}]}'])
    def test_invalid_payload(self, store, payload):
        with pytest.raises(ValueError, match='Invalid data format'):
            store.import_data(payload)
        assert len(store.get_all_competitors()) == 2

    def test_clear_all_data(self, store):
        store.clear_all_data()
        assert store.get_all_competitors() == []
        assert store.get_stored_images() == {}


class TestImages:
    def test_compress_image_scales_down(self, image_path):
        data_url = compress_image(image_path)
        assert data_url.startswith('data:image/jpeg;base64,')
        raw = base64.b64decode(data_url.split(',', 1)[1])
        pix = fitz.Pixmap(raw)
        assert (pix.width, pix.height) == (400, 300)

    def test_unreadable_image(self, tmp_path):
        bad = tmp_path / 'bad.png'
        bad.write_text('not an image')
        with pytest.raises(ValueError):
            compress_image(str(bad))

    def test_store_profile_image(self, store, image_path):
        data_url = store.store_profile_image('Alice', image_path)
        assert store.get_competitor('Alice').profile_pic == data_url
        assert store.get_stored_images() == {'Alice': data_url}

    def test_rename_and_delete_move_images(self, store, image_path):
        store.store_profile_image('Alice', image_path)
        store.update_competitor('Alice', name='Alicia')
        assert list(store.get_stored_images()) == ['Alicia']
        store.delete_competitor('Alicia')
        assert store.get_stored_images() == {}

    def test_clear_all_images_resets_pictures(self, store, image_path):
        store.store_profile_image('Alice', image_path)
        store.clear_all_images()
        assert store.get_stored_images() == {}
        assert all(c.profile_pic == DEFAULT_PROFILE_PIC
                   for c in store.get_all_competitors())

    def test_cleanup_when_storage_full(self, store, image_path, monkeypatch):
        store.store_profile_image('Alice', image_path)
        monkeypatch.setattr(record_store, 'STORAGE_BUDGET', 100)
        assert store.get_storage_info()['percentage'] > 80
        assert store.clear_old_images_if_needed() is True
        assert store.get_stored_images() == {}

    def test_storage_info(self, store):
        info = store.get_storage_info()
        assert info['available'] == 5 * 1024 * 1024
        assert 0 < info['used'] < info['available']
        assert info['percentage'] == 0
