"""SQLite-backed record store for contest competitors.

Holds three tables:
  - competitors: one row per competitor, keyed by unique name
  - weigh_ins:   dated weights, insertion order kept by autoincrement id
  - images:      compressed profile images as data URLs, keyed by name

Every mutation refreshes a competitor's current_weight from the latest-dated
weigh-in. Unknown names raise KeyError; name clashes raise ValueError.
"""

import datetime
import json
import os
import sqlite3

from .image_tools import compress_image
from .models import CompetitorEntry, WeighIn
from .ranking import sort_weigh_ins


STORAGE_BUDGET = 5 * 1024 * 1024   # nominal bytes, as for browser local storage
IMAGE_CLEANUP_PERCENT = 80
DEFAULT_PROFILE_PIC = ('https://images.unsplash.com/photo-1472099645785-5658abf4ff4e'
                       '?w=200&h=200&fit=crop&crop=face')


class RecordStore:
    """CRUD over competitors, weigh-ins and profile images."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        db_dir = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(db_dir, exist_ok=True)
        self._create_tables()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def _create_tables(self):
        conn = self._connect()
        cur = conn.cursor()
        cur.execute('''CREATE TABLE IF NOT EXISTS competitors (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            baseline_weight REAL,
            current_weight REAL,
            cheerer TEXT,
            profile_pic TEXT,
            before_photo TEXT,
            after_photo TEXT,
            wa_applied INTEGER DEFAULT 0
        )''')
        cur.execute('''CREATE TABLE IF NOT EXISTS weigh_ins (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            competitor TEXT NOT NULL,
            date TEXT NOT NULL,
            weight REAL NOT NULL
        )''')
        cur.execute('''CREATE TABLE IF NOT EXISTS images (
            competitor TEXT PRIMARY KEY,
            data TEXT NOT NULL
        )''')
        conn.commit()
        conn.close()

    # --- Reads ---

    def get_all_competitors(self) -> list[CompetitorEntry]:
        """All competitors in creation order, weigh-ins in insertion order."""
        conn = self._connect()
        cur = conn.cursor()
        cur.execute('''SELECT name, baseline_weight, current_weight, cheerer,
                              profile_pic, before_photo, after_photo, wa_applied
                       FROM competitors ORDER BY id''')
        rows = cur.fetchall()

        cur.execute('SELECT competitor, date, weight FROM weigh_ins ORDER BY id')
        weigh_ins: dict[str, list[WeighIn]] = {}
        for competitor, date, weight in cur.fetchall():
            weigh_ins.setdefault(competitor, []).append(WeighIn(date, weight))
        conn.close()

        return [self._row_to_entry(row, weigh_ins.get(row[0], [])) for row in rows]

    def get_competitor(self, name: str) -> CompetitorEntry:
        for entry in self.get_all_competitors():
            if entry.name == name:
                return entry
        raise KeyError(f'Unknown competitor: {name}')

    @staticmethod
    def _row_to_entry(row, weigh_ins) -> CompetitorEntry:
        name, baseline, current, cheerer, pic, before, after, wa = row
        return CompetitorEntry(
            name=name,
            baseline_weight=baseline or 0.0,
            current_weight=current or 0.0,
            cheerer=cheerer or '',
            weigh_ins=list(weigh_ins),
            profile_pic=pic or '',
            before_photo=before or '',
            after_photo=after or '',
            wa_applied=bool(wa),
        )

    # --- Competitors ---

    def save_all_competitors(self, entries: list[CompetitorEntry]):
        """Replace every competitor and weigh-in with the given entries.

        Raises:
            ValueError: If two entries share a name. Nothing is replaced.
        """
        conn = self._connect()
        cur = conn.cursor()
        try:
            cur.execute('DELETE FROM weigh_ins')
            cur.execute('DELETE FROM competitors')
            for entry in entries:
                self._insert_entry(cur, entry)
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise ValueError(f'Duplicate competitor name: {e}') from e
        finally:
            conn.close()

    def add_competitor(self, entry: CompetitorEntry):
        conn = self._connect()
        cur = conn.cursor()
        if self._exists(cur, entry.name):
            conn.close()
            raise ValueError(f'Competitor already exists: {entry.name}')
        self._insert_entry(cur, entry)
        conn.commit()
        conn.close()

    @staticmethod
    def _insert_entry(cur, entry: CompetitorEntry):
        cur.execute('''INSERT INTO competitors
            (name, baseline_weight, current_weight, cheerer,
             profile_pic, before_photo, after_photo, wa_applied)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)''',
            (entry.name, entry.baseline_weight, entry.current_weight, entry.cheerer,
             entry.profile_pic, entry.before_photo, entry.after_photo,
             1 if entry.wa_applied else 0))
        for w in entry.weigh_ins:
            cur.execute('INSERT INTO weigh_ins (competitor, date, weight) VALUES (?, ?, ?)',
                        (entry.name, w.date, w.weight))

    @staticmethod
    def _exists(cur, name: str) -> bool:
        cur.execute('SELECT 1 FROM competitors WHERE name = ?', (name,))
        return cur.fetchone() is not None

    def _require(self, cur, name: str):
        if not self._exists(cur, name):
            raise KeyError(f'Unknown competitor: {name}')

    def update_competitor(self, old_name: str, name: str | None = None,
                          cheerer: str | None = None):
        """Rename and/or change the cheerer. Empty values keep the old ones."""
        conn = self._connect()
        cur = conn.cursor()
        try:
            self._require(cur, old_name)
            new_name = name or old_name
            if new_name != old_name and self._exists(cur, new_name):
                raise ValueError(f'Competitor already exists: {new_name}')

            if cheerer:
                cur.execute('UPDATE competitors SET cheerer = ? WHERE name = ?',
                            (cheerer, old_name))
            if new_name != old_name:
                cur.execute('UPDATE competitors SET name = ? WHERE name = ?',
                            (new_name, old_name))
                cur.execute('UPDATE weigh_ins SET competitor = ? WHERE competitor = ?',
                            (new_name, old_name))
                cur.execute('UPDATE images SET competitor = ? WHERE competitor = ?',
                            (new_name, old_name))
            conn.commit()
        finally:
            conn.close()

    def delete_competitor(self, name: str):
        conn = self._connect()
        cur = conn.cursor()
        try:
            self._require(cur, name)
            cur.execute('DELETE FROM weigh_ins WHERE competitor = ?', (name,))
            cur.execute('DELETE FROM competitors WHERE name = ?', (name,))
            cur.execute('DELETE FROM images WHERE competitor = ?', (name,))
            conn.commit()
        finally:
            conn.close()

    def merge_competitors(self, entries: list[CompetitorEntry]) -> dict:
        """Add new competitors and extend existing ones with new weigh-ins.

        Weigh-ins already stored with the same date and weight are skipped.

        Returns:
            Dict with counts: added_competitors, added_weigh_ins, skipped_weigh_ins.
        """
        report = {'added_competitors': 0, 'added_weigh_ins': 0, 'skipped_weigh_ins': 0}
        conn = self._connect()
        cur = conn.cursor()
        for entry in entries:
            if not self._exists(cur, entry.name):
                self._insert_entry(cur, CompetitorEntry(
                    name=entry.name,
                    baseline_weight=entry.baseline_weight,
                    current_weight=entry.current_weight,
                    cheerer=entry.cheerer,
                    profile_pic=entry.profile_pic,
                    before_photo=entry.before_photo,
                    after_photo=entry.after_photo,
                    wa_applied=entry.wa_applied,
                ))
                report['added_competitors'] += 1

            for w in entry.weigh_ins:
                cur.execute('''SELECT 1 FROM weigh_ins
                               WHERE competitor = ? AND date = ? AND weight = ?''',
                            (entry.name, w.date, w.weight))
                if cur.fetchone():
                    report['skipped_weigh_ins'] += 1
                    continue
                cur.execute('INSERT INTO weigh_ins (competitor, date, weight) VALUES (?, ?, ?)',
                            (entry.name, w.date, w.weight))
                report['added_weigh_ins'] += 1
            self._refresh_current_weight(cur, entry.name)
        conn.commit()
        conn.close()
        return report

    # --- Weigh-ins ---

    def add_weigh_in(self, name: str, date: str, weight: float):
        conn = self._connect()
        cur = conn.cursor()
        try:
            self._require(cur, name)
            cur.execute('INSERT INTO weigh_ins (competitor, date, weight) VALUES (?, ?, ?)',
                        (name, date, weight))
            self._refresh_current_weight(cur, name)
            conn.commit()
        finally:
            conn.close()

    def update_weigh_in(self, name: str, old_date: str, new_date: str, new_weight: float):
        """Rewrite every weigh-in recorded on old_date."""
        conn = self._connect()
        cur = conn.cursor()
        try:
            self._require(cur, name)
            cur.execute('''UPDATE weigh_ins SET date = ?, weight = ?
                           WHERE competitor = ? AND date = ?''',
                        (new_date, new_weight, name, old_date))
            self._refresh_current_weight(cur, name)
            conn.commit()
        finally:
            conn.close()

    def delete_weigh_in(self, name: str, date: str, weight: float | None = None):
        """Delete the first weigh-in on date (and with weight, when given)."""
        conn = self._connect()
        cur = conn.cursor()
        try:
            self._require(cur, name)
            if weight is not None:
                cur.execute('''SELECT id FROM weigh_ins
                               WHERE competitor = ? AND date = ? AND weight = ?
                               ORDER BY id LIMIT 1''', (name, date, weight))
            else:
                cur.execute('''SELECT id FROM weigh_ins
                               WHERE competitor = ? AND date = ?
                               ORDER BY id LIMIT 1''', (name, date))
            row = cur.fetchone()
            if row:
                cur.execute('DELETE FROM weigh_ins WHERE id = ?', (row[0],))
            self._refresh_current_weight(cur, name)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _refresh_current_weight(cur, name: str):
        """Set current_weight to the latest-dated weigh-in, else the baseline."""
        cur.execute('SELECT date, weight FROM weigh_ins WHERE competitor = ? ORDER BY id',
                    (name,))
        weigh_ins = [WeighIn(date, weight) for date, weight in cur.fetchall()]
        if weigh_ins:
            cur.execute('UPDATE competitors SET current_weight = ? WHERE name = ?',
                        (sort_weigh_ins(weigh_ins)[-1].weight, name))
        else:
            cur.execute('''UPDATE competitors SET current_weight = baseline_weight
                           WHERE name = ?''', (name,))

    # --- Images ---

    def get_stored_images(self) -> dict[str, str]:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute('SELECT competitor, data FROM images ORDER BY competitor')
        images = {competitor: data for competitor, data in cur.fetchall()}
        conn.close()
        return images

    def _save_images(self, images: dict[str, str]):
        conn = self._connect()
        cur = conn.cursor()
        cur.execute('DELETE FROM images')
        for competitor, data in images.items():
            cur.execute('INSERT INTO images (competitor, data) VALUES (?, ?)',
                        (competitor, data))
        conn.commit()
        conn.close()

    def store_profile_image(self, name: str, image_path: str) -> str:
        """Compress an image file, store it and use it as the profile picture.

        Returns:
            The stored data URL.
        """
        conn = self._connect()
        try:
            self._require(conn.cursor(), name)
        finally:
            conn.close()

        data_url = compress_image(image_path)
        self.clear_old_images_if_needed()

        conn = self._connect()
        cur = conn.cursor()
        cur.execute('INSERT OR REPLACE INTO images (competitor, data) VALUES (?, ?)',
                    (name, data_url))
        cur.execute('UPDATE competitors SET profile_pic = ? WHERE name = ?',
                    (data_url, name))
        conn.commit()
        conn.close()
        return data_url

    def clear_all_images(self):
        """Drop stored images and reset every profile picture to the default."""
        conn = self._connect()
        cur = conn.cursor()
        cur.execute('DELETE FROM images')
        cur.execute('UPDATE competitors SET profile_pic = ?', (DEFAULT_PROFILE_PIC,))
        conn.commit()
        conn.close()

    def clear_old_images_if_needed(self) -> bool:
        """Clear all images when storage use is over IMAGE_CLEANUP_PERCENT."""
        if self.get_storage_info()['percentage'] > IMAGE_CLEANUP_PERCENT:
            print(f"Storage is over {IMAGE_CLEANUP_PERCENT}% full, clearing stored images...")
            self.clear_all_images()
            return True
        return False

    def get_storage_info(self) -> dict:
        """Approximate storage use as the size of the exported record text."""
        competitors = [_entry_to_record(e) for e in self.get_all_competitors()]
        used = len(json.dumps(competitors)) + len(json.dumps(self.get_stored_images()))
        return {
            'used': used,
            'available': STORAGE_BUDGET,
            'percentage': round(used / STORAGE_BUDGET * 100),
        }

    # --- Export / import ---

    def export_data(self) -> str:
        data = {
            'competitors': [_entry_to_record(e) for e in self.get_all_competitors()],
            'images': self.get_stored_images(),
            'exportDate': datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def import_data(self, json_text: str):
        """Replace competitors and/or images with those in an export payload.

        Raises:
            ValueError: If the payload is not a valid export.
        """
        try:
            data = json.loads(json_text)
            if not isinstance(data, dict):
                raise ValueError('export payload must be an object')
            competitors = None
            if data.get('competitors'):
                competitors = [_record_to_entry(r) for r in data['competitors']]
                if len({c.name for c in competitors}) != len(competitors):
                    raise ValueError('duplicate competitor names')
            images = data.get('images')
            if images and not isinstance(images, dict):
                raise ValueError('images must be an object')
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise ValueError('Invalid data format') from e

        if competitors is not None:
            self.save_all_competitors(competitors)
        if images:
            self._save_images(images)

    def clear_all_data(self):
        conn = self._connect()
        cur = conn.cursor()
        cur.execute('DELETE FROM weigh_ins')
        cur.execute('DELETE FROM competitors')
        cur.execute('DELETE FROM images')
        conn.commit()
        conn.close()


def _entry_to_record(entry: CompetitorEntry) -> dict:
    """Serialize an entry with the camelCase keys used by backup files."""
    return {
        'name': entry.name,
        'baselineWeight': entry.baseline_weight,
        'currentWeight': entry.current_weight,
        'profilePic': entry.profile_pic,
        'beforePhoto': entry.before_photo,
        'afterPhoto': entry.after_photo,
        'cheerer': entry.cheerer,
        'weighIns': [{'date': w.date, 'weight': w.weight} for w in entry.weigh_ins],
        'waApplied': entry.wa_applied,
    }


def _record_to_entry(record: dict) -> CompetitorEntry:
    return CompetitorEntry(
        name=str(record['name']),
        baseline_weight=float(record.get('baselineWeight') or 0),
        current_weight=float(record.get('currentWeight') or 0),
        cheerer=record.get('cheerer') or '',
        weigh_ins=[WeighIn(str(w['date']), float(w['weight']))
                   for w in record.get('weighIns') or []],
        profile_pic=record.get('profilePic') or '',
        before_photo=record.get('beforePhoto') or '',
        after_photo=record.get('afterPhoto') or '',
        wa_applied=bool(record.get('waApplied')),
    )
