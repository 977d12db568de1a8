"""Adapter for JSON competitor data (backup exports or plain arrays).

Handles:
  - Backup exports: {"competitors": [...], "images": {...}, "exportDate": ...}
  - Plain arrays of competitor objects

Keys are matched case-insensitively in camelCase or snake_case form.
"""

import json

from .base import BaseAdapter


KEY_ALIASES = {
    'name': 'name',
    'competitor': 'name',
    'cheerer': 'cheerer',
    'team': 'cheerer',
    'baselineweight': 'baseline_weight',
    'startweight': 'baseline_weight',
    'currentweight': 'current_weight',
    'weighins': 'weigh_ins',
    'profilepic': 'profile_pic',
    'beforephoto': 'before_photo',
    'afterphoto': 'after_photo',
    'waapplied': 'wa_applied',
}


class JsonAdapter(BaseAdapter):
    """Parse competitors from a JSON file."""

    def parse(self, data_path: str) -> list[dict]:
        with open(data_path, 'r', encoding='utf-8') as f:
            raw_data = json.load(f)

        if isinstance(raw_data, dict):
            raw_competitors = raw_data.get('competitors', [])
        elif isinstance(raw_data, list):
            raw_competitors = raw_data
        else:
            return []

        competitors = []
        for raw in raw_competitors:
            if not isinstance(raw, dict):
                continue
            c = self._extract_competitor(raw)
            if c['name']:
                competitors.append(c)
        return competitors

    def _extract_competitor(self, raw: dict) -> dict:
        mapped = {}
        for key, value in raw.items():
            canonical = KEY_ALIASES.get(key.lower().replace('_', '').replace(' ', ''))
            if canonical:
                mapped[canonical] = value

        name = str(mapped.get('name') or '').strip()

        weigh_ins = []
        for w in mapped.get('weigh_ins') or []:
            if not isinstance(w, dict):
                continue
            date = self._parse_date(w.get('date'))
            weight = self._parse_weight(w.get('weight'))
            if date is None or weight is None:
                print(f"Warning: skipping weigh-in for {name!r}: {w}")
                continue
            weigh_ins.append({'date': date, 'weight': weight})

        return {
            'name': name,
            'cheerer': str(mapped.get('cheerer') or '').strip(),
            'baseline_weight': self._parse_weight(mapped.get('baseline_weight')),
            'current_weight': self._parse_weight(mapped.get('current_weight')),
            'weigh_ins': weigh_ins,
            'profile_pic': str(mapped.get('profile_pic') or ''),
            'before_photo': str(mapped.get('before_photo') or ''),
            'after_photo': str(mapped.get('after_photo') or ''),
            'wa_applied': bool(mapped.get('wa_applied')),
        }
