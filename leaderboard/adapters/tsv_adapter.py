"""Adapter for weigh-in sheets (tab- or comma-separated, one weigh-in per row).

Header row names the columns; aliases are matched case-insensitively:
    name, date, weight, cheerer

Rows for the same name are grouped into one competitor, keeping file order.
The first row carrying a cheerer sets it.
"""

import csv
import io
import re

from .base import BaseAdapter


COLUMN_ALIASES = {
    'name': 'name',
    'competitor': 'name',
    'date': 'date',
    'day': 'date',
    'weighindate': 'date',
    'weight': 'weight',
    'kg': 'weight',
    'weightkg': 'weight',
    'cheerer': 'cheerer',
    'team': 'cheerer',
}


class TsvAdapter(BaseAdapter):
    """Parse a weigh-in sheet into competitors."""

    def parse(self, data_path: str) -> list[dict]:
        with open(data_path, 'r', encoding='utf-8-sig') as f:
            content = f.read()
        return self._parse_content(content)

    def _parse_content(self, content: str) -> list[dict]:
        lines = content.strip().split('\n')
        if len(lines) < 2:
            return []

        delimiter = '\t' if '\t' in lines[0] else ','
        reader = csv.reader(io.StringIO(content.strip()), delimiter=delimiter)
        header = next(reader)
        col_map = {}
        for i, col in enumerate(header):
            canonical = COLUMN_ALIASES.get(re.sub(r'[^a-z]', '', col.lower()))
            if canonical and canonical not in col_map:
                col_map[canonical] = i

        competitors: dict[str, dict] = {}
        for line_no, parts in enumerate(reader, start=2):
            if not parts or not any(p.strip() for p in parts):
                continue

            def get_col(name: str, default=''):
                idx = col_map.get(name)
                if idx is not None and idx < len(parts):
                    return parts[idx].strip()
                return default

            name = get_col('name')
            if not name:
                continue

            c = competitors.setdefault(name, {
                'name': name,
                'cheerer': '',
                'baseline_weight': None,
                'current_weight': None,
                'weigh_ins': [],
            })
            if not c['cheerer']:
                c['cheerer'] = get_col('cheerer')

            date = self._parse_date(get_col('date'))
            weight = self._parse_weight(get_col('weight'))
            if date is None or weight is None:
                print(f"Warning: line {line_no}: skipping weigh-in for {name!r} "
                      f"(date={get_col('date')!r}, weight={get_col('weight')!r})")
                continue
            c['weigh_ins'].append({'date': date, 'weight': weight})

        return list(competitors.values())
