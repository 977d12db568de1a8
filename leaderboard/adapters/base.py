"""Abstract base adapter for reading contest data from various sources."""

import datetime
from abc import ABC, abstractmethod

from ..core.models import CompetitorEntry, WeighIn
from ..core.ranking import sort_weigh_ins


class BaseAdapter(ABC):
    @abstractmethod
    def parse(self, data_path: str) -> list[dict]:
        """Parse contest data and return list of competitor dicts.

        Each dict must have keys:
            name, cheerer, baseline_weight, current_weight,
            weigh_ins (list of {'date', 'weight'})

        Optional keys:
            profile_pic, before_photo, after_photo, wa_applied
        """
        pass

    def parse_entries(self, data_path: str) -> list[CompetitorEntry]:
        """Parse and build CompetitorEntry records."""
        entries = []
        for c in self.parse(data_path):
            weigh_ins = [WeighIn(w['date'], w['weight']) for w in c['weigh_ins']]
            by_date = sort_weigh_ins(weigh_ins)
            baseline = c.get('baseline_weight')
            current = c.get('current_weight')
            if baseline is None:
                baseline = by_date[0].weight if by_date else 0.0
            if current is None:
                current = by_date[-1].weight if by_date else baseline
            entries.append(CompetitorEntry(
                name=c['name'],
                baseline_weight=baseline,
                current_weight=current,
                cheerer=c.get('cheerer', ''),
                weigh_ins=weigh_ins,
                profile_pic=c.get('profile_pic', ''),
                before_photo=c.get('before_photo', ''),
                after_photo=c.get('after_photo', ''),
                wa_applied=bool(c.get('wa_applied', False)),
            ))
        return entries

    @staticmethod
    def _parse_weight(val):
        """Parse a weight value. Returns None for empty, invalid or non-positive."""
        if val is None:
            return None
        s = str(val).strip().lower()
        if s.endswith('kg'):
            s = s[:-2].strip()
        if not s:
            return None
        try:
            v = float(s)
            return v if v > 0 else None
        except ValueError:
            return None

    @staticmethod
    def _parse_date(val):
        """Normalize a date to ISO 'YYYY-MM-DD'. Returns None if unparseable.

        Accepts ISO dates, ISO timestamps (kept as given) and 'DD/MM/YYYY'.
        """
        if val is None:
            return None
        s = str(val).strip()
        if not s:
            return None
        try:
            datetime.datetime.fromisoformat(s[:-1] + '+00:00' if s.endswith('Z') else s)
            return s
        except ValueError:
            pass
        try:
            return datetime.datetime.strptime(s, '%d/%m/%Y').date().isoformat()
        except ValueError:
            return None
