"""Ranking engine for the weight-loss contest.

Ranks competitors by percentage change between their earliest and latest
weigh-in:
  - One or fewer weigh-ins: unranked, sentinel metrics, listed last by name
  - Otherwise: sorted by percent loss descending, signed (gains are negative)
  - Adjacent competitors within TIE_THRESHOLD points share a rank
    (competition ranking: 1, 2, 2, 4)

The engine is a pure function of its input. An optional ``trace`` callable
receives ("competitor", {...}) per entry and ("rankings", [...]) at the end.
"""

import datetime

from .models import (
    NO_DATA, UNRANKED, CompetitorEntry, RankingMode, RankingResult,
    WeighIn, WeightTrend,
)


TIE_THRESHOLD = 0.1      # percentage points
TREND_THRESHOLD = 0.1    # kg


def _identity(weight: float) -> float:
    return weight


def apply_anti_dehydration_rule(weight: float) -> float:
    """Adjust a final weigh-in reading. No adjustment is in force yet."""
    return weight


# Mode -> adjustment applied to the latest recorded weight before ranking
ADJUSTMENTS = {
    RankingMode.PRE_FINAL: _identity,
    RankingMode.FINAL: apply_anti_dehydration_rule,
}


def date_key(date: str) -> datetime.datetime:
    """Parse a weigh-in date ("2025-01-15" or a full ISO timestamp)."""
    s = str(date).strip()
    if s.endswith('Z'):
        s = s[:-1] + '+00:00'
    parsed = datetime.datetime.fromisoformat(s)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return parsed


def sort_weigh_ins(weigh_ins) -> list[WeighIn]:
    """Return weigh-ins ascending by date; equal dates keep insertion order."""
    return sorted(weigh_ins, key=lambda w: date_key(w.date))


def compute_trend(sorted_weigh_ins: list[WeighIn]) -> tuple[WeightTrend, float]:
    """Classify latest vs earliest weigh-in and return (trend, abs % change)."""
    if not sorted_weigh_ins:
        return WeightTrend.SAME, 0.0

    first = sorted_weigh_ins[0].weight
    latest = sorted_weigh_ins[-1].weight
    change = latest - first
    change_percent = abs(change / first * 100) if first else 0.0

    if abs(change) < TREND_THRESHOLD:
        return WeightTrend.SAME, change_percent
    if change > 0:
        return WeightTrend.UP, change_percent
    return WeightTrend.DOWN, change_percent


def _process_entry(entry: CompetitorEntry, mode: RankingMode) -> dict:
    """Compute the unranked metrics for one competitor."""
    sorted_weigh_ins = sort_weigh_ins(entry.weigh_ins)
    insufficient = len(sorted_weigh_ins) <= 1
    adjust = ADJUSTMENTS[mode]

    baseline = entry.baseline_weight
    raw_current = entry.current_weight
    if not insufficient:
        baseline = sorted_weigh_ins[0].weight
        raw_current = sorted_weigh_ins[-1].weight

    current = adjust(raw_current)
    if mode == RankingMode.FINAL:
        wa_applied = current != raw_current
    else:
        wa_applied = bool(entry.wa_applied)

    if insufficient:
        percent_loss = NO_DATA
        kg_loss = NO_DATA
    else:
        percent_loss = (baseline - current) / baseline * 100
        kg_loss = baseline - current

    trend, change_percent = compute_trend(sorted_weigh_ins)

    return {
        'entry': entry,
        'weigh_ins': tuple(sorted_weigh_ins),
        'baseline': baseline,
        'current': current,
        'percent_loss': percent_loss,
        'kg_loss': kg_loss,
        'insufficient': insufficient,
        'wa_applied': wa_applied,
        'trend': trend,
        'change_percent': change_percent,
    }


def _sort_key(item: dict):
    # Ranked first by loss descending, then unranked by name
    if item['insufficient']:
        name = item['entry'].name
        return (1, 0.0, name.casefold(), name)
    return (0, -item['percent_loss'], '', '')


def compute_rankings(entries, mode, trace=None) -> list[RankingResult]:
    """Rank competitors by percent loss from first to latest weigh-in.

    Args:
        entries: Iterable of CompetitorEntry.
        mode: RankingMode or its string value ("preFinal" / "final").
        trace: Optional callable(event, payload) for diagnostics.

    Returns:
        List of RankingResult in leaderboard order.
    """
    mode = RankingMode(mode)

    processed = []
    for entry in entries:
        item = _process_entry(entry, mode)
        processed.append(item)
        if trace:
            trace('competitor', {
                'name': entry.name,
                'baseline': item['baseline'],
                'current': item['current'],
                'percent_loss': item['percent_loss'],
                'kg_loss': item['kg_loss'],
                'insufficient_data': item['insufficient'],
            })

    processed.sort(key=_sort_key)

    # Assign ranks; a tie copies the previous rank and flags both sides
    ranks = []
    tied = [False] * len(processed)
    for i, item in enumerate(processed):
        if item['insufficient']:
            ranks.append(UNRANKED)
            continue

        rank = i + 1
        if i > 0 and not processed[i - 1]['insufficient']:
            # Rounded so float noise (10.1 - 10.0) does not fall under the threshold
            diff = round(abs(item['percent_loss'] - processed[i - 1]['percent_loss']), 9)
            if diff < TIE_THRESHOLD:
                rank = ranks[i - 1]
                tied[i] = True
                tied[i - 1] = True
        ranks.append(rank)

    results = []
    for i, item in enumerate(processed):
        entry = item['entry']
        results.append(RankingResult(
            name=entry.name,
            percent_loss=item['percent_loss'],
            kg_loss=item['kg_loss'],
            rank=ranks[i],
            is_tied=tied[i],
            weight_trend=item['trend'],
            has_insufficient_data=item['insufficient'],
            wa_applied=item['wa_applied'],
            weight_change_percent=item['change_percent'],
            cheerer=entry.cheerer,
            profile_pic=entry.profile_pic,
            before_photo=entry.before_photo,
            after_photo=entry.after_photo,
            weigh_ins=item['weigh_ins'],
        ))

    if trace:
        trace('rankings', [
            {'name': r.name, 'rank': r.rank,
             'percent_loss': round(r.percent_loss, 2), 'is_tied': r.is_tied}
            for r in results
        ])

    return results
