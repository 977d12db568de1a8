"""Text output generator for contest rankings.

Generates three output types from a computed ranking:
  - Leaderboard markdown (one card per competitor, leaderboard order)
  - Standings CSV
  - Reveal script (ranked competitors from last place up to the winner)
"""

import csv

from .formatting import (
    cheerer_emoji, format_percentage, format_weight, place_label,
    rank_to_badge, reveal_medal,
)
from .models import RankingResult


FINALE_MESSAGE = 'Congratulations to all participants!'


def reveal_order(results: list[RankingResult]) -> list[RankingResult]:
    """Ranked competitors only, worst rank first. Ties keep leaderboard order."""
    ranked = [r for r in results if r.is_ranked]
    return sorted(ranked, key=lambda r: -r.rank)


def describe_change(result: RankingResult) -> str:
    """'↓ 8.00% (8.0kg)' for a loss, '↑ 2.10% (2.0kg)' for a gain, 'N/A' unranked.

    No change at all reads '→ 0.00%'.
    """
    if result.has_insufficient_data:
        return 'N/A'
    if result.percent_loss > 0:
        arrow = '↓'
    elif result.percent_loss < 0:
        arrow = '↑'
    else:
        arrow = '→'
    text = f'{arrow} {format_percentage(abs(result.percent_loss))}'
    if abs(result.kg_loss) > 0:
        text += f' ({abs(result.kg_loss):.1f}kg)'
    return text


def last_weigh_in_date(result: RankingResult) -> str:
    if not result.weigh_ins:
        return 'No data'
    return result.weigh_ins[-1].date


def generate_leaderboard_markdown(results: list[RankingResult], output_path: str,
                                  title: str | None = None):
    """Generate the leaderboard as markdown.

    Args:
        results: Output of compute_rankings, in leaderboard order.
        output_path: Where to write the markdown.
        title: Optional heading (e.g. "GMF Biggest Loser 2025").
    """
    lines = []
    if title:
        lines.append(f'# {title}\n')

    for r in results:
        if r.is_ranked:
            emoji, label = rank_to_badge(r.rank)
            heading = f'## {emoji} {label} - {r.name}'
            if r.is_tied:
                heading += ' (Tied)'
        else:
            heading = f'## - {r.name}'
        lines.append(heading)
        lines.append(f'Cheerer: {cheerer_emoji(r.cheerer)} {r.cheerer}')
        lines.append(f'Last weigh-in: {last_weigh_in_date(r)}')
        lines.append(f'Change: {describe_change(r)}')
        if r.wa_applied:
            lines.append('Anti-dehydration applied')
        lines.append('')

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines))


def generate_standings_csv(results: list[RankingResult], output_path: str):
    """Generate standings CSV in leaderboard order.

    Unranked competitors get empty rank and metric cells.
    """
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        writer = csv.DictWriter(f, fieldnames=[
            'rank', 'name', 'cheerer', 'percent_loss', 'kg_loss',
            'trend', 'tied', 'weigh_ins', 'wa_applied',
        ])
        writer.writeheader()
        for r in results:
            writer.writerow({
                'rank': r.rank if r.is_ranked else '',
                'name': r.name,
                'cheerer': r.cheerer,
                'percent_loss': f'{r.percent_loss:.2f}' if r.is_ranked else '',
                'kg_loss': f'{r.kg_loss:.1f}' if r.is_ranked else '',
                'trend': r.weight_trend.value,
                'tied': 'TRUE' if r.is_tied else 'FALSE',
                'weigh_ins': len(r.weigh_ins),
                'wa_applied': 'TRUE' if r.wa_applied else 'FALSE',
            })


def reveal_slide_lines(result: RankingResult, index: int, total: int) -> list[str]:
    """Text for one reveal slide."""
    lines = [f'--- {index} / {total} ---']
    lines.append(f'{reveal_medal(result.rank)} {place_label(result.rank)}')
    lines.append(result.name)
    lines.append(f'{cheerer_emoji(result.cheerer)} {result.cheerer}')

    if result.weigh_ins:
        before = result.weigh_ins[0].weight
        after = result.weigh_ins[-1].weight
        lines.append(f'Before: {format_weight(before)}  ->  After: {format_weight(after)}')

    loss_label = 'Weight Loss' if result.percent_loss >= 0 else 'Weight Gain'
    kg_label = 'Total Lost' if result.kg_loss >= 0 else 'Total Gain'
    lines.append(f'{loss_label}: {format_percentage(abs(result.percent_loss))}')
    lines.append(f'{kg_label}: {format_weight(abs(result.kg_loss))}')
    if result.wa_applied:
        lines.append('Anti-dehydration applied')
    lines.append('')
    return lines


def generate_reveal_script(results: list[RankingResult], output_path: str):
    """Generate the reveal presentation as a text script, last place first."""
    order = reveal_order(results)
    if not order:
        lines = ['No rankings available']
    else:
        lines = []
        for i, r in enumerate(order, start=1):
            lines.extend(reveal_slide_lines(r, i, len(order)))
        lines.append(FINALE_MESSAGE)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write('\n'.join(lines) + '\n')
