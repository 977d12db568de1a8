"""Display helpers shared by the leaderboard and reveal outputs."""

import re


KEYCAP_BADGES = {
    1: '1️⃣', 2: '2️⃣', 3: '3️⃣',
    4: '4️⃣', 5: '5️⃣', 6: '6️⃣',
    7: '7️⃣', 8: '8️⃣', 9: '9️⃣',
    10: '\U0001f51f',
}
REVEAL_MEDALS = {1: '\U0001f947', 2: '\U0001f948', 3: '\U0001f949'}
DEFAULT_CHEERER_EMOJI = '⭐'

# Pictographic ranges used to pull a team emoji out of a cheerer label
_EMOJI_RE = re.compile(
    '['
    '\U0001F600-\U0001F64F'
    '\U0001F300-\U0001F5FF'
    '\U0001F680-\U0001F6FF'
    '\U0001F1E0-\U0001F1FF'
    '\U0001F900-\U0001F9FF'
    '\U0001F018-\U0001F270'
    '☀-⛿'
    '✀-➿'
    '↔-↙'
    '↩-↪'
    '⌚-⌛'
    '⏩-⏬'
    '⏰⏳⎌'
    '◽-◾'
    '⬛-⬜'
    '⭐⭕'
    ']'
)


def ordinal_suffix(num: int) -> str:
    """1 -> 'st', 2 -> 'nd', 11 -> 'th', 23 -> 'rd'."""
    if 11 <= num <= 13:
        return 'th'
    return {1: 'st', 2: 'nd', 3: 'rd'}.get(num % 10, 'th')


def rank_to_badge(rank: int) -> tuple[str, str]:
    """Return (emoji, label) for a rank, e.g. (keycap 1, '1st')."""
    label = f'{rank}{ordinal_suffix(rank)}'
    return KEYCAP_BADGES.get(rank, str(rank)), label


def reveal_medal(rank: int) -> str:
    if rank in REVEAL_MEDALS:
        return REVEAL_MEDALS[rank]
    if 4 <= rank <= 6:
        return KEYCAP_BADGES[rank]
    return '❓'


def place_label(rank: int) -> str:
    """'WINNER!' for first, otherwise e.g. '4th PLACE'."""
    if rank == 1:
        return 'WINNER!'
    return f'{rank}{ordinal_suffix(rank)} PLACE'


def format_percentage(value: float) -> str:
    return f'{value:.2f}%'


def format_weight(value: float) -> str:
    return f'{value:.1f} kg'


def cheerer_emoji(cheerer: str) -> str:
    """First emoji found in the cheerer label, or a star."""
    match = _EMOJI_RE.search(cheerer or '')
    return match.group(0) if match else DEFAULT_CHEERER_EMOJI
