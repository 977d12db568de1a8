"""PDF generator for contest leaderboards and reveal slides.

Generates two documents with PyMuPDF:
- Leaderboard: small-caps title lines, column headers, one row per
  competitor, red divider before competitors still waiting on weigh-ins,
  rows flowing onto further pages as needed
- Reveal: one landscape slide per ranked competitor from last place up to
  the winner, then a closing slide

Only the standard Times fonts are used, so labels are plain text (no emoji).
"""

import fitz  # PyMuPDF

from .formatting import ordinal_suffix, place_label
from .models import RankingResult
from .output_generator import FINALE_MESSAGE, reveal_order

# --- Page layout constants (letter: 612 x 792 pt) ---
PAGE_W = 612
PAGE_H = 792
SLIDE_W = 792
SLIDE_H = 612

COL_LEFTS = [48, 110, 290, 420, 520]
COL_HEADERS = ['RANK', 'NAME', 'CHEERER', 'CHANGE', 'KG']

# Colors
RED = (1, 0, 0)
GREEN = (0.13, 0.77, 0.37)
GOLD = (0.85, 0.65, 0.13)
WHITE = (1, 1, 1)
BLACK = (0, 0, 0)
GRAY = (0.4, 0.4, 0.4)

# Layout Y positions
TITLE_LINE1_Y = 40
TITLE_LINE2_Y = 66
HEADERS_Y = 100
ROWS_START_Y = 122
ROWS_BOTTOM_Y = PAGE_H - 40
FOOTER_Y = PAGE_H - 16

# Font sizes
TITLE1_LARGE = 18
TITLE1_SMALL = 13
TITLE2_LARGE = 14
TITLE2_SMALL = 10
HEADER_LARGE = 11
HEADER_SMALL = 8
ROW_SIZE = 11
DIVIDER_SIZE = 10
FOOTER_SIZE = 7

ROW_HEIGHT = ROW_SIZE * 1.8
UNRANKED_LABEL = 'AWAITING WEIGH-INS'

FONT_REGULAR = 'Times-Roman'
FONT_BOLD = 'Times-Bold'
FONT_ITALIC = 'Times-Italic'


def generate_leaderboard_pdf(results: list[RankingResult], output_path: str,
                             title_lines: tuple = (), year: str = ''):
    """Generate the leaderboard PDF.

    Args:
        results: Output of compute_rankings, in leaderboard order.
        output_path: Where to save the PDF.
        title_lines: Up to two title lines for each page.
        year: Contest year, shown in the footer.
    """
    doc = fitz.open()
    if not results:
        doc.new_page(width=PAGE_W, height=PAGE_H)
        doc.save(output_path)
        doc.close()
        return

    page = _new_leaderboard_page(doc, title_lines, year)
    y = ROWS_START_Y
    divider_drawn = False

    for r in results:
        needed = ROW_HEIGHT
        if not r.is_ranked and not divider_drawn:
            needed += DIVIDER_SIZE * 2.5
        if y + needed > ROWS_BOTTOM_Y:
            page = _new_leaderboard_page(doc, title_lines, year)
            y = ROWS_START_Y

        if not r.is_ranked and not divider_drawn:
            y += DIVIDER_SIZE
            _draw_divider(page, y, UNRANKED_LABEL)
            y += DIVIDER_SIZE * 1.5
            divider_drawn = True

        _draw_row(page, y, r)
        y += ROW_HEIGHT

    doc.save(output_path)
    doc.close()


def generate_reveal_pdf(results: list[RankingResult], output_path: str,
                        contest_name: str = ''):
    """Generate one slide per ranked competitor, last place first."""
    order = reveal_order(results)
    doc = fitz.open()

    if not order:
        page = doc.new_page(width=SLIDE_W, height=SLIDE_H)
        _draw_centered(page, SLIDE_H / 2, 'No rankings available', FONT_BOLD, 28, BLACK)
        doc.save(output_path)
        doc.close()
        return

    for i, r in enumerate(order, start=1):
        page = doc.new_page(width=SLIDE_W, height=SLIDE_H)
        _draw_slide(page, r, i, len(order), contest_name)

    page = doc.new_page(width=SLIDE_W, height=SLIDE_H)
    _draw_centered(page, SLIDE_H / 2, FINALE_MESSAGE, FONT_BOLD, 30, GOLD)
    if contest_name:
        _draw_centered(page, SLIDE_H / 2 + 40, contest_name, FONT_ITALIC, 16, GRAY)

    doc.save(output_path)
    doc.close()


# --- Leaderboard helpers ---

def _new_leaderboard_page(doc, title_lines, year):
    page = doc.new_page(width=PAGE_W, height=PAGE_H)

    lines = list(title_lines)[:2] or ['LEADERBOARD']
    _draw_small_caps(page, PAGE_W / 2, TITLE_LINE1_Y, lines[0],
                     TITLE1_LARGE, TITLE1_SMALL)
    if len(lines) > 1:
        _draw_small_caps(page, PAGE_W / 2, TITLE_LINE2_Y, lines[1],
                         TITLE2_LARGE, TITLE2_SMALL)

    for i, header in enumerate(COL_HEADERS):
        page.insert_text(fitz.Point(COL_LEFTS[i], HEADERS_Y), header,
                         fontname=FONT_BOLD, fontsize=HEADER_SMALL, color=BLACK)
    page.draw_line(fitz.Point(COL_LEFTS[0], HEADERS_Y + 6),
                   fitz.Point(PAGE_W - COL_LEFTS[0], HEADERS_Y + 6),
                   color=BLACK, width=0.75)

    if year:
        _draw_centered(page, FOOTER_Y, year, FONT_REGULAR, FOOTER_SIZE, GRAY)
    return page


def _row_cells(r: RankingResult) -> list[str]:
    if not r.is_ranked:
        return ['-', r.name, r.cheerer, 'N/A', '']
    rank = f'{r.rank}{ordinal_suffix(r.rank)}'
    if r.is_tied:
        rank += ' (T)'
    if r.percent_loss > 0:
        direction = 'LOSS'
    elif r.percent_loss < 0:
        direction = 'GAIN'
    else:
        direction = 'SAME'
    return [rank, r.name, r.cheerer,
            f'{abs(r.percent_loss):.2f}% {direction}',
            f'{abs(r.kg_loss):.1f}']


def _draw_row(page, y, r: RankingResult):
    cells = _row_cells(r)
    if r.is_ranked and r.percent_loss > 0:
        color = GREEN
    elif r.is_ranked and r.percent_loss < 0:
        color = RED
    else:
        color = GRAY
    for i, text in enumerate(cells):
        width = (COL_LEFTS[i + 1] if i + 1 < len(COL_LEFTS) else PAGE_W - 40) - COL_LEFTS[i] - 6
        text = _fit_text(text, FONT_REGULAR, ROW_SIZE, width)
        cell_color = color if i in (3, 4) else BLACK
        font = FONT_BOLD if i == 0 else FONT_REGULAR
        page.insert_text(fitz.Point(COL_LEFTS[i], y), text,
                         fontname=font, fontsize=ROW_SIZE, color=cell_color)


def _fit_text(text, fontname, fontsize, max_width):
    """Trim text with an ellipsis until it fits max_width."""
    if fitz.get_text_length(text, fontname=fontname, fontsize=fontsize) <= max_width:
        return text
    while text and fitz.get_text_length(text + '...', fontname=fontname,
                                        fontsize=fontsize) > max_width:
        text = text[:-1]
    return text + '...'


def _draw_divider(page, y, label):
    """Draw red lines flanking letter-spaced label text."""
    spaced = _space_text(label)
    tw = fitz.get_text_length(spaced, fontname=FONT_BOLD, fontsize=DIVIDER_SIZE)

    text_x = PAGE_W / 2 - tw / 2
    page.insert_text(fitz.Point(text_x, y), spaced,
                     fontname=FONT_BOLD, fontsize=DIVIDER_SIZE, color=RED)

    line_y = y - DIVIDER_SIZE * 0.35
    gap = 8
    page.draw_line(fitz.Point(40, line_y), fitz.Point(text_x - gap, line_y),
                   color=RED, width=0.75)
    page.draw_line(fitz.Point(text_x + tw + gap, line_y),
                   fitz.Point(PAGE_W - 40, line_y), color=RED, width=0.75)


def _space_text(text):
    """Add letter spacing: 'AWAITING WEIGH-INS' -> 'A W A I T I N G  W E I G H - I N S'."""
    return '  '.join(' '.join(word) for word in text.split())


# --- Reveal helpers ---

def _draw_slide(page, r: RankingResult, index, total, contest_name):
    """Draw one reveal slide: place, name, cheerer, before/after, stats."""
    if contest_name:
        _draw_centered(page, 40, contest_name, FONT_ITALIC, 14, GRAY)

    place_color = GOLD if r.rank <= 3 else BLACK
    _draw_centered(page, 130, place_label(r.rank), FONT_BOLD, 44, place_color)
    _draw_centered(page, 200, r.name, FONT_BOLD, 36, BLACK)
    if r.cheerer:
        _draw_centered(page, 235, r.cheerer, FONT_ITALIC, 18, GRAY)

    if r.weigh_ins:
        before = f'BEFORE  {r.weigh_ins[0].weight:.1f} kg'
        after = f'AFTER  {r.weigh_ins[-1].weight:.1f} kg'
        _draw_centered(page, 300, f'{before}      {after}', FONT_REGULAR, 18, BLACK)

    gained = r.percent_loss < 0
    color = RED if gained else GREEN
    loss_label = 'WEIGHT GAIN' if gained else 'WEIGHT LOSS'
    kg_label = 'TOTAL GAIN' if r.kg_loss < 0 else 'TOTAL LOST'
    _draw_centered(page, 370, loss_label, FONT_BOLD, 14, GRAY)
    _draw_centered(page, 410, f'{abs(r.percent_loss):.2f}%', FONT_BOLD, 36, color)
    _draw_centered(page, 450, kg_label, FONT_BOLD, 14, GRAY)
    _draw_centered(page, 482, f'{abs(r.kg_loss):.1f} kg', FONT_BOLD, 26, color)

    if r.wa_applied:
        _draw_centered(page, 520, 'Anti-dehydration applied', FONT_ITALIC, 12, RED)

    _draw_centered(page, SLIDE_H - 24, f'{index} / {total}', FONT_REGULAR, 10, GRAY)


# --- Drawing functions ---

def _draw_centered(page, y, text, fontname, fontsize, color):
    width = page.rect.width
    tw = fitz.get_text_length(text, fontname=fontname, fontsize=fontsize)
    page.insert_text(fitz.Point(width / 2 - tw / 2, y), text,
                     fontname=fontname, fontsize=fontsize, color=color)


def _draw_small_caps(page, center_x, y, text, large_size, small_size):
    """Draw text in small caps, centered horizontally.

    First letter of each word at large_size, rest at small_size.
    All characters rendered uppercase.
    """
    total_width = _measure_small_caps_width(text, large_size, small_size)
    x = center_x - total_width / 2

    for wi, word in enumerate(text.split()):
        if wi > 0:
            x += fitz.get_text_length(' ', fontname=FONT_BOLD, fontsize=large_size)
        for ci, ch in enumerate(word):
            ch_upper = ch.upper()
            fs = large_size if ci == 0 else small_size
            page.insert_text(fitz.Point(x, y), ch_upper,
                             fontname=FONT_BOLD, fontsize=fs, color=BLACK)
            x += fitz.get_text_length(ch_upper, fontname=FONT_BOLD, fontsize=fs)


def _measure_small_caps_width(text, large_size, small_size):
    total = 0
    for wi, word in enumerate(text.split()):
        if wi > 0:
            total += fitz.get_text_length(' ', fontname=FONT_BOLD, fontsize=large_size)
        for ci, ch in enumerate(word):
            fs = large_size if ci == 0 else small_size
            total += fitz.get_text_length(ch.upper(), fontname=FONT_BOLD, fontsize=fs)
    return total
