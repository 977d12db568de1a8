#!/usr/bin/env python3
"""CLI entry point for ranking a weight-loss contest.

Usage:
    python process_contest.py --source tsv --data weigh_ins.tsv \\
        --contest "GMF Biggest Loser 2025" --mode final --output ./output/
"""

import argparse
import datetime
import os
import sys

# Add parent directory to path for imports (skip when frozen by PyInstaller)
if not getattr(sys, 'frozen', False):
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leaderboard.core.models import ContestConfig, RankingMode
from leaderboard.core.record_store import RecordStore
from leaderboard.core.ranking import compute_rankings
from leaderboard.core.output_generator import (
    generate_leaderboard_markdown, generate_reveal_script, generate_standings_csv
)
from leaderboard.core.pdf_generator import generate_leaderboard_pdf, generate_reveal_pdf
from leaderboard.adapters.json_adapter import JsonAdapter
from leaderboard.adapters.tsv_adapter import TsvAdapter


def print_trace(event: str, payload):
    """Print engine diagnostics (enabled with --verbose)."""
    if event == 'competitor':
        if payload['insufficient_data']:
            print(f"  {payload['name']}: not enough weigh-ins to rank")
        else:
            print(f"  {payload['name']}: Baseline={payload['baseline']}kg, "
                  f"Current={payload['current']}kg, "
                  f"Loss={payload['percent_loss']:.2f}%, {payload['kg_loss']:.1f}kg")
    elif event == 'rankings':
        for row in payload:
            tied = ' (tied)' if row['is_tied'] else ''
            print(f"  #{row['rank']} {row['name']} {row['percent_loss']:.2f}%{tied}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Rank a weight-loss contest')
    parser.add_argument('--source', default='tsv',
                        choices=['tsv', 'json', 'backup'],
                        help='Input type: weigh-in sheet, competitor JSON, or backup export')
    parser.add_argument('--data', nargs='+', default=[],
                        help='Input data file(s); omit to rank what the database holds')
    parser.add_argument('--output', required=True, help='Output directory for generated files')
    parser.add_argument('--db', default=None,
                        help='Path to the contest SQLite database (default: {output}/contest.db)')
    parser.add_argument('--contest', default='Weight-Loss Challenge', help='Contest name')
    parser.add_argument('--mode', default=RankingMode.PRE_FINAL.value,
                        choices=[m.value for m in RankingMode],
                        help='Ranking mode; final applies the anti-dehydration rule')
    parser.add_argument('--title-line1', default='', help='Leaderboard PDF title line 1')
    parser.add_argument('--title-line2', default='', help='Leaderboard PDF title line 2')
    parser.add_argument('--year', default=str(datetime.datetime.now().year),
                        help='Contest year for PDF footers (default: current year)')
    parser.add_argument('--export', action='store_true',
                        help='Also write a JSON backup of the database')
    parser.add_argument('--verbose', action='store_true',
                        help='Print per-competitor ranking diagnostics')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    title_lines = tuple(l for l in [args.title_line1, args.title_line2] if l) or (args.contest,)
    config = ContestConfig(
        contest_name=args.contest,
        mode=RankingMode(args.mode),
        title_lines=title_lines,
        year=args.year,
    )

    os.makedirs(args.output, exist_ok=True)
    db_path = args.db if args.db else os.path.join(args.output, 'contest.db')
    store = RecordStore(db_path)
    print(f"Using database at {db_path}")

    # Import data
    if args.source == 'backup':
        for data_path in args.data:
            print(f"Importing backup {data_path}...")
            with open(data_path, 'r', encoding='utf-8') as f:
                store.import_data(f.read())
    else:
        if args.source == 'tsv':
            adapter = TsvAdapter()
        elif args.source == 'json':
            adapter = JsonAdapter()
        else:
            print(f"Unknown source type: {args.source}")
            sys.exit(1)

        for data_path in args.data:
            print(f"Parsing {data_path}...")
            entries = adapter.parse_entries(data_path)
            report = store.merge_competitors(entries)
            print(f"  -> {len(entries)} competitors: "
                  f"{report['added_competitors']} new, "
                  f"{report['added_weigh_ins']} weigh-ins added, "
                  f"{report['skipped_weigh_ins']} already recorded")

    entries = store.get_all_competitors()
    print(f"Ranking {len(entries)} competitors ({config.mode.value})...")
    trace = print_trace if args.verbose else None
    results = compute_rankings(entries, config.mode, trace=trace)
    ranked = sum(1 for r in results if r.is_ranked)
    print(f"Ranked {ranked}, awaiting weigh-ins {len(results) - ranked}")

    # Generate outputs
    md_path = os.path.join(args.output, 'leaderboard.md')
    generate_leaderboard_markdown(results, md_path, title=config.contest_name)
    print(f"Generated {md_path}")

    csv_path = os.path.join(args.output, 'standings.csv')
    generate_standings_csv(results, csv_path)
    print(f"Generated {csv_path}")

    script_path = os.path.join(args.output, 'reveal_script.txt')
    generate_reveal_script(results, script_path)
    print(f"Generated {script_path}")

    pdf_path = os.path.join(args.output, 'leaderboard.pdf')
    generate_leaderboard_pdf(results, pdf_path,
                             title_lines=config.title_lines, year=config.year)
    print(f"Generated {pdf_path}")

    reveal_pdf_path = os.path.join(args.output, 'reveal.pdf')
    generate_reveal_pdf(results, reveal_pdf_path, contest_name=config.contest_name)
    print(f"Generated {reveal_pdf_path}")

    if args.export:
        backup_path = os.path.join(
            args.output, f"leaderboard-backup-{datetime.date.today().isoformat()}.json")
        with open(backup_path, 'w', encoding='utf-8') as f:
            f.write(store.export_data())
        print(f"Generated {backup_path}")

    print("\nDone!")


if __name__ == '__main__':
    main()
